"""DCT block encoder for raw interleaved RGB video."""

from __future__ import annotations

import sys
from contextlib import ExitStack
from enum import IntEnum

import numpy as np

from blockcodec.dct import BLOCK, forward_dct
from blockcodec.motion import compute_motion_vectors, segment_foreground_background

DEFAULT_WIDTH = 960
DEFAULT_HEIGHT = 540
OUTPUT_PATH = "input_video.cmp"


class BlockType(IntEnum):
    """Kind of an encoded block, written as the first value of each line."""

    IFRAME = 0
    FOREGROUND = 1
    BACKGROUND = 2


def _as_pixels(frame, width: int, height: int) -> np.ndarray:
    if isinstance(frame, (bytes, bytearray, memoryview)):
        data = np.frombuffer(frame, dtype=np.uint8)
    else:
        data = np.asarray(frame, dtype=np.uint8)
    if data.size != width * height * 3:
        raise ValueError(
            f"frame holds {data.size} values, expected {width * height * 3}"
        )
    return data.reshape(height, width, 3).astype(np.float64)


def _round_half_away(values: np.ndarray) -> np.ndarray:
    return (np.sign(values) * np.floor(np.abs(values) + 0.5)).astype(np.int64)


def _block_types(foreground, rows: int, cols: int) -> np.ndarray:
    if foreground is None or len(foreground) == 0:
        return np.full((rows, cols), BlockType.IFRAME, dtype=np.int64)
    types = np.full((rows, cols), BlockType.BACKGROUND, dtype=np.int64)
    for block_row in range(rows):
        mb_row = block_row // 2
        if mb_row >= len(foreground):
            continue
        mask = foreground[mb_row]
        for block_col in range(cols):
            mb_col = block_col // 2
            if mb_col < len(mask) and mask[mb_col]:
                types[block_row, block_col] = BlockType.FOREGROUND
    return types


def encode_frame(frame, foreground, n1: int, n2: int,
                 width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT) -> str:
    """Encode one frame as text lines of quantized DCT coefficients.

    ``foreground`` is the macroblock mask from segmentation, or ``None`` for
    an I-frame. Foreground blocks are quantized by ``2**n1``, all others
    (I-frame blocks included) by ``2**n2``. Each 8x8 block yields three lines,
    red, green and blue, each holding the block type and 64 coefficients.
    """
    if n1 < 0 or n2 < 0:
        raise ValueError("quantization exponents must not be negative")
    if width % BLOCK:
        raise ValueError(f"width must be a multiple of {BLOCK}")
    pixels = _as_pixels(frame, width, height)
    rows = len(range(0, height - 4, BLOCK))
    if rows * BLOCK > height:
        raise ValueError(f"height {height} does not hold whole {BLOCK}-pixel block rows")
    cols = width // BLOCK

    area = pixels[: rows * BLOCK].reshape(rows, BLOCK, cols, BLOCK, 3)
    blocks = area.transpose(0, 2, 4, 1, 3)
    coefficients = forward_dct(blocks)

    types = _block_types(foreground, rows, cols)
    steps = np.where(types == BlockType.FOREGROUND, 2 ** n1, 2 ** n2).astype(np.float64)
    quantized = _round_half_away(coefficients / steps[:, :, None, None, None])

    lines = []
    for block_row in range(rows):
        for block_col in range(cols):
            prefix = f"{types[block_row, block_col]} "
            for channel in quantized[block_row, block_col]:
                values = " ".join(map(str, channel.ravel().tolist()))
                lines.append(f"{prefix}{values} \n")
    return "".join(lines)


def encode_video(source, output, n1: int, n2: int,
                 width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT) -> int:
    """Encode a raw RGB video into the block text format.

    ``source`` is a path or a binary stream, ``output`` a path or a text
    stream. A short final read only overwrites the start of the frame buffer,
    so its tail keeps the previous frame's bytes. Returns the frame count.
    """
    frame_size = width * height * 3
    with ExitStack() as stack:
        if hasattr(source, "read"):
            reader = source
        else:
            reader = stack.enter_context(open(source, "rb"))
        if hasattr(output, "write"):
            writer = output
        else:
            writer = stack.enter_context(open(output, "w", encoding="ascii", newline="\n"))

        writer.write(f"{n1} {n2}\n")
        buffer = bytearray(frame_size)
        previous = None
        frames = 0
        while chunk := reader.read(frame_size):
            buffer[: len(chunk)] = chunk
            current = bytes(buffer)
            if previous is None:
                mask = None
            else:
                vectors = compute_motion_vectors(current, previous, width, height)
                mask = segment_foreground_background(vectors)
            writer.write(encode_frame(current, mask, n1, n2, width, height))
            previous = current
            frames += 1
            if len(chunk) < frame_size:
                break
    return frames


def main(argv=None) -> int:
    """Command entry point: ``<video.rgb> n1 n2``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 3:
        print(
            "The encoder takes exactly three arguments. "
            "Example: blockcodec-encode video.rgb n1 n2",
            file=sys.stderr,
        )
        return 1
    video_path, raw_n1, raw_n2 = args
    try:
        n1, n2 = int(raw_n1), int(raw_n2)
    except ValueError:
        print("n1 and n2 must be integers", file=sys.stderr)
        return 1
    try:
        with open(video_path, "rb") as source:
            encode_video(source, OUTPUT_PATH, n1, n2)
    except OSError:
        print("Error Opening File for Reading", file=sys.stderr)
        return 1
    print("terminated")
    return 0


if __name__ == "__main__":
    sys.exit(main())