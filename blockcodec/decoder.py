"""Decoder for the DCT block text format produced by the encoder."""

from __future__ import annotations

import math
from itertools import islice
from typing import Iterable, Iterator, TextIO

import numpy as np

from blockcodec.dct import BLOCK, inverse_dct
from blockcodec.encoder import BlockType

DEFAULT_WIDTH = 960
DEFAULT_HEIGHT = 536
COEFFICIENTS = BLOCK * BLOCK
CHANNELS = 3
_TRIM_STEP = 64


def read_header(stream: TextIO) -> tuple[int, int]:
    """Read the ``n1 n2`` quantization exponents from the first line."""
    while True:
        line = stream.readline()
        if not line:
            raise ValueError("missing header line")
        parts = line.split()
        if parts:
            break
    if len(parts) != 2:
        raise ValueError(f"header must hold two integers, got {line.strip()!r}")
    try:
        return int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ValueError(f"header must hold two integers, got {line.strip()!r}") from exc


def _numbers(stream: TextIO) -> Iterator[float]:
    """Yield numbers from the stream until the first token that is not one."""
    for line in stream:
        for token in line.split():
            try:
                value = float(token)
            except ValueError:
                return
            if not math.isfinite(value):
                return
            yield value


def iter_blocks(stream: TextIO, n: float, nn: float) -> Iterator[np.ndarray]:
    """Yield dequantized 8x8 coefficient blocks in file order.

    Each block starts with its type. I-frame and foreground blocks are scaled
    by ``n``, background blocks by ``nn``. A block cut short by the end of the
    data is filled with zeros.
    """
    values = _numbers(stream)
    for head in values:
        block_type = int(head)
        raw = list(islice(values, COEFFICIENTS))
        raw.extend([0.0] * (COEFFICIENTS - len(raw)))
        scale = n if block_type in (BlockType.IFRAME, BlockType.FOREGROUND) else nn
        yield np.array(raw, dtype=np.float64).reshape(BLOCK, BLOCK) * scale


def _raster(blocks: list[np.ndarray], per_row: int) -> np.ndarray:
    if not blocks:
        return np.empty(0, dtype=np.uint8)
    pixels = inverse_dct(np.stack(blocks)).astype(np.uint8)
    rows = [
        pixels[start:start + per_row].transpose(1, 0, 2).ravel()
        for start in range(0, len(pixels), per_row)
    ]
    return np.concatenate(rows)


def decode_channels(blocks: Iterable, width: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Inverse-transform blocks into red, green and blue pixel streams.

    Blocks arrive red, green, blue in turn. Each channel's blocks fill rows of
    ``width`` pixels from left to right; the result per channel is the flat
    sequence of 8-bit pixel values in raster order.
    """
    if width <= 0:
        raise ValueError("width must be positive")
    per_row = -(-width // BLOCK)
    channels: tuple[list, list, list] = ([], [], [])
    for position, block in enumerate(blocks):
        channels[position % CHANNELS].append(np.asarray(block, dtype=np.float64))
    red, green, blue = (_raster(channel, per_row) for channel in channels)
    return red, green, blue


def assemble_frames(red, green, blue, width: int, height: int) -> np.ndarray:
    """Interleave channel streams into frames of shape ``(height, width, 3)``.

    The pixel count follows the red stream. When the data does not fill a
    whole number of frames, values are dropped from the end 64 at a time
    until it does. The result is RGB, one frame per leading index.
    """
    if width <= 0 or height <= 0:
        raise ValueError("width and height must be positive")
    red = np.asarray(red, dtype=np.uint8).ravel()
    green = np.asarray(green, dtype=np.uint8).ravel()
    blue = np.asarray(blue, dtype=np.uint8).ravel()
    count = red.size
    if green.size < count or blue.size < count:
        raise ValueError("green and blue streams are shorter than red")
    pixels = np.stack([red, green[:count], blue[:count]], axis=1).ravel()

    frame_size = width * height * CHANNELS
    size = pixels.size
    while size % frame_size:
        if size < _TRIM_STEP:
            raise ValueError("stream cannot be trimmed to whole frames")
        size -= _TRIM_STEP
    return pixels[:size].reshape(-1, height, width, CHANNELS)


def decode_file(path, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT) -> np.ndarray:
    """Decode an encoded video file into an array of RGB frames."""
    with open(path, "r", encoding="ascii") as stream:
        n1, n2 = read_header(stream)
        blocks = iter_blocks(stream, 2.0 ** n1, 2.0 ** n2)
        red, green, blue = decode_channels(blocks, width)
    return assemble_frames(red, green, blue, width, height)