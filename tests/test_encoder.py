import io

import numpy as np
import pytest

from blockcodec.dct import inverse_dct
from blockcodec.encoder import BlockType, encode_frame, encode_video, main


def _parse(text):
    return [list(map(int, line.split())) for line in text.splitlines()]


def _random_frame(width, height, seed=0):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)


def test_iframe_layout_and_types():
    frame = _random_frame(16, 16)
    lines = _parse(encode_frame(frame.tobytes(), None, 1, 0, 16, 16))
    assert len(lines) == 2 * 2 * 3
    assert all(len(line) == 65 for line in lines)
    assert all(line[0] == BlockType.IFRAME for line in lines)


def test_line_format_has_trailing_space():
    frame = np.zeros((16, 16, 3), dtype=np.uint8)
    text = encode_frame(frame, None, 0, 0, 16, 16)
    first = text.split("\n")[0]
    assert first.startswith("0 ")
    assert first.endswith(" ")


def test_iframe_round_trip_with_unit_step():
    width, height = 16, 16
    frame = _random_frame(width, height, seed=7)
    lines = _parse(encode_frame(frame, None, 5, 0, width, height))
    block = 0
    for block_row in range(2):
        for block_col in range(2):
            for channel in range(3):
                coeffs = np.array(lines[block * 3 + channel][1:], dtype=float).reshape(8, 8)
                pixels = inverse_dct(coeffs)
                original = frame[block_row * 8:(block_row + 1) * 8,
                                 block_col * 8:(block_col + 1) * 8, channel]
                assert np.max(np.abs(pixels - original)) < 3
            block += 1


def test_iframe_quantized_with_n2():
    frame = np.full((16, 16, 3), 128, dtype=np.uint8)
    lines = _parse(encode_frame(frame, None, 0, 3, 16, 16))
    assert lines[0][1] * 2 ** 3 == 8 * 128


def test_foreground_and_background_types():
    width, height = 16, 24
    frame = np.full((height, width, 3), 128, dtype=np.uint8)
    lines = _parse(encode_frame(frame, [[True]], 1, 3, width, height))
    assert len(lines) == 3 * 2 * 3
    types = [line[0] for line in lines[::3]]
    assert types[:4] == [BlockType.FOREGROUND] * 4
    assert types[4:] == [BlockType.BACKGROUND] * 2
    fg_dc = lines[0][1]
    bg_dc = lines[-1][1]
    assert fg_dc * 2 ** 1 == bg_dc * 2 ** 3


def test_rounding_half_away_from_zero():
    frame = np.full((16, 16, 3), 1, dtype=np.uint8)
    lines = _parse(encode_frame(frame, None, 0, 4, 16, 16))
    # DC of a constant block of 1 is 8; 8 / 16 = 0.5 rounds away from zero.
    assert lines[0][1] == 1


@pytest.mark.parametrize("width,height,size", [(16, 16, 10), (12, 16, 12 * 16 * 3)])
def test_invalid_frame_rejected(width, height, size):
    with pytest.raises(ValueError):
        encode_frame(bytes(size), None, 0, 0, width, height)


def test_negative_exponent_rejected():
    with pytest.raises(ValueError):
        encode_frame(bytes(16 * 16 * 3), None, -1, 0, 16, 16)


def test_encode_video_header_and_frames():
    width, height = 32, 32
    frame = _random_frame(width, height, seed=9).tobytes()
    out = io.StringIO()
    count = encode_video(io.BytesIO(frame + frame), out, 2, 4, width, height)
    assert count == 2
    lines = out.getvalue().splitlines()
    assert lines[0] == "2 4"
    per_frame = (width // 8) * ((height - 4 + 7) // 8) * 3
    assert len(lines) == 1 + 2 * per_frame
    first = _parse("\n".join(lines[1:1 + per_frame]))
    second = _parse("\n".join(lines[1 + per_frame:]))
    assert all(line[0] == BlockType.IFRAME for line in first)
    assert all(line[0] == BlockType.BACKGROUND for line in second)


def test_encode_video_partial_last_frame(tmp_path):
    width, height = 16, 16
    frame = _random_frame(width, height, seed=11).tobytes()
    source = tmp_path / "clip.rgb"
    source.write_bytes(frame + frame[:100])
    target = tmp_path / "clip.cmp"
    assert encode_video(source, target, 0, 0, width, height) == 2
    assert target.read_text().splitlines()[0] == "0 0"


def test_encode_video_empty_source():
    out = io.StringIO()
    assert encode_video(io.BytesIO(b""), out, 1, 2, 16, 16) == 0
    assert out.getvalue() == "1 2\n"


def test_main_wrong_argument_count():
    assert main(["only-one"]) == 1


def test_main_missing_input(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert main([str(tmp_path / "missing.rgb"), "1", "2"]) == 1


def test_main_non_integer_exponent(tmp_path):
    assert main([str(tmp_path / "x.rgb"), "a", "2"]) == 1