# blockcodec

A small lossy video codec built on the 8×8 discrete cosine transform, with a
decoder and an interactive player.

The encoder reads raw interleaved RGB video (960×540, 8 bits per channel by
default). It estimates motion per 16×16 macroblock with a three-step search.
It then splits each frame into foreground and background, using the most
frequent motion vector as the background motion. Finally it quantizes the DCT
coefficients of every 8×8 block: foreground blocks with step `2**n1`, all
other blocks with step `2**n2`. The first frame is an I-frame, and its blocks
use step `2**n2` as well. The result is a plain-text `.cmp` file.

The decoder turns a `.cmp` file back into RGB frames. The player shows them,
or raw `.rgb` frames, in a pygame window with looping audio.

## Installation

```
pip install .
```

For running the tests:

```
pip install .[test]
pytest
```

## Encoding

```
blockcodec-encode path/to/video.rgb n1 n2
```

`n1` and `n2` are the quantization exponents. `n1` applies to foreground
blocks and `n2` to background and I-frame blocks. The compressed stream is
always written to `input_video.cmp` in the current directory. When it
finishes, the command prints `terminated`.

### The `.cmp` format

The first line holds `n1 n2`. Every following line is one 8×8 block of one
colour channel. It holds a block type followed by 64 quantized coefficients,
row by row, with a trailing space. Blocks come in red, green, blue order,
left to right and top to bottom across each frame.

With a 540-pixel-high source, 67 block rows (536 pixels) are encoded per
frame. The block type is:

| value | meaning    |
|-------|------------|
| 0     | I-frame    |
| 1     | foreground |
| 2     | background |

When decoding, blocks of type 0 and 1 are scaled by `2**n1` and blocks of
type 2 by `2**n2`.

## Playing

```
blockcodec-play input_video.cmp audio_file
```

A video path ending in `.rgb` is read as raw 960×540 frames. Any other path is
decoded from the block format into 960×536 frames. Playback runs at 30 frames
per second. The audio file is played in a loop through `pygame.mixer.music`.
If the audio device cannot be opened, the video plays without sound.

Controls:

| key / button       | action                                 |
|--------------------|----------------------------------------|
| Space / Play/Pause | toggle pause                           |
| `k` / Step Forward | next frame (while paused)              |
| `j` / Step Back    | previous frame (while paused)          |
| `p`                | play from the beginning                |
| `s` / Stop         | stop and rewind to the first frame     |
| Esc or closing the window | quit                            |

## Library use

```python
from blockcodec.encoder import encode_video
from blockcodec.decoder import decode_file
from blockcodec.player import play

with open("video.rgb", "rb") as source, open("out.cmp", "w") as output:
    encode_video(source, output, 4, 8, 960, 540)

frames = decode_file("out.cmp", 960, 536)   # shape (count, 536, 960, 3), RGB
play(frames, fps=30)
```

### Modules

- `blockcodec.dct` provides `cosine_table()`, `forward_dct(block)` and
  `inverse_dct(coefficients)`. They work on 8×8 blocks or batches of them.
  `inverse_dct` clamps its output to 0..255.
- `blockcodec.motion` provides the following:
  - `compute_motion_vectors(current, previous, width, height)`;
  - `segment_foreground_background(motion_vectors)`, which returns a
    per-macroblock foreground mask;
  - `label_regions(is_foreground)`, which labels 4-connected foreground
    regions and uses `-1` for background.
- `blockcodec.encoder` provides the following:
  - `BlockType`;
  - `encode_frame(frame, foreground, n1, n2, width, height)`, which returns
    the text lines for one frame, with `foreground=None` for an I-frame;
  - `encode_video(source, output, n1, n2, width, height)`, which returns the
    number of frames encoded;
  - `main(argv)`.
- `blockcodec.decoder` provides the following:
  - `read_header(stream)`;
  - `iter_blocks(stream, n, nn)`;
  - `decode_channels(blocks, width)`;
  - `assemble_frames(red, green, blue, width, height)`, which trims data 64
    values at a time until it fills whole frames;
  - `decode_file(path, width, height)`.
- `blockcodec.player` provides the following:
  - `Button` and `player_buttons(width)`;
  - `PlayerState`, the playback logic without any window, covering pause,
    stepping, stop, play, clicks and keys;
  - `load_raw_video(path, width, height)`;
  - `play(frames, fps)`, which shows frames without audio;
  - `main(argv)`.

## What it does not do

- The `.cmp` file carries no audio. Sound must be supplied as a separate file
  in a format `pygame.mixer.music` can load.
- The encoder command has no option for the output path or the frame size.
  Use `encode_video` directly for those.
- Foreground regions are labelled by `label_regions`, but the encoder does not
  use the labels. Each block's quantization depends only on the foreground
  mask.