"""Interactive player for decoded or raw RGB video with looping audio."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass

import numpy as np
import pygame

from blockcodec.decoder import DEFAULT_HEIGHT as DECODED_HEIGHT
from blockcodec.decoder import DEFAULT_WIDTH as DECODED_WIDTH
from blockcodec.decoder import decode_file

RAW_WIDTH = 960
RAW_HEIGHT = 540
DEFAULT_FPS = 30
PANEL_HEIGHT = 80
BUTTON_Y = 560
BUTTON_WIDTH = 120
BUTTON_HEIGHT = 30
TEXT_BASELINE = 580
BUTTON_COLOR = (150, 150, 150)
TEXT_COLOR = (0, 0, 0)
KEY_ESCAPE = 27
KEY_SPACE = 32


@dataclass(frozen=True)
class Button:
    """A clickable rectangle on the control panel."""

    label: str
    x: int
    y: int
    width: int
    height: int
    text_x: int

    def contains(self, x: int, y: int) -> bool:
        """Return True when the point lies inside; right and bottom edges are excluded."""
        return self.x <= x < self.x + self.width and self.y <= y < self.y + self.height


def player_buttons(width: int) -> dict[str, Button]:
    """Lay out the four control buttons for a window of the given width."""
    center = width // 2
    return {
        "play_pause": Button("Play/Pause", center - 170, BUTTON_Y,
                             BUTTON_WIDTH, BUTTON_HEIGHT, center - 155),
        "step_forward": Button("Step Forward", width - 150, BUTTON_Y,
                               BUTTON_WIDTH, BUTTON_HEIGHT, width - 140),
        "step_back": Button("Step Back", 50, BUTTON_Y,
                            BUTTON_WIDTH, BUTTON_HEIGHT, 70),
        "stop": Button("Stop", center + 50, BUTTON_Y,
                       BUTTON_WIDTH, BUTTON_HEIGHT, center + 95),
    }


def _key_code(key) -> int | None:
    if isinstance(key, str):
        return ord(key) if len(key) == 1 else None
    return int(key)


@dataclass
class PlayerState:
    """Playback position and the audio requests that follow from it.

    ``audio_paused``, ``restart_audio`` and ``seek_position`` (in seconds)
    are read and cleared by whatever drives the audio output.
    """

    total_frames: int
    width: int = RAW_WIDTH
    fps: int = DEFAULT_FPS
    index: int = 0
    paused: bool = False
    audio_paused: bool = False
    restart_audio: bool = False
    seek_position: float | None = None

    def __post_init__(self) -> None:
        if self.total_frames < 1:
            raise ValueError("a video needs at least one frame")
        if self.fps <= 0:
            raise ValueError("fps must be positive")

    @property
    def current_frame(self) -> int:
        """Index of the frame to show, kept inside the video."""
        return min(max(self.index, 0), self.total_frames - 1)

    def _seek(self) -> None:
        self.seek_position = self.index / self.fps

    def toggle_pause(self) -> None:
        """Switch between playing and paused."""
        self.paused = not self.paused
        self.audio_paused = self.paused

    def step_forward(self) -> bool:
        """Move one frame ahead while paused; return whether anything happened."""
        if not self.paused:
            return False
        self.index = min(self.index + 1, self.total_frames - 1)
        self._seek()
        return True

    def step_back(self) -> bool:
        """Move one frame back while paused; return whether anything happened."""
        if not self.paused:
            return False
        self.index = max(self.index - 1, 0)
        self._seek()
        return True

    def stop(self) -> None:
        """Rewind to the start and pause."""
        self.index = 0
        self.paused = True
        self.restart_audio = True
        self.audio_paused = True

    def play(self) -> None:
        """Restart playback from the first frame."""
        self.restart_audio = True
        self.paused = False
        self.audio_paused = False
        self.index = 0

    def advance(self) -> None:
        """Move to the next frame; past the end, rewind and pause."""
        if self.index < self.total_frames:
            self.index += 1
        else:
            self.stop()

    def handle_click(self, x: int, y: int) -> None:
        """Apply a left click at window coordinates ``(x, y)``."""
        buttons = player_buttons(self.width)
        if buttons["play_pause"].contains(x, y):
            self.toggle_pause()
        elif buttons["step_forward"].contains(x, y) and self.paused:
            self.step_forward()
        elif buttons["step_back"].contains(x, y) and self.paused:
            self.step_back()
        elif buttons["stop"].contains(x, y):
            self.stop()

    def handle_key(self, key) -> bool:
        """Apply a key press; return False when the player should quit."""
        code = _key_code(key)
        if code == KEY_ESCAPE:
            return False
        if code == KEY_SPACE:
            self.toggle_pause()
        elif self.paused and code == ord("k"):
            self.step_forward()
        elif self.paused and code == ord("j"):
            self.step_back()
        elif code == ord("p"):
            self.play()
        elif code == ord("s"):
            self.stop()
        return True


def load_raw_video(path, width: int = RAW_WIDTH, height: int = RAW_HEIGHT) -> np.ndarray:
    """Read whole interleaved RGB frames; a partial final frame is dropped."""
    frame_size = width * height * 3
    frames = []
    with open(path, "rb") as stream:
        while len(chunk := stream.read(frame_size)) == frame_size:
            frames.append(np.frombuffer(chunk, dtype=np.uint8).reshape(height, width, 3))
    if not frames:
        raise ValueError("Video file is empty or failed to load")
    return np.stack(frames)


class _Audio:
    """Looping music output that follows a PlayerState's audio requests."""

    def __init__(self, path) -> None:
        pygame.mixer.init()
        pygame.mixer.music.load(os.fspath(path))
        pygame.mixer.music.play(loops=-1)
        self._paused = False

    def sync(self, state: PlayerState) -> None:
        music = pygame.mixer.music
        if state.restart_audio:
            music.play(loops=-1)
            self._paused = False
            state.restart_audio = False
        if state.seek_position is not None:
            try:
                music.play(loops=-1, start=state.seek_position)
            except pygame.error:
                pass
            self._paused = False
            state.seek_position = None
        if state.audio_paused and not self._paused:
            music.pause()
            self._paused = True
        elif not state.audio_paused and self._paused:
            music.unpause()
            self._paused = False

    def close(self) -> None:
        pygame.mixer.music.stop()
        pygame.mixer.quit()


def _event_key(event) -> int | None:
    if event.key == pygame.K_ESCAPE:
        return KEY_ESCAPE
    if event.key == pygame.K_SPACE:
        return KEY_SPACE
    return _key_code(event.unicode) if event.unicode else None


def _draw_buttons(screen, font, width: int) -> None:
    for button in player_buttons(width).values():
        pygame.draw.rect(screen, BUTTON_COLOR,
                         pygame.Rect(button.x, button.y, button.width, button.height))
        text = font.render(button.label, True, TEXT_COLOR)
        screen.blit(text, (button.text_x, TEXT_BASELINE - text.get_height() + 4))


def _play(frames, fps: int, audio_path) -> None:
    frames = np.asarray(frames, dtype=np.uint8)
    if frames.ndim != 4 or frames.shape[-1] != 3:
        raise ValueError("frames must have shape (count, height, width, 3)")
    count, height, width, _ = frames.shape
    state = PlayerState(total_frames=count, width=width, fps=fps)

    audio = None
    if audio_path is not None:
        try:
            audio = _Audio(audio_path)
        except pygame.error:
            print("Failed to open audio device.")

    pygame.init()
    try:
        screen = pygame.display.set_mode((width, height + PANEL_HEIGHT))
        pygame.display.set_caption("Player")
        font = pygame.font.Font(None, 20)
        clock = pygame.time.Clock()
        running = True
        while running:
            frame = frames[state.current_frame]
            if not state.paused:
                state.advance()
            screen.fill((0, 0, 0))
            surface = pygame.surfarray.make_surface(np.ascontiguousarray(frame.swapaxes(0, 1)))
            screen.blit(surface, (0, 0))
            _draw_buttons(screen, font, width)
            pygame.display.flip()

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    code = _event_key(event)
                    if code is not None and not state.handle_key(code):
                        running = False
                elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    state.handle_click(*event.pos)
            if audio is not None:
                audio.sync(state)
            clock.tick(fps)
    finally:
        if audio is not None:
            audio.close()
        pygame.quit()


def play(frames, fps: int = DEFAULT_FPS) -> None:
    """Show frames of shape ``(count, height, width, 3)`` in RGB until closed."""
    _play(frames, fps, None)


def main(argv=None) -> int:
    """Command entry point: ``<video> <audio>``.

    A video ending in ``.rgb`` is read as raw 960x540 frames; anything else is
    decoded from the block format at 960x536.
    """
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 2:
        print(
            "The player takes exactly two filepath arguments. "
            "Example: blockcodec-play input_video.cmp input_audio.wav",
            file=sys.stderr,
        )
        return 1
    video_path, audio_path = args
    if not os.path.isfile(video_path):
        print("Error Opening File for Reading", file=sys.stderr)
        return 1
    if not os.path.isfile(audio_path):
        print("Could not load audio file", file=sys.stderr)
        return 1
    try:
        if video_path.lower().endswith(".rgb"):
            frames = load_raw_video(video_path, RAW_WIDTH, RAW_HEIGHT)
        else:
            frames = decode_file(video_path, DECODED_WIDTH, DECODED_HEIGHT)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if len(frames) == 0:
        print("Error: no frames to play", file=sys.stderr)
        return 1
    _play(frames, DEFAULT_FPS, audio_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())