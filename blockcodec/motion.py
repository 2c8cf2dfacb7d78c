"""Macroblock motion estimation and foreground/background segmentation."""

from __future__ import annotations

import math
from collections import Counter, deque

import numpy as np

MACROBLOCK = 16
INITIAL_STEP = 4
MOTION_THRESHOLD = 2

MotionVector = tuple[int, int]


def _as_frame(frame, width: int, height: int) -> np.ndarray:
    if isinstance(frame, (bytes, bytearray, memoryview)):
        data = np.frombuffer(frame, dtype=np.uint8)
    else:
        data = np.asarray(frame, dtype=np.uint8)
    if data.size != width * height * 3:
        raise ValueError(
            f"frame holds {data.size} values, expected {width * height * 3}"
        )
    return data.reshape(height, width, 3).astype(np.int32)


def _search(current, previous, cur_x, cur_y, width, height) -> MotionVector:
    size = MACROBLOCK
    target = current[cur_y:cur_y + size, cur_x:cur_x + size]
    min_mad = None
    best = (0, 0)
    center_x, center_y = cur_x, cur_y
    step = INITIAL_STEP
    while step >= 1:
        candidates = (
            (center_x, center_y),
            (center_x - step, center_y),
            (center_x + step, center_y),
            (center_x, center_y - step),
            (center_x, center_y + step),
        )
        for x, y in candidates:
            if x < 0 or x > width - size or y < 0 or y > height - size:
                continue
            window = previous[y:y + size, x:x + size]
            mad = int(np.abs(target - window).sum()) // (size * size * 3)
            if min_mad is None or mad < min_mad:
                min_mad = mad
                best = (x - cur_x, y - cur_y)
                center_x, center_y = x, y
        step //= 2
    return best


def compute_motion_vectors(current, previous, width: int, height: int) -> list[list[MotionVector]]:
    """Find a motion vector per 16x16 macroblock with a three-step search.

    Frames are interleaved RGB, ``width * height * 3`` bytes each. The result
    holds one row per macroblock row, each a list of ``(dx, dy)`` offsets into
    the previous frame.
    """
    cur = _as_frame(current, width, height)
    prev = _as_frame(previous, width, height)
    return [
        [
            _search(cur, prev, col * MACROBLOCK, row * MACROBLOCK, width, height)
            for col in range(width // MACROBLOCK)
        ]
        for row in range(height // MACROBLOCK)
    ]


def segment_foreground_background(motion_vectors) -> list[list[bool]]:
    """Mark macroblocks whose motion differs from the dominant motion.

    The most frequent vector is taken as the background motion; on a tie the
    smallest vector wins. A block is foreground when its vector lies more than
    two units (integer distance) from the background motion.
    """
    rows = [[tuple(vector) for vector in row] for row in motion_vectors]
    counts = Counter(vector for row in rows for vector in row)
    background = max(sorted(counts), key=counts.__getitem__) if counts else (0, 0)
    bg_x, bg_y = background
    return [
        [
            math.isqrt((dx - bg_x) ** 2 + (dy - bg_y) ** 2) > MOTION_THRESHOLD
            for dx, dy in row
        ]
        for row in rows
    ]


def label_regions(is_foreground) -> list[list[int]]:
    """Label 4-connected foreground regions in scan order; background is -1."""
    grid = [list(map(bool, row)) for row in is_foreground]
    labels = [[-1] * len(row) for row in grid]
    next_label = 0
    for start_y, row in enumerate(grid):
        for start_x, foreground in enumerate(row):
            if not foreground or labels[start_y][start_x] != -1:
                continue
            labels[start_y][start_x] = next_label
            queue = deque([(start_y, start_x)])
            while queue:
                y, x = queue.popleft()
                for ny, nx in ((y, x - 1), (y, x + 1), (y - 1, x), (y + 1, x)):
                    if (
                        0 <= ny < len(grid)
                        and 0 <= nx < len(grid[ny])
                        and grid[ny][nx]
                        and labels[ny][nx] == -1
                    ):
                        labels[ny][nx] = next_label
                        queue.append((ny, nx))
            next_label += 1
    return labels