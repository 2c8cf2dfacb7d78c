"""8x8 type-II discrete cosine transform and its inverse."""

from __future__ import annotations

import math

import numpy as np

BLOCK = 8


def cosine_table() -> np.ndarray:
    """Return the 8x8 table ``t[u][x] = cos((2x + 1) * u * pi / 16)``."""
    u = np.arange(BLOCK)[:, None]
    x = np.arange(BLOCK)[None, :]
    return np.cos((2.0 * x + 1.0) * u * math.pi / 16.0)


_TABLE = cosine_table()
_SCALE = np.where(np.arange(BLOCK) == 0, 1.0 / math.sqrt(2.0), 1.0)
_WEIGHTS = 0.25 * np.outer(_SCALE, _SCALE)


def _as_blocks(values) -> np.ndarray:
    array = np.asarray(values, dtype=np.float64)
    if array.ndim < 2 or array.shape[-2:] != (BLOCK, BLOCK):
        raise ValueError(f"expected trailing dimensions {BLOCK}x{BLOCK}, got {array.shape}")
    return array


def forward_dct(block) -> np.ndarray:
    """Transform one or more 8x8 pixel blocks into DCT coefficients.

    The coefficient row index pairs with the pixel row index. Any leading
    dimensions are treated as a batch of blocks.
    """
    pixels = _as_blocks(block)
    return _WEIGHTS * (_TABLE @ pixels @ _TABLE.T)


def inverse_dct(coefficients) -> np.ndarray:
    """Rebuild pixel blocks from DCT coefficients, clamped to 0..255."""
    coeffs = _as_blocks(coefficients)
    pixels = _TABLE.T @ (_WEIGHTS * coeffs) @ _TABLE
    return np.clip(pixels, 0.0, 255.0)