"""Block-DCT video encoding with motion segmentation, decoding and playback."""

__version__ = "0.1.0"