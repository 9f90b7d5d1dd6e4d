"""RGBA pixel buffer shared by every pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np

from .errors import InvalidInputError

MAX_DIMENSION = 4096
CHANNELS = 4


def quantize(values: np.ndarray) -> np.ndarray:
    """Round half-up and clamp float samples into ``uint8``."""

    if not np.all(np.isfinite(values)):
        raise FloatingPointError("non-finite sample values")
    return np.clip(np.floor(values + 0.5), 0, 255).astype(np.uint8)


def check_dimensions(width: int, height: int) -> None:
    """Raise :class:`InvalidInputError` unless both sides are in ``[1, MAX_DIMENSION]``."""

    if width < 1 or height < 1:
        raise InvalidInputError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_DIMENSION or height > MAX_DIMENSION:
        raise InvalidInputError(
            f"Image is too large ({width}x{height}). "
            f"Maximum size is {MAX_DIMENSION}x{MAX_DIMENSION} pixels."
        )


@dataclass(eq=False)
class PixelBuffer:
    """A ``(height, width, 4)`` grid of 8-bit RGBA samples."""

    pixels: np.ndarray

    def __post_init__(self) -> None:
        if self.pixels.ndim != 3 or self.pixels.shape[2] != CHANNELS:
            raise InvalidInputError(
                f"Expected an (H, W, {CHANNELS}) array, got shape {self.pixels.shape}"
            )
        if self.pixels.dtype != np.uint8:
            raise InvalidInputError(f"Expected uint8 samples, got {self.pixels.dtype}")
        if self.pixels.shape[0] < 1 or self.pixels.shape[1] < 1:
            raise InvalidInputError("PixelBuffer must hold at least one pixel")

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @classmethod
    def blank(cls, width: int, height: int) -> "PixelBuffer":
        """Return a transparent black buffer of the given size."""

        return cls(np.zeros((height, width, CHANNELS), dtype=np.uint8))

    @classmethod
    def from_flat(
        cls, width: int, height: int, data: Union[bytes, bytearray, np.ndarray]
    ) -> "PixelBuffer":
        """Build a buffer from interleaved RGBA samples.

        The dimensions are validated before anything is copied, so an
        oversized image never allocates a buffer.
        """

        check_dimensions(width, height)
        if isinstance(data, (bytes, bytearray)):
            flat = np.frombuffer(data, dtype=np.uint8)
        else:
            flat = np.asarray(data).reshape(-1)
        expected = width * height * CHANNELS
        if flat.size != expected:
            raise InvalidInputError(
                f"Pixel data has {flat.size} samples, expected {expected} for {width}x{height}"
            )
        if flat.dtype != np.uint8:
            if flat.min() < 0 or flat.max() > 255:
                raise InvalidInputError("Pixel samples must lie in [0, 255]")
            flat = flat.astype(np.uint8)
        return cls(flat.reshape(height, width, CHANNELS).copy())

    def to_flat(self) -> np.ndarray:
        """Return the samples as a flat ``W*H*4`` array (a copy)."""

        return self.pixels.reshape(-1).copy()

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.pixels.copy())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and bool(
            np.array_equal(self.pixels, other.pixels)
        )
