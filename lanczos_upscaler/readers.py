"""Image reader implementations."""

from __future__ import annotations

from pathlib import Path
from typing import Dict

import cv2
import numpy as np

from .buffer import PixelBuffer, check_dimensions
from .errors import InvalidInputError
from .interfaces import IImageReader


class OpenCVImageReader(IImageReader):
    """Image reader based on :mod:`cv2`."""

    def __init__(self, path: Path) -> None:
        if not path.exists():
            raise InvalidInputError(f"Image not found: {path}")
        self._path = path
        self._image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if self._image is None:
            raise InvalidInputError(f"Failed to decode image: {path}")
        self._height, self._width = self._image.shape[:2]
        self._channels = 1 if self._image.ndim == 2 else int(self._image.shape[2])

    def info(self) -> Dict[str, int]:
        return {
            "width": int(self._width),
            "height": int(self._height),
            "channels": self._channels,
        }

    @staticmethod
    def _to_uint8(image: np.ndarray) -> np.ndarray:
        if image.dtype == np.uint8:
            return image
        if image.dtype == np.uint16:
            return np.round(image / 257.0).astype(np.uint8)
        raise InvalidInputError(f"Unsupported sample type {image.dtype}")

    def read(self) -> PixelBuffer:
        check_dimensions(self._width, self._height)
        image = self._to_uint8(self._image)
        if self._channels == 1:
            rgba = cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
        elif self._channels == 3:
            rgba = cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)
        elif self._channels == 4:
            rgba = cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
        else:
            raise InvalidInputError(f"Unsupported channel count {self._channels}: {self._path}")
        return PixelBuffer(np.ascontiguousarray(rgba))
