"""Convolution kernels and the separable Gaussian blur."""

from __future__ import annotations

import math
from typing import Union

import cv2
import numpy as np

from .buffer import PixelBuffer, quantize

LANCZOS_LOBES = 3


def lanczos_kernel(
    t: Union[float, np.ndarray], a: int = LANCZOS_LOBES
) -> Union[float, np.ndarray]:
    """Windowed sinc ``a*sin(pi t)*sin(pi t/a)/(pi t)^2`` with support ``|t| < a``."""

    arr = np.atleast_1d(np.asarray(t, dtype=np.float64))
    out = np.zeros_like(arr)
    lobe = (np.abs(arr) < a) & (arr != 0.0)
    pt = np.pi * arr[lobe]
    out[lobe] = a * np.sin(pt) * np.sin(pt / a) / (pt * pt)
    out[arr == 0.0] = 1.0
    if np.ndim(t) == 0:
        return float(out[0])
    return out.reshape(np.shape(t))


def gaussian_kernel(radius: float) -> np.ndarray:
    """Return normalized Gaussian weights of size ``ceil(2r)+1`` with sigma ``r/2``.

    Tap ``i`` sits at offset ``i - size // 2``, so odd sizes are symmetric
    around the center tap.
    """

    if radius <= 0:
        raise ValueError("radius must be > 0")
    sigma = radius / 2.0
    size = int(math.ceil(radius * 2)) + 1
    offsets = np.arange(size, dtype=np.float64) - size // 2
    weights = np.exp(-(offsets * offsets) / (2.0 * sigma * sigma))
    return weights / weights.sum()


def gaussian_blur(buffer: PixelBuffer, radius: float) -> PixelBuffer:
    """Blur all four channels with a horizontal then a vertical pass.

    Out-of-range taps replicate the nearest edge pixel. Each pass is
    quantized back to 8 bits.
    """

    kernel = gaussian_kernel(radius)
    half = kernel.size // 2
    src = buffer.pixels.astype(np.float64)
    horizontal = cv2.filter2D(
        src,
        cv2.CV_64F,
        kernel.reshape(1, -1),
        anchor=(half, 0),
        borderType=cv2.BORDER_REPLICATE,
    )
    horizontal = quantize(horizontal).astype(np.float64)
    vertical = cv2.filter2D(
        horizontal,
        cv2.CV_64F,
        kernel.reshape(-1, 1),
        anchor=(0, half),
        borderType=cv2.BORDER_REPLICATE,
    )
    return PixelBuffer(quantize(vertical))
