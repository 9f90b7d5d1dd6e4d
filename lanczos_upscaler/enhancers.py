"""Restoration filters applied after resampling."""

from __future__ import annotations

import logging
import math
from typing import List, Tuple

import numpy as np

from .buffer import PixelBuffer, quantize
from .config import EnhancementConfig
from .interfaces import IEnhancer
from .kernels import gaussian_blur

logger = logging.getLogger(__name__)


class BilateralDenoiser(IEnhancer):
    """Edge-preserving smoothing weighted by distance and color similarity.

    Pixels closer than ``window // 2`` to any edge are left as they are.
    Weights are always computed from the unfiltered input.
    """

    def __init__(
        self,
        window: int = 5,
        spatial_sigma: float = 3.0,
        range_sigma: float = 50.0,
    ) -> None:
        if window < 1 or window % 2 == 0:
            raise ValueError("window must be a positive odd number")
        self.window = window
        self.spatial_sigma = float(spatial_sigma)
        self.range_sigma = float(range_sigma)

    def process(self, buffer: PixelBuffer) -> PixelBuffer:
        half = self.window // 2
        height, width = buffer.height, buffer.width
        out = buffer.pixels.copy()
        if height <= 2 * half or width <= 2 * half:
            return PixelBuffer(out)

        rgb = buffer.pixels[..., :3].astype(np.float64)
        center = rgb[half : height - half, half : width - half]
        acc = np.zeros_like(center)
        weight_sum = np.zeros(center.shape[:2], dtype=np.float64)
        spatial_denom = 2.0 * self.spatial_sigma * self.spatial_sigma
        range_denom = 2.0 * self.range_sigma * self.range_sigma

        for ky in range(-half, half + 1):
            for kx in range(-half, half + 1):
                neighbor = rgb[half + ky : height - half + ky, half + kx : width - half + kx]
                spatial = math.exp(-(kx * kx + ky * ky) / spatial_denom)
                diff = neighbor - center
                weight = spatial * np.exp(-np.sum(diff * diff, axis=2) / range_denom)
                acc += neighbor * weight[..., None]
                weight_sum += weight

        positive = weight_sum > 0
        filtered = acc / np.where(positive, weight_sum, 1.0)[..., None]
        filtered = np.where(positive[..., None], filtered, center)
        out[half : height - half, half : width - half, :3] = quantize(filtered)
        return PixelBuffer(out)


class UnsharpMask(IEnhancer):
    """Amplify the difference between the image and a Gaussian-blurred copy."""

    def __init__(self, strength: float = 0.5, radius: float = 1.5, gain: float = 1.5) -> None:
        if not 0.0 <= strength <= 1.0:
            raise ValueError("strength must be in [0, 1]")
        self.strength = float(strength)
        self.radius = float(radius)
        self.gain = float(gain)

    def process(self, buffer: PixelBuffer) -> PixelBuffer:
        amount = self.strength * self.gain
        out = buffer.pixels.copy()
        if amount == 0.0:
            return PixelBuffer(out)
        blurred = gaussian_blur(buffer, self.radius).pixels[..., :3].astype(np.float64)
        original = buffer.pixels[..., :3].astype(np.float64)
        out[..., :3] = quantize(original + (original - blurred) * amount)
        return PixelBuffer(out)


class ContrastNormalizer(IEnhancer):
    """Blend each pixel toward its histogram-equalized luma.

    ``strength`` is the share of the equalized result; full equalization
    (1.0) is too aggressive for upscaled photos.
    """

    def __init__(self, strength: float = 0.3) -> None:
        if not 0.0 <= strength <= 1.0:
            raise ValueError("strength must be in [0, 1]")
        self.strength = float(strength)

    @staticmethod
    def luma(rgb: np.ndarray) -> np.ndarray:
        """Return integer Rec.601 luma in ``[0, 255]`` for an ``(..., 3)`` array."""

        weighted = 0.299 * rgb[..., 0] + 0.587 * rgb[..., 1] + 0.114 * rgb[..., 2]
        return np.clip(np.floor(weighted + 0.5), 0, 255).astype(np.int64)

    def process(self, buffer: PixelBuffer) -> PixelBuffer:
        out = buffer.pixels.copy()
        rgb = buffer.pixels[..., :3].astype(np.float64)
        luma = self.luma(rgb)

        histogram = np.bincount(luma.ravel(), minlength=256)
        cdf = np.cumsum(histogram)
        total = luma.size
        cdf_min = int(cdf[np.flatnonzero(cdf)[0]])
        if total == cdf_min:
            logger.debug("Single luma level; contrast left unchanged")
            return PixelBuffer(out)

        normalized = (cdf[luma] - cdf_min) / (total - cdf_min) * 255.0
        ratio = np.ones_like(normalized)
        lit = luma > 0
        ratio[lit] = normalized[lit] / luma[lit]

        blended = rgb * ratio[..., None] * self.strength + rgb * (1.0 - self.strength)
        out[..., :3] = quantize(blended)
        return PixelBuffer(out)


def _safe(denominator: np.ndarray) -> np.ndarray:
    return np.where(denominator == 0, 1.0, denominator)


def rgb_to_hsl(rgb: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Convert ``(..., 3)`` RGB in ``[0, 1]`` to hue, saturation and lightness in ``[0, 1]``.

    Works in float64 throughout. Achromatic pixels get hue and saturation 0.
    """

    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    maxc = rgb.max(axis=-1)
    minc = rgb.min(axis=-1)
    sumc = maxc + minc
    rangec = maxc - minc
    lightness = sumc / 2.0
    chromatic = rangec > 0

    saturation = np.where(
        lightness <= 0.5,
        rangec / _safe(sumc),
        rangec / _safe(2.0 - maxc - minc),
    )
    span = _safe(rangec)
    rc = (maxc - r) / span
    gc = (maxc - g) / span
    bc = (maxc - b) / span
    hue = np.where(r == maxc, bc - gc, np.where(g == maxc, 2.0 + rc - bc, 4.0 + gc - rc))
    hue = (hue / 6.0) % 1.0
    return (
        np.where(chromatic, hue, 0.0),
        np.where(chromatic, saturation, 0.0),
        lightness,
    )


def _hue_channel(m1: np.ndarray, m2: np.ndarray, hue: np.ndarray) -> np.ndarray:
    hue = hue % 1.0
    return np.select(
        [hue < 1.0 / 6.0, hue < 0.5, hue < 2.0 / 3.0],
        [m1 + (m2 - m1) * hue * 6.0, m2, m1 + (m2 - m1) * (2.0 / 3.0 - hue) * 6.0],
        default=m1,
    )


def hsl_to_rgb(hue: np.ndarray, saturation: np.ndarray, lightness: np.ndarray) -> np.ndarray:
    """Inverse of :func:`rgb_to_hsl`; returns ``(..., 3)`` RGB in ``[0, 1]``."""

    m2 = np.where(
        lightness <= 0.5,
        lightness * (1.0 + saturation),
        lightness + saturation - lightness * saturation,
    )
    m1 = 2.0 * lightness - m2
    rgb = np.stack(
        [
            _hue_channel(m1, m2, hue + 1.0 / 3.0),
            _hue_channel(m1, m2, hue),
            _hue_channel(m1, m2, hue - 1.0 / 3.0),
        ],
        axis=-1,
    )
    gray = (saturation == 0)[..., None]
    return np.where(gray, lightness[..., None], rgb)


class ColorEnhancer(IEnhancer):
    """Boost HSL saturation and blend the result with the original.

    The HSL round trip is done in float64, so each channel matches the
    exact conversion after rounding.
    """

    def __init__(self, saturation_boost: float = 1.2, blend: float = 0.3) -> None:
        if saturation_boost < 0:
            raise ValueError("saturation_boost must be >= 0")
        if not 0.0 <= blend <= 1.0:
            raise ValueError("blend must be in [0, 1]")
        self.saturation_boost = float(saturation_boost)
        self.blend = float(blend)

    def process(self, buffer: PixelBuffer) -> PixelBuffer:
        out = buffer.pixels.copy()
        rgb = buffer.pixels[..., :3]

        original = rgb.astype(np.float64)
        hue, saturation, lightness = rgb_to_hsl(original / 255.0)
        saturation = np.minimum(saturation * self.saturation_boost, 1.0)
        boosted = hsl_to_rgb(hue, saturation, lightness) * 255.0

        blended = quantize(boosted * self.blend + original * (1.0 - self.blend))
        achromatic = (rgb[..., 0] == rgb[..., 1]) & (rgb[..., 1] == rgb[..., 2])
        out[..., :3] = np.where(achromatic[..., None], rgb, blended)
        return PixelBuffer(out)


def build_enhancement_stages(config: EnhancementConfig) -> List[Tuple[str, IEnhancer]]:
    """Create the enabled stages in their fixed execution order."""

    stages: List[Tuple[str, IEnhancer]] = []
    if config.denoise:
        stages.append(("denoise", BilateralDenoiser()))
    if config.sharpen:
        stages.append(("sharpen", UnsharpMask(config.sharpness)))
    if config.contrast:
        stages.append(("contrast", ContrastNormalizer()))
    if config.color_enhance:
        stages.append(("color", ColorEnhancer()))
    return stages
