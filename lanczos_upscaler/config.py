"""Configuration models for the Lanczos upscaler."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Tuple

from .errors import InvalidInputError


SCALE_CHOICES = (2, 3, 4)


class ImageFormat(str, Enum):
    """Output encodings supported by the disk sink."""

    PNG = "png"
    JPG = "jpg"


@dataclass(frozen=True)
class EnhancementConfig:
    """Toggles for the post-resampling enhancement stages."""

    denoise: bool = True
    sharpen: bool = True
    contrast: bool = True
    color_enhance: bool = True
    sharpness: float = 0.5

    def __post_init__(self) -> None:
        if not 0.0 <= self.sharpness <= 1.0:
            raise InvalidInputError(f"sharpness must be in [0, 1], got {self.sharpness}")

    def enabled_stages(self) -> Tuple[str, ...]:
        """Names of the enabled stages in execution order."""

        flags = (
            ("denoise", self.denoise),
            ("sharpen", self.sharpen),
            ("contrast", self.contrast),
            ("color", self.color_enhance),
        )
        return tuple(name for name, on in flags if on)


@dataclass(frozen=True)
class UpscaleConfig:
    """Immutable container with run configuration options."""

    # IO
    inputs: Tuple[Path, ...]
    output_dir: Path

    # Resampling
    scale_factor: int = 2
    tile_size: int = 256

    # Enhancement
    enhancement: EnhancementConfig = field(default_factory=EnhancementConfig)

    # Export
    image_format: ImageFormat = ImageFormat.PNG
    jpg_quality: int = 95
    write_original: bool = False

    def __post_init__(self) -> None:
        if self.scale_factor < 1:
            raise InvalidInputError(f"scale_factor must be >= 1, got {self.scale_factor}")
        if self.tile_size < 1:
            raise InvalidInputError(f"tile_size must be >= 1, got {self.tile_size}")
        if not 0 <= self.jpg_quality <= 100:
            raise InvalidInputError(f"jpg_quality must be in [0, 100], got {self.jpg_quality}")
