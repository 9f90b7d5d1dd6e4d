"""Factory helpers for assembling the pipeline from configuration."""

from __future__ import annotations

from typing import Optional

from .config import UpscaleConfig
from .enhancers import build_enhancement_stages
from .interfaces import CancelCheck, ProgressCallback
from .pipeline import BatchUpscaler, UpscalePipeline
from .readers import OpenCVImageReader
from .resamplers import build_resampler
from .sinks import DiskImageSink


def build_pipeline(
    cfg: UpscaleConfig,
    progress: Optional[ProgressCallback] = None,
    should_cancel: Optional[CancelCheck] = None,
) -> UpscalePipeline:
    """Assemble the :class:`UpscalePipeline` for one image."""

    return UpscalePipeline(
        build_resampler(cfg.scale_factor, cfg.tile_size),
        build_enhancement_stages(cfg.enhancement),
        progress=progress,
        should_cancel=should_cancel,
    )


def build_batch(
    cfg: UpscaleConfig,
    progress: Optional[ProgressCallback] = None,
    should_cancel: Optional[CancelCheck] = None,
) -> BatchUpscaler:
    """Assemble the full :class:`BatchUpscaler`."""

    sink = DiskImageSink(
        cfg.output_dir,
        cfg.image_format,
        cfg.jpg_quality,
        cfg.write_original,
    )
    return BatchUpscaler(
        cfg.inputs,
        OpenCVImageReader,
        build_pipeline(cfg, progress, should_cancel),
        sink,
    )
