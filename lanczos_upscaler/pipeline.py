"""Pipeline orchestration."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence, Tuple

from .buffer import PixelBuffer, check_dimensions
from .config import EnhancementConfig
from .enhancers import build_enhancement_stages
from .errors import InvalidInputError, ProcessingCancelled, ProcessingError
from .interfaces import (
    CancelCheck,
    IEnhancer,
    IImageReader,
    IImageSink,
    IResampler,
    ProgressCallback,
)
from .resamplers import DEFAULT_TILE_SIZE, LanczosResampler

logger = logging.getLogger(__name__)

# Milestones shown while each stage runs: (percent, status).
RESAMPLE_START = 10
RESAMPLE_END = 50
STAGE_PROGRESS: Dict[str, Tuple[int, str]] = {
    "denoise": (60, "Reducing noise..."),
    "sharpen": (70, "Sharpening edges..."),
    "contrast": (80, "Normalizing contrast..."),
    "color": (90, "Enhancing colors..."),
}


class _ProgressReporter:
    """Forward integer, non-decreasing percentages to an optional callback."""

    def __init__(self, callback: Optional[ProgressCallback]) -> None:
        self._callback = callback
        self._last = 0

    def __call__(self, percent: float, status: str) -> None:
        value = max(self._last, min(100, int(round(percent))))
        self._last = value
        if self._callback is not None:
            self._callback(value, status)


class UpscalePipeline:
    """Resample a buffer and run the enabled enhancement stages in order."""

    def __init__(
        self,
        resampler: IResampler,
        stages: Sequence[Tuple[str, IEnhancer]] = (),
        progress: Optional[ProgressCallback] = None,
        should_cancel: Optional[CancelCheck] = None,
    ) -> None:
        self._resampler = resampler
        self._stages = list(stages)
        self._progress = progress
        self._should_cancel = should_cancel

    @property
    def stage_names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self._stages)

    def _check_cancel(self) -> None:
        if self._should_cancel is not None and self._should_cancel():
            raise ProcessingCancelled("Processing cancelled")

    @staticmethod
    def _verify(stage: str, result: object, expected: Tuple[int, int]) -> PixelBuffer:
        if not isinstance(result, PixelBuffer):
            raise ProcessingError(stage, f"returned {type(result).__name__}, expected PixelBuffer")
        if result.size != expected:
            raise ProcessingError(
                stage,
                f"returned a {result.width}x{result.height} buffer, expected {expected[0]}x{expected[1]}",
            )
        return result

    def _resample(self, source: PixelBuffer, report: _ProgressReporter) -> PixelBuffer:
        span = RESAMPLE_END - RESAMPLE_START
        try:
            destination = self._resampler.allocate(source)
            for tile in self._resampler.iter_tiles(source, destination):
                report(
                    RESAMPLE_START + tile.fraction * span,
                    f"Upscaling: {int(round(tile.fraction * 100))}% complete",
                )
                self._check_cancel()
        except (ProcessingCancelled, ProcessingError):
            raise
        except Exception as exc:
            raise ProcessingError("resample", str(exc)) from exc
        expected = (source.width * self._resampler.scale, source.height * self._resampler.scale)
        return self._verify("resample", destination, expected)

    def run(self, source: PixelBuffer) -> PixelBuffer:
        """Return a new, fully processed buffer. ``source`` is not modified.

        Raises :class:`InvalidInputError` before any work when ``source``
        exceeds the dimension bound.
        """

        check_dimensions(source.width, source.height)
        report = _ProgressReporter(self._progress)
        report(RESAMPLE_START, "Initializing Lanczos resampling...")
        self._check_cancel()

        start = time.time()
        buffer = self._resample(source, report)
        logger.info(
            "Resampled %dx%d -> %dx%d in %.2fs",
            source.width,
            source.height,
            buffer.width,
            buffer.height,
            time.time() - start,
        )
        report(RESAMPLE_END, "Applying edge-preserving enhancement...")

        for name, stage in self._stages:
            self._check_cancel()
            percent, status = STAGE_PROGRESS.get(name, (RESAMPLE_END, f"Running {name}..."))
            report(percent, status)
            stage_start = time.time()
            try:
                result = stage.process(buffer)
            except Exception as exc:
                raise ProcessingError(name, str(exc)) from exc
            buffer = self._verify(name, result, buffer.size)
            logger.info("Stage %s finished in %.2fs", name, time.time() - stage_start)

        report(100, "Complete")
        return buffer


def upscale_buffer(
    source: PixelBuffer,
    scale: int,
    config: Optional[EnhancementConfig] = None,
    progress: Optional[ProgressCallback] = None,
    should_cancel: Optional[CancelCheck] = None,
    tile_size: int = DEFAULT_TILE_SIZE,
) -> PixelBuffer:
    """Upscale ``source`` by ``scale`` and apply the enhancements in ``config``."""

    cfg = config if config is not None else EnhancementConfig()
    try:
        resampler = LanczosResampler(scale, tile_size=tile_size)
    except ValueError as exc:
        raise InvalidInputError(str(exc)) from exc
    pipeline = UpscalePipeline(
        resampler,
        build_enhancement_stages(cfg),
        progress=progress,
        should_cancel=should_cancel,
    )
    return pipeline.run(source)


class BatchUpscaler:
    """Coordinate reading, processing, and writing a set of images."""

    def __init__(
        self,
        inputs: Sequence[Path],
        reader_factory: Callable[[Path], IImageReader],
        pipeline: UpscalePipeline,
        sink: IImageSink,
    ) -> None:
        self._inputs = list(inputs)
        self._reader_factory = reader_factory
        self._pipeline = pipeline
        self._sink = sink

    def run(self) -> Dict[str, float]:
        written = 0
        skipped = 0
        failed = 0
        start = time.time()
        try:
            for path in self._inputs:
                try:
                    source = self._reader_factory(path).read()
                except InvalidInputError as exc:
                    logger.warning("Skipping %s: %s", path, exc)
                    skipped += 1
                    continue
                image_start = time.time()
                try:
                    result = self._pipeline.run(source)
                except ProcessingError as exc:
                    logger.error("Failed to process %s: %s", path, exc)
                    failed += 1
                    continue
                metadata: Dict[str, object] = {
                    "scale": result.width // source.width,
                    "stages": "+".join(self._pipeline.stage_names),
                    "elapsed_s": time.time() - image_start,
                }
                self._sink.write(path.stem, source, result, metadata)
                written += 1
        finally:
            self._sink.close()
        return {
            "images_read": float(len(self._inputs)),
            "images_written": float(written),
            "images_skipped": float(skipped),
            "images_failed": float(failed),
            "elapsed_s": float(time.time() - start),
        }
