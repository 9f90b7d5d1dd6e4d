"""Exception types raised by the upscaler."""

from __future__ import annotations


class UpscalerError(Exception):
    """Base class for all upscaler errors."""


class InvalidInputError(UpscalerError, ValueError):
    """The image or configuration was rejected before processing started."""


class ProcessingError(UpscalerError, RuntimeError):
    """A pipeline stage failed; the remaining stages were not run."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"{stage}: {message}")
        self.stage = stage


class ProcessingCancelled(UpscalerError):
    """The caller asked the pipeline to stop."""
