"""Lanczos upscaler package."""

from .buffer import MAX_DIMENSION, PixelBuffer, check_dimensions
from .config import EnhancementConfig, ImageFormat, UpscaleConfig
from .errors import InvalidInputError, ProcessingCancelled, ProcessingError, UpscalerError
from .pipeline import BatchUpscaler, UpscalePipeline, upscale_buffer
from .resamplers import LanczosResampler
from .cli import main

__all__ = [
    "MAX_DIMENSION",
    "PixelBuffer",
    "check_dimensions",
    "EnhancementConfig",
    "ImageFormat",
    "UpscaleConfig",
    "UpscalerError",
    "InvalidInputError",
    "ProcessingError",
    "ProcessingCancelled",
    "LanczosResampler",
    "UpscalePipeline",
    "BatchUpscaler",
    "upscale_buffer",
    "main",
]
