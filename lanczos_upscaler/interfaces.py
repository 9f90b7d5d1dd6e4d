"""Core protocol interfaces used across the pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, Iterator, Protocol

from .buffer import PixelBuffer

if TYPE_CHECKING:
    from .resamplers import TileProgress

ProgressCallback = Callable[[int, str], None]
CancelCheck = Callable[[], bool]


class IImageReader(Protocol):
    """Decodes an image into a :class:`PixelBuffer`."""

    def info(self) -> Dict[str, int]:
        """Return metadata about the image such as width and height."""

    def read(self) -> PixelBuffer:
        """Return the decoded RGBA buffer."""


class IResampler(Protocol):
    """Produces an upscaled copy of a buffer, one tile at a time."""

    scale: int

    def allocate(self, source: PixelBuffer) -> PixelBuffer:
        """Return an empty destination buffer sized for ``source``."""

    def iter_tiles(self, source: PixelBuffer, destination: PixelBuffer) -> Iterator[TileProgress]:
        """Fill ``destination``, yielding progress after each tile is written."""

    def upscale(self, source: PixelBuffer) -> PixelBuffer:
        """Return the upscaled buffer."""


class IEnhancer(Protocol):
    """Transforms a buffer after resampling (e.g. denoise, sharpen)."""

    def process(self, buffer: PixelBuffer) -> PixelBuffer:
        """Return a processed buffer; the input is left untouched."""


class IImageSink(Protocol):
    """Persists results and metadata to disk or another destination."""

    def write(
        self,
        name: str,
        original: PixelBuffer,
        result: PixelBuffer,
        metadata: Dict[str, object],
    ) -> None:
        """Persist the provided image data."""

    def close(self) -> None:
        """Finalize the sink, flushing any buffered data."""
