"""Image sink implementations."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import cv2
import pandas as pd

from .buffer import PixelBuffer
from .config import ImageFormat
from .interfaces import IImageSink

METADATA_FILENAME = "upscale_metadata.csv"


class DiskImageSink(IImageSink):
    """Write images and metadata to disk."""

    def __init__(
        self,
        out_dir: Path,
        image_format: ImageFormat = ImageFormat.PNG,
        jpg_quality: int = 95,
        write_original: bool = False,
    ) -> None:
        self._out = out_dir
        self._out.mkdir(parents=True, exist_ok=True)
        self._fmt = ImageFormat(image_format)
        self._jpg_quality = jpg_quality
        self._write_original = write_original
        self._rows: List[Dict[str, object]] = []

    def _imwrite(self, path: Path, buffer: PixelBuffer) -> None:
        if self._fmt is ImageFormat.JPG:
            bgr = cv2.cvtColor(buffer.pixels, cv2.COLOR_RGBA2BGR)
            ok = cv2.imwrite(str(path), bgr, [int(cv2.IMWRITE_JPEG_QUALITY), self._jpg_quality])
        else:
            bgra = cv2.cvtColor(buffer.pixels, cv2.COLOR_RGBA2BGRA)
            ok = cv2.imwrite(str(path), bgra)
        if not ok:
            raise OSError(f"Failed to write image: {path}")

    def output_path(self, name: str, scale: int) -> Path:
        return self._out / f"{name}_x{scale}.{self._fmt.value}"

    def write(
        self,
        name: str,
        original: PixelBuffer,
        result: PixelBuffer,
        metadata: Dict[str, object],
    ) -> None:
        scale = result.width // original.width
        self._imwrite(self.output_path(name, scale), result)
        if self._write_original:
            self._imwrite(self._out / f"{name}_orig.{self._fmt.value}", original)
        row: Dict[str, object] = {
            "name": name,
            "orig_w": original.width,
            "orig_h": original.height,
            "sr_w": result.width,
            "sr_h": result.height,
        }
        row.update(metadata)
        self._rows.append(row)

    def close(self) -> None:
        if not self._rows:
            return
        df = pd.DataFrame(self._rows)
        df.sort_values(by=["name"], inplace=True)
        df.to_csv(self._out / METADATA_FILENAME, index=False)
