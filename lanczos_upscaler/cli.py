"""Command line entry point for the Lanczos upscaler."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from .builders import build_batch
from .config import SCALE_CHOICES, EnhancementConfig, ImageFormat, UpscaleConfig
from .errors import InvalidInputError

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Create the CLI parser and return parsed arguments."""

    parser = argparse.ArgumentParser(description="Lanczos image upscaler with enhancement filters")
    parser.add_argument("inputs", type=Path, nargs="+")
    parser.add_argument("-o", "--out", type=Path, required=True)
    parser.add_argument("--scale", type=int, default=2, choices=SCALE_CHOICES)
    parser.add_argument("--tile", type=int, default=256)
    parser.add_argument("--fmt", type=str, default="png", choices=[f.value for f in ImageFormat])
    parser.add_argument("--jpgq", type=int, default=95)
    parser.add_argument("--orig-too", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--quiet", action="store_true")

    enhance_group = parser.add_argument_group("Enhancement", "Filters applied after resampling")
    enhance_group.add_argument("--no-denoise", action="store_true")
    enhance_group.add_argument("--no-sharpen", action="store_true")
    enhance_group.add_argument("--no-contrast", action="store_true")
    enhance_group.add_argument("--no-color", action="store_true")
    enhance_group.add_argument("--sharpness", type=float, default=0.5)

    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> UpscaleConfig:
    """Convert CLI arguments into :class:`UpscaleConfig`."""

    return UpscaleConfig(
        inputs=tuple(args.inputs),
        output_dir=args.out,
        scale_factor=args.scale,
        tile_size=args.tile,
        enhancement=EnhancementConfig(
            denoise=not args.no_denoise,
            sharpen=not args.no_sharpen,
            contrast=not args.no_contrast,
            color_enhance=not args.no_color,
            sharpness=args.sharpness,
        ),
        image_format=ImageFormat(args.fmt),
        jpg_quality=args.jpgq,
        write_original=bool(args.orig_too),
    )


def log_progress(percent: int, status: str) -> None:
    logger.debug("[%3d%%] %s", percent, status)


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point used by ``python -m lanczos_upscaler`` and scripts."""

    args = parse_args(argv)
    level = logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        cfg = config_from_args(args)
    except InvalidInputError as exc:
        raise SystemExit(f"error: {exc}") from exc
    batch = build_batch(cfg, progress=log_progress)
    stats = batch.run()
    print(f"Done. Stats: {stats}")
    if stats["images_written"] == 0:
        raise SystemExit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
