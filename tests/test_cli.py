from pathlib import Path

import cv2
import numpy as np
import pandas as pd
import pytest

from lanczos_upscaler.cli import config_from_args, main, parse_args
from lanczos_upscaler.config import ImageFormat
from lanczos_upscaler.errors import InvalidInputError


def test_config_from_args_defaults(tmp_path) -> None:
    args = parse_args([str(tmp_path / "a.png"), "-o", str(tmp_path / "out")])
    cfg = config_from_args(args)
    assert cfg.inputs == (tmp_path / "a.png",)
    assert cfg.scale_factor == 2
    assert cfg.tile_size == 256
    assert cfg.image_format is ImageFormat.PNG
    assert cfg.enhancement.enabled_stages() == ("denoise", "sharpen", "contrast", "color")
    assert cfg.enhancement.sharpness == 0.5


def test_config_from_args_toggles(tmp_path) -> None:
    args = parse_args(
        [
            "a.png",
            "b.png",
            "-o",
            str(tmp_path),
            "--scale",
            "4",
            "--no-denoise",
            "--no-color",
            "--sharpness",
            "0.9",
            "--fmt",
            "jpg",
            "--orig-too",
        ]
    )
    cfg = config_from_args(args)
    assert len(cfg.inputs) == 2
    assert cfg.scale_factor == 4
    assert cfg.enhancement.enabled_stages() == ("sharpen", "contrast")
    assert cfg.enhancement.sharpness == 0.9
    assert cfg.image_format is ImageFormat.JPG
    assert cfg.write_original


def test_config_from_args_rejects_bad_sharpness(tmp_path) -> None:
    args = parse_args(["a.png", "-o", str(tmp_path), "--sharpness", "2"])
    with pytest.raises(InvalidInputError):
        config_from_args(args)


def test_parse_args_rejects_unsupported_scale(tmp_path) -> None:
    with pytest.raises(SystemExit):
        parse_args(["a.png", "-o", str(tmp_path), "--scale", "5"])


def test_main_end_to_end(tmp_path: Path, capsys) -> None:
    source = np.zeros((4, 5, 3), dtype=np.uint8)
    source[:, :, 2] = np.arange(5, dtype=np.uint8) * 50
    image = tmp_path / "tiny.png"
    assert cv2.imwrite(str(image), source)
    out_dir = tmp_path / "out"

    main([str(image), str(tmp_path / "missing.png"), "-o", str(out_dir), "--scale", "3", "--quiet"])

    stored = cv2.imread(str(out_dir / "tiny_x3.png"), cv2.IMREAD_UNCHANGED)
    assert stored.shape == (12, 15, 4)
    metadata = pd.read_csv(out_dir / "upscale_metadata.csv")
    assert list(metadata["name"]) == ["tiny"]
    assert metadata.loc[0, "scale"] == 3
    assert "images_skipped': 1.0" in capsys.readouterr().out


def test_main_fails_when_nothing_written(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main([str(tmp_path / "missing.png"), "-o", str(tmp_path / "out"), "--quiet"])
    assert excinfo.value.code == 1
