import math

import numpy as np
import pytest

from lanczos_upscaler.buffer import PixelBuffer
from lanczos_upscaler.resamplers import LanczosResampler, build_resampler


def _random_buffer(width: int, height: int, seed: int = 0) -> PixelBuffer:
    rng = np.random.default_rng(seed)
    return PixelBuffer(rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8))


def test_scale_one_is_identity() -> None:
    source = _random_buffer(7, 5)
    result = LanczosResampler(1).upscale(source)
    np.testing.assert_array_equal(result.pixels, source.pixels)


@pytest.mark.parametrize("scale", [1, 2, 3, 4])
def test_output_dimensions_are_exact_multiples(scale: int) -> None:
    source = _random_buffer(3, 5)
    result = LanczosResampler(scale).upscale(source)
    assert result.size == (3 * scale, 5 * scale)


def test_tile_size_does_not_change_output() -> None:
    source = _random_buffer(9, 7, seed=3)
    reference = LanczosResampler(3, tile_size=256).upscale(source)
    for tile_size in (1, 5, 8):
        result = LanczosResampler(3, tile_size=tile_size).upscale(source)
        assert result.pixels.tobytes() == reference.pixels.tobytes()


def test_corners_follow_source_corners() -> None:
    source = PixelBuffer.from_flat(
        2,
        2,
        bytes([255, 0, 0, 255, 0, 255, 0, 255, 0, 0, 255, 255, 255, 255, 0, 255]),
    )
    result = LanczosResampler(2).upscale(source)
    assert result.size == (4, 4)
    assert tuple(result.pixels[0, 0]) == (255, 0, 0, 255)
    assert tuple(result.pixels[0, 3]) == (0, 255, 0, 255)
    assert tuple(result.pixels[3, 0]) == (0, 0, 255, 255)
    assert tuple(result.pixels[3, 3]) == (255, 255, 0, 255)


@pytest.mark.parametrize("scale", [2, 3])
def test_single_pixel_source_fills_destination(scale: int) -> None:
    source = PixelBuffer.from_flat(1, 1, bytes([10, 20, 30, 40]))
    result = LanczosResampler(scale).upscale(source)
    assert result.size == (scale, scale)
    assert np.all(result.pixels == np.array([10, 20, 30, 40], dtype=np.uint8))


def test_flat_image_stays_flat_at_borders() -> None:
    source = PixelBuffer(np.full((4, 4, 4), [90, 60, 30, 255], dtype=np.uint8))
    result = LanczosResampler(4).upscale(source)
    assert np.all(result.pixels == np.array([90, 60, 30, 255], dtype=np.uint8))


def _lanczos3(t: float) -> float:
    if t == 0:
        return 1.0
    return 3 * math.sin(math.pi * t) * math.sin(math.pi * t / 3) / (math.pi * t) ** 2


def test_interior_sample_matches_renormalized_taps() -> None:
    row = [0, 100, 200]
    pixels = np.zeros((1, 3, 4), dtype=np.uint8)
    pixels[0, :, :3] = np.array(row, dtype=np.uint8)[:, None]
    pixels[0, :, 3] = 255
    result = LanczosResampler(2).upscale(PixelBuffer(pixels))

    # Destination x=1 samples u=0.5; taps 0, 1, 2 are the ones inside the source.
    weights = [_lanczos3(0.5 - i) for i in range(3)]
    expected = sum(w * v for w, v in zip(weights, row)) / sum(weights)
    value = math.floor(expected + 0.5)
    assert value == 31
    for y in range(2):
        assert tuple(result.pixels[y, 1]) == (value, value, value, 255)
    assert tuple(result.pixels[0, 0]) == (0, 0, 0, 255)


def test_iter_tiles_reports_every_tile() -> None:
    resampler = LanczosResampler(2, tile_size=4)
    source = _random_buffer(5, 5)
    destination = resampler.allocate(source)
    progress = list(resampler.iter_tiles(source, destination))
    assert len(progress) == 9
    assert [p.done for p in progress] == list(range(1, 10))
    assert progress[-1].fraction == 1.0
    assert progress[-1].bounds == (8, 8, 10, 10)
    np.testing.assert_array_equal(destination.pixels, resampler.upscale(source).pixels)


def test_iter_tiles_can_stop_early() -> None:
    resampler = LanczosResampler(2, tile_size=2)
    source = PixelBuffer(np.full((2, 2, 4), 255, dtype=np.uint8))
    destination = resampler.allocate(source)
    tiles = resampler.iter_tiles(source, destination)
    next(tiles)
    assert np.all(destination.pixels[:2, :2] == 255)
    assert np.all(destination.pixels[2:, 2:] == 0)


def test_iter_tiles_rejects_wrong_destination() -> None:
    resampler = LanczosResampler(2)
    source = _random_buffer(3, 3)
    with pytest.raises(ValueError):
        next(resampler.iter_tiles(source, PixelBuffer.blank(3, 3)))


@pytest.mark.parametrize("scale", [0, -2, 1.5, True])
def test_invalid_scale(scale) -> None:
    with pytest.raises(ValueError):
        LanczosResampler(scale)


def test_build_resampler_passes_tile_size() -> None:
    resampler = build_resampler(3, tile_size=64)
    assert resampler.scale == 3
    assert resampler.tile_size == 64
