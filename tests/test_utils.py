"""Unit tests for file helpers."""

from __future__ import annotations

import numpy as np
import pytest

from idphoto.errors import InvalidInput
from idphoto.interfaces import RasterImage
from idphoto.utils import bgr_to_raster, file_metadata, load_image, raster_to_bgr, save_image


@pytest.fixture
def image():
    """Create a 64x48 image with distinct channel values."""
    return RasterImage.solid(64, 48, (10, 120, 230))


def test_bgr_conversion_swaps_channels(image):
    bgr = raster_to_bgr(image)

    assert bgr.shape == (48, 64, 3)
    assert bgr[0, 0].tolist() == [230, 120, 10]
    assert bgr_to_raster(bgr).pixels[0, 0].tolist() == [10, 120, 230, 255]


def test_bgr_to_raster_rejects_empty():
    with pytest.raises(InvalidInput):
        bgr_to_raster(np.zeros((0, 0, 3), dtype=np.uint8))


def test_png_save_and_load(tmp_path, image):
    path = save_image(image, tmp_path / "out" / "photo.png")

    loaded = load_image(path)

    assert np.array_equal(loaded.pixels, image.pixels)


def test_file_metadata(tmp_path, image):
    path = save_image(image, tmp_path / "photo.jpg")

    metadata = file_metadata(path)

    assert metadata.mime_type == "image/jpeg"
    assert metadata.size_bytes == path.stat().st_size


def test_load_missing_file(tmp_path):
    with pytest.raises(InvalidInput, match="not found"):
        load_image(tmp_path / "missing.jpg")


def test_load_undecodable_file(tmp_path):
    path = tmp_path / "broken.jpg"
    path.write_bytes(b"not an image")

    with pytest.raises(InvalidInput, match="decode"):
        load_image(path)
