"""Unit tests for the image normalizer."""

from __future__ import annotations

import numpy as np
import pytest

from idphoto.errors import ConfigurationError
from idphoto.interfaces import RasterImage
from idphoto.normalizer import ImageNormalizer, mean_brightness, normalize


@pytest.fixture
def normalizer():
    return ImageNormalizer()


@pytest.fixture
def light_image():
    """Create a 100x100 light gray image."""
    return RasterImage.solid(100, 100, (200, 200, 200))


def _content_box(image):
    """Bounding box (x1, y1, x2, y2) of non-white pixels."""
    rgb = image.rgb
    ys, xs = np.nonzero(np.any(rgb != 255, axis=2))
    return int(xs.min()), int(ys.min()), int(xs.max()) + 1, int(ys.max()) + 1


def test_small_image_padded_to_target(normalizer, light_image):
    """Test that a small photo is fitted into 90% of a 600x600 canvas."""
    artifact = normalizer.normalize(light_image)

    assert artifact.size == 600
    assert (artifact.image.width, artifact.image.height) == (600, 600)
    assert _content_box(artifact.image) == (30, 30, 570, 570)
    assert not artifact.enhanced
    assert artifact.source_size == (100, 100)


def test_margin_override(normalizer, light_image):
    artifact = normalizer.normalize(light_image, margin_factor=0.95)

    assert artifact.margin_factor == 0.95
    assert _content_box(artifact.image) == (15, 15, 585, 585)


def test_landscape_image_is_centered(normalizer):
    """Test that the longest side sets the canvas and content stays centered."""
    image = RasterImage.solid(800, 400, (200, 200, 200))

    artifact = normalizer.normalize(image)

    assert artifact.size == 800
    assert _content_box(artifact.image) == (40, 220, 760, 580)


def test_large_image_keeps_resolution(normalizer):
    image = RasterImage.solid(4000, 4000, (200, 200, 200))

    artifact = normalizer.normalize(image)

    assert artifact.size == 4000
    exported = normalizer.export(artifact)
    assert (exported.width, exported.height) == (600, 600)


def test_dark_image_is_brightened(normalizer):
    """Test that a dark photo gets the brightness and contrast boost."""
    image = RasterImage.solid(100, 100, (50, 50, 50))

    artifact = normalizer.normalize(image)

    assert artifact.enhanced
    assert artifact.image.pixels[300, 300, 0] == 66
    assert artifact.image.pixels[0, 0, 0] == 255


def test_transparent_pixels_become_white(normalizer):
    pixels = np.zeros((100, 100, 4), dtype=np.uint8)

    artifact = normalizer.normalize(RasterImage(pixels))

    assert np.all(artifact.image.rgb == 255)
    assert not artifact.enhanced


def test_output_is_opaque(normalizer, light_image):
    artifact = normalizer.normalize(light_image)
    assert np.all(artifact.image.pixels[:, :, 3] == 255)


def test_normalize_is_deterministic(normalizer):
    rng = np.random.default_rng(3)
    image = RasterImage.from_array(rng.integers(0, 256, size=(300, 200, 3), dtype=np.uint8))

    first = normalizer.normalize(image)
    second = normalizer.normalize(image)

    assert np.array_equal(first.image.pixels, second.image.pixels)


def test_source_not_modified(normalizer):
    image = RasterImage.solid(100, 100, (50, 50, 50))
    before = image.pixels.copy()

    normalizer.normalize(image)

    assert np.array_equal(image.pixels, before)


@pytest.mark.parametrize("margin", [0.0, -0.5, 1.5])
def test_invalid_margin(normalizer, light_image, margin):
    with pytest.raises(ConfigurationError):
        normalizer.normalize(light_image, margin_factor=margin)


def test_invalid_target_size(light_image):
    with pytest.raises(ConfigurationError):
        normalize(light_image, target_size=0)


def test_export_small_artifact(normalizer, light_image):
    artifact = normalizer.normalize(light_image)

    exported = normalizer.export(artifact)

    assert exported is artifact.image


def test_export_size_override(normalizer, light_image):
    artifact = normalizer.normalize(light_image)

    exported = normalizer.export(artifact, size=300)

    assert (exported.width, exported.height) == (300, 300)


def test_mean_brightness():
    rgb = np.zeros((2, 2, 3), dtype=np.uint8)
    rgb[0, 0] = (30, 60, 90)
    assert mean_brightness(rgb) == pytest.approx(60 / 4)
