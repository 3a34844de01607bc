"""Unit tests for the pixel sampler."""

from __future__ import annotations

import numpy as np
import pytest

from idphoto.errors import ConfigurationError, InvalidDimension, InvalidInput
from idphoto.interfaces import RasterImage
from idphoto.sampler import PixelSampler, sample


@pytest.fixture
def gradient_image():
    """Create a 500x300 image with a horizontal red gradient."""
    pixels = np.zeros((300, 500, 4), dtype=np.uint8)
    pixels[:, :, 0] = np.linspace(0, 255, 500, dtype=np.uint8)[np.newaxis, :]
    pixels[:, :, 3] = 255
    return RasterImage(pixels)


@pytest.mark.parametrize("target_w, target_h", [(200, 200), (100, 100), (37, 91), (800, 600)])
def test_sample_exact_size(gradient_image, target_w, target_h):
    """Test that the buffer always has exactly the requested size."""
    buffer = sample(gradient_image, target_w, target_h)

    assert buffer.shape == (target_h, target_w, 4)
    assert buffer.dtype == np.uint8


@pytest.mark.parametrize("target_w, target_h", [(0, 100), (100, 0), (-5, 10), (10, -1)])
def test_sample_rejects_non_positive_dimensions(gradient_image, target_w, target_h):
    """Test that zero or negative targets raise InvalidDimension."""
    with pytest.raises(InvalidDimension):
        sample(gradient_image, target_w, target_h)


def test_invalid_dimension_is_invalid_input(gradient_image):
    """Test that InvalidDimension belongs to the InvalidInput family."""
    with pytest.raises(InvalidInput):
        sample(gradient_image, 0, 0)


@pytest.mark.parametrize("mode", ["area", "nearest"])
def test_uniform_color_preserved(mode):
    """Test that resampling a flat image keeps its color."""
    image = RasterImage.solid(640, 480, (12, 34, 56))
    buffer = PixelSampler(mode=mode).sample(image, 200, 200)

    assert np.all(buffer[:, :, 0] == 12)
    assert np.all(buffer[:, :, 1] == 34)
    assert np.all(buffer[:, :, 2] == 56)
    assert np.all(buffer[:, :, 3] == 255)


def test_area_mode_averages_blocks():
    """Test that area sampling averages a 2x2 checker into mid gray."""
    pixels = np.zeros((200, 200, 4), dtype=np.uint8)
    pixels[::2, ::2, :3] = 200
    pixels[1::2, 1::2, :3] = 200
    pixels[:, :, 3] = 255
    image = RasterImage(pixels)

    buffer = PixelSampler(mode="area").sample(image, 100, 100)

    assert np.all(buffer[:, :, 0] == 100)


def test_same_size_returns_writable_copy(gradient_image):
    """Test that the caller owns the buffer and the source stays untouched."""
    buffer = sample(gradient_image, 500, 300)
    buffer[0, 0, 0] = 99

    assert buffer.flags.writeable
    assert gradient_image.pixels[0, 0, 0] == 0


def test_invalid_mode():
    """Test that unknown modes are rejected."""
    with pytest.raises(ConfigurationError, match="mode"):
        PixelSampler(mode="bicubic")


def test_repr():
    """Test string representation."""
    assert "nearest" in repr(PixelSampler(mode="nearest"))
