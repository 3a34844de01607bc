"""Bounded-resolution downsampling for cheap pixel analysis.

Analysis never walks the full-resolution source: every heuristic works on a
small fixed-size sample whose cost does not depend on the input size.
"""

from __future__ import annotations

from typing import Literal

import cv2
import numpy as np

from idphoto.errors import AnalysisFailure, ConfigurationError, InvalidDimension
from idphoto.interfaces import RasterImage
from idphoto.logging_config import get_logger

logger = get_logger(__name__)

SampleMode = Literal["area", "nearest"]

_INTERPOLATION = {
    "area": cv2.INTER_AREA,
    "nearest": cv2.INTER_NEAREST,
}


class PixelSampler:
    """Resample an image into an exact ``target_h x target_w`` RGBA buffer.

    Attributes:
        mode: "area" averages source pixels per cell, "nearest" picks one

    Example:
        >>> sampler = PixelSampler()
        >>> buf = sampler.sample(image, 200, 200)
        >>> buf.shape
        (200, 200, 4)
    """

    def __init__(self, mode: SampleMode = "area"):
        if mode not in _INTERPOLATION:
            raise ConfigurationError(f"mode must be 'area' or 'nearest', got '{mode}'")
        self.mode = mode

    def sample(self, image: RasterImage, target_w: int, target_h: int) -> np.ndarray:
        """Downsample (or upsample) an image to a fixed size.

        Args:
            image: Source image
            target_w: Output width in pixels
            target_h: Output height in pixels

        Returns:
            uint8 array of shape [target_h, target_w, 4]. The caller owns it.

        Raises:
            InvalidDimension: If target_w or target_h is not positive.
            AnalysisFailure: If resampling fails.
        """
        if target_w <= 0 or target_h <= 0:
            raise InvalidDimension(f"sample size must be positive, got {target_w}x{target_h}")

        if image.width == target_w and image.height == target_h:
            return image.pixels.copy()

        try:
            buffer = cv2.resize(
                image.pixels,
                (target_w, target_h),
                interpolation=_INTERPOLATION[self.mode],
            )
        except cv2.error as e:
            raise AnalysisFailure(f"Failed to sample {image} to {target_w}x{target_h}: {e}") from e

        logger.debug(f"Sampled {image.width}x{image.height} -> {target_w}x{target_h} ({self.mode})")
        return buffer

    def __repr__(self) -> str:
        return f"PixelSampler(mode='{self.mode}')"


_default_sampler = PixelSampler()


def sample(image: RasterImage, target_w: int, target_h: int) -> np.ndarray:
    """Area-average sample using the shared default sampler."""
    return _default_sampler.sample(image, target_w, target_h)
