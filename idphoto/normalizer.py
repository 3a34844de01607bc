"""Deterministic normalization of a photo into a square ID artifact.

Steps:
1. Square white canvas of side max(target_size, longest source side)
2. Source scaled to fit margin_factor of the canvas, centered
3. If the result is dark, brightness x1.2 and contrast x1.1 per channel

Export then resamples the artifact to a fixed 600x600 (2x2 inch at 300 DPI).
Encoding the pixels to a file is left to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

from idphoto.errors import ConfigurationError
from idphoto.interfaces import RasterImage
from idphoto.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_TARGET_SIZE = 600
DEFAULT_MARGIN_FACTOR = 0.90
DEFAULT_EXPORT_SIZE = 600
DEFAULT_BRIGHTNESS_THRESHOLD = 120.0

BRIGHTNESS_GAIN = 1.2
CONTRAST_GAIN = 1.1

WHITE = (255, 255, 255)


@dataclass(frozen=True)
class NormalizedArtifact:
    """Square image produced by ImageNormalizer.

    Attributes:
        image: Square RGBA image, fully opaque
        margin_factor: Share of the canvas the source was fitted into
        enhanced: Whether the brightness correction was applied
        source_size: (width, height) of the source image
    """

    image: RasterImage
    margin_factor: float
    enhanced: bool
    source_size: Tuple[int, int]

    @property
    def size(self) -> int:
        return self.image.width

    def __repr__(self) -> str:
        return (
            f"NormalizedArtifact(size={self.size}, margin={self.margin_factor}, "
            f"enhanced={self.enhanced}, source={self.source_size[0]}x{self.source_size[1]})"
        )


def _validate(target_size: int, margin_factor: float) -> None:
    if target_size <= 0:
        raise ConfigurationError(f"target_size must be positive, got {target_size}")
    if not 0.0 < margin_factor <= 1.0:
        raise ConfigurationError(f"margin_factor must be in (0, 1], got {margin_factor}")


def _resize(pixels: np.ndarray, width: int, height: int) -> np.ndarray:
    # Area averaging when shrinking, bilinear when enlarging
    shrinking = width < pixels.shape[1] or height < pixels.shape[0]
    interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR
    return cv2.resize(pixels, (width, height), interpolation=interpolation)


def mean_brightness(rgb: np.ndarray) -> float:
    """Average of (r + g + b) / 3 over all pixels of an [H, W, 3] array."""
    r, g, b = cv2.mean(rgb)[:3]
    return (r + g + b) / 3


class ImageNormalizer:
    """Resize, center, pad and brighten a photo into a square artifact.

    Attributes:
        target_size: Minimum canvas side in pixels
        margin_factor: Share of the canvas the image may occupy
        brightness_threshold: Mean brightness below which the image is brightened
        export_size: Side of the exported image

    Example:
        >>> normalizer = ImageNormalizer()
        >>> artifact = normalizer.normalize(image)
        >>> final = normalizer.export(artifact)
        >>> (final.width, final.height)
        (600, 600)
    """

    def __init__(
        self,
        target_size: int = DEFAULT_TARGET_SIZE,
        margin_factor: float = DEFAULT_MARGIN_FACTOR,
        brightness_threshold: float = DEFAULT_BRIGHTNESS_THRESHOLD,
        export_size: int = DEFAULT_EXPORT_SIZE,
    ):
        _validate(target_size, margin_factor)
        if export_size <= 0:
            raise ConfigurationError(f"export_size must be positive, got {export_size}")

        self.target_size = target_size
        self.margin_factor = margin_factor
        self.brightness_threshold = brightness_threshold
        self.export_size = export_size

    def normalize(
        self,
        image: RasterImage,
        target_size: Optional[int] = None,
        margin_factor: Optional[float] = None,
    ) -> NormalizedArtifact:
        """Produce a square, white-padded, centered artifact.

        Args:
            image: Source image (alpha is composited over white)
            target_size: Override of the minimum canvas side
            margin_factor: Override of the fit margin

        Returns:
            New NormalizedArtifact. The source image is not modified.

        Raises:
            ConfigurationError: If target_size or margin_factor is out of range.
        """
        target_size = self.target_size if target_size is None else target_size
        margin_factor = self.margin_factor if margin_factor is None else margin_factor
        _validate(target_size, margin_factor)

        w, h = image.width, image.height
        final_size = max(target_size, max(w, h))

        scale = min(final_size * margin_factor / w, final_size * margin_factor / h)
        scaled_w = max(1, int(round(w * scale)))
        scaled_h = max(1, int(round(h * scale)))
        x = (final_size - scaled_w) // 2
        y = (final_size - scaled_h) // 2

        canvas = np.full((final_size, final_size, 3), 255, dtype=np.uint8)

        scaled = _resize(image.pixels, scaled_w, scaled_h)
        region = canvas[y : y + scaled_h, x : x + scaled_w]
        rgb = scaled[:, :, :3]
        alpha = scaled[:, :, 3]
        if alpha.min() == 255:
            region[:] = rgb
        else:
            a = alpha[:, :, np.newaxis].astype(np.float32) / 255.0
            blended = rgb.astype(np.float32) * a + 255.0 * (1.0 - a)
            region[:] = np.clip(np.round(blended), 0, 255).astype(np.uint8)

        brightness = mean_brightness(canvas)
        enhanced = brightness < self.brightness_threshold
        if enhanced:
            canvas = cv2.convertScaleAbs(canvas, alpha=BRIGHTNESS_GAIN * CONTRAST_GAIN)

        logger.info(
            f"Normalized {w}x{h} -> {final_size}x{final_size} "
            f"(scale={scale:.3f}, margin={margin_factor}, "
            f"brightness={brightness:.1f}, enhanced={enhanced})"
        )

        return NormalizedArtifact(
            image=RasterImage(cv2.cvtColor(canvas, cv2.COLOR_RGB2RGBA)),
            margin_factor=margin_factor,
            enhanced=enhanced,
            source_size=(w, h),
        )

    def export(self, artifact: NormalizedArtifact, size: Optional[int] = None) -> RasterImage:
        """Resample an artifact to the fixed export size.

        Args:
            artifact: Output of normalize()
            size: Override of the export side

        Returns:
            Square RasterImage of exactly ``size`` x ``size`` pixels.
        """
        size = self.export_size if size is None else size
        if size <= 0:
            raise ConfigurationError(f"export size must be positive, got {size}")

        if artifact.size == size:
            return artifact.image

        logger.debug(f"Exporting {artifact.size}x{artifact.size} -> {size}x{size}")
        return RasterImage(_resize(artifact.image.pixels, size, size))

    def __repr__(self) -> str:
        return (
            f"ImageNormalizer(target_size={self.target_size}, "
            f"margin_factor={self.margin_factor}, export_size={self.export_size})"
        )


def normalize(
    image: RasterImage,
    target_size: int = DEFAULT_TARGET_SIZE,
    margin_factor: float = DEFAULT_MARGIN_FACTOR,
) -> NormalizedArtifact:
    """Normalize with default brightness settings."""
    return ImageNormalizer(target_size=target_size, margin_factor=margin_factor).normalize(image)
