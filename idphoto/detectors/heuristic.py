"""Fallback face-presence detector based on skin tone and edge statistics.

Used when no trained detector is available. It does not localize a face; it
only decides whether the photo plausibly contains one, from three numbers
computed on a fixed-size sample:

- skin_ratio: share of pixels matching any skin rule
- center_skin_ratio: skin pixels in the central box / (total * 0.25)
- edge_variance: mean absolute red difference between consecutive pixels
"""

from __future__ import annotations

import numpy as np

from idphoto.detectors.skin import skin_mask
from idphoto.errors import ConfigurationError
from idphoto.interfaces import DetectionMethod, DetectionReason, FaceDetection, RasterImage
from idphoto.logging_config import get_logger
from idphoto.sampler import PixelSampler

logger = get_logger(__name__)

# Decision thresholds
MIN_SKIN_RATIO = 0.005
MIN_CENTER_SKIN_RATIO = 0.01
MAX_SKIN_RATIO = 0.8
MIN_EDGE_VARIANCE = 1.0

# Confidence reported when the analysis itself breaks
FAIL_OPEN_CONFIDENCE = 0.5


def compute_skin_statistics(buffer: np.ndarray) -> dict[str, float]:
    """Compute skin and edge statistics for a square or rectangular sample.

    Args:
        buffer: RGBA or RGB sample, shape [H, W, C]

    Returns:
        Dict with skin_ratio, center_skin_ratio, edge_variance and total_pixels.
    """
    h, w = buffer.shape[:2]
    total = h * w

    mask = skin_mask(buffer)

    # Central 50% x 50% box, strict bounds on both sides
    xs = np.arange(w)
    ys = np.arange(h)
    in_x = (xs > w * 0.25) & (xs < w * 0.75)
    in_y = (ys > h * 0.25) & (ys < h * 0.75)
    center = np.outer(in_y, in_x)

    skin_pixels = int(mask.sum())
    center_skin_pixels = int((mask & center).sum())

    # Consecutive pixels in row-major order, so the last pixel of a row is
    # compared with the first pixel of the next one.
    red = buffer[..., 0].astype(np.int32).ravel()
    edge_total = int(np.abs(np.diff(red)).sum())

    return {
        "skin_ratio": skin_pixels / total,
        "center_skin_ratio": center_skin_pixels / (total * 0.25),
        "edge_variance": edge_total / total,
        "total_pixels": float(total),
    }


class HeuristicFaceDetector:
    """Skin-tone/edge classifier that satisfies the FaceDetector protocol.

    Attributes:
        analysis_size: Side of the square sample the statistics are computed on
        sampler: Pixel sampler used to build the sample

    Example:
        >>> detector = HeuristicFaceDetector()
        >>> result = detector.detect(image)
        >>> result.present, result.reason
        (True, <DetectionReason.FACE_DETECTED: 'face_detected'>)
    """

    def __init__(self, analysis_size: int = 200, sampler: PixelSampler | None = None):
        if analysis_size <= 0:
            raise ConfigurationError(f"analysis_size must be positive, got {analysis_size}")
        self.analysis_size = analysis_size
        self.sampler = sampler if sampler is not None else PixelSampler()

    def detect(self, image: RasterImage) -> FaceDetection:
        """Decide whether the image plausibly contains a face.

        Never raises: an internal failure returns a fail-open result
        (present=True, confidence=0.5, reason=ANALYSIS_FAILED) so the user is
        not blocked by a fault in the analysis itself.
        """
        try:
            buffer = self.sampler.sample(image, self.analysis_size, self.analysis_size)
            stats = compute_skin_statistics(buffer)
        except Exception as e:
            logger.error(f"Heuristic face analysis failed: {e}", exc_info=True)
            return FaceDetection(
                present=True,
                count=1,
                confidence=FAIL_OPEN_CONFIDENCE,
                method=DetectionMethod.HEURISTIC,
                reason=DetectionReason.ANALYSIS_FAILED,
            )

        logger.debug(
            f"Heuristic stats: skin_ratio={stats['skin_ratio']:.4f}, "
            f"center_skin_ratio={stats['center_skin_ratio']:.4f}, "
            f"edge_variance={stats['edge_variance']:.2f}"
        )
        return self._decide(stats)

    def _decide(self, stats: dict[str, float]) -> FaceDetection:
        skin_ratio = stats["skin_ratio"]
        center_skin_ratio = stats["center_skin_ratio"]
        edge_variance = stats["edge_variance"]

        if skin_ratio < MIN_SKIN_RATIO and center_skin_ratio < MIN_CENTER_SKIN_RATIO:
            return self._absent(
                DetectionReason.NO_SKIN_DETECTED,
                max(skin_ratio, center_skin_ratio),
                stats,
            )

        if skin_ratio > MAX_SKIN_RATIO:
            return self._absent(DetectionReason.TOO_CLOSE, skin_ratio, stats)

        if edge_variance < MIN_EDGE_VARIANCE:
            return self._absent(DetectionReason.TOO_BLURRY, skin_ratio, stats)

        # Center skin is weighted double: that is where a portrait face sits
        confidence = min(1.0, max(skin_ratio, center_skin_ratio * 2))
        return FaceDetection(
            present=True,
            count=1,
            confidence=confidence,
            method=DetectionMethod.HEURISTIC,
            reason=DetectionReason.FACE_DETECTED,
            stats=stats,
        )

    @staticmethod
    def _absent(reason: DetectionReason, confidence: float, stats: dict[str, float]) -> FaceDetection:
        return FaceDetection(
            present=False,
            count=0,
            confidence=min(1.0, max(0.0, confidence)),
            method=DetectionMethod.HEURISTIC,
            reason=reason,
            stats=stats,
        )

    def __repr__(self) -> str:
        return f"HeuristicFaceDetector(analysis_size={self.analysis_size})"
