"""Face detection capability with external-first, heuristic-fallback policy.

The analyzer depends only on ``FaceDetectionService.detect``. Whether the
answer came from an external model or from the skin-tone heuristic is
recorded in ``FaceDetection.method`` and nowhere else.
"""

from __future__ import annotations

from typing import Optional

from idphoto.detectors.heuristic import HeuristicFaceDetector
from idphoto.errors import DetectorUnavailable
from idphoto.interfaces import (
    DetectionMethod,
    DetectionReason,
    ExternalDetectionResult,
    ExternalFaceDetector,
    FaceDetection,
    RasterImage,
)
from idphoto.logging_config import get_logger

logger = get_logger(__name__)

# Face box area / image area bounds for an acceptable portrait
MIN_FACE_RATIO = 0.015
MAX_FACE_RATIO = 0.6


def interpret_external_result(
    result: ExternalDetectionResult,
    image_width: int,
    image_height: int,
) -> FaceDetection:
    """Turn raw external boxes into a presence decision.

    Rules, first match wins:
    - no boxes: absent (NO_FACE_FOUND)
    - more than one box: absent (MULTIPLE_FACES), an ID photo shows one person
    - face area below 1.5% of the image: absent (FACE_TOO_SMALL)
    - face area above 60% of the image: absent (FACE_TOO_LARGE)
    - otherwise: present, with the box attached
    """
    score = min(1.0, max(0.0, float(result.score)))
    boxes = list(result.boxes)

    if not boxes:
        return FaceDetection(
            present=False,
            count=0,
            confidence=0.0,
            method=DetectionMethod.EXTERNAL,
            reason=DetectionReason.NO_FACE_FOUND,
        )

    if len(boxes) > 1:
        return FaceDetection(
            present=False,
            count=len(boxes),
            confidence=score,
            method=DetectionMethod.EXTERNAL,
            reason=DetectionReason.MULTIPLE_FACES,
        )

    bbox = boxes[0].clamp(image_width, image_height)
    face_ratio = bbox.area / float(image_width * image_height)

    if face_ratio < MIN_FACE_RATIO:
        reason = DetectionReason.FACE_TOO_SMALL
    elif face_ratio > MAX_FACE_RATIO:
        reason = DetectionReason.FACE_TOO_LARGE
    else:
        reason = DetectionReason.FACE_DETECTED

    return FaceDetection(
        present=reason is DetectionReason.FACE_DETECTED,
        count=1,
        confidence=score,
        method=DetectionMethod.EXTERNAL,
        reason=reason,
        bbox=bbox,
        face_ratio=face_ratio,
    )


class FaceDetectionService:
    """Detection capability: external detector when available, heuristic otherwise.

    Attributes:
        external: Optional external detector
        heuristic: Fallback heuristic detector

    Example:
        >>> service = FaceDetectionService(external=CascadeFaceDetector())
        >>> detection = service.detect(image)
        >>> detection.method
        <DetectionMethod.EXTERNAL: 'external'>
    """

    def __init__(
        self,
        external: Optional[ExternalFaceDetector] = None,
        heuristic: Optional[HeuristicFaceDetector] = None,
    ):
        self.external = external
        self.heuristic = heuristic if heuristic is not None else HeuristicFaceDetector()

        logger.info(
            f"Initialized FaceDetectionService "
            f"(external={type(external).__name__ if external is not None else 'none'})"
        )

    def detect(self, image: RasterImage) -> FaceDetection:
        """Detect a face, falling back to the heuristic on any external fault.

        The fallback is logged but never reported to the caller as an error.
        """
        if self.external is not None:
            try:
                result = self.external.detect(image)
                return interpret_external_result(result, image.width, image.height)
            except DetectorUnavailable as e:
                logger.warning(f"External detector unavailable, using heuristic: {e}")
            except Exception as e:
                logger.warning(
                    f"External detector failed, using heuristic: {e}", exc_info=True
                )

        return self.heuristic.detect(image)

    def __repr__(self) -> str:
        return f"FaceDetectionService(external={self.external!r}, heuristic={self.heuristic!r})"
