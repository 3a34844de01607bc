"""Detector factory.

Builds the face detection capability for a named backend:
- heuristic: skin-tone/edge heuristic only
- cascade: OpenCV Haar cascade, falling back to the heuristic

Usage:
    service = create_detector("cascade", config)
    detection = service.detect(image)
"""

from __future__ import annotations

from typing import Literal

from idphoto.config import Config
from idphoto.detectors.heuristic import HeuristicFaceDetector
from idphoto.detectors.service import FaceDetectionService
from idphoto.errors import ConfigurationError, DetectorUnavailable
from idphoto.logging_config import get_logger

logger = get_logger(__name__)

DetectorBackend = Literal["heuristic", "cascade"]


def create_detector(
    backend: DetectorBackend | None = None,
    config: Config | None = None,
) -> FaceDetectionService:
    """Create the face detection capability.

    Args:
        backend: "heuristic" or "cascade". If None, uses config.detector.
        config: Configuration object. If None, loads from .env

    Returns:
        FaceDetectionService ready to call detect().

    Raises:
        ConfigurationError: If the backend name is unknown.

    Example:
        >>> service = create_detector("heuristic")
        >>> service.external is None
        True
    """
    if config is None:
        from idphoto.config import get_config

        config = get_config()

    if backend is None:
        backend = config.detector

    heuristic = HeuristicFaceDetector(analysis_size=config.analysis_size)

    if backend == "heuristic":
        return FaceDetectionService(external=None, heuristic=heuristic)
    elif backend == "cascade":
        from idphoto.detectors.cascade import CascadeFaceDetector

        try:
            external = CascadeFaceDetector()
        except DetectorUnavailable as e:
            logger.warning(f"Cascade detector unavailable, heuristic only: {e}")
            external = None
        return FaceDetectionService(external=external, heuristic=heuristic)
    else:
        raise ConfigurationError(
            f"Unknown detector backend: '{backend}'. "
            f"Supported backends: 'heuristic', 'cascade'"
        )
