"""External face detector backed by an OpenCV Haar cascade.

This is the bundled implementation of the ExternalFaceDetector contract. It
ships with opencv itself, so it needs no model download, but any failure to
load or run it is reported as DetectorUnavailable and the detection service
falls back to the heuristic.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import cv2

from idphoto.errors import ConfigurationError, DetectorUnavailable
from idphoto.interfaces import BBox, ExternalDetectionResult, RasterImage
from idphoto.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_CASCADE = "haarcascade_frontalface_default.xml"

# Haar cascades report no per-face confidence
CASCADE_SCORE = 0.99


class CascadeFaceDetector:
    """Face detector using an OpenCV Haar cascade.

    Attributes:
        cascade_path: Path of the cascade XML file
        scale_factor: Image pyramid step passed to detectMultiScale
        min_neighbors: Neighbor votes required to keep a candidate
        min_size: Smallest face side in pixels

    Example:
        >>> detector = CascadeFaceDetector()
        >>> result = detector.detect(image)
        >>> len(result.boxes)
        1
    """

    def __init__(
        self,
        cascade_path: Optional[str | Path] = None,
        scale_factor: float = 1.1,
        min_neighbors: int = 5,
        min_size: int = 30,
    ):
        """Initialize the cascade detector.

        Args:
            cascade_path: Cascade XML file. Defaults to the frontal-face cascade
                          bundled with opencv.
            scale_factor: Pyramid scale step (> 1.0)
            min_neighbors: Minimum neighbor count for a detection
            min_size: Minimum face size in pixels

        Raises:
            ConfigurationError: If scale_factor is not above 1.0.
            DetectorUnavailable: If the cascade cannot be loaded.
        """
        if scale_factor <= 1.0:
            raise ConfigurationError(f"scale_factor must be > 1.0, got {scale_factor}")

        if cascade_path is None:
            data = getattr(cv2, "data", None)
            if data is None:
                raise DetectorUnavailable("This opencv build ships no Haar cascades")
            cascade_path = Path(data.haarcascades) / DEFAULT_CASCADE

        self.cascade_path = Path(cascade_path)
        self.scale_factor = scale_factor
        self.min_neighbors = min_neighbors
        self.min_size = min_size

        logger.info(f"Loading Haar cascade from {self.cascade_path}")

        if not self.cascade_path.is_file():
            raise DetectorUnavailable(f"Cascade file not found: {self.cascade_path}")

        # opencv 5.x builds ship without CascadeClassifier
        try:
            self._cascade = cv2.CascadeClassifier(str(self.cascade_path))
        except (AttributeError, cv2.error) as e:
            raise DetectorUnavailable(f"Could not load cascade {self.cascade_path}: {e}") from e
        if self._cascade.empty():
            raise DetectorUnavailable(f"Could not load cascade: {self.cascade_path}")

    def detect(self, image: RasterImage) -> ExternalDetectionResult:
        """Detect faces in an image.

        Returns:
            ExternalDetectionResult with boxes sorted by area (largest first).

        Raises:
            DetectorUnavailable: If OpenCV fails during detection.
        """
        try:
            gray = cv2.cvtColor(image.pixels, cv2.COLOR_RGBA2GRAY)
            faces = self._cascade.detectMultiScale(
                gray,
                scaleFactor=self.scale_factor,
                minNeighbors=self.min_neighbors,
                minSize=(self.min_size, self.min_size),
            )
        except cv2.error as e:
            raise DetectorUnavailable(f"Cascade detection failed: {e}") from e

        boxes = [BBox.from_xywh(x, y, w, h) for (x, y, w, h) in faces]
        boxes.sort(key=lambda b: b.area, reverse=True)

        if boxes:
            logger.debug(f"Cascade found {len(boxes)} face(s)")

        return ExternalDetectionResult(boxes=boxes, score=CASCADE_SCORE if boxes else 0.0)

    def __repr__(self) -> str:
        return (
            f"CascadeFaceDetector(cascade='{self.cascade_path.name}', "
            f"scale_factor={self.scale_factor}, min_neighbors={self.min_neighbors})"
        )
