"""Per-photo session: load, analyze, fix and export one image.

State machine::

    EMPTY -> LOADED -> ANALYZED -> [FIXED] -> EXPORTED
      ^________________ reset() from any state

Loading a new image from any state starts over with that image. Each fix
produces a new artifact that replaces the previous reference; artifacts are
never modified in place.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from idphoto.analyzer import ComplianceAnalyzer, ComplianceRules
from idphoto.classifier import Verdict
from idphoto.config import Config, get_config
from idphoto.detectors.factory import DetectorBackend, create_detector
from idphoto.errors import SessionStateError
from idphoto.geometry import FaceGeometryReport
from idphoto.interfaces import FaceDetection, FileMetadata, RasterImage
from idphoto.logging_config import get_logger
from idphoto.normalizer import ImageNormalizer, NormalizedArtifact

logger = get_logger(__name__)


class SessionState(str, Enum):
    EMPTY = "empty"
    LOADED = "loaded"
    ANALYZED = "analyzed"
    FIXED = "fixed"
    EXPORTED = "exported"


class PhotoSession:
    """Orchestrates analysis and normalization for a single photo.

    Attributes:
        analyzer: Compliance analyzer (owns the face detection capability)
        normalizer: Image normalizer used by fix() and export()
        state: Current SessionState
        image: Loaded source image, or None
        metadata: File facts of the loaded image, or None
        detection: Face detection from the last analyze()
        verdict: Verdict from the last analyze()
        geometry: Face placement report from the last analyze(), if a box was found
        artifact: Latest fixed artifact, or None

    Example:
        >>> session = PhotoSession(analyzer, normalizer)
        >>> session.load(image, FileMetadata(150_000, "image/jpeg"))
        >>> verdict = session.analyze()
        >>> if verdict.overall is not CheckStatus.PASS:
        ...     session.fix()
        >>> final = session.export()
    """

    def __init__(
        self,
        analyzer: Optional[ComplianceAnalyzer] = None,
        normalizer: Optional[ImageNormalizer] = None,
    ):
        self.analyzer = analyzer if analyzer is not None else ComplianceAnalyzer()
        self.normalizer = normalizer if normalizer is not None else ImageNormalizer()
        self._clear()

    @classmethod
    def from_config(
        cls,
        config: Optional[Config] = None,
        detector: Optional[DetectorBackend] = None,
    ) -> PhotoSession:
        """Build a session whose detector, rules and normalizer follow Config.

        Args:
            config: Configuration object. If None, loads from .env
            detector: Detector backend overriding config.detector
        """
        if config is None:
            config = get_config()

        analyzer = ComplianceAnalyzer(
            detector=create_detector(detector, config),
            rules=ComplianceRules.from_config(config),
        )
        normalizer = ImageNormalizer(
            target_size=config.target_size,
            margin_factor=config.margin_factor,
            brightness_threshold=config.brightness_threshold,
            export_size=config.export_size,
        )
        return cls(analyzer=analyzer, normalizer=normalizer)

    def _clear(self) -> None:
        self.state = SessionState.EMPTY
        self.image: Optional[RasterImage] = None
        self.metadata: Optional[FileMetadata] = None
        self.detection: Optional[FaceDetection] = None
        self.verdict: Optional[Verdict] = None
        self.geometry: Optional[FaceGeometryReport] = None
        self.artifact: Optional[NormalizedArtifact] = None

    def _require_image(self, operation: str) -> RasterImage:
        if self.image is None:
            raise SessionStateError(f"Cannot {operation}: no image loaded (state={self.state.value})")
        return self.image

    def load(self, image: RasterImage, metadata: Optional[FileMetadata] = None) -> None:
        """Load a new source image, discarding any previous results."""
        if self.state is not SessionState.EMPTY:
            logger.info(f"Replacing loaded image (state={self.state.value})")
        self._clear()
        self.image = image
        self.metadata = metadata
        self.state = SessionState.LOADED
        logger.info(f"Loaded {image}")

    def analyze(self) -> Verdict:
        """Run the check battery on the loaded image.

        Raises:
            SessionStateError: If no image is loaded.
        """
        image = self._require_image("analyze")

        detection = self.analyzer.detector.detect(image)
        verdict = self.analyzer.evaluate(image, self.metadata, detection)

        self.detection = detection
        self.verdict = verdict
        self.geometry = self.analyzer.analyze_face_geometry(image, detection)
        if self.state is SessionState.LOADED:
            self.state = SessionState.ANALYZED

        logger.info(f"Verdict: {verdict.overall.value} {dict(verdict.summary)}")
        return verdict

    def fix(self, margin_factor: Optional[float] = None) -> NormalizedArtifact:
        """Normalize the loaded image into a new artifact.

        Raises:
            SessionStateError: If no image is loaded.
        """
        image = self._require_image("fix")
        artifact = self.normalizer.normalize(image, margin_factor=margin_factor)
        self.artifact = artifact
        self.state = SessionState.FIXED
        return artifact

    def export(self, size: Optional[int] = None) -> RasterImage:
        """Resample the latest artifact to the export size.

        Raises:
            SessionStateError: If fix() has not produced an artifact yet.
        """
        if self.artifact is None:
            raise SessionStateError(f"Cannot export: no fixed image (state={self.state.value})")
        exported = self.normalizer.export(self.artifact, size)
        self.state = SessionState.EXPORTED
        return exported

    def reset(self) -> None:
        """Return to EMPTY from any state."""
        self._clear()
        logger.debug("Session reset")

    def __repr__(self) -> str:
        return f"PhotoSession(state={self.state.value}, image={self.image!r})"
