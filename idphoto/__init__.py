"""ID photo compliance checking and normalization.

Check a photo against photographic-ID rules and turn a non-compliant photo
into a square, white-padded, brightness-corrected 600x600 image.
"""

from idphoto.analyzer import CHECK_BATTERY, ComplianceAnalyzer, ComplianceRules
from idphoto.classifier import ResultClassifier, Verdict, aggregate
from idphoto.config import Config, get_config
from idphoto.detectors import FaceDetectionService, HeuristicFaceDetector, create_detector
from idphoto.errors import (
    AnalysisFailure,
    ConfigurationError,
    DetectorUnavailable,
    InvalidDimension,
    InvalidInput,
    PhotoComplianceError,
    SessionStateError,
)
from idphoto.interfaces import (
    BBox,
    CheckId,
    CheckResult,
    CheckStatus,
    DetectionMethod,
    DetectionReason,
    ExternalDetectionResult,
    ExternalFaceDetector,
    FaceDetection,
    FaceDetector,
    FileMetadata,
    RasterImage,
)
from idphoto.normalizer import ImageNormalizer, NormalizedArtifact
from idphoto.sampler import PixelSampler, sample
from idphoto.services import PhotoSession, SessionState

__version__ = "0.1.0"

__all__ = [
    # Analysis
    "CHECK_BATTERY",
    "ComplianceAnalyzer",
    "ComplianceRules",
    "ResultClassifier",
    "Verdict",
    "aggregate",
    # Config
    "Config",
    "get_config",
    # Detection
    "FaceDetectionService",
    "HeuristicFaceDetector",
    "create_detector",
    # Errors
    "AnalysisFailure",
    "ConfigurationError",
    "DetectorUnavailable",
    "InvalidDimension",
    "InvalidInput",
    "PhotoComplianceError",
    "SessionStateError",
    # Data model
    "BBox",
    "CheckId",
    "CheckResult",
    "CheckStatus",
    "DetectionMethod",
    "DetectionReason",
    "ExternalDetectionResult",
    "ExternalFaceDetector",
    "FaceDetection",
    "FaceDetector",
    "FileMetadata",
    "RasterImage",
    # Normalization
    "ImageNormalizer",
    "NormalizedArtifact",
    "PixelSampler",
    "sample",
    # Services
    "PhotoSession",
    "SessionState",
]
