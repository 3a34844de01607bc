"""Face detection variants.

- HeuristicFaceDetector: skin-tone/edge statistics, no model needed
- CascadeFaceDetector: OpenCV Haar cascade (external detector contract)
- FaceDetectionService: external-first capability with heuristic fallback

Use the factory module to build the capability from configuration.
"""

from idphoto.detectors.factory import DetectorBackend, create_detector
from idphoto.detectors.heuristic import HeuristicFaceDetector
from idphoto.detectors.service import FaceDetectionService, interpret_external_result
from idphoto.detectors.skin import SKIN_RULES, SkinRule, is_skin, matching_rules, skin_mask

__all__ = [
    "create_detector",
    "DetectorBackend",
    "HeuristicFaceDetector",
    "FaceDetectionService",
    "interpret_external_result",
    "SKIN_RULES",
    "SkinRule",
    "is_skin",
    "matching_rules",
    "skin_mask",
]
