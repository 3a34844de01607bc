"""Face placement analysis from a detector bounding box.

Only meaningful when the detector localizes the face (external detectors).
The heuristic detector reports no box, in which case no report is produced.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from idphoto.interfaces import BBox, FaceDetection

# Maximum face-center offset from the image center, as a share of each side
MAX_CENTER_OFFSET = 0.15

# Eyes sit about 30% down the face box and should be 60% down the photo
EYE_OFFSET_IN_FACE = 0.3
IDEAL_EYE_LEVEL = 0.6
MAX_EYE_DEVIATION = 0.1

# Accepted face box height / image height
MIN_HEAD_RATIO = 0.5
MAX_HEAD_RATIO = 0.7


@dataclass(frozen=True)
class PositionAnalysis:
    centered: bool
    offset_x: float
    offset_y: float
    message: str


@dataclass(frozen=True)
class EyeLevelAnalysis:
    correct: bool
    eye_level: float
    ideal_level: float
    deviation: float
    message: str


@dataclass(frozen=True)
class HeadRatioAnalysis:
    correct: bool
    head_height_ratio: float
    message: str


@dataclass(frozen=True)
class FaceGeometryReport:
    """Combined placement analysis.

    Attributes:
        position: Face centering result
        eye_level: Eye line result
        head_ratio: Head height result
        issues: Message keys of every failing sub-analysis, in that order
    """

    position: PositionAnalysis
    eye_level: EyeLevelAnalysis
    head_ratio: HeadRatioAnalysis
    issues: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues


def analyze_face_position(bbox: BBox, image_width: int, image_height: int) -> PositionAnalysis:
    """Check that the face center is within 15% of the image center on both axes."""
    face_x, face_y = bbox.center
    offset_x = abs(face_x - image_width / 2) / image_width
    offset_y = abs(face_y - image_height / 2) / image_height
    centered = offset_x < MAX_CENTER_OFFSET and offset_y < MAX_CENTER_OFFSET

    return PositionAnalysis(
        centered=centered,
        offset_x=offset_x,
        offset_y=offset_y,
        message="position.ok" if centered else "position.off_center",
    )


def analyze_eye_level(bbox: BBox, image_height: int) -> EyeLevelAnalysis:
    """Compare the approximate eye line with the ideal height."""
    eye_level = bbox.y1 + bbox.height * EYE_OFFSET_IN_FACE
    ideal_level = image_height * IDEAL_EYE_LEVEL
    deviation = abs(eye_level - ideal_level) / image_height
    correct = deviation < MAX_EYE_DEVIATION

    return EyeLevelAnalysis(
        correct=correct,
        eye_level=eye_level,
        ideal_level=ideal_level,
        deviation=deviation,
        message="eye_level.ok" if correct else "eye_level.adjust",
    )


def analyze_head_ratio(bbox: BBox, image_height: int) -> HeadRatioAnalysis:
    """Check the face box height against the accepted share of the photo."""
    ratio = bbox.height / image_height

    if ratio < MIN_HEAD_RATIO:
        message = "head_ratio.too_small"
    elif ratio > MAX_HEAD_RATIO:
        message = "head_ratio.too_large"
    else:
        message = "head_ratio.ok"

    return HeadRatioAnalysis(
        correct=message == "head_ratio.ok",
        head_height_ratio=ratio,
        message=message,
    )


def analyze_face_geometry(
    detection: FaceDetection,
    image_width: int,
    image_height: int,
) -> Optional[FaceGeometryReport]:
    """Run all placement analyses for a localized face.

    Returns:
        FaceGeometryReport, or None if the face is absent or has no box.
    """
    if not detection.present or detection.bbox is None:
        return None

    position = analyze_face_position(detection.bbox, image_width, image_height)
    eye_level = analyze_eye_level(detection.bbox, image_height)
    head_ratio = analyze_head_ratio(detection.bbox, image_height)

    issues = [
        part.message
        for part, ok in (
            (position, position.centered),
            (eye_level, eye_level.correct),
            (head_ratio, head_ratio.correct),
        )
        if not ok
    ]

    return FaceGeometryReport(
        position=position,
        eye_level=eye_level,
        head_ratio=head_ratio,
        issues=issues,
    )
