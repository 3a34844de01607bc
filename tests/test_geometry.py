"""Unit tests for face placement analysis."""

from __future__ import annotations

import pytest

from idphoto.geometry import (
    analyze_eye_level,
    analyze_face_geometry,
    analyze_face_position,
    analyze_head_ratio,
)
from idphoto.interfaces import BBox, DetectionMethod, DetectionReason, FaceDetection

GOOD_BOX = BBox(145, 220, 455, 530)


def _detection(bbox, present=True):
    return FaceDetection(
        present=present,
        count=1,
        confidence=0.9,
        method=DetectionMethod.EXTERNAL,
        reason=DetectionReason.FACE_DETECTED if present else DetectionReason.FACE_TOO_SMALL,
        bbox=bbox,
    )


def test_well_placed_face():
    report = analyze_face_geometry(_detection(GOOD_BOX), 600, 600)

    assert report is not None
    assert report.is_valid
    assert report.issues == []
    assert report.position.message == "position.ok"
    assert report.eye_level.eye_level == pytest.approx(313.0)
    assert report.eye_level.ideal_level == pytest.approx(360.0)
    assert report.head_ratio.head_height_ratio == pytest.approx(310 / 600)


def test_off_center_face():
    result = analyze_face_position(BBox(0, 0, 200, 200), 600, 600)

    assert not result.centered
    assert result.offset_x == pytest.approx(200 / 600)
    assert result.message == "position.off_center"


def test_eye_level_too_high():
    result = analyze_eye_level(BBox(200, 0, 400, 200), 600)

    assert not result.correct
    assert result.deviation == pytest.approx(300 / 600)
    assert result.message == "eye_level.adjust"


@pytest.mark.parametrize(
    "height, message",
    [(200, "head_ratio.too_small"), (360, "head_ratio.ok"), (480, "head_ratio.too_large")],
)
def test_head_ratio(height, message):
    result = analyze_head_ratio(BBox(100, 100, 400, 100 + height), 600)

    assert result.message == message
    assert result.correct == (message == "head_ratio.ok")


def test_issues_listed_in_order():
    report = analyze_face_geometry(_detection(BBox(0, 0, 100, 100)), 600, 600)

    assert report.issues == ["position.off_center", "eye_level.adjust", "head_ratio.too_small"]
    assert not report.is_valid


def test_no_report_without_box():
    assert analyze_face_geometry(_detection(None), 600, 600) is None


def test_no_report_when_face_absent():
    assert analyze_face_geometry(_detection(GOOD_BOX, present=False), 600, 600) is None
