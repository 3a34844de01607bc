"""Unit tests for the detection capability, external detectors and factory."""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import Mock

import cv2
import pytest

from idphoto.config import Config
from idphoto.detectors.cascade import DEFAULT_CASCADE, CascadeFaceDetector
from idphoto.detectors.factory import create_detector
from idphoto.detectors.service import FaceDetectionService, interpret_external_result
from idphoto.errors import ConfigurationError, DetectorUnavailable
from idphoto.interfaces import (
    BBox,
    DetectionMethod,
    DetectionReason,
    ExternalDetectionResult,
    FaceDetection,
    FaceDetector,
    RasterImage,
)


def _cascade_available() -> bool:
    data = getattr(cv2, "data", None)
    if data is None:
        return False
    return (Path(data.haarcascades) / DEFAULT_CASCADE).is_file()


@pytest.fixture
def image():
    """Create a 600x600 white test image."""
    return RasterImage.solid(600, 600, (255, 255, 255))


@pytest.fixture
def heuristic_result():
    """Detection the mock heuristic returns."""
    return FaceDetection(
        present=True,
        count=1,
        confidence=0.7,
        method=DetectionMethod.HEURISTIC,
        reason=DetectionReason.FACE_DETECTED,
    )


@pytest.fixture
def mock_heuristic(heuristic_result):
    """Create a mock heuristic detector."""
    heuristic = Mock()
    heuristic.detect.return_value = heuristic_result
    return heuristic


@pytest.fixture
def config():
    """Create a config with default values."""
    return Config(
        log_level="INFO",
        detector="heuristic",
        analysis_size=200,
        target_size=600,
        margin_factor=0.9,
        export_size=600,
        brightness_threshold=120.0,
        min_resolution=600,
        max_file_size_kb=240.0,
        min_file_size_kb=54.0,
    )


def test_interpret_no_boxes():
    result = interpret_external_result(ExternalDetectionResult(boxes=[], score=0.0), 600, 600)

    assert not result.present
    assert result.count == 0
    assert result.confidence == 0.0
    assert result.reason is DetectionReason.NO_FACE_FOUND
    assert result.method is DetectionMethod.EXTERNAL


def test_interpret_multiple_faces():
    """Test that an ID photo with two people is rejected."""
    boxes = [BBox(10, 10, 200, 200), BBox(300, 10, 500, 200)]
    result = interpret_external_result(ExternalDetectionResult(boxes=boxes, score=0.8), 600, 600)

    assert not result.present
    assert result.count == 2
    assert result.confidence == pytest.approx(0.8)
    assert result.reason is DetectionReason.MULTIPLE_FACES


@pytest.mark.parametrize(
    "bbox, reason",
    [
        (BBox(290, 290, 310, 310), DetectionReason.FACE_TOO_SMALL),
        (BBox(50, 50, 550, 550), DetectionReason.FACE_TOO_LARGE),
    ],
)
def test_interpret_face_size_limits(bbox, reason):
    result = interpret_external_result(ExternalDetectionResult(boxes=[bbox], score=0.9), 600, 600)

    assert not result.present
    assert result.count == 1
    assert result.reason is reason
    assert result.bbox == bbox


def test_interpret_good_face():
    bbox = BBox(150, 150, 450, 450)
    result = interpret_external_result(ExternalDetectionResult(boxes=[bbox], score=0.95), 600, 600)

    assert result.present
    assert result.reason is DetectionReason.FACE_DETECTED
    assert result.bbox == bbox
    assert result.face_ratio == pytest.approx(0.25)
    assert result.confidence == pytest.approx(0.95)


def test_interpret_clamps_score():
    bbox = BBox(150, 150, 450, 450)
    result = interpret_external_result(ExternalDetectionResult(boxes=[bbox], score=1.7), 600, 600)
    assert result.confidence == 1.0


def test_service_prefers_external(image, mock_heuristic):
    """Test that a working external detector is used and the heuristic is not."""
    external = Mock()
    external.detect.return_value = ExternalDetectionResult(
        boxes=[BBox(150, 150, 450, 450)], score=0.9
    )
    service = FaceDetectionService(external=external, heuristic=mock_heuristic)

    result = service.detect(image)

    assert result.method is DetectionMethod.EXTERNAL
    assert result.present
    mock_heuristic.detect.assert_not_called()


@pytest.mark.parametrize(
    "error",
    [DetectorUnavailable("model missing"), RuntimeError("inference crashed")],
)
def test_service_falls_back_on_external_failure(image, mock_heuristic, heuristic_result, error):
    """Test that external failures silently fall back to the heuristic."""
    external = Mock()
    external.detect.side_effect = error
    service = FaceDetectionService(external=external, heuristic=mock_heuristic)

    result = service.detect(image)

    assert result is heuristic_result
    mock_heuristic.detect.assert_called_once_with(image)


def test_service_without_external_uses_heuristic(image, mock_heuristic, heuristic_result):
    service = FaceDetectionService(heuristic=mock_heuristic)

    assert service.detect(image) is heuristic_result


def test_service_satisfies_detector_protocol():
    assert isinstance(FaceDetectionService(), FaceDetector)


def test_cascade_missing_file_is_unavailable(tmp_path):
    """Test that a missing cascade raises DetectorUnavailable."""
    with pytest.raises(DetectorUnavailable):
        CascadeFaceDetector(cascade_path=tmp_path / "missing.xml")


def test_cascade_invalid_file_is_unavailable(tmp_path):
    """Test that an unparseable cascade raises DetectorUnavailable."""
    bogus = tmp_path / "bogus.xml"
    bogus.write_text("<opencv_storage></opencv_storage>")

    with pytest.raises(DetectorUnavailable):
        CascadeFaceDetector(cascade_path=bogus)


@pytest.mark.skipif(not _cascade_available(), reason="OpenCV Haar cascades not installed")
def test_cascade_finds_nothing_on_blank_image(image):
    detector = CascadeFaceDetector()

    result = detector.detect(image)

    assert result.boxes == []
    assert result.score == 0.0


def test_factory_heuristic(config):
    service = create_detector("heuristic", config)

    assert isinstance(service, FaceDetectionService)
    assert service.external is None
    assert service.heuristic.analysis_size == 200


def test_factory_uses_config_backend(config):
    service = create_detector(config=config)
    assert service.external is None


def test_factory_unknown_backend(config):
    with pytest.raises(ConfigurationError, match="Unknown detector backend"):
        create_detector("mtcnn", config)


def _raise_attribute_error(path):
    raise AttributeError("module 'cv2' has no attribute 'CascadeClassifier'")


def _raise_cv2_error(path):
    raise cv2.error("cascade parse failed")


@pytest.fixture
def cascade_dir(tmp_path, monkeypatch):
    """Point opencv's bundled cascade directory at a temp dir holding a cascade file."""
    (tmp_path / DEFAULT_CASCADE).write_text("<opencv_storage></opencv_storage>")
    monkeypatch.setattr(cv2, "data", SimpleNamespace(haarcascades=str(tmp_path)), raising=False)
    return tmp_path


@pytest.mark.parametrize("loader", [_raise_attribute_error, _raise_cv2_error])
def test_cascade_loader_failure_is_unavailable(monkeypatch, cascade_dir, loader):
    """Test that an opencv build without a working cascade loader reports DetectorUnavailable."""
    monkeypatch.setattr(cv2, "CascadeClassifier", loader, raising=False)

    with pytest.raises(DetectorUnavailable):
        CascadeFaceDetector(cascade_path=cascade_dir / DEFAULT_CASCADE)


@pytest.mark.parametrize("loader", [_raise_attribute_error, _raise_cv2_error])
def test_factory_cascade_falls_back_when_loader_fails(monkeypatch, cascade_dir, config, loader):
    """Test that the cascade backend degrades to heuristic-only instead of crashing."""
    monkeypatch.setattr(cv2, "CascadeClassifier", loader, raising=False)

    service = create_detector("cascade", config)

    assert isinstance(service, FaceDetectionService)
    assert service.external is None


def test_cascade_without_bundled_data_is_unavailable(monkeypatch):
    monkeypatch.delattr(cv2, "data", raising=False)

    with pytest.raises(DetectorUnavailable):
        CascadeFaceDetector()


def test_cascade_rejects_scale_factor(tmp_path):
    """Test that a pyramid step of 1.0 or less is a configuration error."""
    with pytest.raises(ConfigurationError, match="scale_factor"):
        CascadeFaceDetector(cascade_path=tmp_path / "any.xml", scale_factor=1.0)
