"""Compliance analysis: an ordered battery of photographic-ID checks.

Each check is a pure function of a CheckContext. The battery order is fixed
so results always come back in the same sequence; the outcome of any one
check does not depend on the others.

Critical checks (face, geometry, file) fail the photo outright. Pixel checks
(color, background, sharpness, head size) only warn.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import cv2
import numpy as np

from idphoto.classifier import ResultClassifier, Verdict
from idphoto.config import Config
from idphoto.errors import InvalidInput
from idphoto.geometry import FaceGeometryReport, analyze_face_geometry
from idphoto.interfaces import (
    CheckId,
    CheckResult,
    CheckStatus,
    FaceDetection,
    FaceDetector,
    FileMetadata,
    RasterImage,
)
from idphoto.logging_config import get_logger
from idphoto.sampler import PixelSampler

logger = get_logger(__name__)


@dataclass(frozen=True)
class ComplianceRules:
    """Numeric limits used by the check battery.

    Defaults describe a 2x2 inch ID photo at 300 DPI.
    """

    max_aspect_deviation: float = 0.1
    min_resolution: int = 600
    max_file_size_kb: float = 240.0
    min_file_size_kb: float = 54.0
    accepted_mime_types: Tuple[str, ...] = ("image/jpeg", "image/jpg")

    color_sample_size: int = 100
    color_stride: int = 4
    min_color_variance: float = 10.0

    background_stride: int = 10
    min_background_level: float = 200.0

    sharpness_sample_size: int = 200
    min_sharpness: float = 15.0

    head_height_ratio: float = 0.6
    photo_height_mm: float = 51.0
    min_head_mm: float = 22.0
    max_head_mm: float = 35.0

    @classmethod
    def from_config(cls, config: Config) -> ComplianceRules:
        return cls(
            min_resolution=config.min_resolution,
            max_file_size_kb=config.max_file_size_kb,
            min_file_size_kb=config.min_file_size_kb,
        )


@dataclass(frozen=True)
class CheckContext:
    """Inputs shared by every check in one analysis call."""

    image: RasterImage
    detection: FaceDetection
    metadata: Optional[FileMetadata]
    rules: ComplianceRules
    sampler: PixelSampler


# ---------------------------------------------------------------------------
# Measurements
# ---------------------------------------------------------------------------


def measure_color_variance(image: RasterImage, rules: ComplianceRules, sampler: PixelSampler) -> float:
    """Mean channel spread (|r-g| + |g-b| + |r-b|) over every Nth sampled pixel."""
    size = rules.color_sample_size
    buffer = sampler.sample(image, size, size)
    pixels = buffer.reshape(-1, 4)[:: rules.color_stride, :3].astype(np.int32)
    r, g, b = pixels[:, 0], pixels[:, 1], pixels[:, 2]
    spread = np.abs(r - g) + np.abs(g - b) + np.abs(r - b)
    return float(spread.mean())


def measure_background(image: RasterImage, stride: int) -> Tuple[float, float, float]:
    """Average RGB of border pixels on all four edges, every ``stride`` pixels."""
    pixels = image.pixels
    h, w = image.height, image.width
    xs = np.arange(0, w, stride)
    ys = np.arange(0, h, stride)

    border = np.concatenate(
        [
            pixels[0, xs, :3],
            pixels[h - 1, xs, :3],
            pixels[ys, 0, :3],
            pixels[ys, w - 1, :3],
        ]
    ).astype(np.float64)
    avg = border.mean(axis=0)
    return float(avg[0]), float(avg[1]), float(avg[2])


def measure_sharpness(image: RasterImage, rules: ComplianceRules, sampler: PixelSampler) -> float:
    """Mean absolute 4-neighbour Laplacian of the red channel on a fixed sample.

    Border pixels are excluded; only interior pixels have all four neighbours.
    """
    size = rules.sharpness_sample_size
    buffer = sampler.sample(image, size, size)
    red = buffer[:, :, 0].astype(np.float64)

    # ksize=1 is the kernel [[0, 1, 0], [1, -4, 1], [0, 1, 0]]
    laplacian = cv2.Laplacian(red, cv2.CV_64F, ksize=1)
    interior = np.abs(laplacian[1:-1, 1:-1])
    return float(interior.mean())


def estimate_head_size_mm(image: RasterImage, rules: ComplianceRules) -> float:
    """Rough head height in mm, assuming the head fills a fixed share of the photo.

    This is a geometric proxy, not a measurement: the image height cancels
    out, so the estimate is constant for a given rule set.
    """
    estimated_head_px = image.height * rules.head_height_ratio
    return (estimated_head_px / image.height) * rules.photo_height_mm


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def _result(
    check_id: CheckId,
    ok: bool,
    value,
    critical: bool,
    params: Optional[dict] = None,
) -> CheckResult:
    if ok:
        status, suffix = CheckStatus.PASS, "pass"
    elif critical:
        status, suffix = CheckStatus.FAIL, "fail"
    else:
        status, suffix = CheckStatus.WARN, "warn"

    return CheckResult(
        id=check_id,
        title=f"{check_id.value}.title",
        status=status,
        value=value,
        message=f"{check_id.value}.{suffix}",
        critical=critical and not ok,
        params=params or {},
    )


def check_face_presence(ctx: CheckContext) -> CheckResult:
    detection = ctx.detection
    return _result(
        CheckId.FACE_PRESENCE,
        detection.present,
        round(detection.confidence, 3),
        critical=True,
        params={
            "reason": detection.reason.value,
            "method": detection.method.value,
            "count": detection.count,
        },
    )


def check_aspect_ratio(ctx: CheckContext) -> CheckResult:
    ratio = ctx.image.width / ctx.image.height
    return _result(
        CheckId.ASPECT_RATIO,
        abs(ratio - 1) < ctx.rules.max_aspect_deviation,
        round(ratio, 2),
        critical=True,
        params={"ratio": round(ratio, 2)},
    )


def check_min_resolution(ctx: CheckContext) -> CheckResult:
    w, h = ctx.image.width, ctx.image.height
    minimum = ctx.rules.min_resolution
    return _result(
        CheckId.MIN_RESOLUTION,
        w >= minimum and h >= minimum,
        f"{w}x{h}",
        critical=True,
        params={"width": w, "height": h, "min": minimum},
    )


def check_max_file_size(ctx: CheckContext) -> Optional[CheckResult]:
    if ctx.metadata is None:
        return None
    size_kb = ctx.metadata.size_kb
    return _result(
        CheckId.MAX_FILE_SIZE,
        size_kb <= ctx.rules.max_file_size_kb,
        round(size_kb, 1),
        critical=True,
        params={"size_kb": round(size_kb, 1), "max_kb": ctx.rules.max_file_size_kb},
    )


def check_min_file_size(ctx: CheckContext) -> Optional[CheckResult]:
    if ctx.metadata is None:
        return None
    size_kb = ctx.metadata.size_kb
    return _result(
        CheckId.MIN_FILE_SIZE,
        size_kb >= ctx.rules.min_file_size_kb,
        round(size_kb, 1),
        critical=True,
        params={"size_kb": round(size_kb, 1), "min_kb": ctx.rules.min_file_size_kb},
    )


def check_format_jpeg(ctx: CheckContext) -> Optional[CheckResult]:
    if ctx.metadata is None:
        return None
    mime = ctx.metadata.mime_type
    return _result(
        CheckId.FORMAT_JPEG,
        mime.strip().lower() in ctx.rules.accepted_mime_types,
        mime,
        critical=True,
        params={"mime_type": mime},
    )


def check_color_variance(ctx: CheckContext) -> CheckResult:
    variance = measure_color_variance(ctx.image, ctx.rules, ctx.sampler)
    return _result(
        CheckId.COLOR_VARIANCE,
        variance > ctx.rules.min_color_variance,
        round(variance, 1),
        critical=False,
    )


def check_background_whiteness(ctx: CheckContext) -> CheckResult:
    avg_r, avg_g, avg_b = measure_background(ctx.image, ctx.rules.background_stride)
    level = ctx.rules.min_background_level
    rounded = (round(avg_r), round(avg_g), round(avg_b))
    return _result(
        CheckId.BACKGROUND_WHITENESS,
        avg_r > level and avg_g > level and avg_b > level,
        rounded,
        critical=False,
        params={"r": rounded[0], "g": rounded[1], "b": rounded[2]},
    )


def check_sharpness(ctx: CheckContext) -> CheckResult:
    sharpness = measure_sharpness(ctx.image, ctx.rules, ctx.sampler)
    return _result(
        CheckId.SHARPNESS,
        sharpness > ctx.rules.min_sharpness,
        round(sharpness, 1),
        critical=False,
    )


def check_head_size(ctx: CheckContext) -> CheckResult:
    estimated = estimate_head_size_mm(ctx.image, ctx.rules)
    return _result(
        CheckId.HEAD_SIZE_ESTIMATE,
        ctx.rules.min_head_mm <= estimated <= ctx.rules.max_head_mm,
        round(estimated),
        critical=False,
        params={"estimated_mm": round(estimated)},
    )


CheckFn = Callable[[CheckContext], Optional[CheckResult]]

# Battery order is part of the output contract
CHECK_BATTERY: Tuple[Tuple[CheckId, CheckFn], ...] = (
    (CheckId.FACE_PRESENCE, check_face_presence),
    (CheckId.ASPECT_RATIO, check_aspect_ratio),
    (CheckId.MIN_RESOLUTION, check_min_resolution),
    (CheckId.MAX_FILE_SIZE, check_max_file_size),
    (CheckId.MIN_FILE_SIZE, check_min_file_size),
    (CheckId.FORMAT_JPEG, check_format_jpeg),
    (CheckId.COLOR_VARIANCE, check_color_variance),
    (CheckId.BACKGROUND_WHITENESS, check_background_whiteness),
    (CheckId.SHARPNESS, check_sharpness),
    (CheckId.HEAD_SIZE_ESTIMATE, check_head_size),
)


class ComplianceAnalyzer:
    """Run the check battery over an image.

    Attributes:
        detector: Face detection capability (any FaceDetector)
        rules: Numeric limits
        sampler: Pixel sampler shared by the pixel checks
        classifier: Aggregator used by evaluate()

    Example:
        >>> analyzer = ComplianceAnalyzer(detector=create_detector("heuristic"))
        >>> verdict = analyzer.evaluate(image, FileMetadata(120_000, "image/jpeg"))
        >>> verdict.overall
        <CheckStatus.PASS: 'pass'>
    """

    def __init__(
        self,
        detector: Optional[FaceDetector] = None,
        rules: Optional[ComplianceRules] = None,
        sampler: Optional[PixelSampler] = None,
        classifier: Optional[ResultClassifier] = None,
    ):
        if detector is None:
            from idphoto.detectors.service import FaceDetectionService

            detector = FaceDetectionService()

        self.detector = detector
        self.rules = rules if rules is not None else ComplianceRules()
        self.sampler = sampler if sampler is not None else PixelSampler()
        self.classifier = classifier if classifier is not None else ResultClassifier()

    def analyze(
        self,
        image: RasterImage,
        metadata: Optional[FileMetadata] = None,
        detection: Optional[FaceDetection] = None,
    ) -> List[CheckResult]:
        """Run every applicable check in battery order.

        Args:
            image: Source image
            metadata: Optional file facts; file checks are skipped without it
            detection: Precomputed face detection. If None, the detector runs.

        Returns:
            Ordered check results. Skipped checks are omitted.

        Raises:
            InvalidInput: If ``image`` is not a RasterImage.
        """
        if not isinstance(image, RasterImage):
            raise InvalidInput(f"expected RasterImage, got {type(image).__name__}")

        if detection is None:
            detection = self.detector.detect(image)

        ctx = CheckContext(
            image=image,
            detection=detection,
            metadata=metadata,
            rules=self.rules,
            sampler=self.sampler,
        )

        results = []
        for check_id, check in CHECK_BATTERY:
            try:
                result = check(ctx)
            except Exception as e:
                logger.error(f"Check '{check_id.value}' failed: {e}", exc_info=True)
                result = CheckResult(
                    id=check_id,
                    title=f"{check_id.value}.title",
                    status=CheckStatus.WARN,
                    value=None,
                    message=f"{check_id.value}.error",
                )

            if result is None:
                logger.debug(f"Skipped check '{check_id.value}' (missing input)")
                continue
            results.append(result)

        logger.info(
            f"Analyzed {image}: "
            + ", ".join(f"{r.id.value}={r.status.value}" for r in results)
        )
        return results

    def evaluate(
        self,
        image: RasterImage,
        metadata: Optional[FileMetadata] = None,
        detection: Optional[FaceDetection] = None,
    ) -> Verdict:
        """Analyze and aggregate into a Verdict."""
        return self.classifier.aggregate(self.analyze(image, metadata, detection))

    def analyze_face_geometry(
        self,
        image: RasterImage,
        detection: Optional[FaceDetection] = None,
    ) -> Optional[FaceGeometryReport]:
        """Placement analysis for a localized face, or None without a face box."""
        if detection is None:
            detection = self.detector.detect(image)
        return analyze_face_geometry(detection, image.width, image.height)

    def __repr__(self) -> str:
        return f"ComplianceAnalyzer(detector={self.detector!r}, checks={len(CHECK_BATTERY)})"
