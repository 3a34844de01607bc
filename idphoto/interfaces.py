"""Core interfaces and data structures for the compliance engine.

This module defines the data classes passed between pipeline stages and the
Protocols that let detectors be swapped without the analyzer knowing which
variant produced a result.

All text fields on results (titles, messages, reasons) are opaque keys.
Turning them into prose is the presentation layer's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Protocol, Tuple, runtime_checkable

import numpy as np

from idphoto.errors import InvalidInput


@dataclass(frozen=True)
class BBox:
    """Bounding box for a detected face.

    Attributes:
        x1: Left edge x-coordinate (pixels)
        y1: Top edge y-coordinate (pixels)
        x2: Right edge x-coordinate (pixels)
        y2: Bottom edge y-coordinate (pixels)
    """

    x1: int
    y1: int
    x2: int
    y2: int

    @classmethod
    def from_xywh(cls, x: float, y: float, w: float, h: float) -> BBox:
        """Build a box from origin + size, as external detectors report it."""
        return cls(
            x1=int(round(x)),
            y1=int(round(y)),
            x2=int(round(x + w)),
            y2=int(round(y + h)),
        )

    @property
    def width(self) -> int:
        """Get bounding box width in pixels."""
        return self.x2 - self.x1

    @property
    def height(self) -> int:
        """Get bounding box height in pixels."""
        return self.y2 - self.y1

    @property
    def area(self) -> int:
        """Get bounding box area in square pixels."""
        return self.width * self.height

    @property
    def center(self) -> Tuple[float, float]:
        """Get center point (x, y) of bounding box."""
        return ((self.x1 + self.x2) / 2, (self.y1 + self.y2) / 2)

    def clamp(self, img_width: int, img_height: int) -> BBox:
        """Clamp bounding box coordinates to image boundaries.

        Args:
            img_width: Image width in pixels
            img_height: Image height in pixels

        Returns:
            New BBox with clamped coordinates.
        """
        return BBox(
            x1=max(0, min(self.x1, img_width)),
            y1=max(0, min(self.y1, img_height)),
            x2=max(0, min(self.x2, img_width)),
            y2=max(0, min(self.y2, img_height)),
        )


class RasterImage:
    """Immutable RGBA8 image owned by one analysis invocation.

    Pixels are stored as a read-only ``[H, W, 4]`` uint8 array in RGBA order.
    Use ``from_array`` to build one from grayscale, RGB or RGBA data.
    """

    __slots__ = ("_pixels",)

    def __init__(self, pixels: np.ndarray):
        if not isinstance(pixels, np.ndarray):
            raise InvalidInput(f"pixels must be a numpy array, got {type(pixels).__name__}")
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise InvalidInput(f"pixels must have shape [H, W, 4], got {pixels.shape}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise InvalidInput(f"image has no pixels: {pixels.shape[1]}x{pixels.shape[0]}")
        if pixels.dtype != np.uint8:
            raise InvalidInput(f"pixels must be uint8, got {pixels.dtype}")

        data = np.array(pixels, dtype=np.uint8, copy=True, order="C")
        data.setflags(write=False)
        self._pixels = data

    @classmethod
    def from_array(cls, array: np.ndarray) -> RasterImage:
        """Build an image from a grayscale, RGB or RGBA array.

        Float arrays are assumed to be in [0, 255] and are clipped.

        Raises:
            InvalidInput: If the array is not image-shaped or has no pixels.
        """
        if not isinstance(array, np.ndarray):
            raise InvalidInput(f"expected numpy array, got {type(array).__name__}")
        if not (np.issubdtype(array.dtype, np.integer) or np.issubdtype(array.dtype, np.floating)):
            raise InvalidInput(f"unsupported pixel dtype {array.dtype}")
        if array.ndim == 2:
            array = array[:, :, np.newaxis]
        if array.ndim != 3 or array.shape[2] not in (1, 3, 4):
            raise InvalidInput(f"expected [H, W], [H, W, 3] or [H, W, 4], got {array.shape}")
        if array.shape[0] == 0 or array.shape[1] == 0:
            raise InvalidInput(f"image has no pixels: {array.shape[1]}x{array.shape[0]}")

        data = np.clip(array, 0, 255).astype(np.uint8)
        h, w, channels = data.shape
        if channels == 1:
            data = np.repeat(data, 3, axis=2)
        if data.shape[2] == 3:
            alpha = np.full((h, w, 1), 255, dtype=np.uint8)
            data = np.concatenate([data, alpha], axis=2)
        return cls(data)

    @classmethod
    def solid(cls, width: int, height: int, rgb: Tuple[int, int, int]) -> RasterImage:
        """Create an opaque image filled with one color."""
        if width <= 0 or height <= 0:
            raise InvalidInput(f"image has no pixels: {width}x{height}")
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[:, :, :3] = rgb
        pixels[:, :, 3] = 255
        return cls(pixels)

    @property
    def pixels(self) -> np.ndarray:
        """Read-only RGBA pixel array, shape [H, W, 4]."""
        return self._pixels

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    @property
    def rgb(self) -> np.ndarray:
        """Read-only view of the color channels, shape [H, W, 3]."""
        return self._pixels[:, :, :3]

    def __repr__(self) -> str:
        return f"RasterImage({self.width}x{self.height})"


@dataclass(frozen=True)
class FileMetadata:
    """File facts supplied by the acquisition layer.

    Attributes:
        size_bytes: Encoded file size in bytes
        mime_type: Declared MIME type (e.g. "image/jpeg")
    """

    size_bytes: int
    mime_type: str

    def __post_init__(self) -> None:
        if self.size_bytes < 0:
            raise ValueError(f"size_bytes must be >= 0, got {self.size_bytes}")

    @property
    def size_kb(self) -> float:
        return self.size_bytes / 1024


class DetectionMethod(str, Enum):
    EXTERNAL = "external"
    HEURISTIC = "heuristic"


class DetectionReason(str, Enum):
    """Opaque reason keys for a face detection outcome."""

    FACE_DETECTED = "face_detected"
    NO_SKIN_DETECTED = "no_skin_detected"
    TOO_CLOSE = "too_close"
    TOO_BLURRY = "too_blurry"
    ANALYSIS_FAILED = "analysis_failed"
    NO_FACE_FOUND = "no_face_found"
    MULTIPLE_FACES = "multiple_faces"
    FACE_TOO_SMALL = "face_too_small"
    FACE_TOO_LARGE = "face_too_large"


@dataclass(frozen=True)
class FaceDetection:
    """Face presence decision produced by either detector variant.

    Attributes:
        present: Whether exactly one usable face was found
        count: Number of faces seen
        confidence: Detector confidence in [0, 1]
        method: Which variant produced the result
        reason: Opaque reason key
        bbox: Face box in source pixel coordinates, if the detector localizes
        face_ratio: Face box area / image area, if known
        stats: Heuristic statistics (skin_ratio, center_skin_ratio, edge_variance)
    """

    present: bool
    count: int
    confidence: float
    method: DetectionMethod
    reason: DetectionReason
    bbox: Optional[BBox] = None
    face_ratio: Optional[float] = None
    stats: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate detection data after initialization."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Detection confidence must be in [0, 1], got {self.confidence}")
        if self.count < 0:
            raise ValueError(f"Face count must be >= 0, got {self.count}")
        object.__setattr__(self, "stats", MappingProxyType(dict(self.stats)))

    def __repr__(self) -> str:
        return (
            f"FaceDetection(present={self.present}, count={self.count}, "
            f"confidence={self.confidence:.3f}, method={self.method.value}, "
            f"reason={self.reason.value})"
        )


@dataclass(frozen=True)
class ExternalDetectionResult:
    """Raw output of an external detector: boxes plus one overall score."""

    boxes: List[BBox]
    score: float


class CheckStatus(str, Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


class CheckId(str, Enum):
    """Check identifiers, in battery order."""

    FACE_PRESENCE = "face_presence"
    ASPECT_RATIO = "aspect_ratio"
    MIN_RESOLUTION = "min_resolution"
    MAX_FILE_SIZE = "max_file_size"
    MIN_FILE_SIZE = "min_file_size"
    FORMAT_JPEG = "format_jpeg"
    COLOR_VARIANCE = "color_variance"
    BACKGROUND_WHITENESS = "background_whiteness"
    SHARPNESS = "sharpness"
    HEAD_SIZE_ESTIMATE = "head_size_estimate"


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one compliance check.

    Attributes:
        id: Check identifier
        title: Opaque title key for the presentation layer
        status: pass / warn / fail
        value: Measured value (number, tuple or string)
        message: Opaque message key, e.g. "aspect_ratio.fail"
        critical: True only for failures that reject the photo outright
        params: Values the presentation layer may interpolate into the message
    """

    id: CheckId
    title: str
    status: CheckStatus
    value: Any
    message: str
    critical: bool = False
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.critical and self.status is not CheckStatus.FAIL:
            raise ValueError(
                f"critical results must have status 'fail', got {self.status.value} for {self.id.value}"
            )
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))


@runtime_checkable
class ExternalFaceDetector(Protocol):
    """Protocol for optional ML-backed detectors.

    Implementations raise DetectorUnavailable when the model is missing or
    inference fails; the detection service then falls back to the heuristic.
    """

    def detect(self, image: RasterImage) -> ExternalDetectionResult:
        """Locate faces in an image.

        Args:
            image: Source image

        Returns:
            ExternalDetectionResult with one box per face and an overall score.

        Raises:
            DetectorUnavailable: If the detector cannot run.
        """
        ...


@runtime_checkable
class FaceDetector(Protocol):
    """Protocol for the face detection capability the analyzer depends on.

    Both the heuristic detector and the external-with-fallback service satisfy
    it, so the analyzer never branches on which variant is in use.
    """

    def detect(self, image: RasterImage) -> FaceDetection:
        ...
