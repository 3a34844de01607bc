"""File helpers for scripts: decoding, encoding and file metadata.

The engine itself works on pixel buffers only. These helpers sit at the
boundary, turning files into RasterImage + FileMetadata and back.
"""

from __future__ import annotations

import mimetypes
from pathlib import Path

import cv2
import numpy as np

from idphoto.errors import InvalidInput
from idphoto.interfaces import FileMetadata, RasterImage
from idphoto.logging_config import get_logger

logger = get_logger(__name__)

JPEG_QUALITY = 95


def bgr_to_raster(frame: np.ndarray) -> RasterImage:
    """Convert an OpenCV-ordered array (gray, BGR or BGRA) to a RasterImage.

    Raises:
        InvalidInput: If the array has no pixels or an unsupported channel count.
    """
    if frame is None or frame.size == 0:
        raise InvalidInput("empty frame")

    if frame.ndim == 2:
        rgba = cv2.cvtColor(frame, cv2.COLOR_GRAY2RGBA)
    elif frame.shape[2] == 3:
        rgba = cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)
    elif frame.shape[2] == 4:
        rgba = cv2.cvtColor(frame, cv2.COLOR_BGRA2RGBA)
    else:
        raise InvalidInput(f"unsupported channel count: {frame.shape[2]}")

    return RasterImage(rgba)


def raster_to_bgr(image: RasterImage) -> np.ndarray:
    """Convert a RasterImage to an opaque BGR array for OpenCV encoders."""
    return cv2.cvtColor(image.pixels, cv2.COLOR_RGBA2BGR)


def load_image(path: str | Path) -> RasterImage:
    """Decode an image file.

    Raises:
        InvalidInput: If the file is missing or cannot be decoded.
    """
    path = Path(path)
    if not path.is_file():
        raise InvalidInput(f"Image not found: {path}")

    frame = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if frame is None:
        raise InvalidInput(f"Could not decode image: {path}")

    if frame.dtype != np.uint8:
        # 16-bit PNG/TIFF
        frame = (frame / 257).astype(np.uint8)

    image = bgr_to_raster(frame)
    logger.debug(f"Loaded {path} as {image}")
    return image


def file_metadata(path: str | Path) -> FileMetadata:
    """Build FileMetadata from the file size and the extension's MIME type."""
    path = Path(path)
    mime_type, _ = mimetypes.guess_type(path.name)
    return FileMetadata(
        size_bytes=path.stat().st_size,
        mime_type=mime_type or "application/octet-stream",
    )


def save_image(image: RasterImage, path: str | Path, quality: int = JPEG_QUALITY) -> Path:
    """Encode an image to disk; JPEG quality applies to .jpg/.jpeg paths.

    Raises:
        IOError: If OpenCV fails to write the file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    params = []
    if path.suffix.lower() in (".jpg", ".jpeg"):
        params = [cv2.IMWRITE_JPEG_QUALITY, quality]

    if not cv2.imwrite(str(path), raster_to_bgr(image), params):
        raise IOError(f"Failed to write image: {path}")

    logger.info(f"Saved {image} to {path}")
    return path
