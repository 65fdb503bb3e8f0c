"""
Image I/O helpers.

Thin wrappers around OpenCV for decoding caller-supplied image bytes into
the channel layouts the renderer expects (BGR mockups, BGRA designs) and
for encoding finished composites for export.
"""
import logging
import os
from typing import NamedTuple

import cv2
import numpy as np

log = logging.getLogger(__name__)


class ImageDecodeError(RuntimeError):
    """Image bytes could not be decoded (corrupt, empty or unsupported)."""


class ImageSource(NamedTuple):
    source_id: str
    data: bytes


def decode_image(data) -> np.ndarray:
    """Decode raw bytes as-is (1, 3 or 4 channels, 8-bit).

    Raises
    ------
    ImageDecodeError
        If the bytes are empty or OpenCV cannot decode them.
    """
    if not data:
        raise ImageDecodeError("empty image data")
    buf = np.frombuffer(bytes(data), dtype=np.uint8)
    img = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
    if img is None or img.size == 0:
        log.warning("failed to decode %d bytes of image data", buf.size)
        raise ImageDecodeError(f"failed to decode image ({buf.size} bytes)")
    if img.dtype != np.uint8:
        # 16-bit PNG/TIFF
        img = (img / 257.0).round().astype(np.uint8)
    return img


def to_bgr(img: np.ndarray) -> np.ndarray:
    """Any 8-bit image -> H x W x 3 BGR (alpha dropped)."""
    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
    return img


def to_bgra(img: np.ndarray) -> np.ndarray:
    """Any 8-bit image -> H x W x 4 BGRA (opaque alpha added when missing)."""
    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2BGRA)
    if img.shape[2] == 3:
        return cv2.cvtColor(img, cv2.COLOR_BGR2BGRA)
    return img


def format_for_filename(filename: str) -> str:
    ext = os.path.splitext(filename.lower())[1]
    return "jpeg" if ext in (".jpg", ".jpeg") else "png"


def encode_image(img: np.ndarray, fmt: str = "png", jpeg_quality: int = 85) -> bytes:
    """Encode a BGR(A) image as PNG or JPEG bytes."""
    fmt = (fmt or "png").lower().lstrip(".")
    if fmt in ("jpg", "jpeg"):
        ok, buf = cv2.imencode(".jpg", to_bgr(img), [cv2.IMWRITE_JPEG_QUALITY, int(jpeg_quality)])
    else:
        ok, buf = cv2.imencode(".png", img)
    if not ok:
        raise RuntimeError(f"failed to encode image as {fmt}")
    return buf.tobytes()
