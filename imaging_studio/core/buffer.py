"""Decoded RGBA pixel buffers and the OpenCV codec calls around them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import cv2
import numpy as np

from .errors import EncodeError

logger = logging.getLogger(__name__)


@dataclass
class PixelBuffer:
    """``height x width x 4`` uint8 raster in RGBA channel order."""

    pixels: np.ndarray

    def __post_init__(self) -> None:
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"Pixel buffer must be HxWx4, got shape {self.pixels.shape}.")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Pixel buffer must be uint8, got {self.pixels.dtype}.")

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self):
        return self.width, self.height

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.pixels.copy())

    @classmethod
    def from_bgr(cls, image: np.ndarray) -> "PixelBuffer":
        """Wrap an OpenCV-style grey, BGR or BGRA array."""
        return cls(_to_rgba(image))

    def to_bgra(self) -> np.ndarray:
        return cv2.cvtColor(self.pixels, cv2.COLOR_RGBA2BGRA)


def _to_uint8(image: np.ndarray) -> np.ndarray:
    if image.dtype == np.uint8:
        return image
    if image.dtype == np.uint16:
        return (image >> 8).astype(np.uint8)
    if np.issubdtype(image.dtype, np.floating):
        return (np.clip(image, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)
    return np.clip(image, 0, 255).astype(np.uint8)


def _to_rgba(image: np.ndarray) -> np.ndarray:
    image = _to_uint8(image)
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
    channels = image.shape[2]
    if channels == 1:
        return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2RGBA)
    if channels == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)
    if channels == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    raise ValueError(f"Unsupported channel count: {channels}")


def decode_image(data: bytes) -> PixelBuffer:
    """Decode an encoded image payload into an RGBA buffer.

    Raises:
        ValueError: If the payload is empty or OpenCV cannot decode it.
    """
    if not data:
        raise ValueError("Cannot decode an empty payload.")
    raw = np.frombuffer(data, dtype=np.uint8)
    try:
        image = cv2.imdecode(raw, cv2.IMREAD_UNCHANGED)
    except cv2.error as exc:
        raise ValueError(f"Unable to decode image: {exc}") from exc
    if image is None or image.size == 0:
        raise ValueError(f"Unable to decode image payload ({len(data)} bytes).")
    if image.ndim == 2 or image.shape[2] < 4:
        # IMREAD_UNCHANGED skips EXIF orientation; formats without alpha are
        # decoded again so rotated photos come out upright.
        oriented = cv2.imdecode(raw, cv2.IMREAD_COLOR | cv2.IMREAD_ANYDEPTH)
        if oriented is not None and oriented.size:
            image = oriented
    buffer = PixelBuffer.from_bgr(image)
    logger.debug("Decoded %s-byte payload into %sx%s buffer", len(data), buffer.width, buffer.height)
    return buffer


def encode_buffer(buffer: PixelBuffer, extension: str, params: Sequence[int] = ()) -> bytes:
    """Encode ``buffer`` with OpenCV, e.g. ``encode_buffer(buf, ".webp", [...])``.

    Raises:
        EncodeError: If the codec rejects the buffer or produces nothing.
    """
    if buffer.width == 0 or buffer.height == 0:
        raise EncodeError("Cannot encode an empty pixel buffer.")
    try:
        ok, encoded = cv2.imencode(extension, buffer.to_bgra(), list(params))
    except cv2.error as exc:
        raise EncodeError(f"Encoder for {extension} failed: {exc}") from exc
    if not ok or encoded is None or encoded.size == 0:
        raise EncodeError(f"Encoder for {extension} produced no output.")
    return encoded.tobytes()


__all__ = ["PixelBuffer", "decode_image", "encode_buffer"]
