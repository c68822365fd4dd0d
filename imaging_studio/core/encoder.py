"""Lossy (WebP) and lossless (PNG) serialisation of pixel buffers."""

from __future__ import annotations

import logging
import math
import numbers

import cv2

from .buffer import PixelBuffer, encode_buffer
from .errors import ValidationError
from .reference import EncodedImage

logger = logging.getLogger(__name__)

LOSSY_MIME = "image/webp"
LOSSLESS_MIME = "image/png"


def validate_quality(quality: object) -> float:
    """Return ``quality`` as a float, rejecting anything outside [0, 1]."""
    if isinstance(quality, bool) or not isinstance(quality, numbers.Real):
        raise ValidationError(f"Quality must be a number in [0, 1], got {quality!r}.")
    value = float(quality)
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        raise ValidationError(f"Quality must be within [0, 1], got {quality!r}.")
    return value


def webp_params(quality: float):
    # OpenCV takes 1..100; anything above 100 would switch libwebp to lossless.
    level = max(1, min(100, int(round(quality * 100))))
    return [int(cv2.IMWRITE_WEBP_QUALITY), level]


class FormatReencoder:
    """Serialise a buffer to WebP at a caller-chosen quality."""

    mime_type = LOSSY_MIME

    def reencode(self, buffer: PixelBuffer, quality: float) -> EncodedImage:
        """Encode ``buffer`` unchanged in geometry.

        Raises:
            ValidationError: If ``quality`` is outside [0, 1].
            EncodeError: If the codec fails.
        """
        value = validate_quality(quality)
        data = encode_buffer(buffer, ".webp", webp_params(value))
        logger.debug(
            "Re-encoded %sx%s buffer to WebP q=%.2f (%s bytes)",
            buffer.width,
            buffer.height,
            value,
            len(data),
        )
        return EncodedImage(
            data=data,
            mime_type=LOSSY_MIME,
            width=buffer.width,
            height=buffer.height,
            quality=value,
        )

    def encode_lossless(self, buffer: PixelBuffer) -> EncodedImage:
        data = encode_buffer(buffer, ".png")
        return EncodedImage(
            data=data,
            mime_type=LOSSLESS_MIME,
            width=buffer.width,
            height=buffer.height,
        )


__all__ = ["FormatReencoder", "validate_quality", "LOSSY_MIME", "LOSSLESS_MIME"]
