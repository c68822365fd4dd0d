"""Center-crop to the target aspect ratio, then resample to exact dimensions."""

from __future__ import annotations

import logging
import numbers
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

from .buffer import PixelBuffer
from .encoder import FormatReencoder
from .errors import EncodeError, ValidationError
from .reference import EncodedImage

logger = logging.getLogger(__name__)

RESIZE_QUALITY = 0.95


@dataclass(frozen=True)
class CropBox:
    """Source rectangle in (possibly fractional) source pixels."""

    sx: float
    sy: float
    width: float
    height: float

    def to_pixels(self, source_width: int, source_height: int) -> Tuple[int, int, int, int]:
        """Round to whole pixels, clamped inside the source."""
        width = min(source_width, max(1, int(round(self.width))))
        height = min(source_height, max(1, int(round(self.height))))
        x = min(max(0, int(round(self.sx))), source_width - width)
        y = min(max(0, int(round(self.sy))), source_height - height)
        return x, y, width, height


def validate_dimension(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ValidationError(f"{name} must be a positive integer, got {value!r}.")
    if value <= 0:
        raise ValidationError(f"{name} must be a positive integer, got {value!r}.")
    return int(value)


def compute_center_crop(
    source_width: int, source_height: int, target_width: int, target_height: int
) -> CropBox:
    """Largest centered source rectangle with the target's aspect ratio.

    Aspect ratios are compared by cross-multiplication so that equal ratios
    (e.g. 320x180 against 1600x900) always select the whole source.
    """
    source_cross = source_width * target_height
    target_cross = target_width * source_height

    if source_cross == target_cross:
        return CropBox(0.0, 0.0, float(source_width), float(source_height))

    if source_cross > target_cross:
        # Source is relatively wider: keep full height, trim the sides.
        crop_height = float(source_height)
        crop_width = source_height * target_width / target_height
        return CropBox((source_width - crop_width) / 2, 0.0, crop_width, crop_height)

    crop_width = float(source_width)
    crop_height = source_width * target_height / target_width
    return CropBox(0.0, (source_height - crop_height) / 2, crop_width, crop_height)


class ResizeCropper:
    """Fill an exact ``target_width x target_height`` canvas from a buffer."""

    def __init__(self, encoder: Optional[FormatReencoder] = None) -> None:
        self.encoder = encoder or FormatReencoder()

    def crop_and_scale(self, buffer: PixelBuffer, target_width: int, target_height: int) -> PixelBuffer:
        target_width = validate_dimension("target_width", target_width)
        target_height = validate_dimension("target_height", target_height)
        if buffer.width == 0 or buffer.height == 0:
            raise EncodeError("Cannot resize an empty pixel buffer.")

        box = compute_center_crop(buffer.width, buffer.height, target_width, target_height)
        x, y, width, height = box.to_pixels(buffer.width, buffer.height)
        region = np.ascontiguousarray(buffer.pixels[y:y + height, x:x + width])
        shrinking = target_width < width or target_height < height
        interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR
        try:
            resized = cv2.resize(region, (target_width, target_height), interpolation=interpolation)
        except cv2.error as exc:
            raise EncodeError(f"Resampling to {target_width}x{target_height} failed: {exc}") from exc
        logger.debug(
            "Cropped %sx%s+%s+%s from %sx%s and scaled to %sx%s",
            width,
            height,
            x,
            y,
            buffer.width,
            buffer.height,
            target_width,
            target_height,
        )
        return PixelBuffer(resized)

    def resize_and_crop(self, buffer: PixelBuffer, target_width: int, target_height: int) -> EncodedImage:
        """Center-crop, resample and encode as WebP at a fixed 0.95 quality.

        Raises:
            ValidationError: If either target dimension is not a positive integer.
            EncodeError: If the buffer is empty or the codec fails.
        """
        scaled = self.crop_and_scale(buffer, target_width, target_height)
        return self.encoder.reencode(scaled, RESIZE_QUALITY)


__all__ = [
    "CropBox",
    "ResizeCropper",
    "compute_center_crop",
    "validate_dimension",
    "RESIZE_QUALITY",
]
