"""Bottom-right watermark removal by tiling the clean strip above it."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Tuple

import numpy as np

from .buffer import PixelBuffer

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 200
DEFAULT_HEIGHT = 35
DEFAULT_STRIP_HEIGHT = 5


class WatermarkRemover:
    """Paint over a fixed-size bottom-right rectangle.

    The rectangle is measured in the buffer's own pixels, so it only lines up
    with watermarks rendered at that size. Not content-aware: artifacts appear
    when the area above the watermark is busy.
    """

    def __init__(
        self,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
        strip_height: int = DEFAULT_STRIP_HEIGHT,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("Watermark width and height must be positive integers.")
        if strip_height <= 0:
            raise ValueError("strip_height must be a positive integer.")
        self.width = int(width)
        self.height = int(height)
        self.strip_height = int(strip_height)

    def region(self, buffer: PixelBuffer) -> Tuple[int, int, int, int]:
        """``(x, y, width, height)`` of the watermark rectangle in ``buffer``."""
        return (
            buffer.width - self.width,
            buffer.height - self.height,
            self.width,
            self.height,
        )

    def fits(self, buffer: PixelBuffer) -> bool:
        return buffer.width >= self.width and buffer.height >= self.height

    def _sample_strip(self, pixels: np.ndarray, x0: int, y0: int) -> np.ndarray:
        strip = np.zeros((self.strip_height, self.width, 4), dtype=np.uint8)
        top = y0 - self.strip_height
        # Rows above the image read as transparent black.
        src_top = max(top, 0)
        if src_top < y0:
            strip[src_top - top:] = pixels[src_top:y0, x0:x0 + self.width]
        return strip

    def remove_watermark(self, buffer: PixelBuffer) -> PixelBuffer:
        """Return a new buffer with the watermark rectangle overwritten."""
        if not self.fits(buffer):
            logger.warning(
                "Image (%sx%s) is smaller than watermark area (%sx%s), skipping removal.",
                buffer.width,
                buffer.height,
                self.width,
                self.height,
            )
            return buffer.copy()

        x0, y0, _, _ = self.region(buffer)
        result = buffer.pixels.copy()
        strip = self._sample_strip(buffer.pixels, x0, y0)
        for offset in range(0, self.height, self.strip_height):
            rows = min(self.strip_height, self.height - offset)
            result[y0 + offset:y0 + offset + rows, x0:x0 + self.width] = strip[:rows]
        logger.debug(
            "Painted over %sx%s watermark at (%s, %s)", self.width, self.height, x0, y0
        )
        return PixelBuffer(result)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "WatermarkRemover":
        settings = dict(config.get("watermark", {}))
        return cls(
            width=int(settings.get("width", DEFAULT_WIDTH)),
            height=int(settings.get("height", DEFAULT_HEIGHT)),
            strip_height=int(settings.get("strip_height", DEFAULT_STRIP_HEIGHT)),
        )


__all__ = ["WatermarkRemover"]
