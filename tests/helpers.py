from __future__ import annotations

from typing import Dict, List, Optional, Union

import cv2
import numpy as np
import requests

from imaging_studio.core.buffer import PixelBuffer
from imaging_studio.core.reference import ImageReference


def gradient_buffer(width: int = 320, height: int = 180) -> PixelBuffer:
    """Smooth RGB gradient with an opaque alpha channel."""
    xs = np.linspace(40, 220, width, dtype=np.float32)
    ys = np.linspace(30, 200, height, dtype=np.float32)
    red = np.tile(xs, (height, 1))
    green = np.tile(ys.reshape(-1, 1), (1, width))
    blue = np.full((height, width), 128, dtype=np.float32)
    alpha = np.full((height, width), 255, dtype=np.float32)
    pixels = np.dstack([red, green, blue, alpha]).astype(np.uint8)
    return PixelBuffer(pixels)


def noise_buffer(width: int, height: int, seed: int = 0) -> PixelBuffer:
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    return PixelBuffer(pixels)


def striped_buffer(width: int = 300, height: int = 100) -> PixelBuffer:
    """Three equal vertical bands: red, green, blue."""
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    third = width // 3
    pixels[:, :third] = (255, 0, 0, 255)
    pixels[:, third:2 * third] = (0, 255, 0, 255)
    pixels[:, 2 * third:] = (0, 0, 255, 255)
    return PixelBuffer(pixels)


def watermarked_sample(width: int = 400, height: int = 240) -> PixelBuffer:
    """Flat sky colour with white text stamped in the bottom-right corner."""
    bgra = np.zeros((height, width, 4), dtype=np.uint8)
    bgra[:] = (230, 180, 120, 255)
    cv2.putText(
        bgra,
        "studio.ai",
        (width - 190, height - 10),
        cv2.FONT_HERSHEY_SIMPLEX,
        0.9,
        (255, 255, 255, 255),
        2,
        cv2.LINE_AA,
    )
    return PixelBuffer.from_bgr(bgra)


def encode_png(buffer: PixelBuffer) -> bytes:
    ok, encoded = cv2.imencode(".png", buffer.to_bgra())
    assert ok
    return encoded.tobytes()


def png_reference(buffer: PixelBuffer) -> ImageReference:
    return ImageReference.from_bytes(encode_png(buffer), "image/png")


class RecordingFetcher:
    """Fake ``fetch_raw``: serves canned bytes per URL and records every call."""

    def __init__(self, responses: Optional[Dict[str, Union[bytes, Exception]]] = None) -> None:
        self.responses = dict(responses or {})
        self.calls: List[str] = []

    def __call__(self, url: str) -> bytes:
        self.calls.append(url)
        outcome = self.responses.get(url, requests.ConnectionError(f"refused: {url}"))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome
