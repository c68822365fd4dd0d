"""SSIM-based fidelity report for re-encoded images."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

import cv2
from skimage.metrics import structural_similarity as ssim

from ..core.buffer import PixelBuffer, decode_image
from ..core.reference import EncodedImage


def _to_gray(buffer: PixelBuffer):
    return cv2.cvtColor(buffer.pixels, cv2.COLOR_RGBA2GRAY)


def structural_similarity(reference: PixelBuffer, candidate: PixelBuffer) -> float:
    """Greyscale SSIM in [-1, 1]; both buffers must share the same geometry."""
    if reference.size != candidate.size:
        raise ValueError(
            f"Cannot compare {reference.width}x{reference.height} with "
            f"{candidate.width}x{candidate.height}."
        )
    ref = _to_gray(reference)
    cand = _to_gray(candidate)
    # skimage needs an odd window no larger than the image.
    win_size = min(7, ref.shape[0], ref.shape[1])
    if win_size % 2 == 0:
        win_size -= 1
    if win_size < 3:
        return 1.0 if (ref == cand).all() else 0.0
    return float(ssim(ref, cand, data_range=255, win_size=win_size))


@dataclass
class FidelityReport:
    mime_type: str
    quality: Optional[float]
    width: int
    height: int
    size_bytes: int
    ssim: float

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2)

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(), encoding="utf-8")


def build_report(original: PixelBuffer, encoded: EncodedImage) -> FidelityReport:
    decoded = decode_image(encoded.data)
    return FidelityReport(
        mime_type=encoded.mime_type,
        quality=encoded.quality,
        width=encoded.width,
        height=encoded.height,
        size_bytes=encoded.size_bytes,
        ssim=structural_similarity(original, decoded),
    )
