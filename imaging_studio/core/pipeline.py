"""Reference-in, encoded-image-out facade over the loader and the transforms."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

from .encoder import FormatReencoder, validate_quality
from .errors import ValidationError
from .loader import Fetcher, ImageLoader
from .reference import EncodedImage, ImageReference
from .resize import ResizeCropper, validate_dimension
from .watermark import WatermarkRemover

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_QUALITY = 0.9


class Uploader(Protocol):
    def upload(self, data: bytes, slug: str) -> str:
        ...


@dataclass(frozen=True)
class ExportResult:
    image: EncodedImage
    hosted_url: Optional[str] = None


class ImagePipeline:
    """Each call loads its own buffer; nothing is cached between calls.

    Calls block on network and codec work. Async callers should run them in an
    executor, e.g. ``await loop.run_in_executor(None, pipeline.reencode, ref)``.
    """

    def __init__(
        self,
        loader: Optional[ImageLoader] = None,
        watermark_remover: Optional[WatermarkRemover] = None,
        reencoder: Optional[FormatReencoder] = None,
        cropper: Optional[ResizeCropper] = None,
        *,
        export_quality: float = DEFAULT_EXPORT_QUALITY,
    ) -> None:
        self.loader = loader or ImageLoader()
        self.watermark_remover = watermark_remover or WatermarkRemover()
        self.reencoder = reencoder or FormatReencoder()
        self.cropper = cropper or ResizeCropper(self.reencoder)
        self.export_quality = validate_quality(export_quality)

    def remove_watermark(self, reference: ImageReference) -> EncodedImage:
        """Load, paint over the watermark and encode losslessly (PNG)."""
        buffer = self.loader.load(reference)
        cleaned = self.watermark_remover.remove_watermark(buffer)
        result = self.reencoder.encode_lossless(cleaned)
        logger.info("Removed watermark from %s", reference.description)
        return result

    def reencode(self, reference: ImageReference, quality: Optional[float] = None) -> EncodedImage:
        value = validate_quality(self.export_quality if quality is None else quality)
        buffer = self.loader.load(reference)
        result = self.reencoder.reencode(buffer, value)
        logger.info(
            "Converted %s to WebP (q=%.2f, %s bytes)",
            reference.description,
            value,
            result.size_bytes,
        )
        return result

    def resize_and_crop(self, reference: ImageReference, target_width: int, target_height: int) -> EncodedImage:
        validate_dimension("target_width", target_width)
        validate_dimension("target_height", target_height)
        buffer = self.loader.load(reference)
        result = self.cropper.resize_and_crop(buffer, target_width, target_height)
        logger.info(
            "Resized %s (%sx%s) to %sx%s",
            reference.description,
            buffer.width,
            buffer.height,
            target_width,
            target_height,
        )
        return result

    def clean_and_export(
        self,
        reference: ImageReference,
        quality: Optional[float] = None,
        *,
        uploader: Optional[Uploader] = None,
        slug: Optional[str] = None,
    ) -> ExportResult:
        """Remove the watermark, convert to WebP and optionally host the result.

        The buffer is decoded once and passed straight from the watermark step
        to the encoder, so no intermediate PNG is produced.
        """
        value = validate_quality(self.export_quality if quality is None else quality)
        if uploader is not None and not (slug and slug.strip()):
            raise ValidationError("A custom name (slug) is required before uploading.")

        buffer = self.loader.load(reference)
        cleaned = self.watermark_remover.remove_watermark(buffer)
        image = self.reencoder.reencode(cleaned, value)

        hosted_url = None
        if uploader is not None:
            hosted_url = uploader.upload(image.data, slug or "")
        logger.info("Exported %s (%s bytes)", reference.description, image.size_bytes)
        return ExportResult(image=image, hosted_url=hosted_url)

    @classmethod
    def from_config(cls, config: Mapping[str, Any], *, fetcher: Optional[Fetcher] = None) -> "ImagePipeline":
        export_settings = dict(config.get("export", {}))
        reencoder = FormatReencoder()
        return cls(
            loader=ImageLoader.from_config(config, fetcher=fetcher),
            watermark_remover=WatermarkRemover.from_config(config),
            reencoder=reencoder,
            cropper=ResizeCropper(reencoder),
            export_quality=float(export_settings.get("quality", DEFAULT_EXPORT_QUALITY)),
        )


__all__ = ["ImagePipeline", "ExportResult", "Uploader"]
