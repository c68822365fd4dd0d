"""Sequential batch processing of manifest-described image jobs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Union

from .errors import ImagingError, ValidationError
from .pipeline import ImagePipeline
from .reference import EncodedImage, ImageReference

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

OPERATIONS = ("clean", "convert", "resize", "export")


@dataclass
class BatchItem:
    operation: str
    input: str
    output_path: PathLike
    quality: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass
class BatchResult:
    success: bool
    operation: str
    input: str
    output_path: Optional[Path] = None
    error: Optional[str] = None


def resolve_reference(source: Union[str, Path]) -> ImageReference:
    """Accept a local path, a data URL or an http(s) URL."""
    if isinstance(source, Path):
        return ImageReference.from_path(source)
    text = source.strip()
    if text.lower().startswith(("data:", "http://", "https://")):
        return ImageReference.parse(text)
    return ImageReference.from_path(text)


class BatchProcessor:
    """Run jobs one after another through a shared :class:`ImagePipeline`."""

    def __init__(
        self,
        pipeline: Optional[ImagePipeline] = None,
        *,
        config: Optional[Mapping[str, Any]] = None,
    ) -> None:
        config_map = dict(config or {})
        batch_settings = dict(config_map.get("batch", {}))
        self.halt_on_error = bool(batch_settings.get("halt_on_error", False))
        if pipeline is None:
            pipeline = ImagePipeline.from_config(config_map) if config_map else ImagePipeline()
        self.pipeline = pipeline

    def _run_operation(self, item: BatchItem, reference: ImageReference) -> EncodedImage:
        operation = item.operation.lower()
        if operation == "clean":
            return self.pipeline.remove_watermark(reference)
        if operation == "convert":
            return self.pipeline.reencode(reference, item.quality)
        if operation == "resize":
            if item.width is None or item.height is None:
                raise ValidationError("Resize jobs need both 'width' and 'height'.")
            return self.pipeline.resize_and_crop(reference, item.width, item.height)
        if operation == "export":
            return self.pipeline.clean_and_export(reference, item.quality).image
        raise ValidationError(f"Unsupported operation: {item.operation}")

    def _execute_item(self, item: BatchItem) -> BatchResult:
        logger.info("Batch %s: %s", item.operation, item.input)
        try:
            reference = resolve_reference(item.input)
            encoded = self._run_operation(item, reference)
            output_path = encoded.save(item.output_path)
        except (ImagingError, OSError) as exc:
            logger.error("Failed to %s %s: %s", item.operation, item.input, exc)
            return BatchResult(
                success=False,
                operation=item.operation,
                input=item.input,
                error=str(exc),
            )
        return BatchResult(
            success=True,
            operation=item.operation,
            input=item.input,
            output_path=output_path,
        )

    def process(self, items: Iterable[BatchItem]) -> List[BatchResult]:
        results: List[BatchResult] = []
        for item in items:
            result = self._execute_item(item)
            results.append(result)
            if self.halt_on_error and not result.success:
                logger.warning("Halting batch after first failure.")
                break
        return results


__all__ = ["BatchItem", "BatchResult", "BatchProcessor", "OPERATIONS", "resolve_reference"]
