"""Core image post-processing for imaging-studio."""

from .batch_manager import BatchItem, BatchProcessor, BatchResult
from .buffer import PixelBuffer, decode_image
from .encoder import FormatReencoder
from .errors import EncodeError, ImagingError, LoadError, ProviderError, ValidationError
from .loader import HttpFetcher, ImageLoader
from .pipeline import ExportResult, ImagePipeline
from .reference import EncodedImage, ImageReference
from .resize import CropBox, ResizeCropper, compute_center_crop
from .watermark import WatermarkRemover

__all__ = [
    "BatchItem",
    "BatchProcessor",
    "BatchResult",
    "CropBox",
    "EncodeError",
    "EncodedImage",
    "ExportResult",
    "FormatReencoder",
    "HttpFetcher",
    "ImageLoader",
    "ImagePipeline",
    "ImageReference",
    "ImagingError",
    "LoadError",
    "PixelBuffer",
    "ProviderError",
    "ResizeCropper",
    "ValidationError",
    "WatermarkRemover",
    "compute_center_crop",
    "decode_image",
]
