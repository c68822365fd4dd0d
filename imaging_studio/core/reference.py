"""Image references (operation inputs) and encoded images (operation outputs)."""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union
from urllib.parse import unquote_to_bytes, urlparse

from .errors import ValidationError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

MIME_BY_SUFFIX = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".gif": "image/gif",
}
SUFFIX_BY_MIME = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/bmp": ".bmp",
    "image/tiff": ".tiff",
    "image/gif": ".gif",
}
REMOTE_SCHEMES = {"http", "https"}
DEFAULT_MIME = "application/octet-stream"


@dataclass(frozen=True)
class ImageReference:
    """Either an inline payload (``data`` + ``mime_type``) or a remote ``uri``."""

    uri: Optional[str] = None
    data: Optional[bytes] = field(default=None, repr=False)
    mime_type: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.uri is None) == (self.data is None):
            raise ValidationError("An image reference needs exactly one of 'uri' or 'data'.")
        if self.uri is not None:
            parsed = urlparse(self.uri)
            if parsed.scheme.lower() not in REMOTE_SCHEMES or not parsed.netloc:
                raise ValidationError(f"Unsupported image locator: {self.uri!r}")
        elif not self.data:
            raise ValidationError("Inline image payload is empty.")

    @property
    def is_inline(self) -> bool:
        return self.data is not None

    @property
    def description(self) -> str:
        """Short human-readable label used in log lines and error messages."""
        if self.uri is not None:
            return self.uri
        return f"<inline {self.mime_type or DEFAULT_MIME}, {len(self.data or b'')} bytes>"

    @classmethod
    def from_url(cls, url: str) -> "ImageReference":
        return cls(uri=url.strip())

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str = DEFAULT_MIME) -> "ImageReference":
        return cls(data=bytes(data), mime_type=mime_type)

    @classmethod
    def from_data_url(cls, data_url: str) -> "ImageReference":
        """Parse ``data:[<mime>][;base64],<payload>``."""
        if data_url[:5].lower() != "data:":
            raise ValidationError("Data URL must start with 'data:'.")
        header, sep, payload = data_url[len("data:"):].partition(",")
        if not sep:
            raise ValidationError("Data URL is missing the ',' payload separator.")
        params = [part.strip() for part in header.split(";")]
        mime_type = params[0].lower() or "text/plain"
        if "base64" in (p.lower() for p in params[1:]):
            try:
                data = base64.b64decode(payload.strip(), validate=True)
            except (binascii.Error, ValueError) as exc:
                raise ValidationError(f"Data URL payload is not valid base64: {exc}") from exc
        else:
            data = unquote_to_bytes(payload)
        return cls(data=data, mime_type=mime_type)

    @classmethod
    def from_path(cls, path: PathLike) -> "ImageReference":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Image not found: {path}")
        mime_type = MIME_BY_SUFFIX.get(path.suffix.lower())
        if mime_type is None:
            logger.warning("Reading image with uncommon extension: %s", path.suffix)
            mime_type = DEFAULT_MIME
        return cls(data=path.read_bytes(), mime_type=mime_type)

    @classmethod
    def parse(cls, value: str) -> "ImageReference":
        """Build a reference from a data URL or an http(s) URL."""
        value = value.strip()
        if value[:5].lower() == "data:":
            return cls.from_data_url(value)
        return cls.from_url(value)


@dataclass(frozen=True)
class EncodedImage:
    """Self-contained encoded payload returned by every transform."""

    data: bytes = field(repr=False)
    mime_type: str
    width: int
    height: int
    quality: Optional[float] = None

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def suffix(self) -> str:
        return SUFFIX_BY_MIME.get(self.mime_type, ".bin")

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.to_base64()}"

    def as_reference(self) -> ImageReference:
        return ImageReference.from_bytes(self.data, self.mime_type)

    def save(self, path: PathLike) -> Path:
        """Write the payload to disk, creating parent directories if needed."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.data)
        logger.debug("Saved %s (%s bytes) to %s", self.mime_type, self.size_bytes, path)
        return path


__all__ = ["ImageReference", "EncodedImage", "MIME_BY_SUFFIX"]
