"""Exception hierarchy shared by every imaging operation.

Each public operation either returns a complete result or raises exactly one
of ``ValidationError``, ``LoadError`` or ``EncodeError``. ``ProviderError`` is
reserved for the external collaborator clients in :mod:`imaging_studio.services`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence, Tuple

if TYPE_CHECKING:  # pragma: no cover
    from .reference import ImageReference


class ImagingError(Exception):
    """Base class for all errors raised by imaging-studio."""


class ValidationError(ImagingError, ValueError):
    """Caller-supplied parameters are invalid; raised before any I/O."""


class LoadError(ImagingError):
    """An image could not be fetched or decoded, even through the relay."""

    def __init__(
        self,
        message: str,
        *,
        reference: Optional["ImageReference"] = None,
        attempts: Sequence[str] = (),
    ) -> None:
        super().__init__(message)
        self.reference = reference
        self.attempts: Tuple[str, ...] = tuple(attempts)

    @property
    def fallback_url(self) -> Optional[str]:
        """URL the caller can offer to open manually, when the source was remote."""
        if self.reference is None:
            return None
        return self.reference.uri


class EncodeError(ImagingError):
    """The codec failed to produce an encoded buffer."""


class ProviderError(ImagingError):
    """An external service (text, hosting) failed or returned garbage."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


__all__ = [
    "ImagingError",
    "ValidationError",
    "LoadError",
    "EncodeError",
    "ProviderError",
]
