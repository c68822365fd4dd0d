"""Upload encoded images to an imgbb-style hosting API."""

from __future__ import annotations

import base64
import logging
import os
from typing import Any, Mapping, Optional

import requests

from ..core.errors import ProviderError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.imgbb.com/1/upload"
DEFAULT_API_KEY_ENV = "IMGBB_API_KEY"


class ImageHostClient:
    """``upload(bytes, slug) -> hosted URL`` using a fixed API key."""

    def __init__(
        self,
        api_key: str,
        *,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not api_key:
            raise ValidationError("An image hosting API key is required.")
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()

    def upload(self, data: bytes, slug: str) -> str:
        if not data:
            raise ValidationError("Cannot upload an empty image payload.")
        if not slug or not slug.strip():
            raise ValidationError("A custom name (slug) is required for uploads.")

        form = {
            "key": self.api_key,
            "image": base64.b64encode(data).decode("ascii"),
            "name": slug.strip(),
        }
        try:
            response = self.session.post(self.endpoint, data=form, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ProviderError(f"Image upload failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        if response.status_code != 200 or not payload.get("success", False):
            error = payload.get("error")
            message = error.get("message") if isinstance(error, dict) else error
            raise ProviderError(
                f"Image host rejected upload ({response.status_code}): {message or response.text[:200]}",
                status_code=response.status_code,
            )

        url = (payload.get("data") or {}).get("url")
        if not url:
            raise ProviderError("Image host response did not include a URL.")
        logger.info("Uploaded '%s' (%s bytes) to %s", slug, len(data), url)
        return url

    @classmethod
    def from_config(cls, config: Mapping[str, Any], *, api_key: Optional[str] = None) -> "ImageHostClient":
        services = dict(config.get("services", {}))
        settings = dict(services.get("hosting", {}))
        if api_key is None:
            api_key = os.environ.get(settings.get("api_key_env", DEFAULT_API_KEY_ENV), "")
        timeout = dict(config.get("loader", {})).get("timeout_seconds")
        return cls(
            api_key,
            endpoint=settings.get("endpoint", DEFAULT_ENDPOINT),
            timeout=float(timeout) if timeout is not None else None,
        )


__all__ = ["ImageHostClient", "DEFAULT_ENDPOINT"]
