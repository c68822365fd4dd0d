"""Resolve image references into pixel buffers, with a single CORS-relay retry."""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Mapping, Optional
from urllib.parse import quote

import requests

from .buffer import PixelBuffer, decode_image
from .errors import LoadError
from .reference import ImageReference

logger = logging.getLogger(__name__)

DEFAULT_PROXY_URL = "https://api.allorigins.win/raw?url="

Fetcher = Callable[[str], bytes]


class HttpFetcher:
    """``fetch_raw(url) -> bytes`` over a shared ``requests.Session``."""

    def __init__(
        self,
        *,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {"User-Agent": user_agent} if user_agent else {}

    def __call__(self, url: str) -> bytes:
        response = self.session.get(url, headers=self.headers, timeout=self.timeout)
        response.raise_for_status()
        return response.content


def proxied_url(url: str, proxy_url: str = DEFAULT_PROXY_URL) -> str:
    return f"{proxy_url}{quote(url, safe='')}"


class ImageLoader:
    """Load references directly, falling back once to the relay for remote URLs."""

    def __init__(
        self,
        fetcher: Optional[Fetcher] = None,
        *,
        proxy_url: str = DEFAULT_PROXY_URL,
    ) -> None:
        if not proxy_url:
            raise ValueError("proxy_url must be a non-empty URL prefix.")
        self.fetcher: Fetcher = fetcher or HttpFetcher()
        self.proxy_url = proxy_url

    def is_proxied(self, url: str) -> bool:
        return url.startswith(self.proxy_url)

    def _candidate_urls(self, url: str) -> List[str]:
        if self.is_proxied(url):
            return [url]
        return [url, proxied_url(url, self.proxy_url)]

    def _attempt(self, url: str) -> PixelBuffer:
        return decode_image(self.fetcher(url))

    def load(self, reference: ImageReference) -> PixelBuffer:
        """Return a freshly decoded buffer for ``reference``.

        Raises:
            LoadError: If the inline payload is undecodable, or both the direct
                and the relayed fetch failed.
        """
        if reference.is_inline:
            try:
                return decode_image(reference.data or b"")
            except ValueError as exc:
                raise LoadError(
                    f"Failed to decode inline image: {exc}", reference=reference
                ) from exc

        url = reference.uri or ""
        attempted: List[str] = []
        last_error: Optional[BaseException] = None
        for candidate in self._candidate_urls(url):
            if attempted:
                logger.warning("Direct image load failed, retrying through CORS relay: %s", last_error)
            attempted.append(candidate)
            try:
                buffer = self._attempt(candidate)
            except (requests.RequestException, OSError, ValueError) as exc:
                last_error = exc
                continue
            logger.debug("Loaded %s after %s attempt(s)", url, len(attempted))
            return buffer

        raise LoadError(
            f"Failed to load image {url}, even with proxy: {last_error}",
            reference=reference,
            attempts=attempted,
        ) from last_error

    @classmethod
    def from_config(cls, config: Mapping[str, Any], *, fetcher: Optional[Fetcher] = None) -> "ImageLoader":
        settings = dict(config.get("loader", {}))
        if fetcher is None:
            timeout = settings.get("timeout_seconds")
            fetcher = HttpFetcher(
                timeout=float(timeout) if timeout is not None else None,
                user_agent=settings.get("user_agent"),
            )
        return cls(fetcher, proxy_url=settings.get("proxy_url", DEFAULT_PROXY_URL))


__all__ = ["ImageLoader", "HttpFetcher", "proxied_url", "DEFAULT_PROXY_URL"]
