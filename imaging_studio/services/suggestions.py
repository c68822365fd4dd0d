"""Prompt suggestions from the hosted text-generation service."""

from __future__ import annotations

import logging
import re
from typing import Any, List, Mapping, Optional
from urllib.parse import quote

import requests

from ..core.errors import ProviderError, ValidationError
from ..core.loader import DEFAULT_PROXY_URL, proxied_url

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://text.pollinations.ai/"
DEFAULT_INSTRUCTION = (
    "Suggest five improved, detailed image-generation prompts based on this idea. "
    "Answer with one prompt per line and nothing else: "
)

_LIST_MARKER = re.compile(r"^\s*(?:[-*•]+|\d+[.)])\s*")


def parse_suggestions(text: str) -> List[str]:
    """Split model output into prompts, dropping blank lines and list markers."""
    suggestions = []
    for line in text.splitlines():
        cleaned = _LIST_MARKER.sub("", line).strip().strip('"').strip()
        if cleaned:
            suggestions.append(cleaned)
    return suggestions


class SuggestionClient:
    """Ask the text service for prompt variations, routed through the relay."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        proxy_url: Optional[str] = DEFAULT_PROXY_URL,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self.proxy_url = proxy_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request_url(self, prompt: str) -> str:
        target = f"{self.base_url}{quote(DEFAULT_INSTRUCTION + prompt.strip(), safe='')}"
        if self.proxy_url:
            return proxied_url(target, self.proxy_url)
        return target

    def suggest(self, prompt: str) -> List[str]:
        """Return suggested prompts for ``prompt``.

        Raises:
            ValidationError: If ``prompt`` is blank.
            ProviderError: On transport failures, HTTP errors or empty answers.
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt cannot be empty.")
        url = self._request_url(prompt)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ProviderError(f"Text service request failed: {exc}") from exc
        if response.status_code != 200:
            raise ProviderError(
                f"Failed to generate text. Status: {response.status_code}",
                status_code=response.status_code,
            )

        text = self._extract_text(response)
        suggestions = parse_suggestions(text)
        if not suggestions:
            raise ProviderError("Text service returned no suggestions.")
        logger.info("Received %s prompt suggestion(s)", len(suggestions))
        return suggestions

    @staticmethod
    def _extract_text(response: requests.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text
        if isinstance(payload, Mapping):
            return str(payload.get("text") or "")
        if isinstance(payload, list):
            return "\n".join(str(item) for item in payload)
        return str(payload)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "SuggestionClient":
        services = dict(config.get("services", {}))
        settings = dict(services.get("suggestions", {}))
        loader_settings = dict(config.get("loader", {}))
        timeout = loader_settings.get("timeout_seconds")
        return cls(
            settings.get("base_url", DEFAULT_BASE_URL),
            proxy_url=loader_settings.get("proxy_url", DEFAULT_PROXY_URL),
            timeout=float(timeout) if timeout is not None else None,
        )


__all__ = ["SuggestionClient", "parse_suggestions"]
