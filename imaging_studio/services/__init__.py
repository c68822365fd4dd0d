"""Thin clients for the external services the studio talks to."""

from .generation import build_image_url
from .hosting import ImageHostClient
from .suggestions import SuggestionClient, parse_suggestions

__all__ = ["build_image_url", "ImageHostClient", "SuggestionClient", "parse_suggestions"]
