"""URL construction for the open image-generation endpoint.

No request is made here: the returned URL is fetched later by the loader, and
the random ``seed`` query parameter asks the service for a fresh render.
"""

from __future__ import annotations

import random
from typing import Optional
from urllib.parse import quote, urlencode

from ..core.errors import ValidationError
from ..core.resize import validate_dimension

DEFAULT_BASE_URL = "https://image.pollinations.ai/prompt/"
MAX_SEED = 9999


def build_image_url(
    prompt: str,
    width: Optional[int] = None,
    height: Optional[int] = None,
    *,
    seed: Optional[int] = None,
    base_url: str = DEFAULT_BASE_URL,
) -> str:
    if not prompt or not prompt.strip():
        raise ValidationError("Prompt cannot be empty.")
    if seed is None:
        seed = random.randint(0, MAX_SEED)

    query = {"seed": int(seed)}
    if width is not None:
        query["width"] = validate_dimension("width", width)
    if height is not None:
        query["height"] = validate_dimension("height", height)

    base = base_url if base_url.endswith("/") else f"{base_url}/"
    return f"{base}{quote(prompt, safe='')}?{urlencode(query)}"


__all__ = ["build_image_url", "DEFAULT_BASE_URL"]
