"""Named output sizes offered by the studio's export and generation tools."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .errors import ValidationError


@dataclass(frozen=True)
class AspectRatioPreset:
    label: str
    aspect_ratio: str
    category: str
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def has_size(self) -> bool:
        return self.width is not None and self.height is not None

    @property
    def ratio(self) -> Tuple[int, int]:
        return parse_aspect_ratio(self.aspect_ratio)


ASPECT_RATIO_PRESETS: List[AspectRatioPreset] = [
    AspectRatioPreset("Instagram Post (1:1)", "1:1", "Social Media", 1080, 1080),
    AspectRatioPreset("Instagram Story (9:16)", "9:16", "Social Media", 1080, 1920),
    AspectRatioPreset("Facebook Post (4:3)", "4:3", "Social Media", 1200, 900),
    AspectRatioPreset("Twitter Post (16:9)", "16:9", "Social Media", 1600, 900),
    AspectRatioPreset("Standard Landscape (16:9)", "16:9", "General"),
    AspectRatioPreset("Standard Portrait (9:16)", "9:16", "General"),
    AspectRatioPreset("Standard Square (1:1)", "1:1", "General"),
    AspectRatioPreset("Classic Photo (4:3)", "4:3", "General"),
    AspectRatioPreset("Classic Portrait (3:4)", "3:4", "General"),
]

_PRESETS_BY_LABEL: Dict[str, AspectRatioPreset] = {
    preset.label.lower(): preset for preset in ASPECT_RATIO_PRESETS
}


def parse_aspect_ratio(value: str) -> Tuple[int, int]:
    """Parse ``"16:9"`` into ``(16, 9)``."""
    left, sep, right = value.partition(":")
    try:
        width, height = int(left), int(right)
    except ValueError:
        width = height = 0
    if not sep or width <= 0 or height <= 0:
        raise ValidationError(f"Invalid aspect ratio: {value!r}")
    return width, height


def get_preset(label: str) -> AspectRatioPreset:
    """Look up a preset by label, ignoring case and surrounding whitespace."""
    preset = _PRESETS_BY_LABEL.get(label.strip().lower())
    if preset is None:
        known = ", ".join(p.label for p in ASPECT_RATIO_PRESETS)
        raise ValidationError(f"Unknown size preset {label!r}. Known presets: {known}")
    return preset


def sized_presets() -> List[AspectRatioPreset]:
    return [preset for preset in ASPECT_RATIO_PRESETS if preset.has_size]


__all__ = [
    "AspectRatioPreset",
    "ASPECT_RATIO_PRESETS",
    "get_preset",
    "parse_aspect_ratio",
    "sized_presets",
]
