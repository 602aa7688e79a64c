"""CSS font shorthand parsing and pygame font lookup.

Scene trees describe fonts the way a 2D canvas does (``"18pt Arial"``,
``"bold 12px monospace"``). :func:`parse_css_font` turns such a string into a
:class:`FontSpec`; :class:`FontCache` resolves specs to pygame fonts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

__all__ = ["FontSpec", "parse_css_font", "FontCache", "DEFAULT_FONT"]

DEFAULT_FONT = "10px sans-serif"

_SIZE_RE = re.compile(r"^(\d+(?:\.\d+)?)(px|pt|em|rem)(?:/\S+)?$")
_UNIT_PX = {"px": 1.0, "pt": 4.0 / 3.0, "em": 16.0, "rem": 16.0}
_BOLD = {"bold", "bolder", "600", "700", "800", "900"}
_ITALIC = {"italic", "oblique"}
_IGNORED = {"normal", "small-caps", "lighter", "100", "200", "300", "400", "500"}

# Generic families map to a preference list; None is pygame's bundled font.
_GENERIC_FAMILIES: Dict[str, list[Optional[str]]] = {
    "sans-serif": [None],
    "serif": ["DejaVu Serif", "Times New Roman", "serif", None],
    "monospace": ["DejaVu Sans Mono", "Menlo", "Consolas", "Courier New", None],
}


@dataclass(frozen=True, slots=True)
class FontSpec:
    family: str
    size_px: int
    bold: bool = False
    italic: bool = False


def parse_css_font(value: str) -> FontSpec | None:
    """Parse a CSS font shorthand, or return None if it is not one.

    Only style, weight, size (px/pt/em/rem, optional ``/line-height``) and
    the first family name are honoured.
    """
    if not isinstance(value, str):
        return None
    tokens = value.strip().split()
    bold = italic = False
    for i, tok in enumerate(tokens):
        low = tok.lower()
        m = _SIZE_RE.match(low)
        if m:
            family_part = " ".join(tokens[i + 1 :])
            family = family_part.split(",")[0].strip().strip("'\"")
            if not family:
                return None
            size = float(m.group(1)) * _UNIT_PX[m.group(2)]
            return FontSpec(family, max(1, int(round(size))), bold, italic)
        if low in _BOLD:
            bold = True
        elif low in _ITALIC:
            italic = True
        elif low not in _IGNORED:
            return None
    return None


class FontCache:
    """Resolve :class:`FontSpec` values to cached pygame fonts."""

    def __init__(self) -> None:
        self._fonts: Dict[FontSpec, Any] = {}

    def get(self, spec: FontSpec) -> Any:
        font = self._fonts.get(spec)
        if font is None:
            font = self._load(spec)
            self._fonts[spec] = font
        return font

    @staticmethod
    def _load(spec: FontSpec) -> Any:
        import pygame

        if not pygame.font.get_init():
            pygame.font.init()
        names = _GENERIC_FAMILIES.get(spec.family.lower(), [spec.family, None])
        for name in names:
            if name is None:
                font = pygame.font.Font(None, spec.size_px)
                font.set_bold(spec.bold)
                font.set_italic(spec.italic)
                return font
            if pygame.font.match_font(name) is not None:
                return pygame.font.SysFont(name, spec.size_px, spec.bold, spec.italic)
        return pygame.font.Font(None, spec.size_px)
