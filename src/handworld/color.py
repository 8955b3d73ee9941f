"""Hex display colours (``#rrggbb`` / ``#rgb``)."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .config import FALLBACK_COLOR

_HEX6 = re.compile(r"[0-9a-fA-F]{6}")
_HEX3 = re.compile(r"[0-9a-fA-F]{3}")


@dataclass(frozen=True)
class Color:
    """An sRGB colour with 8-bit channels."""

    r: int
    g: int
    b: int

    @classmethod
    def parse(cls, value: str) -> Optional[Color]:
        """Parse ``#rrggbb`` or ``#rgb`` (leading ``#`` optional).

        Returns ``None`` for anything else.
        """
        if not isinstance(value, str):
            return None
        text = value[1:] if value.startswith("#") else value
        if _HEX3.fullmatch(text):
            text = "".join(c * 2 for c in text)
        elif not _HEX6.fullmatch(text):
            return None
        return cls(int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16))

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    def inverted(self) -> Color:
        return Color(255 - self.r, 255 - self.g, 255 - self.b)

    def to_bgr(self) -> tuple[int, int, int]:
        """OpenCV channel order."""
        return (self.b, self.g, self.r)


def normalize_hex(value: str) -> Optional[str]:
    """Lower-case 6-digit form of *value*, or ``None`` if it is not a hex colour."""
    color = Color.parse(value)
    return color.to_hex() if color is not None else None


def invert_hex(value: str, fallback: str = FALLBACK_COLOR) -> str:
    """Channel-wise ``255 - c`` inversion; unparseable input yields *fallback*."""
    color = Color.parse(value)
    if color is None:
        return fallback
    return color.inverted().to_hex()
