"""Terminal color replies and luminance.

Terminals answer an OSC 11 background query with ``rgb:RRRR/GGGG/BBBB``
where each field carries 1-4 hex digits.  This module turns that reply into
an :class:`RGBColor` and classifies it as light or dark.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

CHANNEL_MAX = 0xFFFF

# Backgrounds at or above this relative luminance count as light.
LIGHT_THRESHOLD = 0.5

_REPLY_RE = re.compile(
    r"rgb:([0-9a-fA-F]{1,4})/([0-9a-fA-F]{1,4})/([0-9a-fA-F]{1,4})"
)
_HEX_RE = re.compile(r"#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})")


@dataclass(frozen=True)
class RGBColor:
    """A color with 16-bit channels (0..65535)."""

    red: int
    green: int
    blue: int

    @classmethod
    def from_hex(cls, value: str) -> RGBColor | None:
        """Parse ``#rrggbb`` or ``#rgb`` (leading ``#`` optional)."""
        m = _HEX_RE.fullmatch(value.strip())
        if m is None:
            return None
        digits = m.group(1)
        if len(digits) == 3:
            digits = "".join(c * 2 for c in digits)
        r, g, b = (int(digits[i:i + 2], 16) for i in (0, 2, 4))
        return cls(r * 257, g * 257, b * 257)

    @property
    def rgb8(self) -> tuple[int, int, int]:
        """Channels scaled down to 0..255."""
        return tuple(round(c * 255 / CHANNEL_MAX) for c in (self.red, self.green, self.blue))

    @property
    def hex(self) -> str:
        """Lowercase ``#rrggbb`` string."""
        r, g, b = self.rgb8
        return f"#{r:02x}{g:02x}{b:02x}"

    def __str__(self) -> str:
        return self.hex


def _scale_channel(field: str) -> int:
    """Stretch a 1-4 digit hex field to the full 16-bit range."""
    top = 16 ** len(field) - 1
    return round(int(field, 16) * CHANNEL_MAX / top)


def parse_color_reply(reply: str) -> RGBColor | None:
    """Parse a terminal background reply.

    Args:
        reply: The payload of an OSC 11 answer, e.g. ``rgb:1e1e/1e1e/1e1e``.

    Returns:
        The decoded color, or ``None`` when the string is anything else.
        ``None`` is the only failure value; black decodes to a real color.
    """
    if not isinstance(reply, str):
        return None
    m = _REPLY_RE.fullmatch(reply)
    if m is None:
        return None
    return RGBColor(*(_scale_channel(f) for f in m.groups()))


def _linearize(c: float) -> float:
    """sRGB component to linear light."""
    return c / 12.92 if c <= 0.04045 else ((c + 0.055) / 1.055) ** 2.4


def luminance(color: RGBColor) -> float:
    """Relative luminance of *color* in the range 0.0 (black) to 1.0 (white)."""
    r, g, b = (_linearize(c / CHANNEL_MAX) for c in (color.red, color.green, color.blue))
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def is_light(lum: float) -> bool:
    """True when a luminance value counts as a light background."""
    return lum >= LIGHT_THRESHOLD


def classify_background(color: RGBColor) -> str:
    """Return ``"light"`` or ``"dark"`` for a background color."""
    return "light" if is_light(luminance(color)) else "dark"
