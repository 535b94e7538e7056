"""Color mixing utilities.

Small helpers shared by every resolver that needs to reason about the
colour a foreground will *actually* render as:

- Parsing hex colors (#rgb, #rrggbb) into RGB tuples
- Normalizing hex strings to the canonical lowercase ``#rrggbb`` form
- Opacity blending of a foreground over an opaque background

Accepted component range: 0-255 for channels, 0-1 float for opacity.

Public API:
    parse_hex(color: str) -> (r,g,b)
    to_hex(r,g,b) -> str
    normalize_hex(color) -> str | None
    blend(fg, bg, opacity) -> str

Notes:
    - blend clamps opacity into [0, 1] and rounds each channel to the nearest
      integer (``round(a * fg + (1 - a) * bg)``); the result is always opaque.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

__all__ = [
    "HEX_PATTERN",
    "parse_hex",
    "to_hex",
    "normalize_hex",
    "blend",
]

RGB = Tuple[int, int, int]

HEX_PATTERN = re.compile(r"^#?(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def parse_hex(color: str) -> RGB:
    """Parse a hex color string into an (r,g,b) tuple.

    Supports #rgb and #rrggbb (case-insensitive, leading '#' optional).
    Raises ValueError for invalid format.
    """
    if not isinstance(color, str):
        raise ValueError("color must be a string")
    c = color.strip()
    if not HEX_PATTERN.match(c):
        raise ValueError(f"invalid hex color: {color!r}")
    c = c.lstrip("#")
    if len(c) == 3:
        r, g, b = (int(ch * 2, 16) for ch in c)
        return r, g, b
    return int(c[0:2], 16), int(c[2:4], 16), int(c[4:6], 16)


def _clamp_byte(v: int) -> int:
    return 0 if v < 0 else 255 if v > 255 else v


def to_hex(r: int, g: int, b: int) -> str:
    """Convert RGB components to a lowercase ``#rrggbb`` string (values clamped)."""
    return f"#{_clamp_byte(r):02x}{_clamp_byte(g):02x}{_clamp_byte(b):02x}"


def normalize_hex(color: object) -> Optional[str]:
    """Return canonical ``#rrggbb`` for a hex-like value, else None."""
    if not isinstance(color, str) or not HEX_PATTERN.match(color.strip()):
        return None
    return to_hex(*parse_hex(color))


def blend(fg: str, bg: str, opacity: float = 1.0) -> str:
    """Composite ``fg`` over an opaque ``bg`` at ``opacity``.

    Parameters
    ----------
    fg, bg : str
        Hex colors.
    opacity : float
        Foreground opacity; values outside [0, 1] are clamped.

    Returns
    -------
    str
        The resulting opaque ``#rrggbb`` color.
    """
    a = max(0.0, min(1.0, float(opacity)))
    fr, fg_g, fb = parse_hex(fg)
    br, bg_g, bb = parse_hex(bg)
    return to_hex(
        int(round(a * fr + (1 - a) * br)),
        int(round(a * fg_g + (1 - a) * bg_g)),
        int(round(a * fb + (1 - a) * bb)),
    )
