"""Read-side view over a property map.

Derived resolvers never read documents for colors they measure; they read
the *property map* (either the map under construction or the live store)
through a :class:`PropertyView`. The view follows ``var()`` chains down to
token-tier literals and records every property name it touched, which is
exactly the input set the dependency graph needs for that derivation.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional, Set, Tuple

from ..config.settings import MAX_REFERENCE_DEPTH
from .color_mixing import blend, normalize_hex
from .naming import PropertyNames, parse_color_mix, parse_var
from .token_index import LEVELS

__all__ = ["Lookup", "PropertyView"]

Lookup = Callable[[str], Optional[str]]


class PropertyView:
    """Recording, chain-following reader of property values."""

    def __init__(self, lookup: Lookup, names: Optional[PropertyNames] = None) -> None:
        self._lookup = lookup
        self.names = names or PropertyNames()
        self.reads: Set[str] = set()

    def get(self, name: str) -> Optional[str]:
        self.reads.add(name)
        value = self._lookup(name)
        return None if value is None else str(value)

    # ------------------------------------------------------------------
    # Chain resolution
    # ------------------------------------------------------------------
    def resolve(self, value: Optional[str], depth: int = 0) -> Optional[str]:
        """Follow ``var()`` / ``color-mix()`` until a literal is reached."""
        if value is None or depth > MAX_REFERENCE_DEPTH:
            return None
        s = str(value).strip()
        if s.startswith("var("):
            target = parse_var(s)
            if target is None:
                return None
            resolved = self.resolve(self.get(target), depth + 1)
            if resolved is None and "," in s:
                fallback = s[s.index(",") + 1 : -1].strip()
                return self.resolve(fallback, depth + 1)
            return resolved
        mix = parse_color_mix(s)
        if mix is not None:
            fg_name, opacity, bg_name = mix
            fg = normalize_hex(self.resolve(self.get(fg_name), depth + 1))
            bg = normalize_hex(self.resolve(self.get(bg_name), depth + 1))
            if fg is None or bg is None:
                return None
            return blend(fg, bg, opacity)
        if s.startswith("color-mix("):
            return None
        return s or None

    def resolve_name(self, name: str) -> Optional[str]:
        return self.resolve(self.get(name))

    def hex(self, name: str) -> Optional[str]:
        """Resolved hex color of property ``name`` (None if not a color)."""
        return normalize_hex(self.resolve_name(name))

    def number(self, name: str, default: Optional[float] = None) -> Optional[float]:
        raw = self.resolve_name(name)
        if raw is None:
            return default
        s = raw[:-2] if raw.endswith("px") else raw
        try:
            return float(s)
        except ValueError:
            return default

    def token_target(self, name: str, depth: int = 0) -> Optional[Tuple[str, str]]:
        """Follow ``name``'s indirection chain to a token color ``(family, level)``."""
        if depth > MAX_REFERENCE_DEPTH:
            return None
        parsed = self.names.parse_token_color(name)
        if parsed is not None:
            return parsed
        target = parse_var(self.get(name))
        if target is None:
            return None
        return self.token_target(target, depth + 1)

    # ------------------------------------------------------------------
    # Ramps
    # ------------------------------------------------------------------
    def ramp(self, family: str) -> Dict[str, str]:
        """``level -> hex`` for every level the token tier defines for ``family``."""
        out: Dict[str, str] = {}
        for level in LEVELS:
            h = normalize_hex(self.get(self.names.token_color(family, level)))
            if h is not None:
                out[level] = h
        return out
