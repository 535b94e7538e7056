"""Property naming scheme.

Every emitted property name encodes its tier, for the brand tier also the
mode and subsystem, then a semantic path::

    --<prefix>-tokens-color-gray-500
    --<prefix>-brand-themes-light-palettes-neutral-500-tone
    --<prefix>-brand-themes-dark-layer-layer-0-property-element-text-color
    --<prefix>-brand-dimensions-gutters-horizontal
    --<prefix>-ui-kit-button-color-background

Token-tier properties hold literal values. Brand and ui-kit properties hold
``var(<name>)`` indirections (or a ``color-mix`` of indirections).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from ..config.settings import PROPERTY_PREFIX

__all__ = [
    "PropertyNames",
    "var",
    "parse_var",
    "referenced_names",
    "color_mix",
    "parse_color_mix",
]

_VAR_RE = re.compile(r"^var\(\s*(--[A-Za-z0-9_\-]+)\s*(?:,\s*(.*))?\)$", re.S)
_ANY_VAR_RE = re.compile(r"var\(\s*(--[A-Za-z0-9_\-]+)")


def var(name: str) -> str:
    return f"var({name})"


def parse_var(value: object) -> Optional[str]:
    """Return the property name of a ``var(--name[, fallback])`` value."""
    if not isinstance(value, str):
        return None
    m = _VAR_RE.match(value.strip())
    return m.group(1) if m else None


def referenced_names(value: object) -> list[str]:
    """All property names referenced by ``var()`` anywhere inside ``value``."""
    if not isinstance(value, str):
        return []
    return _ANY_VAR_RE.findall(value)


@dataclass(frozen=True)
class PropertyNames:
    prefix: str = PROPERTY_PREFIX

    # Tier roots -------------------------------------------------------
    @property
    def tokens_root(self) -> str:
        return f"--{self.prefix}-tokens-"

    @property
    def brand_root(self) -> str:
        return f"--{self.prefix}-brand-"

    @property
    def uikit_root(self) -> str:
        return f"--{self.prefix}-ui-kit-"

    def is_token(self, name: str) -> bool:
        return name.startswith(self.tokens_root)

    def is_brand(self, name: str) -> bool:
        return name.startswith(self.brand_root)

    def is_uikit(self, name: str) -> bool:
        return name.startswith(self.uikit_root)

    def is_managed(self, name: str) -> bool:
        return self.is_token(name) or self.is_brand(name) or self.is_uikit(name)

    # Token tier -------------------------------------------------------
    def token(self, *path: str) -> str:
        return self.tokens_root + "-".join(str(p) for p in path)

    def token_color(self, family: str, level: str) -> str:
        return self.token("color", family, level)

    def token_from_path(self, path: str) -> str:
        """``color/gray/500`` -> ``--p-tokens-color-gray-500``."""
        return self.token(*[p for p in path.split("/") if p])

    # Brand tier -------------------------------------------------------
    def theme(self, mode: str, *path: str) -> str:
        return f"{self.brand_root}themes-{mode}-" + "-".join(str(p) for p in path)

    def palette(self, mode: str, key: str, level: str, kind: str = "tone") -> str:
        return self.theme(mode, "palettes", key, level, kind)

    def core(self, mode: str, name: str, state: Optional[str] = None, kind: Optional[str] = None) -> str:
        parts = ["palettes", "core", name]
        if state:
            parts.append(state)
        if kind:
            parts.append(kind)
        return self.theme(mode, *parts)

    def text_emphasis(self, mode: str, level: str) -> str:
        return self.theme(mode, "text-emphasis", level)

    def layer(self, mode: str, layer_id: str, *path: str) -> str:
        return self.theme(mode, "layer", layer_id, "property", *path)

    def layer_element(self, mode: str, layer_id: str, *path: str) -> str:
        return self.layer(mode, layer_id, "element", *path)

    def elevation(self, mode: str, *path: str) -> str:
        return self.theme(mode, "elevations", *path)

    def dimension(self, *path: str) -> str:
        return f"{self.brand_root}dimensions-" + "-".join(str(p) for p in path)

    def typography(self, *path: str) -> str:
        return f"{self.brand_root}typography-" + "-".join(str(p) for p in path)

    def uikit(self, *path: str) -> str:
        return self.uikit_root + "-".join(str(p) for p in path)

    # Parsing ----------------------------------------------------------
    def parse_token_color(self, name: str) -> Optional[tuple[str, str]]:
        """``--p-tokens-color-gray-500`` -> ``("gray", "500")``."""
        root = self.token("color") + "-"
        if not name.startswith(root):
            return None
        family, sep, level = name[len(root):].rpartition("-")
        if not sep or not family or not level.isdigit():
            return None
        return family, level

    def parse_palette(self, name: str) -> Optional[tuple[str, str, str, str]]:
        """Return ``(mode, key, level, kind)`` for a palette tone/on-tone name."""
        m = re.match(
            rf"^--{re.escape(self.prefix)}-brand-themes-([a-z]+)-palettes-(.+)-(\d{{3,4}}|primary)-(tone|on-tone)$",
            name,
        )
        if not m or m.group(2) == "core":
            return None
        return m.group(1), m.group(2), m.group(3), m.group(4)


_MIX_RE = re.compile(
    r"^color-mix\(\s*in\s+srgb\s*,\s*(var\([^()]*\))\s+(\d+(?:\.\d+)?)%\s*,\s*(var\([^()]*\))\s*\)$"
)


def color_mix(fg: str, percent: float, bg: str) -> str:
    """``color-mix(in srgb, var(fg) N%, var(bg))`` blend-of-refs expression."""
    return f"color-mix(in srgb, {var(fg)} {percent:g}%, {var(bg)})"


def parse_color_mix(value: object) -> Optional[tuple[str, float, str]]:
    """Return ``(fg_name, opacity, bg_name)`` for a blend-of-refs expression."""
    if not isinstance(value, str):
        return None
    m = _MIX_RE.match(value.strip())
    if not m:
        return None
    fg, bg = parse_var(m.group(1)), parse_var(m.group(3))
    if fg is None or bg is None:
        return None
    return fg, float(m.group(2)) / 100.0, bg
