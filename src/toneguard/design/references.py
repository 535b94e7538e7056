"""Typed reference grammar.

Configuration documents embed symbolic references using a ``{dot.path}``
syntax. This module is the single place they are parsed; every resolver
consumes the resulting tagged union instead of matching strings ad hoc.

Recognized families::

    {tokens.color.gray.500}               -> TokenRef(("color", "gray", "500"))
    {tokens.colors.scale-01.500}          -> TokenRef (``colors`` folded into ``color``)
    {brand.themes.dark.palettes.x.500}    -> BrandRef(mode="dark")
    {brand.light.palettes.x.500}          -> BrandRef(mode="light")   (legacy, no ``themes``)
    {brand.palettes.x.500}                -> BrandRef(mode=<context mode>)
    {brand.dimensions.gutters.md}         -> BrandRef(mode=None)      (mode agnostic)
    {theme.light.layers.layer-0...}       -> ``theme`` is an alias of ``brand``
    {ui-kit.button.color}                 -> UIKitRef

Brace content is normalized first: runs of whitespace become dots and
repeated dots collapse, so ``{tokens.color.gray 500}`` and
``{tokens..color.gray.500}`` parse like ``{tokens.color.gray.500}``.

Anything else yields :class:`Unresolved`. Resolution is bounded by
``MAX_REFERENCE_DEPTH`` and returns None on failure; callers decide the
fallback policy.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple, Union

from ..config.settings import MAX_REFERENCE_DEPTH, MODES
from .naming import PropertyNames
from .token_index import TokenIndex, normalize_level, unwrap_value

__all__ = [
    "TokenRef",
    "BrandRef",
    "UIKitRef",
    "Unresolved",
    "Reference",
    "ReferenceContext",
    "extract_brace_content",
    "parse_reference",
    "brand_root",
    "brand_node",
    "resolve_reference",
    "resolve_to_token",
    "reference_to_property",
]


@dataclass(frozen=True)
class TokenRef:
    path: Tuple[str, ...]
    type: str = field(default="token", init=False)

    @property
    def category(self) -> str:
        return self.path[0]

    @property
    def token_path(self) -> str:
        return "/".join(self.path)


@dataclass(frozen=True)
class BrandRef:
    path: Tuple[str, ...]
    mode: Optional[str] = None
    type: str = field(default="brandRef", init=False)


@dataclass(frozen=True)
class UIKitRef:
    path: Tuple[str, ...]
    type: str = field(default="uikitRef", init=False)


@dataclass(frozen=True)
class Unresolved:
    raw: str
    reason: str
    type: str = field(default="unresolved", init=False)


Reference = Union[TokenRef, BrandRef, UIKitRef, Unresolved]


@dataclass
class ReferenceContext:
    mode: str = "light"
    token_index: Optional[TokenIndex] = None
    brand: Optional[Mapping[str, Any]] = None
    uikit: Optional[Mapping[str, Any]] = None
    names: PropertyNames = field(default_factory=PropertyNames)


_BRAND_HEADS = ("brand", "theme")
_TOKEN_HEADS = ("tokens", "token")
_UIKIT_HEADS = ("ui-kit", "uikit", "ui_kit")
_MODE_AGNOSTIC = ("dimensions", "typography")


def extract_brace_content(value: Any) -> Optional[str]:
    """Return the normalized content of a ``{...}`` reference, else None."""
    if not isinstance(value, str):
        return None
    s = value.strip()
    if len(s) < 3 or not (s.startswith("{") and s.endswith("}")):
        return None
    inner = re.sub(r"\s+", ".", s[1:-1].strip())
    inner = re.sub(r"\.{2,}", ".", inner).strip(".")
    return inner or None


def _normalize_brand_path(parts: Tuple[str, ...]) -> Tuple[str, ...]:
    if not parts:
        return parts
    head = {"palette": "palettes", "layer": "layers", "dimension": "dimensions"}.get(parts[0], parts[0])
    rest = parts[1:]
    if head == "palettes" and rest and rest[0] == "core":
        rest = ("core-colors",) + rest[1:]
    return (head,) + rest


def parse_reference(value: Any, context: Optional[ReferenceContext] = None) -> Reference:
    """Parse ``value`` into a :data:`Reference` variant."""
    value = unwrap_value(value)
    raw = value if isinstance(value, str) else repr(value)
    inner = extract_brace_content(value)
    if inner is None:
        return Unresolved(raw=raw, reason="not a brace reference")
    parts = tuple(inner.split("."))
    head, rest = parts[0].lower(), parts[1:]
    if head in _TOKEN_HEADS:
        if not rest:
            return Unresolved(raw=raw, reason="empty token path")
        category = "color" if rest[0] == "colors" else rest[0]
        if category == "color":
            if len(rest) != 3:
                return Unresolved(raw=raw, reason="color token needs family and level")
            return TokenRef((category, rest[1], normalize_level(rest[2])))
        return TokenRef((category,) + rest[1:])
    if head in _BRAND_HEADS:
        if not rest:
            return Unresolved(raw=raw, reason="empty brand path")
        if rest[0] == "themes" and len(rest) > 1 and rest[1] in MODES:
            return BrandRef(_normalize_brand_path(rest[2:]), rest[1])
        if rest[0] in MODES:
            return BrandRef(_normalize_brand_path(rest[1:]), rest[0])
        path = _normalize_brand_path(rest)
        if path[0] in _MODE_AGNOSTIC:
            return BrandRef(path, None)
        return BrandRef(path, context.mode if context else "light")
    if head in _UIKIT_HEADS:
        return UIKitRef(rest)
    return Unresolved(raw=raw, reason=f"unknown reference domain '{head}'")


def brand_root(brand: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    if not isinstance(brand, Mapping):
        return {}
    root = brand.get("brand", brand)
    return root if isinstance(root, Mapping) else {}


def brand_node(brand: Optional[Mapping[str, Any]], ref: BrandRef) -> Any:
    """Walk the brand document to the node addressed by ``ref`` (or None)."""
    root = brand_root(brand)
    if ref.mode is None:
        node: Any = root
    else:
        themes = root.get("themes", root)
        node = themes.get(ref.mode) if isinstance(themes, Mapping) else None
    for part in ref.path:
        if not isinstance(node, Mapping):
            return None
        if part in node:
            node = node[part]
            continue
        # palette keys may be written as "50" instead of "050"
        alt = normalize_level(part)
        if alt in node:
            node = node[alt]
            continue
        if part == "palettes" and "palette" in node:
            node = node["palette"]
            continue
        return None
    return node


def _leaf_value(node: Any) -> Any:
    """Collapse palette-level nodes onto their tone when no ``$value`` exists."""
    if isinstance(node, Mapping) and "$value" not in node:
        if "tone" in node:
            return unwrap_value(node["tone"])
        color = node.get("color")
        if isinstance(color, Mapping) and "tone" in color:
            return unwrap_value(color["tone"])
    return unwrap_value(node)


def resolve_reference(value: Any, context: ReferenceContext, depth: int = 0) -> Any:
    """Resolve ``value`` transitively to a literal (hex string or number).

    Returns None for unresolvable references and for cycles deeper than
    ``MAX_REFERENCE_DEPTH``. Non-reference literals are returned unchanged.
    """
    if depth > MAX_REFERENCE_DEPTH or value is None:
        return None
    value = _leaf_value(value)
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    if not isinstance(value, str):
        return None
    if extract_brace_content(value) is None:
        return value.strip()
    ref = parse_reference(value, context)
    if isinstance(ref, TokenRef):
        if context.token_index is None:
            return None
        return resolve_reference(context.token_index.get(ref.token_path), context, depth + 1)
    if isinstance(ref, BrandRef):
        return resolve_reference(brand_node(context.brand, ref), context, depth + 1)
    if isinstance(ref, UIKitRef):
        node: Any = context.uikit or {}
        for part in ref.path:
            node = node.get(part) if isinstance(node, Mapping) else None
        return resolve_reference(node, context, depth + 1)
    return None


def resolve_to_token(value: Any, context: ReferenceContext, depth: int = 0) -> Optional[TokenRef]:
    """Follow brand references until a :class:`TokenRef` is reached."""
    if depth > MAX_REFERENCE_DEPTH or value is None:
        return None
    ref = parse_reference(_leaf_value(value), context)
    if isinstance(ref, TokenRef):
        return ref
    if isinstance(ref, BrandRef):
        return resolve_to_token(brand_node(context.brand, ref), context, depth + 1)
    return None


def _palette_property(names: PropertyNames, mode: str, rest: Tuple[str, ...]) -> Optional[str]:
    if not rest:
        return None
    key = rest[0]
    if key == "core-colors":
        if len(rest) < 2:
            return None
        core = rest[1]
        tail = [p for p in rest[2:] if p != "color"]
        if core in ("black", "white"):
            return names.core(mode, core)
        if core == "interactive":
            state = tail[0] if tail and tail[0] in ("default", "hover") else "default"
            kind = tail[-1] if tail and tail[-1] in ("tone", "on-tone") else "tone"
            return names.core(mode, core, state, kind)
        if tail and tail[-1] == "on-tone":
            return names.core(mode, core, kind="on-tone")
        return names.core(mode, core)
    if len(rest) < 2:
        return None
    level = rest[1] if rest[1] == "primary" else normalize_level(rest[1])
    kinds = [p for p in rest[2:] if p in ("tone", "on-tone")]
    return names.palette(mode, key, level, kinds[-1] if kinds else "tone")


def reference_to_property(ref: Reference, context: ReferenceContext) -> Optional[str]:
    """Map a parsed reference onto the property name that carries its value."""
    names = context.names
    if isinstance(ref, TokenRef):
        if ref.category == "color":
            family = ref.path[1]
            if context.token_index is not None:
                canonical = context.token_index.canonical_family(family)
                if canonical is None:
                    return None
                family = canonical
            return names.token_color(family, ref.path[2])
        return names.token(*ref.path)
    if isinstance(ref, UIKitRef):
        return names.uikit(*ref.path) if ref.path else None
    if not isinstance(ref, BrandRef) or not ref.path:
        return None
    head, rest = ref.path[0], ref.path[1:]
    if head == "dimensions":
        return names.dimension(*rest) if rest else None
    if head == "typography":
        return names.typography(*rest) if rest else None
    mode = ref.mode or context.mode
    if head == "palettes":
        return _palette_property(names, mode, rest)
    if head == "text-emphasis" and rest:
        return names.text_emphasis(mode, rest[0])
    if head == "elevations" and rest:
        return names.elevation(mode, *rest)
    if head == "layers" and rest:
        if rest[0] == "alternative" and len(rest) > 1:
            layer_id, tail = f"alternative-{rest[1]}", rest[2:]
        else:
            layer_id, tail = rest[0], rest[1:]
        if tail and tail[0] == "properties":
            return names.layer(mode, layer_id, *tail[1:]) if len(tail) > 1 else None
        if tail and tail[0] == "elements":
            return names.layer_element(mode, layer_id, *tail[1:]) if len(tail) > 1 else None
        return None
    return None
