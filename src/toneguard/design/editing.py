"""In-place edits of token / brand documents.

Used by the engine context on a *private copy* of its documents before the
copy is validated and swapped in. Helpers keep the existing leaf shape
(``{"$value": ...}`` wrappers or ``{"color": {"tone": ...}}`` palette levels)
so a document can be written back out looking like it was authored by hand.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from ..errors import TokenValidationError
from .token_index import LEVELS, normalize_level, unwrap_value

__all__ = [
    "set_token_value",
    "theme_node",
    "set_palette_family",
    "delete_palette",
    "set_layer_surface",
    "set_core_color",
    "token_reference",
]


def token_reference(family: str, level: str) -> str:
    return f"{{tokens.color.{family}.{normalize_level(level)}}}"


def _set_leaf(container: Dict[str, Any], key: str, value: Any) -> None:
    leaf = container.get(key)
    if isinstance(leaf, dict) and "$value" in leaf:
        leaf["$value"] = value
    else:
        container[key] = {"$value": value}


def _child(node: Dict[str, Any], key: str) -> Dict[str, Any]:
    child = node.get(key)
    if child is None:
        child = node[key] = {}
    if not isinstance(child, dict):
        raise TokenValidationError(f"cannot edit below non-object node '{key}'")
    return child


def set_token_value(tokens: Dict[str, Any], path: str, value: Any) -> None:
    """Write ``value`` at token ``path`` (``color/gray/500``, ``opacity/smoky`` ...)."""
    parts = [p for p in str(path).replace(".", "/").split("/") if p]
    if len(parts) < 2:
        raise TokenValidationError(f"invalid token path {path!r}")
    root = tokens["tokens"] if isinstance(tokens.get("tokens"), dict) else tokens
    head = parts[0].lower()
    if head in ("color", "colors"):
        if len(parts) != 3:
            raise TokenValidationError(f"color token path must be color/<family>/<level>: {path!r}")
        family, level = parts[1], normalize_level(parts[2])
        colors = root.get("color") if isinstance(root.get("color"), dict) else root.get("colors")
        if not isinstance(colors, dict):
            colors = _child(root, "color")
        node: Optional[Dict[str, Any]] = None
        for key, candidate in colors.items():
            if not isinstance(candidate, dict):
                continue
            if key == family or unwrap_value(candidate.get("alias")) == family:
                node = candidate
                break
        if node is None:
            node = _child(colors, family)
        level_key = next((k for k in node if normalize_level(k) == level), level)
        _set_leaf(node, level_key, value)
        return
    container = root
    for part in parts[:-1]:
        container = _child(container, part)
    _set_leaf(container, parts[-1], value)


def theme_node(brand: Dict[str, Any], mode: str) -> Optional[Dict[str, Any]]:
    root = brand["brand"] if isinstance(brand.get("brand"), dict) else brand
    themes = root.get("themes", root)
    theme = themes.get(mode) if isinstance(themes, dict) else None
    return theme if isinstance(theme, dict) else None


def _palettes(theme: Dict[str, Any]) -> Dict[str, Any]:
    if isinstance(theme.get("palette"), dict) and "palettes" not in theme:
        return theme["palette"]
    return _child(theme, "palettes")


def _write_tone(node: Dict[str, Any], level_key: str, ref: str) -> None:
    current = node.get(level_key)
    if isinstance(current, dict) and "$value" not in current:
        color = current.get("color")
        if isinstance(color, dict):
            _set_leaf(color, "tone", ref)
            return
        if "tone" in current:
            _set_leaf(current, "tone", ref)
            return
    if isinstance(current, dict) and "$value" in current:
        current["$value"] = ref
        return
    node[level_key] = {"color": {"tone": {"$value": ref}}}


def set_palette_family(
    brand: Dict[str, Any], key: str, family: str, levels: Iterable[str], modes: Iterable[str]
) -> List[str]:
    """Point every level of palette ``key`` at ``family``; return edited modes.

    Levels missing from ``levels`` (the family's ramp) are dropped so the
    palette never references tokens that do not exist.
    """
    wanted = [lvl for lvl in LEVELS if lvl in {normalize_level(v) for v in levels}]
    edited: List[str] = []
    for mode in modes:
        theme = theme_node(brand, mode)
        if theme is None:
            continue
        palettes = _palettes(theme)
        node = palettes.get(key)
        if not isinstance(node, dict):
            node = palettes[key] = {}
        for level_key in [k for k in node if str(k).isdigit() and normalize_level(k) not in wanted]:
            del node[level_key]
        for level in wanted:
            level_key = next((k for k in node if normalize_level(k) == level), level)
            _write_tone(node, level_key, token_reference(family, level))
        edited.append(mode)
    return edited


def delete_palette(brand: Dict[str, Any], key: str, modes: Iterable[str]) -> List[str]:
    removed: List[str] = []
    for mode in modes:
        theme = theme_node(brand, mode)
        if theme is None:
            continue
        for container_key in ("palettes", "palette"):
            container = theme.get(container_key)
            if isinstance(container, dict) and key in container:
                del container[key]
                removed.append(mode)
    return removed


def set_layer_surface(brand: Dict[str, Any], mode: str, layer_id: str, ref: str) -> bool:
    theme = theme_node(brand, mode)
    if theme is None:
        return False
    layers = _child(theme, "layers")
    if layer_id.startswith("alternative-"):
        layers = _child(layers, "alternative")
        layer_id = layer_id[len("alternative-"):]
    props = _child(_child(layers, layer_id), "properties")
    _set_leaf(props, "surface", ref)
    return True


def set_core_color(
    brand: Dict[str, Any], mode: str, name: str, ref: str, state: Optional[str] = None
) -> bool:
    theme = theme_node(brand, mode)
    if theme is None:
        return False
    palettes = _palettes(theme)
    core_key = "core" if "core" in palettes and "core-colors" not in palettes else "core-colors"
    core = _child(palettes, core_key)
    current = core.get(name)
    if not state and isinstance(current, dict) and "$value" in current:
        current["$value"] = ref
        return True
    if not state and current is not None and not isinstance(current, dict):
        core[name] = {"tone": {"$value": ref}}
        return True
    node = _child(core, name)
    if state:
        node = _child(node, state)
    _set_leaf(node, "tone", ref)
    return True
