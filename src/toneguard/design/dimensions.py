"""Dimension, typography and elevation resolvers.

Walk brand sub-trees and express every ``$value`` leaf as an indirection:

    brand.dimensions.gutters.md = {tokens.size.2x}
        -> --p-brand-dimensions-gutters-md: var(--p-tokens-size-2x)
    brand.dimensions.icon = {brand.dimensions.gutters.md}
        -> --p-brand-dimensions-icon: var(--p-brand-dimensions-gutters-md)
    brand.themes.light.elevations.elevation-1.shadow-color = {tokens.color.gray.900}
        -> --p-brand-themes-light-elevations-elevation-1-shadow-color: var(...)

Dimensions and typography are mode agnostic; elevations are mode scoped.
Literal leaves are repaired through reverse token lookup or reported.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterator, List, Mapping, Sequence, Tuple

from .indirection import to_indirection
from .issues import ComplianceIssue
from .references import ReferenceContext, brand_root

__all__ = [
    "iter_value_leaves",
    "build_dimension_vars",
    "build_typography_vars",
    "build_elevation_vars",
]


def iter_value_leaves(node: Any, prefix: Tuple[str, ...] = ()) -> Iterator[Tuple[Tuple[str, ...], Any]]:
    """Yield ``(path, leaf)`` for every token leaf below ``node`` (``$`` keys skipped)."""
    if not isinstance(node, Mapping):
        return
    for key, value in node.items():
        if str(key).startswith("$"):
            continue
        path = prefix + (str(key),)
        if isinstance(value, Mapping):
            if "$value" in value:
                yield path, value
            else:
                yield from iter_value_leaves(value, path)
        elif value is not None:
            yield path, value


def _emit(
    node: Any,
    name_for: Callable[[Tuple[str, ...]], str],
    context: ReferenceContext,
    issues: List[ComplianceIssue],
    categories: Sequence[str],
) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for path, leaf in iter_value_leaves(node):
        name = name_for(path)
        ref = to_indirection(leaf, context, issues, name, categories=categories)
        if ref is not None:
            out[name] = ref
    return out


def build_dimension_vars(context: ReferenceContext, issues: List[ComplianceIssue]) -> Dict[str, str]:
    root = brand_root(context.brand)
    node = root.get("dimensions", root.get("dimension"))
    return _emit(node, lambda p: context.names.dimension(*p), context, issues, ("size",))


def build_typography_vars(context: ReferenceContext, issues: List[ComplianceIssue]) -> Dict[str, str]:
    root = brand_root(context.brand)
    return _emit(root.get("typography"), lambda p: context.names.typography(*p), context, issues, ("size",))


def build_elevation_vars(
    context: ReferenceContext, mode: str, issues: List[ComplianceIssue]
) -> Dict[str, str]:
    root = brand_root(context.brand)
    themes = root.get("themes", root)
    theme = themes.get(mode) if isinstance(themes, Mapping) else None
    node = theme.get("elevations") if isinstance(theme, Mapping) else None
    return _emit(
        node,
        lambda p: context.names.elevation(mode, *p),
        context,
        issues,
        ("color", "size", "opacity"),
    )
