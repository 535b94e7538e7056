"""Token-tier property emission.

Token-tier properties are the only place literal values live:

    --p-tokens-color-gray-500     -> "#808080"
    --p-tokens-opacity-smoky      -> "0.6"
    --p-tokens-size-2x            -> "8px"
    --p-tokens-font-weight-bold   -> "700"
"""

from __future__ import annotations

from typing import Any, Dict

from .naming import PropertyNames
from .token_index import TokenIndex

__all__ = ["build_token_vars", "format_token_value"]


def _format_number(n: float) -> str:
    return str(int(n)) if float(n).is_integer() else repr(float(n))


def format_token_value(category: str, value: Any) -> str:
    if category == "opacity" and isinstance(value, (int, float)) and not isinstance(value, bool):
        norm = value if value <= 1 else value / 100.0
        return _format_number(max(0.0, min(1.0, float(norm))))
    if category == "size" and isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{_format_number(value)}px"
    return str(value)


def build_token_vars(index: TokenIndex, names: PropertyNames) -> Dict[str, str]:
    """Emit one literal property per indexed token path (sorted by path)."""
    out: Dict[str, str] = {}
    for path, value in index.items():
        if value is None:
            continue
        category = path.split("/", 1)[0]
        out[names.token_from_path(path)] = format_token_value(category, value)
    return out
