"""UI-kit binding resolver.

Component bindings reference brand (or token) properties; references
become ``--p-ui-kit-<path>: var(...)`` using the engine's active mode for
mode-less brand references. Literal leaves pass through unchanged, since
the brand-tier purity rule does not extend to component literals such as
``"solid"`` or ``"uppercase"``.
"""

from __future__ import annotations

from typing import Dict, List, Mapping

from .dimensions import iter_value_leaves
from .indirection import to_indirection
from .issues import ComplianceIssue
from .references import ReferenceContext, extract_brace_content
from .token_index import unwrap_value
from .token_vars import format_token_value

__all__ = ["build_uikit_vars"]


def build_uikit_vars(context: ReferenceContext, issues: List[ComplianceIssue]) -> Dict[str, str]:
    doc = context.uikit or {}
    root = doc.get("ui-kit", doc.get("uikit", doc))
    out: Dict[str, str] = {}
    for path, leaf in iter_value_leaves(root):
        name = context.names.uikit(*path)
        value = unwrap_value(leaf)
        if extract_brace_content(value) is None:
            kind = leaf.get("$type") if isinstance(leaf, Mapping) else None
            out[name] = format_token_value("size" if kind == "number" else "", value)
            continue
        ref = to_indirection(value, context, issues, name, categories=("color", "size", "opacity"))
        if ref is not None:
            out[name] = ref
    return out
