"""Expressing brand-tier bindings as indirections.

Brand-tier properties must never hold literals. :func:`to_indirection`
turns a document value into ``var(<property>)``:

- references are parsed and mapped onto the property that carries them
  (unknown tokens / missing brand nodes are reported, not guessed)
- literal colors are reverse-looked-up against the token ramps
- literal numbers are reverse-looked-up among opacity / size tokens

Failures return None and append a :class:`ComplianceIssue`.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

from .color_mixing import normalize_hex
from .issues import ComplianceIssue, IssueKind, Severity
from .naming import var
from .references import (
    BrandRef,
    ReferenceContext,
    TokenRef,
    UIKitRef,
    brand_node,
    parse_reference,
    reference_to_property,
)
from .token_index import unwrap_value

__all__ = ["to_indirection", "repair_literal"]


def _issue(kind: IssueKind, locus: str, message: str) -> ComplianceIssue:
    return ComplianceIssue(kind=kind, locus=locus, message=message, severity=Severity.WARNING)


def repair_literal(
    value: Any, context: ReferenceContext, categories: Sequence[str] = ("color",)
) -> Optional[str]:
    """Reverse-lookup a literal against the token index; return ``var(...)`` or None."""
    index = context.token_index
    if index is None:
        return None
    names = context.names
    if "color" in categories:
        found = index.find_token_by_hex(value)
        if found is not None:
            return var(names.token_color(*found))
    for category in categories:
        if category in ("opacity", "size"):
            name = index.find_token_by_value(category, value)
            if name is not None:
                return var(names.token(category, name))
    return None


def to_indirection(
    value: Any,
    context: ReferenceContext,
    issues: List[ComplianceIssue],
    locus: str,
    *,
    categories: Sequence[str] = ("color",),
) -> Optional[str]:
    ref = parse_reference(value, context)
    if isinstance(ref, TokenRef):
        if context.token_index is not None and context.token_index.get(ref.token_path) is None:
            issues.append(_issue(IssueKind.UNRESOLVED_REFERENCE, locus, f"unknown token {ref.token_path}"))
            return None
        prop = reference_to_property(ref, context)
    elif isinstance(ref, BrandRef):
        if brand_node(context.brand, ref) is None:
            issues.append(
                _issue(IssueKind.UNRESOLVED_REFERENCE, locus, f"unknown brand path {'.'.join(ref.path)}")
            )
            return None
        prop = reference_to_property(ref, context)
    elif isinstance(ref, UIKitRef):
        prop = reference_to_property(ref, context)
    else:
        literal = unwrap_value(value)
        repaired = repair_literal(literal, context, categories)
        if repaired is not None:
            return repaired
        kind = IssueKind.LITERAL_VALUE if literal is not None else IssueKind.UNRESOLVED_REFERENCE
        shown = normalize_hex(literal) or literal
        issues.append(_issue(kind, locus, f"cannot express {shown!r} as a token reference"))
        return None
    if prop is None:
        issues.append(_issue(IssueKind.UNRESOLVED_REFERENCE, locus, f"no property for {value!r}"))
        return None
    return var(prop)
