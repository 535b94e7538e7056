"""Core color anchors.

A fixed set of semantic anchors bound per mode to a ramp level:

    black, white                 -> palettes-core-black / -white
    alert, warning, success      -> palettes-core-<name> (+ -on-tone)
    interactive                  -> palettes-core-interactive-<default|hover>-tone (+ -on-tone)

Anchor tones are brand bindings (sources). Their on-tones are derived from
the live tone with the same black/white rule used for palettes.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..config.settings import AA_THRESHOLD
from .indirection import to_indirection
from .issues import ComplianceIssue, IssueKind, Severity
from .naming import PropertyNames, var
from .palettes import check_bound_anchor, palettes_node, pick_on_tone
from .references import ReferenceContext
from .resolution import PropertyView
from .token_index import unwrap_value

__all__ = [
    "ANCHORS",
    "STATUS_COLORS",
    "INTERACTIVE_STATES",
    "core_colors_node",
    "core_tone_names",
    "build_core_tones",
    "derive_core_on_tones",
]

ANCHORS = ("black", "white")
STATUS_COLORS = ("alert", "warning", "success")
INTERACTIVE_STATES = ("default", "hover")


def core_colors_node(brand: Optional[Mapping[str, Any]], mode: str) -> Mapping[str, Any]:
    palettes = palettes_node(brand, mode)
    node = unwrap_value(palettes.get("core-colors", palettes.get("core")))
    return node if isinstance(node, Mapping) else {}


def _tone_of(node: Any) -> Any:
    if isinstance(node, Mapping) and "$value" not in node:
        return node.get("tone")
    return node


def core_tone_names(names: PropertyNames, mode: str) -> List[str]:
    out = [names.core(mode, name) for name in ANCHORS + STATUS_COLORS]
    out.extend(names.core(mode, "interactive", state, "tone") for state in INTERACTIVE_STATES)
    return out


def build_core_tones(
    context: ReferenceContext, mode: str, issues: List[ComplianceIssue]
) -> Dict[str, str]:
    names = context.names
    node = core_colors_node(context.brand, mode)
    out: Dict[str, str] = {}
    for name in ANCHORS + STATUS_COLORS:
        prop = names.core(mode, name)
        raw = _tone_of(node.get(name))
        if raw is None:
            issues.append(
                ComplianceIssue(IssueKind.UNRESOLVED_REFERENCE, prop, f"core color '{name}' is not bound")
            )
            continue
        ref = to_indirection(raw, context, issues, prop)
        if ref is not None:
            out[prop] = ref
    interactive = node.get("interactive")
    interactive = interactive if isinstance(interactive, Mapping) else {}
    for state in INTERACTIVE_STATES:
        prop = names.core(mode, "interactive", state, "tone")
        raw = _tone_of(interactive.get(state))
        if raw is None and state == "hover":
            # hover defaults to the default tone binding
            raw = _tone_of(interactive.get("default"))
        if raw is None:
            raw = _tone_of(interactive) if "tone" in interactive or "$value" in interactive else None
        if raw is None:
            issues.append(
                ComplianceIssue(IssueKind.UNRESOLVED_REFERENCE, prop, f"interactive {state} tone is not bound")
            )
            continue
        ref = to_indirection(raw, context, issues, prop)
        if ref is not None:
            out[prop] = ref
    return out


def _on_tone_targets(names: PropertyNames, mode: str) -> List[Tuple[str, str]]:
    pairs = [(names.core(mode, n), names.core(mode, n, kind="on-tone")) for n in STATUS_COLORS]
    pairs.extend(
        (names.core(mode, "interactive", s, "tone"), names.core(mode, "interactive", s, "on-tone"))
        for s in INTERACTIVE_STATES
    )
    return pairs


def derive_core_on_tones(view: PropertyView, mode: str) -> Tuple[Dict[str, str], List[ComplianceIssue]]:
    names = view.names
    out: Dict[str, str] = {}
    issues: List[ComplianceIssue] = []
    for tone_name, on_name in _on_tone_targets(names, mode):
        tone_hex = view.hex(tone_name)
        if tone_hex is None:
            continue
        choice = pick_on_tone(tone_hex)
        out[on_name] = var(names.core(mode, choice.anchor))
        if choice.compliant:
            shortfall = check_bound_anchor(view, mode, on_name, tone_hex, choice)
            if shortfall is not None:
                issues.append(shortfall)
        else:
            issues.append(
                ComplianceIssue(
                    kind=IssueKind.NO_COMPLIANT_ANCHOR,
                    locus=on_name,
                    message=f"no anchor reaches {AA_THRESHOLD}:1 on {tone_hex}",
                    severity=Severity.WARNING,
                    measured_ratio=choice.ratio,
                    auto_fixable=False,
                )
            )
    return out, issues
