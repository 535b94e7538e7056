"""Compliance audit over a resolved property map.

Scans every palette tone/on-tone pair and every layer element against its
surface, measuring the colors the properties actually resolve to. Each
failing pair becomes an ERROR issue marked auto-fixable; the watcher
decides what to do with them.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

from ..config.settings import AA_THRESHOLD, DEFAULT_HIGH_EMPHASIS
from .contrast import blended_contrast
from .core_colors import STATUS_COLORS
from .issues import ComplianceIssue, IssueKind, Severity
from .layers import INTERACTIVE_SLOTS
from .resolution import Lookup, PropertyView
from .naming import PropertyNames

__all__ = ["audit_properties"]


def _fail(locus: str, fg: str, bg: str, ratio: float) -> ComplianceIssue:
    return ComplianceIssue(
        kind=IssueKind.CONTRAST_FAIL,
        locus=locus,
        message=f"[contrast-fail] {locus}: ratio={ratio:.2f} < {AA_THRESHOLD} (fg={fg} bg={bg})",
        severity=Severity.ERROR,
        measured_ratio=ratio,
        auto_fixable=True,
    )


def _check(
    view: PropertyView, fg_name: str, bg_hex: str, opacity: float, issues: List[ComplianceIssue]
) -> Optional[str]:
    fg = view.hex(fg_name)
    if fg is None:
        return None
    ratio = blended_contrast(fg, bg_hex, opacity)
    if ratio < AA_THRESHOLD:
        issues.append(_fail(fg_name, fg, bg_hex, ratio))
    return fg


def _layer_surfaces(names: PropertyNames, property_names: Iterable[str]) -> List[Tuple[str, str, str]]:
    pattern = re.compile(rf"^--{re.escape(names.prefix)}-brand-themes-([a-z]+)-layer-(.+)-property-surface$")
    out = []
    for name in property_names:
        m = pattern.match(name)
        if m:
            out.append((name, m.group(1), m.group(2)))
    return sorted(out)


def audit_properties(
    lookup: Lookup, property_names: Iterable[str], names: Optional[PropertyNames] = None
) -> List[ComplianceIssue]:
    """Return contrast failures found in the property map behind ``lookup``."""
    names = names or PropertyNames()
    view = PropertyView(lookup, names)
    all_names = sorted(set(property_names))
    issues: List[ComplianceIssue] = []

    for name in all_names:
        parsed = names.parse_palette(name)
        if parsed is None or parsed[3] != "tone" or parsed[2] == "primary":
            continue
        mode, key, level, _ = parsed
        tone = view.hex(name)
        if tone is not None:
            _check(view, names.palette(mode, key, level, "on-tone"), tone, 1.0, issues)

    for surface_name, mode, layer_id in _layer_surfaces(names, all_names):
        surface = view.hex(surface_name)
        if surface is None:
            continue
        high = view.number(names.text_emphasis(mode, "high"), DEFAULT_HIGH_EMPHASIS)
        high = DEFAULT_HIGH_EMPHASIS if high is None else max(0.0, min(1.0, high))
        _check(view, names.layer_element(mode, layer_id, "text", "color"), surface, high, issues)
        for role in STATUS_COLORS:
            _check(view, names.layer_element(mode, layer_id, "text", role), surface, high, issues)
        for tone_slot, on_slot, _state in INTERACTIVE_SLOTS:
            tone = _check(view, names.layer_element(mode, layer_id, "interactive", tone_slot), surface, 1.0, issues)
            if tone is not None:
                _check(view, names.layer_element(mode, layer_id, "interactive", on_slot), tone, 1.0, issues)
    return issues
