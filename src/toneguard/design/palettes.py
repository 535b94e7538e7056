"""Palette resolver.

For every declared palette, mode and ramp level:

- ``tone`` is an indirection to the token the brand document binds that
  level to (literal colors are repaired through a reverse token lookup)
- ``on-tone`` is an indirection to the core ``black`` or ``white`` anchor,
  chosen by :func:`pick_on_tone`

On-tone rules (tone measured against pure black and pure white):
 1. both anchors meet AA -> the higher-contrast one
 2. exactly one meets AA -> that one
 3. neither meets AA -> the higher-contrast one, plus a non-auto-fixable
    WARNING issue (the ramp itself needs adjusting)

When a compliant choice resolves through a core anchor bound to something
other than pure black / white, the bound color is measured as well and a
shortfall is reported at the on-tone.

The module also emits the brand-level text emphasis properties, which are
always opacity-token indirections.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..config.settings import AA_THRESHOLD
from .contrast import contrast_ratio
from .indirection import to_indirection
from .issues import ComplianceIssue, IssueKind, Severity
from .naming import var
from .references import ReferenceContext, brand_root, resolve_to_token
from .resolution import PropertyView
from .token_index import LEVELS, normalize_level, unwrap_value

__all__ = [
    "BLACK",
    "WHITE",
    "OnToneChoice",
    "pick_on_tone",
    "check_bound_anchor",
    "palettes_node",
    "palette_keys",
    "palette_levels",
    "primary_level",
    "build_palette_tones",
    "build_text_emphasis_vars",
    "derive_palette_on_tones",
    "family_of_palette",
]

BLACK = "#000000"
WHITE = "#ffffff"
CORE_KEYS = ("core-colors", "core")


@dataclass(frozen=True)
class OnToneChoice:
    anchor: str  # "black" | "white"
    ratio: float
    compliant: bool


def pick_on_tone(tone_hex: str, threshold: float = AA_THRESHOLD) -> OnToneChoice:
    black = contrast_ratio(tone_hex, BLACK)
    white = contrast_ratio(tone_hex, WHITE)
    black_ok = black >= threshold
    white_ok = white >= threshold
    if black_ok and not white_ok:
        return OnToneChoice("black", black, True)
    if white_ok and not black_ok:
        return OnToneChoice("white", white, True)
    # both or neither: higher contrast wins
    if white > black:
        return OnToneChoice("white", white, white_ok)
    return OnToneChoice("black", black, black_ok)


def check_bound_anchor(
    view: PropertyView, mode: str, on_name: str, tone_hex: str, choice: OnToneChoice
) -> Optional[ComplianceIssue]:
    """Measure the color the chosen core anchor is bound to against ``tone_hex``.

    The choice itself is made against pure black / white; the emitted
    on-tone resolves through the core anchor binding, which may point at a
    ramp level that does not reach AA. Re-deriving cannot change that, so
    the issue is a non-auto-fixable WARNING.
    """
    anchor_name = view.names.core(mode, choice.anchor)
    anchor_hex = view.hex(anchor_name)
    if anchor_hex is None:
        return ComplianceIssue(
            kind=IssueKind.UNRESOLVED_REFERENCE,
            locus=on_name,
            message=f"core anchor {anchor_name} does not resolve to a color",
        )
    ratio = contrast_ratio(tone_hex, anchor_hex)
    if ratio >= AA_THRESHOLD:
        return None
    return ComplianceIssue(
        kind=IssueKind.CONTRAST_FAIL,
        locus=on_name,
        message=(
            f"[contrast-fail] {on_name}: ratio={ratio:.2f} < {AA_THRESHOLD} "
            f"({choice.anchor} is bound to {anchor_hex})"
        ),
        severity=Severity.WARNING,
        measured_ratio=ratio,
        auto_fixable=False,
    )


def palettes_node(brand: Optional[Mapping[str, Any]], mode: str) -> Mapping[str, Any]:
    root = brand_root(brand)
    themes = root.get("themes", root)
    theme = themes.get(mode) if isinstance(themes, Mapping) else None
    if not isinstance(theme, Mapping):
        return {}
    node = theme.get("palettes", theme.get("palette"))
    return node if isinstance(node, Mapping) else {}


def palette_keys(brand: Optional[Mapping[str, Any]], mode: str) -> List[str]:
    """Declared palette keys for ``mode`` in document order (core colors excluded)."""
    return [
        k
        for k, v in palettes_node(brand, mode).items()
        if k not in CORE_KEYS and not str(k).startswith("$") and isinstance(v, Mapping)
    ]


def palette_levels(node: Mapping[str, Any]) -> List[str]:
    present = {normalize_level(k) for k in node.keys()}
    return [lvl for lvl in LEVELS if lvl in present]


def primary_level(node: Mapping[str, Any]) -> Optional[str]:
    raw = unwrap_value(node.get("primary-level") or node.get("primaryLevel"))
    if raw is None:
        return None
    level = normalize_level(raw)
    return level if level in palette_levels(node) else None


def _level_node(node: Mapping[str, Any], level: str) -> Any:
    for key, value in node.items():
        if normalize_level(key) == level:
            return value
    return None


def _tone_value(level_node: Any) -> Any:
    if not isinstance(level_node, Mapping):
        return level_node
    if "$value" in level_node:
        return level_node["$value"]
    color = level_node.get("color")
    if isinstance(color, Mapping) and "tone" in color:
        return color["tone"]
    return level_node.get("tone")


def build_palette_tones(
    context: ReferenceContext, mode: str, issues: List[ComplianceIssue]
) -> Dict[str, str]:
    """Tone indirections (plus primary aliases) for every palette of ``mode``."""
    names = context.names
    out: Dict[str, str] = {}
    for key in palette_keys(context.brand, mode):
        node = palettes_node(context.brand, mode)[key]
        levels = palette_levels(node)
        for level in levels:
            name = names.palette(mode, key, level, "tone")
            ref = to_indirection(_tone_value(_level_node(node, level)), context, issues, name)
            if ref is not None:
                out[name] = ref
        primary = primary_level(node)
        if primary is not None:
            out[names.palette(mode, key, "primary", "tone")] = var(names.palette(mode, key, primary, "tone"))
            out[names.palette(mode, key, "primary", "on-tone")] = var(
                names.palette(mode, key, primary, "on-tone")
            )
    return out


def _text_emphasis_node(context: ReferenceContext, mode: str) -> Mapping[str, Any]:
    root = brand_root(context.brand)
    themes = root.get("themes", root)
    theme = themes.get(mode) if isinstance(themes, Mapping) else None
    node = theme.get("text-emphasis") if isinstance(theme, Mapping) else None
    return node if isinstance(node, Mapping) else {}


def build_text_emphasis_vars(
    context: ReferenceContext, mode: str, issues: List[ComplianceIssue]
) -> Dict[str, str]:
    names = context.names
    node = _text_emphasis_node(context, mode)
    out: Dict[str, str] = {}
    for level in ("high", "low"):
        name = names.text_emphasis(mode, level)
        raw = node.get(level)
        ref = None
        if raw is not None:
            ref = to_indirection(raw, context, issues, name, categories=("opacity",))
        if ref is None:
            # solid opacity keeps the property an indirection
            out[name] = var(names.token("opacity", "solid"))
            issues.append(
                ComplianceIssue(
                    kind=IssueKind.UNRESOLVED_REFERENCE,
                    locus=name,
                    message=f"text emphasis '{level}' falls back to solid opacity",
                    severity=Severity.WARNING,
                )
            )
        else:
            out[name] = ref
    return out


def derive_palette_on_tones(
    view: PropertyView, mode: str, key: str, levels: Tuple[str, ...]
) -> Tuple[Dict[str, str], List[ComplianceIssue]]:
    """On-tone indirections for one palette, measured from the live tones."""
    names = view.names
    out: Dict[str, str] = {}
    issues: List[ComplianceIssue] = []
    for level in levels:
        tone_name = names.palette(mode, key, level, "tone")
        on_name = names.palette(mode, key, level, "on-tone")
        tone_hex = view.hex(tone_name)
        if tone_hex is None:
            issues.append(
                ComplianceIssue(
                    kind=IssueKind.UNRESOLVED_REFERENCE,
                    locus=on_name,
                    message=f"tone {tone_name} does not resolve to a color",
                )
            )
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
                    message=(
                        f"neither black nor white reaches {AA_THRESHOLD}:1 on {tone_hex}; "
                        f"kept {choice.anchor} ({choice.ratio:.2f})"
                    ),
                    severity=Severity.WARNING,
                    measured_ratio=choice.ratio,
                    auto_fixable=False,
                )
            )
    return out, issues


def family_of_palette(context: ReferenceContext, mode: str, key: str) -> Optional[str]:
    """Token family the palette's tones point at (first resolvable level)."""
    node = palettes_node(context.brand, mode).get(key)
    if not isinstance(node, Mapping):
        return None
    for level in palette_levels(node):
        ref = resolve_to_token(_tone_value(_level_node(node, level)), context)
        if ref is not None and ref.category == "color":
            return ref.path[1]
    return None
