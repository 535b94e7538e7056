"""Layer resolver.

Each surface layer (``layer-0..layer-N`` plus named alternative layers) has
a ``surface`` binding and a set of element colors derived from it, per mode:

- **text color**: starts from the on-tone of the palette the surface is
  drawn from (or the better black/white anchor when the surface is a plain
  token, or an explicit document binding); blended at the high text
  emphasis opacity and stepped through its own ramp until AA compliant
- **interactive tone / tone-hover**: the core interactive anchor stepped,
  unblended, until compliant against the surface
- **interactive on-tone / on-tone-hover**: stepped against the derived
  interactive tone itself, not the surface
- **status text** (alert / warning / success): the core anchor at the high
  emphasis opacity, stepped the same way

Each element is derived independently; a failure is reported as an issue
and never blocks the other elements.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..config.settings import AA_THRESHOLD, DEFAULT_HIGH_EMPHASIS, FALLBACK_PALETTE
from .contrast import blended_contrast
from .core_colors import STATUS_COLORS
from .indirection import to_indirection
from .issues import ComplianceIssue, IssueKind, Severity
from .naming import parse_var, var
from .palettes import palette_keys, pick_on_tone
from .references import BrandRef, ReferenceContext, brand_root, parse_reference
from .resolution import PropertyView
from .stepping import step_for_contrast
from .token_index import unwrap_value

__all__ = [
    "INTERACTIVE_SLOTS",
    "LayerSpec",
    "layer_nodes",
    "layer_output_names",
    "build_layer_sources",
    "compliant_reference",
    "derive_layer_elements",
]

# (tone slot, on-tone slot, core interactive state)
INTERACTIVE_SLOTS: Tuple[Tuple[str, str, str], ...] = (
    ("tone", "on-tone", "default"),
    ("tone-hover", "on-tone-hover", "hover"),
)


@dataclass(frozen=True)
class LayerSpec:
    mode: str
    layer_id: str
    text_color: Optional[str] = None
    interactive: Tuple[Tuple[str, str], ...] = ()
    status: Tuple[Tuple[str, str], ...] = ()

    def explicit(self, table: Tuple[Tuple[str, str], ...], slot: str) -> Optional[str]:
        for key, name in table:
            if key == slot:
                return name
        return None


def _layers_node(brand: Optional[Mapping[str, Any]], mode: str) -> Mapping[str, Any]:
    root = brand_root(brand)
    themes = root.get("themes", root)
    theme = themes.get(mode) if isinstance(themes, Mapping) else None
    if not isinstance(theme, Mapping):
        return {}
    node = theme.get("layers", theme.get("layer"))
    return node if isinstance(node, Mapping) else {}


def _layer_sort_key(layer_id: str) -> Tuple[int, str]:
    tail = layer_id.rsplit("-", 1)[-1]
    return (int(tail), layer_id) if tail.isdigit() else (10_000, layer_id)


def layer_nodes(brand: Optional[Mapping[str, Any]], mode: str) -> List[Tuple[str, Mapping[str, Any]]]:
    """``(layer_id, node)`` for regular layers (numeric order) then alternatives."""
    layers = _layers_node(brand, mode)
    regular = [
        (k, v) for k, v in layers.items() if k != "alternative" and isinstance(v, Mapping) and not k.startswith("$")
    ]
    regular.sort(key=lambda kv: _layer_sort_key(kv[0]))
    alternative = layers.get("alternative")
    alts: List[Tuple[str, Mapping[str, Any]]] = []
    if isinstance(alternative, Mapping):
        alts = [(f"alternative-{k}", v) for k, v in sorted(alternative.items()) if isinstance(v, Mapping)]
    return regular + alts


def layer_output_names(spec: LayerSpec, context: ReferenceContext) -> Tuple[str, ...]:
    names = context.names
    m, lid = spec.mode, spec.layer_id
    out = [names.layer_element(m, lid, "text", "color")]
    for tone_slot, on_slot, _state in INTERACTIVE_SLOTS:
        out.append(names.layer_element(m, lid, "interactive", tone_slot))
        out.append(names.layer_element(m, lid, "interactive", on_slot))
    out.extend(names.layer_element(m, lid, "text", role) for role in STATUS_COLORS)
    return tuple(out)


def _surface_value(
    raw: Any, context: ReferenceContext, mode: str, locus: str, issues: List[ComplianceIssue]
) -> Any:
    """Re-point a surface bound to a deleted palette at the fallback palette."""
    ref = parse_reference(raw, context)
    if not isinstance(ref, BrandRef) or len(ref.path) < 3 or ref.path[0] != "palettes":
        return raw
    key = ref.path[1]
    if key == "core-colors" or key in palette_keys(context.brand, ref.mode or mode):
        return raw
    fallback = FALLBACK_PALETTE
    issues.append(
        ComplianceIssue(
            IssueKind.SURFACE_PALETTE_MISSING,
            locus,
            f"surface palette '{key}' no longer exists; using '{fallback}'",
        )
    )
    path = ".".join(("palettes", fallback) + ref.path[2:])
    return f"{{brand.themes.{ref.mode or mode}.{path}}}"


def _walk_properties(node: Mapping[str, Any], prefix: Tuple[str, ...]):
    for key, value in node.items():
        if str(key).startswith("$"):
            continue
        path = prefix + (str(key),)
        if isinstance(value, Mapping) and "$value" not in value:
            yield from _walk_properties(value, path)
        else:
            yield path, value


def _explicit_names(
    node: Any, slots: Tuple[str, ...], context: ReferenceContext, locus: str, issues: List[ComplianceIssue]
) -> Tuple[Tuple[str, str], ...]:
    if not isinstance(node, Mapping):
        return ()
    out: List[Tuple[str, str]] = []
    for slot in slots:
        raw = unwrap_value(node.get(slot))
        if raw is None:
            continue
        name = parse_var(to_indirection(raw, context, issues, f"{locus}:{slot}"))
        if name is not None:
            out.append((slot, name))
    return tuple(out)


def build_layer_sources(
    context: ReferenceContext, mode: str, issues: List[ComplianceIssue]
) -> Tuple[Dict[str, str], List[LayerSpec]]:
    """Surface + static layer properties, and one :class:`LayerSpec` per layer."""
    names = context.names
    out: Dict[str, str] = {}
    specs: List[LayerSpec] = []
    for layer_id, node in layer_nodes(context.brand, mode):
        props = node.get("properties")
        props = props if isinstance(props, Mapping) else {}
        surface_name = names.layer(mode, layer_id, "surface")
        raw_surface = unwrap_value(props.get("surface"))
        if raw_surface is None:
            issues.append(
                ComplianceIssue(IssueKind.UNRESOLVED_REFERENCE, surface_name, f"{layer_id} has no surface")
            )
        else:
            raw_surface = _surface_value(raw_surface, context, mode, surface_name, issues)
            ref = to_indirection(raw_surface, context, issues, surface_name)
            if ref is not None:
                out[surface_name] = ref
        for path, value in _walk_properties(props, ()):
            if path == ("surface",):
                continue
            name = names.layer(mode, layer_id, *path)
            ref = to_indirection(value, context, issues, name, categories=("color", "size", "opacity"))
            if ref is not None:
                out[name] = ref
        for level in ("high", "low"):
            out[names.layer_element(mode, layer_id, "text", f"{level}-emphasis")] = var(
                names.text_emphasis(mode, level)
            )
        elements = node.get("elements")
        elements = elements if isinstance(elements, Mapping) else {}
        locus = names.layer(mode, layer_id)
        text = _explicit_names(elements.get("text"), ("color",) + STATUS_COLORS, context, locus, issues)
        interactive = _explicit_names(
            elements.get("interactive"), ("tone", "tone-hover", "on-tone", "on-tone-hover"), context, locus, issues
        )
        specs.append(
            LayerSpec(
                mode=mode,
                layer_id=layer_id,
                text_color=dict(text).get("color"),
                interactive=interactive,
                status=tuple((k, v) for k, v in text if k != "color"),
            )
        )
    return out, specs


def compliant_reference(
    view: PropertyView,
    start_name: str,
    background: str,
    opacity: float,
    locus: str,
    issues: List[ComplianceIssue],
) -> Optional[str]:
    """Indirection for ``start_name`` or the nearest compliant level of its ramp.

    Returns ``var(start_name)`` when the design intent already passes, a
    token-tier indirection when stepping found a compliant level, and
    ``var(start_name)`` plus an issue when the ramp is exhausted.
    """
    names = view.names
    target = view.token_target(start_name)
    if target is None:
        candidate = view.hex(start_name)
        if candidate is None:
            issues.append(
                ComplianceIssue(IssueKind.UNRESOLVED_REFERENCE, locus, f"{start_name} does not resolve to a color")
            )
            return None
        ratio = blended_contrast(candidate, background, opacity)
        if ratio < AA_THRESHOLD:
            issues.append(
                ComplianceIssue(
                    IssueKind.CONTRAST_FAIL,
                    locus,
                    f"{start_name} is not a ramp token; ratio={ratio:.2f} cannot be stepped",
                    Severity.WARNING,
                    ratio,
                )
            )
        return var(start_name)
    family, level = target
    result = step_for_contrast(view.ramp(family), level, background, opacity=opacity, family=family)
    if result.compliant:
        if result.level == result.start_level:
            return var(start_name)
        return var(names.token_color(family, result.level))
    issues.append(result.issue(locus))
    return var(start_name)


def _emphasis(view: PropertyView, mode: str) -> float:
    value = view.number(view.names.text_emphasis(mode, "high"), DEFAULT_HIGH_EMPHASIS)
    return max(0.0, min(1.0, value if value is not None else DEFAULT_HIGH_EMPHASIS))


def derive_layer_elements(view: PropertyView, spec: LayerSpec) -> Tuple[Dict[str, str], List[ComplianceIssue]]:
    """Derive text / interactive / status element colors for one layer."""
    names = view.names
    mode, lid = spec.mode, spec.layer_id
    out: Dict[str, str] = {}
    issues: List[ComplianceIssue] = []
    surface_name = names.layer(mode, lid, "surface")
    surface = view.hex(surface_name)
    if surface is None:
        issues.append(
            ComplianceIssue(IssueKind.UNRESOLVED_REFERENCE, surface_name, "surface does not resolve to a color")
        )
        return out, issues
    high = _emphasis(view, mode)

    # Text color
    text_name = names.layer_element(mode, lid, "text", "color")
    start = spec.text_color
    if start is None:
        palette = names.parse_palette(parse_var(view.get(surface_name)) or "")
        if palette is not None:
            p_mode, key, level, _kind = palette
            start = names.palette(p_mode, key, level, "on-tone")
            if view.hex(start) is None:
                start = None
    if start is None:
        start = names.core(mode, pick_on_tone(surface).anchor)
    ref = compliant_reference(view, start, surface, high, text_name, issues)
    if ref is not None:
        out[text_name] = ref

    # Interactive tone / on-tone, default and hover
    for tone_slot, on_slot, state in INTERACTIVE_SLOTS:
        tone_name = names.layer_element(mode, lid, "interactive", tone_slot)
        tone_start = spec.explicit(spec.interactive, tone_slot) or names.core(mode, "interactive", state, "tone")
        tone_ref = compliant_reference(view, tone_start, surface, 1.0, tone_name, issues)
        if tone_ref is None:
            continue
        out[tone_name] = tone_ref
        tone_hex = view.hex(parse_var(tone_ref) or "")
        if tone_hex is None:
            continue
        on_name = names.layer_element(mode, lid, "interactive", on_slot)
        on_start = spec.explicit(spec.interactive, on_slot) or names.core(mode, pick_on_tone(tone_hex).anchor)
        on_ref = compliant_reference(view, on_start, tone_hex, 1.0, on_name, issues)
        if on_ref is not None:
            out[on_name] = on_ref

    # Status text colors
    for role in STATUS_COLORS:
        role_name = names.layer_element(mode, lid, "text", role)
        role_start = spec.explicit(spec.status, role) or names.core(mode, role)
        role_ref = compliant_reference(view, role_start, surface, high, role_name, issues)
        if role_ref is not None:
            out[role_name] = role_ref
    return out, issues
