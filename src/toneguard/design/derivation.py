"""Derivation plan.

A plan splits one configuration snapshot into:

- ``sources``: properties that come straight from the documents (token
  literals, then brand bindings: core tones, palette tones, text emphasis,
  layer surfaces, dimensions, typography, elevations, ui-kit)
- ``units``: derived computations (palette on-tones, core on-tones, layer
  element colors), each reading the property map through a recording
  :class:`PropertyView` and writing a declared set of outputs

Units are ranked so that one recomputation pass runs token-tier, then
brand-tier, then derived compliance colors; within a rank the order is the
unit key, which keeps a pass deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

from ..config.settings import MODES
from .core_colors import INTERACTIVE_STATES, STATUS_COLORS, build_core_tones, derive_core_on_tones
from .dimensions import build_dimension_vars, build_elevation_vars, build_typography_vars
from .issues import ComplianceIssue
from .layers import build_layer_sources, derive_layer_elements, layer_output_names
from .naming import PropertyNames
from .palettes import (
    build_palette_tones,
    build_text_emphasis_vars,
    derive_palette_on_tones,
    palette_keys,
    palette_levels,
    palettes_node,
)
from .references import ReferenceContext, brand_root
from .resolution import Lookup, PropertyView
from .token_index import TokenIndex, build_token_index
from .token_vars import build_token_vars
from .uikit import build_uikit_vars

__all__ = [
    "RANK_BRAND",
    "RANK_DERIVED",
    "UnitResult",
    "DerivedUnit",
    "DerivationPlan",
    "available_modes",
    "build_plan",
    "compute_property_map",
]

RANK_BRAND = 1
RANK_DERIVED = 2

Compute = Callable[[PropertyView], Tuple[Dict[str, str], List[ComplianceIssue]]]


@dataclass(frozen=True)
class UnitResult:
    key: str
    values: Dict[str, str]
    issues: List[ComplianceIssue]
    inputs: FrozenSet[str]


@dataclass(frozen=True)
class DerivedUnit:
    key: str
    rank: int
    outputs: Tuple[str, ...]
    compute: Compute

    def run(self, lookup: Lookup, names: PropertyNames) -> UnitResult:
        view = PropertyView(lookup, names)
        values, issues = self.compute(view)
        return UnitResult(self.key, values, issues, frozenset(view.reads - set(self.outputs)))


@dataclass
class DerivationPlan:
    names: PropertyNames
    token_index: TokenIndex
    sources: Dict[str, str] = field(default_factory=dict)
    units: List[DerivedUnit] = field(default_factory=list)
    issues: List[ComplianceIssue] = field(default_factory=list)

    def unit(self, key: str) -> Optional[DerivedUnit]:
        for u in self.units:
            if u.key == key:
                return u
        return None

    @property
    def unit_keys(self) -> List[str]:
        return [u.key for u in self.units]


def available_modes(brand: Optional[Mapping[str, Any]]) -> List[str]:
    root = brand_root(brand)
    themes = root.get("themes", root)
    if not isinstance(themes, Mapping):
        return []
    return [m for m in MODES if isinstance(themes.get(m), Mapping)]


def _core_outputs(names: PropertyNames, mode: str) -> Tuple[str, ...]:
    out = [names.core(mode, n, kind="on-tone") for n in STATUS_COLORS]
    out.extend(names.core(mode, "interactive", s, "on-tone") for s in INTERACTIVE_STATES)
    return tuple(out)


def build_plan(
    tokens: Mapping[str, Any],
    brand: Mapping[str, Any],
    uikit: Optional[Mapping[str, Any]] = None,
    *,
    names: Optional[PropertyNames] = None,
    active_mode: str = "light",
) -> DerivationPlan:
    """Build sources and derived units for one document snapshot.

    Raises :class:`~toneguard.errors.TokenValidationError` for malformed
    color tokens; every other problem becomes an issue on the plan.
    """
    names = names or PropertyNames()
    index = build_token_index(tokens)
    plan = DerivationPlan(names=names, token_index=index)
    issues = plan.issues
    plan.sources.update(build_token_vars(index, names))

    def context(mode: str) -> ReferenceContext:
        return ReferenceContext(mode=mode, token_index=index, brand=brand, uikit=uikit, names=names)

    shared = context(active_mode)
    plan.sources.update(build_dimension_vars(shared, issues))
    plan.sources.update(build_typography_vars(shared, issues))
    for mode in available_modes(brand):
        ctx = context(mode)
        plan.sources.update(build_core_tones(ctx, mode, issues))
        plan.sources.update(build_palette_tones(ctx, mode, issues))
        plan.sources.update(build_text_emphasis_vars(ctx, mode, issues))
        plan.sources.update(build_elevation_vars(ctx, mode, issues))
        layer_sources, specs = build_layer_sources(ctx, mode, issues)
        plan.sources.update(layer_sources)

        plan.units.append(
            DerivedUnit(
                key=f"core:{mode}",
                rank=RANK_BRAND,
                outputs=_core_outputs(names, mode),
                compute=partial(derive_core_on_tones, mode=mode),
            )
        )
        for key in palette_keys(brand, mode):
            levels = tuple(palette_levels(palettes_node(brand, mode)[key]))
            plan.units.append(
                DerivedUnit(
                    key=f"palette:{mode}:{key}",
                    rank=RANK_BRAND,
                    outputs=tuple(names.palette(mode, key, lvl, "on-tone") for lvl in levels),
                    compute=partial(derive_palette_on_tones, mode=mode, key=key, levels=levels),
                )
            )
        for spec in specs:
            plan.units.append(
                DerivedUnit(
                    key=f"layer:{mode}:{spec.layer_id}",
                    rank=RANK_DERIVED,
                    outputs=layer_output_names(spec, ctx),
                    compute=partial(derive_layer_elements, spec=spec),
                )
            )
    plan.sources.update(build_uikit_vars(shared, issues))
    plan.units.sort(key=lambda u: (u.rank, u.key))
    return plan


def compute_property_map(plan: DerivationPlan) -> Tuple[Dict[str, str], List[UnitResult]]:
    """Run every unit of ``plan`` over its sources; return the full map."""
    values: Dict[str, str] = dict(plan.sources)
    results: List[UnitResult] = []
    for unit in plan.units:
        result = unit.run(values.get, plan.names)
        values.update(result.values)
        results.append(result)
    return values, results
