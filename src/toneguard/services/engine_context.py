"""Engine context.

One explicit object owns everything a running engine needs: private copies
of the three documents, the naming scheme, the live property store, the
event bus and the dependency graph. Construct one per application or test;
there is no module-level instance.

Typical flow::

    ctx = EngineContext(tokens, brand, uikit)
    ctx.apply()                      # full recompute + diff-apply to the store
    ctx.set_token("color/gray/500", "#777777")   # publishes TOKEN_CHANGED
    ctx.rederive(ctx.graph.affected(names))      # usually done by the watcher

Mutations edit a copy of the documents, rebuild the derivation plan from it
(malformed tokens raise before anything is swapped in), diff-apply the new
source properties and publish exactly one event naming what changed.
Derived properties are left to whoever re-derives the affected units.
"""

from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from ..config.settings import MODES, SLOW_RECOMPUTE_WARN_MS
from ..design import editing
from ..design.derivation import DerivationPlan, UnitResult, available_modes, build_plan, compute_property_map
from ..design.issues import ComplianceIssue
from ..design.loader import DesignDocuments
from ..design.naming import PropertyNames
from ..design.palettes import family_of_palette, palette_keys
from ..design.references import ReferenceContext
from ..errors import TokenValidationError
from .dependency_graph import DependencyGraph
from .event_bus import EngineEvent, EventBus, names_payload
from .property_store import ApplyResult, InMemoryPropertyStore, PropertyApplier, PropertyStore, PropertyValidator

__all__ = ["EngineContext"]

_logger = logging.getLogger(__name__)


class EngineContext:
    """Owns documents, property map state and the collaborating services."""

    def __init__(
        self,
        tokens: Mapping[str, Any],
        brand: Mapping[str, Any],
        uikit: Optional[Mapping[str, Any]] = None,
        *,
        names: Optional[PropertyNames] = None,
        store: Optional[PropertyStore] = None,
        bus: Optional[EventBus] = None,
        active_mode: str = "light",
    ) -> None:
        self._docs = DesignDocuments(dict(tokens), dict(brand), dict(uikit or {})).copy()
        self.names = names or PropertyNames()
        self.store: PropertyStore = store if store is not None else InMemoryPropertyStore()
        self.bus = bus or EventBus()
        self.graph = DependencyGraph()
        self.active_mode = active_mode
        self.validator = PropertyValidator(self.names)
        self.applier = PropertyApplier(self.store, self.validator)
        self._plan: Optional[DerivationPlan] = None
        self._values: Dict[str, str] = {}
        self._applied: Set[str] = set()
        self._unit_issues: Dict[str, List[ComplianceIssue]] = {}
        self._refreshed: List[str] = []
        self.last_apply: Optional[ApplyResult] = None

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    @property
    def documents(self) -> DesignDocuments:
        return self._docs

    def snapshot(self) -> DesignDocuments:
        """Deep copy of the current documents; safe to mutate."""
        return self._docs.copy()

    @property
    def plan(self) -> DerivationPlan:
        if self._plan is None:
            self._plan = self._build(self._docs)
        return self._plan

    @property
    def modes(self) -> List[str]:
        return available_modes(self._docs.brand)

    @property
    def values(self) -> Dict[str, str]:
        """Last computed / applied property map (copy)."""
        return dict(self._values)

    @property
    def issues(self) -> List[ComplianceIssue]:
        out = list(self.plan.issues)
        for key in sorted(self._unit_issues):
            out.extend(self._unit_issues[key])
        return out

    def reference_context(self, mode: Optional[str] = None) -> ReferenceContext:
        return ReferenceContext(
            mode=mode or self.active_mode,
            token_index=self.plan.token_index,
            brand=self._docs.brand,
            uikit=self._docs.uikit,
            names=self.names,
        )

    # ------------------------------------------------------------------
    # Full passes
    # ------------------------------------------------------------------
    def _build(self, docs: DesignDocuments) -> DerivationPlan:
        plan = build_plan(docs.tokens, docs.brand, docs.uikit, names=self.names, active_mode=self.active_mode)
        self.validator.token_index = plan.token_index
        return plan

    def _record(self, result: UnitResult) -> None:
        unit = self.plan.unit(result.key)
        if unit is None:
            return
        self.graph.record(result.key, result.inputs, unit.outputs, unit.rank)
        self._unit_issues[result.key] = list(result.issues)

    def recompute(self) -> Dict[str, str]:
        """Rebuild the full property map from the documents (no store writes)."""
        start = perf_counter()
        self._plan = self._build(self._docs)
        values, results = compute_property_map(self._plan)
        self.graph.clear()
        self._unit_issues.clear()
        self._refreshed = []
        for result in results:
            self._record(result)
        self.graph.validate()
        self._values = values
        elapsed = (perf_counter() - start) * 1000.0
        if elapsed >= SLOW_RECOMPUTE_WARN_MS:
            _logger.warning("slow recompute: %.1fms for %d properties", elapsed, len(values))
        else:
            _logger.debug("recompute: %.1fms for %d properties", elapsed, len(values))
        return dict(values)

    def apply(self) -> ApplyResult:
        """Recompute and diff-apply the whole map to the store."""
        values = self.recompute()
        result = self.applier.apply_diff(self._applied, values)
        self._applied = set(values)
        self.last_apply = result
        self._announce()
        return result

    def reset(self) -> None:
        """Remove every managed property from the store."""
        self.applier.reset()
        self._applied.clear()
        self._values.clear()
        self._announce()

    def _announce(self) -> None:
        flush = getattr(self.store, "flush_signal", None)
        if callable(flush):
            flush()

    # ------------------------------------------------------------------
    # Incremental passes
    # ------------------------------------------------------------------
    def rederive(self, unit_keys: Iterable[str]) -> List[str]:
        """Run ``unit_keys`` in order against the live store.

        Only outputs whose value differs from the store are written. An
        output a unit could not compute this time keeps its previous value.
        Returns the names actually written.
        """
        changed: List[str] = []
        for key in unit_keys:
            unit = self.plan.unit(key)
            if unit is None:
                continue
            result = unit.run(self.store.get, self.names)
            self._record(result)
            batch = {n: v for n, v in result.values.items() if self.store.get(n) != v}
            if not batch:
                continue
            applied = self.applier.apply(batch)
            for name in applied.applied:
                self._values[name] = str(self.store.get(name))
                self._applied.add(name)
            changed.extend(applied.applied)
        if changed:
            self._announce()
        return changed

    def refresh_sources(self, plan: Optional[DerivationPlan] = None) -> List[str]:
        """Rebuild the plan from the documents and diff-apply its sources.

        Units that disappeared lose their outputs; units that are new run
        immediately. Returns every property name that changed in the store.
        """
        old_plan = self.plan
        old_units = {u.key: u for u in old_plan.units}
        new_plan = plan if plan is not None else self._build(self._docs)
        self._plan = new_plan
        new_units = {u.key: u for u in new_plan.units}
        new_outputs: Set[str] = set()
        for unit in new_plan.units:
            new_outputs.update(unit.outputs)

        stale: Set[str] = set(old_plan.sources) - set(new_plan.sources) - new_outputs
        for key, unit in old_units.items():
            if key not in new_units:
                self.graph.forget(key)
                self._unit_issues.pop(key, None)
            stale.update(n for n in unit.outputs if n not in new_outputs and n not in new_plan.sources)
        batch = {n: v for n, v in new_plan.sources.items() if self.store.get(n) != v}
        result = self.applier.apply_diff(stale, batch)
        for name in result.removed:
            self._values.pop(name, None)
            self._applied.discard(name)
        for name in result.applied:
            self._values[name] = str(self.store.get(name))
            self._applied.add(name)
        changed = list(result.changed)

        fresh = [
            u.key
            for u in new_plan.units
            if u.key not in old_units or old_units[u.key].outputs != u.outputs
        ]
        self._refreshed = fresh
        if fresh:
            changed.extend(self.rederive(fresh))
        else:
            self._announce()
        return sorted(set(changed))

    def take_refreshed_units(self) -> List[str]:
        """Units the last :meth:`refresh_sources` already ran (cleared on read)."""
        keys, self._refreshed = self._refreshed, []
        return keys

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def _commit(self, docs: DesignDocuments) -> List[str]:
        # builds first so malformed input leaves the current documents intact
        plan = self._build(docs)
        self._docs = docs
        return self.refresh_sources(plan)

    def _target_modes(self, mode: Optional[str]) -> List[str]:
        if mode is None:
            return self.modes
        return [mode] if mode in MODES else []

    def set_token(self, path: str, value: Any) -> List[str]:
        docs = self.snapshot()
        editing.set_token_value(docs.tokens, path, value)
        changed = self._commit(docs)
        self.bus.publish(EngineEvent.TOKEN_CHANGED, names_payload(changed, path=path))
        return changed

    def set_palette_family(self, key: str, family: str, mode: Optional[str] = None) -> List[str]:
        ramp = self.plan.token_index.ramp(family)
        if ramp is None:
            raise TokenValidationError(f"unknown color family {family!r}")
        modes = self._target_modes(mode)
        if mode is None:
            # only modes that already define the palette, unless none does
            modes = [m for m in modes if key in self.palette_keys(m)] or modes
        docs = self.snapshot()
        editing.set_palette_family(docs.brand, key, family, ramp.levels, modes)
        changed = self._commit(docs)
        self.bus.publish(EngineEvent.PALETTE_FAMILY_CHANGED, names_payload(changed, key=key, family=family))
        return changed

    def delete_palette(self, key: str) -> List[str]:
        docs = self.snapshot()
        removed = editing.delete_palette(docs.brand, key, self.modes)
        if not removed:
            return []
        changed = self._commit(docs)
        self.bus.publish(EngineEvent.PALETTE_DELETED, names_payload(changed, key=key))
        return changed

    def set_layer_surface(self, layer_id: str, ref: str, mode: Optional[str] = None) -> List[str]:
        docs = self.snapshot()
        for m in self._target_modes(mode):
            editing.set_layer_surface(docs.brand, m, layer_id, ref)
        changed = self._commit(docs)
        self.bus.publish(EngineEvent.BRAND_BINDING_CHANGED, names_payload(changed, layer=layer_id))
        return changed

    def set_core_color(
        self, name: str, ref: str, mode: Optional[str] = None, state: Optional[str] = None
    ) -> List[str]:
        docs = self.snapshot()
        for m in self._target_modes(mode):
            editing.set_core_color(docs.brand, m, name, ref, state)
        changed = self._commit(docs)
        self.bus.publish(EngineEvent.BRAND_BINDING_CHANGED, names_payload(changed, core=name))
        return changed

    def palette_keys(self, mode: Optional[str] = None) -> List[str]:
        return palette_keys(self._docs.brand, mode or self.active_mode)

    def palette_family(self, key: str, mode: Optional[str] = None) -> Optional[str]:
        """Token family the palette currently points at (None if unknown)."""
        return family_of_palette(self.reference_context(mode), mode or self.active_mode, key)
