"""Compliance watcher (reactive re-derivation + startup validation).

Listens to the engine's change events, turns the property names they carry
into the set of affected derived units (via the dependency graph) and
re-runs each of them once per flush. Direct edits to watched properties in
the live store are picked up by :meth:`ComplianceWatcher.check`.

Loop prevention:
 - ``is_updating``: set while the watcher writes; nested ``check`` calls
   are ignored and change notifications are queued for the next flush
 - ``is_fixing``: a time-boxed guard around the single auto-fix pass so a
   validation that keeps finding the same unfixable issue cannot trigger
   repeated fixes

Startup validation runs once per watcher: it audits the applied property
map, classifies issues (ERROR when a re-derivation may fix them, WARNING
otherwise), runs at most one auto-fix pass and publishes the report.
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from time import perf_counter
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from ..config.settings import FIX_WINDOW_SECONDS, MODES, REGULAR_LAYER_COUNT
from ..design.audit import audit_properties
from ..design.core_colors import core_tone_names
from ..design.issues import ComplianceIssue, Severity, summarize
from .debounce import ImmediateScheduler, Scheduler
from .engine_context import EngineContext
from .event_bus import EngineEvent, Event, Subscription, names_payload

__all__ = ["ComplianceWatcher", "CHANGE_EVENTS"]

_logger = logging.getLogger(__name__)

CHANGE_EVENTS: Tuple[EngineEvent, ...] = (
    EngineEvent.TOKEN_CHANGED,
    EngineEvent.PALETTE_FAMILY_CHANGED,
    EngineEvent.PALETTE_DELETED,
    EngineEvent.BRAND_BINDING_CHANGED,
)


class ComplianceWatcher:
    def __init__(
        self,
        context: EngineContext,
        *,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], float] = time.monotonic,
        fix_window: float = FIX_WINDOW_SECONDS,
    ) -> None:
        self.context = context
        self.scheduler: Scheduler = scheduler if scheduler is not None else ImmediateScheduler()
        self._clock = clock
        self._fix_window = fix_window
        self._fixing_until: Optional[float] = None
        self.watched: Set[str] = set()
        self.last_values: Dict[str, Optional[str]] = {}
        self.pending: Set[str] = set()
        self.prederived: Set[str] = set()
        self.is_updating = False
        self.disabled = False
        self.run_counts: Counter[str] = Counter()
        self.startup_done = False
        self.last_report: List[ComplianceIssue] = []
        self._subs: List[Subscription] = [
            context.bus.subscribe(evt, self._on_change) for evt in CHANGE_EVENTS
        ]

    # ------------------------------------------------------------------
    # State flags
    # ------------------------------------------------------------------
    @property
    def is_fixing(self) -> bool:
        return self._fixing_until is not None and self._clock() < self._fixing_until

    def disable(self) -> None:
        """Stop flushing; notifications keep accumulating in ``pending``."""
        self.disabled = True
        self.scheduler.cancel()

    def enable(self) -> None:
        self.disabled = False
        if self.pending:
            self.scheduler.schedule(self.flush)

    # ------------------------------------------------------------------
    # Watched properties
    # ------------------------------------------------------------------
    def _watch(self, names: Iterable[str]) -> List[str]:
        added = sorted(set(names))
        for name in added:
            self.watched.add(name)
            self.last_values[name] = self.context.store.get(name)
        return added

    def watch_palette_on_tone(self, key: str, mode: Optional[str] = None) -> List[str]:
        """Watch the tones that feed the on-tones of palette ``key``."""
        names = self.context.names
        tones: List[str] = []
        for m in [mode] if mode else self.context.modes:
            unit = self.context.plan.unit(f"palette:{m}:{key}")
            if unit is None:
                continue
            for on_name in unit.outputs:
                parsed = names.parse_palette(on_name)
                if parsed is not None:
                    tones.append(names.palette(parsed[0], parsed[1], parsed[2], "tone"))
        return self._watch(tones)

    def watch_layer_surface(self, layer_id: str, mode: Optional[str] = None) -> List[str]:
        names = self.context.names
        modes = [mode] if mode else self.context.modes
        return self._watch(names.layer(m, layer_id, "surface") for m in modes)

    def watch_core_colors(self, mode: Optional[str] = None) -> List[str]:
        names = self.context.names
        out: List[str] = []
        for m in [mode] if mode else self.context.modes:
            out.extend(core_tone_names(names, m))
        return self._watch(out)

    def check(self) -> List[str]:
        """Diff watched properties against ``last_values``; notify on change."""
        if self.is_updating:
            return []
        changed = []
        for name in sorted(self.watched):
            value = self.context.store.get(name)
            if value != self.last_values.get(name):
                self.last_values[name] = value
                changed.append(name)
        if changed:
            self.notify(changed)
        return changed

    # ------------------------------------------------------------------
    # Reactive loop
    # ------------------------------------------------------------------
    def _on_change(self, event: Event) -> None:
        # units the mutation itself already ran are not run again by the flush
        fresh = set(self.context.take_refreshed_units())
        self.run_counts.update(fresh)
        self.notify(event.names, fresh=fresh)

    def notify(self, names: Iterable[str], *, fresh: Iterable[str] = ()) -> None:
        names = list(names)
        fresh = set(fresh)
        if self.prederived:
            self.prederived -= set(self.context.graph.affected(names)) - fresh
        self.prederived |= fresh
        self.pending.update(names)
        if self.disabled or self.is_updating or not self.pending:
            return
        self.scheduler.schedule(self.flush)

    def flush(self) -> List[str]:
        """Re-derive every unit affected by the pending names, each once."""
        if self.disabled or self.is_updating or not self.pending:
            return []
        names, self.pending = self.pending, set()
        skip, self.prederived = self.prederived, set()
        start = perf_counter()
        keys = [k for k in self.context.graph.affected(names) if k not in skip]
        changed = self._run(keys, cascade=False)
        _logger.debug(
            "flush: %d names -> %d units, %d writes in %.1fms",
            len(names),
            len(keys),
            len(changed),
            (perf_counter() - start) * 1000.0,
        )
        if self.pending and not self.disabled:
            self.scheduler.schedule(self.flush)
        return changed

    def _run(self, keys: List[str], *, cascade: bool = True) -> List[str]:
        self.is_updating = True
        try:
            changed = self.context.rederive(keys)
            self.run_counts.update(keys)
            if cascade and changed:
                more = [k for k in self.context.graph.affected(changed) if k not in keys]
                changed.extend(self.context.rederive(more))
                self.run_counts.update(more)
            for name in self.watched:
                self.last_values[name] = self.context.store.get(name)
        finally:
            self.is_updating = False
        if changed:
            self.context.bus.publish(EngineEvent.PROPERTIES_UPDATED, names_payload(changed))
        return changed

    # ------------------------------------------------------------------
    # Bulk helpers
    # ------------------------------------------------------------------
    def _unit_keys(self, prefixes: Tuple[str, ...]) -> List[str]:
        return [k for k in self.context.graph.validate() if k.startswith(prefixes)]

    def check_all_palette_on_tones(self) -> List[str]:
        """Re-derive every palette and core on-tone, then their dependents."""
        return self._run(self._unit_keys(("palette:", "core:")))

    def update_all_layers(self) -> List[str]:
        return self._run(self._unit_keys(("layer:",)))

    def find_layers_using_palette(self, key: str) -> List[Tuple[str, str]]:
        """``(mode, layer_id)`` of regular layers whose surface reads palette ``key``."""
        names = self.context.names
        marker = f"-palettes-{key}-"
        found: List[Tuple[str, str]] = []
        for mode in MODES:
            for i in range(REGULAR_LAYER_COUNT):
                layer_id = f"layer-{i}"
                value = self.context.store.get(names.layer(mode, layer_id, "surface"))
                if value and marker in value:
                    found.append((mode, layer_id))
        return found

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def _audit(self) -> List[ComplianceIssue]:
        ctx = self.context
        known = {i.locus for i in ctx.issues}
        found = audit_properties(ctx.store.get, ctx.store.names(), ctx.names)
        return [i for i in found if i.locus not in known]

    def auto_fix(self) -> List[str]:
        """Force one re-derivation of every unit (bounded by ``is_fixing``)."""
        if self.is_fixing:
            _logger.warning("auto-fix suppressed: previous fix still inside its time box")
            return []
        self._fixing_until = self._clock() + self._fix_window
        return self._run(self.context.graph.validate(), cascade=False)

    def run_startup_validation(self) -> List[ComplianceIssue]:
        """Audit once, auto-fix errors once, publish the classified report."""
        if self.startup_done:
            return list(self.last_report)
        self.startup_done = True
        ctx = self.context
        if ctx.last_apply is None:
            ctx.apply()
        errors = self._audit()
        if errors and self.is_fixing:
            _logger.warning("auto-fix suppressed: %d errors reported as-is", len(errors))
        elif errors:
            self.auto_fix()
            errors = [i.downgrade(" (still failing after auto-fix)") for i in self._audit()]
            for issue in errors:
                _logger.warning("%s", issue.message)
        report = ctx.issues + errors
        self.last_report = report
        counts = summarize(report)
        _logger.info(
            "startup validation: %d errors, %d warnings", counts[Severity.ERROR.value], counts[Severity.WARNING.value]
        )
        ctx.bus.publish(
            EngineEvent.COMPLIANCE_REPORTED,
            names_payload(
                (i.locus for i in report),
                errors=counts[Severity.ERROR.value],
                warnings=counts[Severity.WARNING.value],
                issues=[i.as_report() for i in report],
            ),
        )
        return list(report)

    def dispose(self) -> None:
        for sub in self._subs:
            self.context.bus.unsubscribe(sub)
        self._subs.clear()
        self.scheduler.cancel()
        self.pending.clear()
        self.prederived.clear()
        self.watched.clear()
        self.last_values.clear()
