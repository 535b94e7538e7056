"""Token resolution and WCAG contrast compliance engine.

Quick start::

    from toneguard import create_engine, load_documents

    docs = load_documents("tokens.json", "brand.json", "uikit.json")
    engine = create_engine(docs.tokens, docs.brand, docs.uikit)
    engine.context.store.get("--toneguard-brand-themes-light-palettes-neutral-500-on-tone")
    engine.context.delete_palette("salmon")   # dependents re-derived once
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from .design import (  # noqa: F401
    ComplianceIssue,
    IssueKind,
    PropertyNames,
    Severity,
    build_plan,
    compute_property_map,
    contrast_ratio,
    load_documents,
    pick_on_tone,
    step_for_contrast,
)
from .errors import (  # noqa: F401
    DependencyCycleError,
    DocumentLoadError,
    PropertyValidationError,
    TokenValidationError,
    ToneguardError,
)
from .services import (  # noqa: F401
    ComplianceWatcher,
    EngineContext,
    EngineEvent,
    EventBus,
    InMemoryPropertyStore,
    PropertyStore,
    QtPropertyStore,
)
from .services.debounce import Scheduler

__all__ = [
    "Engine",
    "create_engine",
    "ComplianceIssue",
    "IssueKind",
    "PropertyNames",
    "Severity",
    "build_plan",
    "compute_property_map",
    "contrast_ratio",
    "load_documents",
    "pick_on_tone",
    "step_for_contrast",
    "ToneguardError",
    "DocumentLoadError",
    "TokenValidationError",
    "PropertyValidationError",
    "DependencyCycleError",
    "ComplianceWatcher",
    "EngineContext",
    "EngineEvent",
    "EventBus",
    "InMemoryPropertyStore",
    "PropertyStore",
    "QtPropertyStore",
]


@dataclass
class Engine:
    context: EngineContext
    watcher: ComplianceWatcher
    report: List[ComplianceIssue]

    def dispose(self) -> None:
        self.watcher.dispose()


def create_engine(
    tokens: Mapping[str, Any],
    brand: Mapping[str, Any],
    uikit: Optional[Mapping[str, Any]] = None,
    *,
    store: Optional[PropertyStore] = None,
    scheduler: Optional[Scheduler] = None,
    bus: Optional[EventBus] = None,
    names: Optional[PropertyNames] = None,
    active_mode: str = "light",
) -> Engine:
    """Wire one context + watcher, apply the initial map and validate it."""
    context = EngineContext(tokens, brand, uikit, names=names, store=store, bus=bus, active_mode=active_mode)
    watcher = ComplianceWatcher(context, scheduler=scheduler)
    context.apply()
    report = watcher.run_startup_validation()
    return Engine(context=context, watcher=watcher, report=report)
