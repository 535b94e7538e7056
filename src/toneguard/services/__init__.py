"""Service layer exports.

Responsibilities:
 - EventBus publish/subscribe core (`EngineEvent` names)
 - Live property stores (in-memory and Qt) with boundary validation
 - Dependency graph driving incremental re-derivation
 - EngineContext (explicit state owner) and ComplianceWatcher

Stability:
 - `EngineContext`, `ComplianceWatcher` and `EventBus` are considered beta (API
   may grow but existing methods will not break without deprecation cycle).
"""

from .event_bus import EngineEvent, Event, EventBus  # noqa: F401
from .property_store import (  # noqa: F401
    ApplyResult,
    InMemoryPropertyStore,
    PropertyApplier,
    PropertyStore,
    PropertyValidator,
)
from .qt_property_store import QtPropertyStore  # noqa: F401
from .dependency_graph import DependencyGraph, build_dependency_graph, topological_order  # noqa: F401
from .debounce import ImmediateScheduler, QtDebounceScheduler  # noqa: F401
from .engine_context import EngineContext  # noqa: F401
from .compliance_watcher import ComplianceWatcher  # noqa: F401

__all__ = [
    "EngineEvent",
    "Event",
    "EventBus",
    "ApplyResult",
    "InMemoryPropertyStore",
    "PropertyApplier",
    "PropertyStore",
    "PropertyValidator",
    "QtPropertyStore",
    "DependencyGraph",
    "build_dependency_graph",
    "topological_order",
    "ImmediateScheduler",
    "QtDebounceScheduler",
    "EngineContext",
    "ComplianceWatcher",
]
