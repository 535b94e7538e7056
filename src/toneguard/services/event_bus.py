"""Engine event bus.

Synchronous publish/subscribe used both to *listen* for configuration
changes coming from the surrounding UI and to *announce* the engine's own
live-property batches.

Contract:
 - Change notifications carry property names only (``{"names": [...]}``
   plus small scalar keys such as a palette key), never document snapshots
 - One failing handler never breaks the publish cycle; failures are kept
   in :attr:`EventBus.errors` and logged
 - Handlers may subscribe / unsubscribe while being dispatched
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from threading import RLock
from time import perf_counter
from typing import Any, Dict, Iterable, List, Protocol

__all__ = [
    "EngineEvent",
    "Event",
    "EventBus",
    "EventHandler",
    "Subscription",
    "names_payload",
]

_logger = logging.getLogger(__name__)


class EngineEvent(str, Enum):  # str subclass keeps payload logging readable
    TOKEN_CHANGED = "token_changed"
    PALETTE_FAMILY_CHANGED = "palette_family_changed"
    PALETTE_DELETED = "palette_deleted"
    BRAND_BINDING_CHANGED = "brand_binding_changed"
    PROPERTIES_UPDATED = "properties_updated"
    COMPLIANCE_REPORTED = "compliance_reported"


@dataclass
class Event:
    name: str
    payload: Any
    timestamp: float

    @property
    def names(self) -> List[str]:
        """Property names carried by a change notification (empty if none)."""
        if isinstance(self.payload, dict):
            return list(self.payload.get("names") or ())
        return []


class EventHandler(Protocol):  # noqa: D401 - protocol signature docs implicit
    def __call__(self, event: Event) -> None: ...  # pragma: no cover - structural


@dataclass
class Subscription:
    event: str
    handler: EventHandler
    once: bool
    active: bool = True

    def cancel(self) -> None:
        self.active = False


def names_payload(names: Iterable[str], **extra: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"names": sorted(set(names))}
    payload.update(extra)
    return payload


class EventBus:
    """Synchronous event dispatcher.

    Subscribers are snapshotted under a re-entrant lock and invoked while
    the lock is NOT held, so handlers can publish or (un)subscribe.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._subs: Dict[str, List[Subscription]] = {}
        self._errors: List[tuple[Event, BaseException]] = []

    @staticmethod
    def _key(name: str | EngineEvent) -> str:
        return name.value if isinstance(name, EngineEvent) else name

    # Subscription management -----------------------------------------
    def subscribe(self, name: str | EngineEvent, handler: EventHandler, *, once: bool = False) -> Subscription:
        sub = Subscription(event=self._key(name), handler=handler, once=once)
        with self._lock:
            self._subs.setdefault(sub.event, []).append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            bucket = self._subs.get(sub.event)
            if bucket and sub in bucket:
                bucket.remove(sub)
                if not bucket:
                    self._subs.pop(sub.event, None)
        sub.active = False

    def clear(self) -> None:
        with self._lock:
            self._subs.clear()
            self._errors.clear()

    # Publishing --------------------------------------------------------
    def publish(self, name: str | EngineEvent, payload: Any = None) -> Event:
        key = self._key(name)
        evt = Event(name=key, payload=payload, timestamp=perf_counter())
        with self._lock:
            subs = list(self._subs.get(key, ()))
        finished: List[Subscription] = []
        for sub in subs:
            if not sub.active:
                continue
            try:
                sub.handler(evt)
            except Exception as exc:  # noqa: BLE001 - isolate handler failures
                _logger.warning("event handler failed: event=%s error=%r", key, exc)
                with self._lock:
                    self._errors.append((evt, exc))
            else:
                if sub.once:
                    finished.append(sub)
        for sub in finished:
            self.unsubscribe(sub)
        return evt

    # Introspection -----------------------------------------------------
    def subscriber_count(self, name: str | EngineEvent) -> int:
        with self._lock:
            return len(self._subs.get(self._key(name), ()))

    @property
    def errors(self) -> list[tuple[Event, BaseException]]:
        with self._lock:
            return list(self._errors)

