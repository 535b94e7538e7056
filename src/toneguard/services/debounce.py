"""Change-notification schedulers.

The watcher never recomputes directly inside a change handler; it hands a
flush callback to a scheduler:

 - :class:`ImmediateScheduler` runs the callback synchronously (headless
   use and tests)
 - :class:`QtDebounceScheduler` coalesces bursts with a single-shot
   ``QTimer``; every new request restarts the window (last write wins)
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol

from PyQt6.QtCore import QObject, QTimer

from ..config.settings import DEBOUNCE_MS

__all__ = ["Scheduler", "ImmediateScheduler", "QtDebounceScheduler"]

Callback = Callable[[], None]


class Scheduler(Protocol):
    def schedule(self, callback: Callback) -> None: ...  # pragma: no cover - structural

    def cancel(self) -> None: ...  # pragma: no cover - structural


class ImmediateScheduler:
    def __init__(self) -> None:
        self.calls = 0

    def schedule(self, callback: Callback) -> None:
        self.calls += 1
        callback()

    def cancel(self) -> None:
        return None


class QtDebounceScheduler(QObject):
    """Single-shot timer debounce in the style of a Qt service object."""

    def __init__(self, interval_ms: int = DEBOUNCE_MS, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._callback: Optional[Callback] = None
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._fire)  # type: ignore

    @property
    def interval(self) -> int:
        return self._timer.interval()

    @property
    def pending(self) -> bool:
        return self._timer.isActive()

    def schedule(self, callback: Callback) -> None:
        self._callback = callback
        self._timer.start()  # restarts an active timer

    def cancel(self) -> None:
        self._timer.stop()
        self._callback = None

    def flush_now(self) -> None:
        """Run a pending callback immediately instead of waiting for the window."""
        if self._timer.isActive():
            self._timer.stop()
            self._fire()

    def _fire(self) -> None:
        callback, self._callback = self._callback, None
        if callback is not None:
            callback()
