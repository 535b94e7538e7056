"""Qt adapter for the live property registry.

Writes managed properties as Qt dynamic properties on a target ``QObject``
(typically the application or a top-level window) so style builders can
read them with ``obj.property(name)``. Setting a dynamic property to
``None`` removes it. Each batch of writes is announced once through the
``propertiesChanged`` signal after :meth:`QtPropertyStore.flush_signal`.
"""

from __future__ import annotations

from typing import List, Optional, Set

from PyQt6.QtCore import QObject, pyqtSignal

__all__ = ["QtPropertyStore"]


class QtPropertyStore(QObject):
    """:class:`~toneguard.services.property_store.PropertyStore` over a QObject."""

    propertiesChanged = pyqtSignal(list)

    def __init__(self, target: Optional[QObject] = None, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._target = target if target is not None else self
        self._managed: Set[str] = set()
        self._dirty: Set[str] = set()

    @property
    def target(self) -> QObject:
        return self._target

    def get(self, name: str) -> Optional[str]:
        if name not in self._managed:
            return None
        value = self._target.property(name)
        return None if value is None else str(value)

    def set(self, name: str, value: str) -> None:
        self._target.setProperty(name, value)
        self._managed.add(name)
        self._dirty.add(name)

    def remove(self, name: str) -> None:
        if name not in self._managed:
            return
        self._target.setProperty(name, None)
        self._managed.discard(name)
        self._dirty.add(name)

    def clear_all(self) -> None:
        for name in sorted(self._managed):
            self._target.setProperty(name, None)
            self._dirty.add(name)
        self._managed.clear()
        self.flush_signal()

    def names(self) -> List[str]:
        return sorted(self._managed)

    def flush_signal(self) -> List[str]:
        """Emit ``propertiesChanged`` for writes since the last flush."""
        changed = sorted(self._dirty)
        self._dirty.clear()
        if changed:
            self.propertiesChanged.emit(changed)
        return changed
