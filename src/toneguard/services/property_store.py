"""Live property store, boundary validator and batch applier.

The store is the only component that mutates the rendering surface's live
property registry. Two implementations ship:

 - :class:`InMemoryPropertyStore` (headless, used by tests and tooling)
 - :class:`~toneguard.services.qt_property_store.QtPropertyStore` (Qt
   dynamic properties on a target QObject)

Validation invariant enforced at the boundary: every brand-tier value
must be ``var(<managed property>)`` or a ``color-mix`` whose
operands are such indirections. A literal is repaired once through a
reverse token lookup; if that fails the write is rejected and logged while
the rest of the batch is still applied. Token-tier and ui-kit values are
accepted as they are.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Tuple, runtime_checkable

from ..design.indirection import repair_literal
from ..design.naming import PropertyNames, parse_color_mix, parse_var
from ..design.references import ReferenceContext
from ..design.token_index import TokenIndex
from ..errors import PropertyValidationError

__all__ = [
    "PropertyStore",
    "InMemoryPropertyStore",
    "PropertyValidator",
    "PropertyApplier",
    "ApplyResult",
]

_logger = logging.getLogger(__name__)


@runtime_checkable
class PropertyStore(Protocol):
    def get(self, name: str) -> Optional[str]: ...  # pragma: no cover - structural

    def set(self, name: str, value: str) -> None: ...  # pragma: no cover - structural

    def remove(self, name: str) -> None: ...  # pragma: no cover - structural

    def clear_all(self) -> None: ...  # pragma: no cover - structural

    def names(self) -> List[str]: ...  # pragma: no cover - structural


class InMemoryPropertyStore:
    """Dictionary backed store; ``writes`` counts set/remove calls."""

    def __init__(self, initial: Optional[Mapping[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})
        self.writes = 0

    def get(self, name: str) -> Optional[str]:
        return self._values.get(name)

    def set(self, name: str, value: str) -> None:
        self._values[name] = value
        self.writes += 1

    def remove(self, name: str) -> None:
        if self._values.pop(name, None) is not None:
            self.writes += 1

    def clear_all(self) -> None:
        self.writes += len(self._values)
        self._values.clear()

    def names(self) -> List[str]:
        return sorted(self._values)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)


class PropertyValidator:
    """Checks one ``name -> value`` write against the tier rules.

    Parameters
    ----------
    names : PropertyNames
        Naming scheme defining which names are managed and their tier.
    token_index : TokenIndex | None
        Index used for the one-shot literal repair. Without it literals in
        the brand tier are always rejected.
    """

    def __init__(self, names: Optional[PropertyNames] = None, token_index: Optional[TokenIndex] = None) -> None:
        self.names = names or PropertyNames()
        self.token_index = token_index

    def is_indirection(self, value: str) -> bool:
        target = parse_var(value)
        if target is not None:
            return self.names.is_managed(target)
        mix = parse_color_mix(value)
        if mix is not None:
            fg, _opacity, bg = mix
            return self.names.is_managed(fg) and self.names.is_managed(bg)
        return False

    def is_valid(self, name: str, value: object) -> bool:
        if not self.names.is_brand(name):
            return True
        return self.is_indirection(str(value).strip())

    def require(self, name: str, value: object) -> Tuple[str, bool]:
        """Return ``(value_to_write, repaired)``.

        Raises PropertyValidationError when a brand-tier literal cannot be
        repaired.
        """
        text = str(value).strip()
        if not self.names.is_brand(name):
            return text, False
        if self.is_indirection(text):
            return text, False
        context = ReferenceContext(token_index=self.token_index, names=self.names)
        repaired = repair_literal(text, context, ("color", "opacity", "size"))
        if repaired is not None:
            return repaired, True
        raise PropertyValidationError(f"{name}: literal {text!r} is not allowed in the brand tier")


@dataclass
class ApplyResult:
    applied: List[str] = field(default_factory=list)
    repaired: List[str] = field(default_factory=list)
    rejected: Dict[str, str] = field(default_factory=dict)
    removed: List[str] = field(default_factory=list)

    @property
    def changed(self) -> List[str]:
        return sorted(set(self.applied) | set(self.removed))

    @property
    def ok(self) -> bool:
        return not self.rejected


class PropertyApplier:
    """Validates and writes batches into a :class:`PropertyStore`."""

    def __init__(self, store: PropertyStore, validator: Optional[PropertyValidator] = None) -> None:
        self.store = store
        self.validator = validator or PropertyValidator()

    def apply(self, batch: Mapping[str, object]) -> ApplyResult:
        """Write every valid entry of ``batch``; unchanged values are skipped."""
        result = ApplyResult()
        for name in sorted(batch):
            try:
                value, repaired = self.validator.require(name, batch[name])
            except PropertyValidationError as exc:
                result.rejected[name] = str(exc)
                _logger.warning("rejected property write: %s", exc)
                continue
            if repaired:
                result.repaired.append(name)
                _logger.info("repaired literal for %s -> %s", name, value)
            if self.store.get(name) == value:
                continue
            self.store.set(name, value)
            result.applied.append(name)
        return result

    def apply_diff(self, previous: Iterable[str], batch: Mapping[str, object]) -> ApplyResult:
        """Apply ``batch`` and remove names of ``previous`` absent from it."""
        result = self.apply(batch)
        for name in sorted(set(previous) - set(batch)):
            if self.store.get(name) is None:
                continue
            self.store.remove(name)
            result.removed.append(name)
        return result

    def reset(self) -> None:
        self.store.clear_all()
