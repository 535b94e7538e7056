"""Exception hierarchy shared by the design and service layers."""

from __future__ import annotations

__all__ = [
    "ToneguardError",
    "DocumentLoadError",
    "TokenValidationError",
    "PropertyValidationError",
    "DependencyCycleError",
]


class ToneguardError(RuntimeError):
    """Base class for engine errors."""


class DocumentLoadError(ToneguardError):
    """Raised when an input JSON document cannot be read or is not an object."""


class TokenValidationError(ToneguardError):
    """Raised when required token fields are missing or malformed."""


class PropertyValidationError(ToneguardError):
    """Raised by strict validation when a brand-tier value is a literal."""


class DependencyCycleError(ToneguardError, ValueError):
    """Raised when derived units depend on each other in a cycle."""
