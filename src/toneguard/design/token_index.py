"""Raw token index.

Flattens the raw token document into an O(1) ``path -> value`` lookup in a
single pass. Paths use ``/`` separators:

    color/<family>/<level>     6-digit hex (lowercase, '#'-prefixed)
    opacity/<name>             ratio in [0, 1]
    size/<name>                number (pixels)
    font/<kind>/<key>          any primitive (weight, size, family ...)

Color families are ordered discrete **ramps**. A family may be declared
under its canonical scale id (``scale-01``) with an ``alias`` naming the
friendly family (``gray``); both names resolve to the same ramp and the
alias is used as the canonical name.

The ``translucent`` family is indexed for plain lookups only. Its values
may carry alpha and it never takes part in reverse lookups or stepping.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from ..errors import TokenValidationError
from .color_mixing import normalize_hex

__all__ = [
    "LEVELS",
    "NON_RAMP_FAMILIES",
    "Ramp",
    "TokenIndex",
    "build_token_index",
    "normalize_level",
    "unwrap_value",
]

LEVELS: Tuple[str, ...] = (
    "000",
    "050",
    "100",
    "200",
    "300",
    "400",
    "500",
    "600",
    "700",
    "800",
    "900",
    "1000",
)

NON_RAMP_FAMILIES = frozenset({"translucent"})

_SCALAR_CATEGORIES = ("opacity", "size")


def normalize_level(level: Any) -> str:
    """Return the canonical level string (``50`` -> ``050``, ``0`` -> ``000``)."""
    s = str(level).strip()
    if s.isdigit():
        n = int(s)
        return str(n) if n >= 1000 else f"{n:03d}"
    return s


def unwrap_value(node: Any) -> Any:
    """Return ``node['$value']`` for token leaves, the node itself otherwise."""
    if isinstance(node, Mapping) and "$value" in node:
        return node["$value"]
    return node


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        s = value.strip()
        if s.endswith("px"):
            s = s[:-2]
        try:
            return float(s)
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class Ramp:
    name: str
    values: Mapping[str, str]
    alias: Optional[str] = None
    scale_id: Optional[str] = None

    @property
    def levels(self) -> Tuple[str, ...]:
        return tuple(lvl for lvl in LEVELS if lvl in self.values)

    def hex(self, level: Any) -> Optional[str]:
        return self.values.get(normalize_level(level))


@dataclass
class TokenIndex:
    """Path -> value lookup built by :func:`build_token_index`."""

    values: Dict[str, Any] = field(default_factory=dict)
    ramps: Dict[str, Ramp] = field(default_factory=dict)
    _ramp_names: Dict[str, str] = field(default_factory=dict)

    def canonical_family(self, family: str) -> Optional[str]:
        return self._ramp_names.get(str(family).strip().lower())

    def ramp(self, family: str) -> Optional[Ramp]:
        name = self.canonical_family(family)
        return self.ramps.get(name) if name else None

    def get(self, path: str) -> Any:
        parts = [p for p in str(path or "").replace(".", "/").split("/") if p]
        if not parts:
            return None
        head, rest = parts[0].lower(), parts[1:]
        if head == "colors":
            head = "color"
        if head == "color":
            if len(rest) != 2:
                return None
            family = self.canonical_family(rest[0])
            if family is None:
                return None
            return self.values.get(f"color/{family}/{normalize_level(rest[1])}")
        return self.values.get("/".join([head] + rest))

    def items(self) -> Iterator[Tuple[str, Any]]:
        for path in sorted(self.values):
            yield path, self.values[path]

    def find_token_by_hex(self, hex_value: Any) -> Optional[Tuple[str, str]]:
        """Reverse lookup of a literal color against every ramp.

        Returns ``(family, level)`` for the first match in document/ramp
        order, or None. The translucent family is skipped.
        """
        normalized = normalize_hex(hex_value)
        if normalized is None:
            return None
        for name, ramp in self.ramps.items():
            if name in NON_RAMP_FAMILIES:
                continue
            for level in ramp.levels:
                if ramp.values[level] == normalized:
                    return name, level
        return None

    def find_token_by_value(self, category: str, value: Any) -> Optional[str]:
        """Reverse lookup of a numeric literal among ``opacity`` or ``size`` tokens."""
        target = _as_number(value)
        if target is None:
            return None
        prefix = f"{category}/"
        for path in sorted(self.values):
            if not path.startswith(prefix):
                continue
            candidate = _as_number(self.values[path])
            if candidate is not None and abs(candidate - target) < 1e-9:
                return path[len(prefix):]
        return None


def _index_family(
    index: TokenIndex, key: str, node: Mapping[str, Any], problems: List[str], strict: bool
) -> None:
    alias = node.get("alias") or node.get("$alias")
    alias = str(unwrap_value(alias)).strip() if alias else None
    name = alias or key
    translucent = name in NON_RAMP_FAMILIES or key in NON_RAMP_FAMILIES
    levels: Dict[str, str] = {}
    for raw_level, leaf in node.items():
        if raw_level in ("alias", "$alias") or str(raw_level).startswith("$"):
            continue
        level = normalize_level(raw_level)
        value = unwrap_value(leaf)
        if translucent:
            index.values[f"color/{name}/{level}"] = value
            continue
        normalized = normalize_hex(value)
        if normalized is None or len(str(value).strip().lstrip("#")) != 6:
            problems.append(f"color/{key}/{raw_level}: {value!r} is not a 6-digit hex value")
            continue
        if strict and level not in LEVELS:
            problems.append(f"color/{key}/{raw_level}: unknown ramp level")
            continue
        levels[level] = normalized
        index.values[f"color/{name}/{level}"] = normalized
    ordered = {lvl: levels[lvl] for lvl in LEVELS if lvl in levels}
    ramp = Ramp(
        name=name,
        values=ordered,
        alias=alias,
        scale_id=key if alias and alias != key else None,
    )
    index.ramps[name] = ramp
    index._ramp_names[name.lower()] = name
    index._ramp_names[key.lower()] = name


def build_token_index(doc: Mapping[str, Any] | None, *, strict: bool = True) -> TokenIndex:
    """Build a :class:`TokenIndex` from a raw token document.

    Parameters
    ----------
    doc : Mapping
        The token document, either ``{"tokens": {...}}`` or the bare tree.
    strict : bool
        When True (default) malformed color tokens raise
        :class:`TokenValidationError`; otherwise they are skipped.
    """
    root: Any = (doc or {}).get("tokens", doc or {}) if isinstance(doc, Mapping) else {}
    index = TokenIndex()
    problems: List[str] = []
    for color_key in ("color", "colors"):
        colors = root.get(color_key)
        if not isinstance(colors, Mapping):
            continue
        for family, node in colors.items():
            if isinstance(node, Mapping):
                _index_family(index, str(family), node, problems, strict)
    for category in _SCALAR_CATEGORIES:
        group = root.get(category)
        if not isinstance(group, Mapping):
            continue
        for name, leaf in group.items():
            if str(name).startswith("$"):
                continue
            index.values[f"{category}/{name}"] = unwrap_value(leaf)
    font = root.get("font")
    if isinstance(font, Mapping):
        for kind, group in font.items():
            if not isinstance(group, Mapping):
                continue
            for key, leaf in group.items():
                if str(key).startswith("$"):
                    continue
                index.values[f"font/{kind}/{key}"] = unwrap_value(leaf)
    if problems and strict:
        raise TokenValidationError("; ".join(problems[:5]))
    return index
