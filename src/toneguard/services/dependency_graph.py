"""Derivation dependency graph.

Edges point upstream -> downstream: ``A -> B`` means unit ``B`` reads at
least one property unit ``A`` writes. The graph serves two purposes:

 - cycle detection when a plan is first built (a cycle is a configuration
   error, raised as :class:`~toneguard.errors.DependencyCycleError`)
 - answering "which units must re-run, and in which order" when a set of
   property names changes, so each affected unit runs exactly once

Inputs are recorded from what a unit actually read on its last run (see
:class:`~toneguard.design.resolution.PropertyView`), so the graph tracks
the live configuration rather than a static declaration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Mapping, Set, Tuple

from ..errors import DependencyCycleError

__all__ = [
    "UnitNode",
    "DependencyGraph",
    "build_dependency_graph",
    "topological_order",
]


@dataclass(frozen=True)
class UnitNode:
    key: str
    rank: int
    inputs: FrozenSet[str]
    outputs: FrozenSet[str]


def build_dependency_graph(
    units: Iterable[UnitNode],
) -> Tuple[Dict[str, Set[str]], Dict[str, Set[str]]]:
    """Return ``(adjacency, reverse_adjacency)`` between unit keys.

    Raises DependencyCycleError if a cycle is detected via DFS.
    """
    nodes = list(units)
    writers: Dict[str, Set[str]] = {}
    for node in nodes:
        for name in node.outputs:
            writers.setdefault(name, set()).add(node.key)
    adjacency: Dict[str, Set[str]] = {n.key: set() for n in nodes}
    reverse: Dict[str, Set[str]] = {n.key: set() for n in nodes}
    for node in nodes:
        for name in node.inputs:
            for upstream in writers.get(name, ()):
                if upstream == node.key:
                    continue
                adjacency[upstream].add(node.key)
                reverse[node.key].add(upstream)

    color: Dict[str, int] = {k: 0 for k in adjacency}  # 0=white,1=gray,2=black

    def dfs(key: str, stack: List[str]) -> None:
        if color[key] == 1:
            raise DependencyCycleError("Cycle detected: " + " -> ".join(stack + [key]))
        if color[key] == 2:
            return
        color[key] = 1
        for nxt in sorted(adjacency[key]):
            dfs(nxt, stack + [key])
        color[key] = 2

    for key in sorted(adjacency):
        if color[key] == 0:
            dfs(key, [])
    return adjacency, reverse


def topological_order(adjacency: Mapping[str, Set[str]], ranks: Mapping[str, int] | None = None) -> List[str]:
    """Kahn ordering; ties broken by ``(rank, key)`` for a stable pass."""
    ranks = ranks or {}
    indeg: Dict[str, int] = {n: 0 for n in adjacency}
    for outs in adjacency.values():
        for dst in outs:
            indeg[dst] = indeg.get(dst, 0) + 1

    def sort_key(k: str) -> Tuple[int, str]:
        return (ranks.get(k, 0), k)

    queue = sorted((n for n, d in indeg.items() if d == 0), key=sort_key)
    order: List[str] = []
    while queue:
        n = queue.pop(0)
        order.append(n)
        for dst in adjacency.get(n, ()):
            indeg[dst] -= 1
            if indeg[dst] == 0:
                queue.append(dst)
        queue.sort(key=sort_key)
    if len(order) != len(indeg):
        return []
    return order


@dataclass
class DependencyGraph:
    """Mutable unit registry that answers re-derivation queries."""

    _nodes: Dict[str, UnitNode] = field(default_factory=dict)

    def record(self, key: str, inputs: Iterable[str], outputs: Iterable[str], rank: int = 0) -> None:
        self._nodes[key] = UnitNode(key, rank, frozenset(inputs), frozenset(outputs))

    def forget(self, key: str) -> None:
        self._nodes.pop(key, None)

    def clear(self) -> None:
        self._nodes.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def keys(self) -> List[str]:
        return sorted(self._nodes)

    def node(self, key: str) -> UnitNode | None:
        return self._nodes.get(key)

    def validate(self) -> List[str]:
        """Full topological order of recorded units (raises on cycle)."""
        adjacency, _ = build_dependency_graph(self._nodes.values())
        return topological_order(adjacency, {k: n.rank for k, n in self._nodes.items()})

    def consumers_of(self, names: Iterable[str]) -> Set[str]:
        """Units that directly read any of ``names``."""
        wanted = set(names)
        return {n.key for n in self._nodes.values() if n.inputs & wanted}

    def affected(self, names: Iterable[str]) -> List[str]:
        """Transitive consumers of ``names`` in dependency order, each once."""
        adjacency, _ = build_dependency_graph(self._nodes.values())
        pending = list(self.consumers_of(names))
        seen: Set[str] = set()
        while pending:
            key = pending.pop()
            if key in seen:
                continue
            seen.add(key)
            pending.extend(adjacency.get(key, ()))
        order = topological_order(adjacency, {k: n.rank for k, n in self._nodes.items()})
        return [k for k in order if k in seen]
