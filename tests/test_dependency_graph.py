import pytest

from toneguard.errors import DependencyCycleError
from toneguard.services.dependency_graph import (
    DependencyGraph,
    UnitNode,
    build_dependency_graph,
    topological_order,
)


def sample_units():
    return [
        UnitNode("palette:light:neutral", 1, frozenset({"--tone-000"}), frozenset({"--on-000"})),
        UnitNode("core:light", 1, frozenset({"--core-alert"}), frozenset({"--core-alert-on"})),
        UnitNode("layer:light:layer-0", 2, frozenset({"--surface-0", "--on-000", "--core-alert"}), frozenset({"--text-0"})),
        UnitNode("layer:light:layer-1", 2, frozenset({"--surface-1", "--core-alert-on"}), frozenset({"--text-1"})),
    ]


def test_dependency_graph_build():
    adj, rev = build_dependency_graph(sample_units())
    assert adj["palette:light:neutral"] == {"layer:light:layer-0"}
    assert adj["core:light"] == {"layer:light:layer-1"}
    assert rev["layer:light:layer-0"] == {"palette:light:neutral"}


def test_topological_order_contains_all():
    adj, _ = build_dependency_graph(sample_units())
    order = topological_order(adj, {u.key: u.rank for u in sample_units()})
    assert set(order) == set(adj)
    assert order.index("palette:light:neutral") < order.index("layer:light:layer-0")
    assert order[:2] == ["core:light", "palette:light:neutral"]


def test_cycle_detection():
    units = sample_units() + [
        UnitNode("a", 1, frozenset({"--b-out"}), frozenset({"--a-out"})),
        UnitNode("b", 1, frozenset({"--a-out"}), frozenset({"--b-out"})),
    ]
    with pytest.raises(DependencyCycleError) as info:
        build_dependency_graph(units)
    assert "Cycle" in str(info.value)


def test_topological_order_empty_on_cycle():
    assert topological_order({"a": {"b"}, "b": {"a"}}) == []


def test_affected_runs_each_unit_once_in_order():
    graph = DependencyGraph()
    for unit in sample_units():
        graph.record(unit.key, unit.inputs, unit.outputs, unit.rank)
    assert graph.affected(["--tone-000"]) == ["palette:light:neutral", "layer:light:layer-0"]
    assert graph.affected(["--core-alert"]) == ["core:light", "layer:light:layer-0", "layer:light:layer-1"]
    assert graph.affected(["--unknown"]) == []


def test_forget_and_consumers():
    graph = DependencyGraph()
    for unit in sample_units():
        graph.record(unit.key, unit.inputs, unit.outputs, unit.rank)
    assert graph.consumers_of(["--core-alert"]) == {"core:light", "layer:light:layer-0"}
    graph.forget("core:light")
    assert "core:light" not in graph
    assert len(graph) == 3
    assert graph.affected(["--core-alert"]) == ["layer:light:layer-0"]
