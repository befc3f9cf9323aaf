"""
Tests for Graph Homology
"""

import pytest

from community_topology.models.entities import Member
from community_topology.models.homology import (
    UnionFind,
    betti_0,
    betti_1,
    component_labels,
    components,
    compute_betti,
    find_cycles,
    spanning_forest,
)

from conftest import build_graph, random_graph, wire


class TestUnionFind:
    """Tests for the UnionFind structure."""

    def test_initial_sets_are_singletons(self):
        uf = UnionFind(4)
        assert [uf.find(i) for i in range(4)] == [0, 1, 2, 3]

    def test_union_merges(self):
        uf = UnionFind(4)
        assert uf.union(0, 1)
        assert uf.union(2, 3)
        assert uf.union(1, 3)
        assert uf.find(0) == uf.find(2)

    def test_union_same_set_returns_false(self):
        uf = UnionFind(3)
        uf.union(0, 1)
        assert not uf.union(1, 0)

    def test_long_chain_does_not_recurse(self):
        n = 50_000
        uf = UnionFind(n)
        for i in range(n - 1):
            uf.parent[i] = i + 1
        assert uf.find(0) == n - 1
        assert uf.parent[0] == n - 1


class TestBettiNumbers:
    """Tests for β₀ and β₁."""

    def test_empty_graph(self):
        graph = build_graph([])
        assert betti_0(graph) == 0
        assert betti_1(graph) == 0

    @pytest.mark.parametrize("n", [1, 2, 7])
    def test_edgeless_graph(self, n):
        graph = wire(build_graph([Member(id=f"m{i}") for i in range(n)]), [])
        betti = compute_betti(graph)
        assert betti.b0 == n
        assert betti.b1 == 0

    def test_triangle_and_isolated(self, triangle_graph):
        triangle_graph.compute_connections()
        betti = compute_betti(triangle_graph)
        assert (betti.b0, betti.b1) == (2, 1)
        assert (betti.vertices, betti.edges) == (4, 3)

    def test_tree_has_no_cycles(self):
        graph = build_graph([Member(id=str(i)) for i in range(5)])
        wire(graph, [("0", "1"), ("0", "2"), ("2", "3"), ("2", "4")])
        assert betti_0(graph) == 1
        assert betti_1(graph) == 0

    @pytest.mark.parametrize("seed", range(40))
    def test_identity_matches_spanning_forest(self, seed):
        graph = random_graph(seed)
        _, extra = spanning_forest(graph)
        assert betti_1(graph) == len(extra)
        assert betti_1(graph) >= 0

    @pytest.mark.parametrize("seed", range(20))
    def test_betti_0_matches_component_count(self, seed):
        graph = random_graph(seed)
        assert betti_0(graph) == len(components(graph))


class TestComponents:
    """Tests for component labelling."""

    def test_labels_by_first_appearance(self):
        graph = build_graph([Member(id=m) for m in "abcd"])
        wire(graph, [("b", "d")])
        assert component_labels(graph) == {"a": 0, "b": 1, "c": 2, "d": 1}
        assert components(graph) == [["a"], ["b", "d"], ["c"]]


class TestFindCycles:
    """Tests for DFS cycle enumeration."""

    def test_triangle_cycle(self, triangle_graph):
        triangle_graph.compute_connections()
        assert find_cycles(triangle_graph) == [["c", "b", "a"]]

    def test_acyclic_graph(self):
        graph = build_graph([Member(id=m) for m in "abc"])
        wire(graph, [("a", "b"), ("b", "c")])
        assert find_cycles(graph) == []

    def test_one_extra_edge(self):
        graph = build_graph([Member(id=m) for m in "abcde"])
        wire(graph, [("a", "b"), ("b", "c"), ("c", "d"), ("d", "e"), ("e", "b")])

        assert betti_1(graph) == 1
        cycles = find_cycles(graph)
        assert len(cycles) >= 1
        assert any("e" in cycle and "b" in cycle for cycle in cycles)

    def test_cycles_are_closed_paths(self):
        graph = random_graph(seed=7, max_members=15, density=0.3)
        for cycle in find_cycles(graph):
            assert len(cycle) >= 3
            for u, v in zip(cycle, cycle[1:] + cycle[:1]):
                assert v in graph.adjacency[u]

    def test_deep_path_does_not_recurse(self):
        n = 5_000
        graph = build_graph([Member(id=f"m{i}") for i in range(n)])
        pairs = [(f"m{i}", f"m{i + 1}") for i in range(n - 1)] + [("m0", f"m{n - 1}")]
        wire(graph, pairs)
        cycles = find_cycles(graph)
        assert len(cycles) == 1
        assert len(cycles[0]) == n
