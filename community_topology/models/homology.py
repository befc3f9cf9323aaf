"""
Graph Homology

Betti numbers and cycle enumeration for the community graph, treated as a
1-dimensional simplicial complex (vertices and edges only).

    β₀ = number of connected components   (union-find)
    β₁ = |E| - |V| + β₀                    (independent cycles)
"""

import logging
from typing import Optional

from pydantic import BaseModel

from community_topology.models.entities import CommunityGraph, Connection

logger = logging.getLogger(__name__)


class UnionFind:
    """Disjoint sets over positions 0..n-1 with path compression."""

    def __init__(self, n: int):
        self.parent = list(range(n))
        self.rank = [0] * n

    def find(self, x: int) -> int:
        root = x
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]
        return root

    def union(self, a: int, b: int) -> bool:
        """Merge the sets holding a and b. Returns False if already merged."""
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return False
        if self.rank[ra] < self.rank[rb]:
            ra, rb = rb, ra
        self.parent[rb] = ra
        if self.rank[ra] == self.rank[rb]:
            self.rank[ra] += 1
        return True


class BettiNumbers(BaseModel):
    """Betti numbers of a graph plus its simplex counts."""
    b0: int = 0
    b1: int = 0
    vertices: int = 0
    edges: int = 0


def _index_of(graph: CommunityGraph) -> dict[str, int]:
    return {member.id: i for i, member in enumerate(graph.members)}


def _union_all(graph: CommunityGraph) -> tuple[UnionFind, dict[str, int]]:
    index = _index_of(graph)
    uf = UnionFind(len(graph.members))
    for conn in graph.connections:
        if conn.source in index and conn.target in index:
            uf.union(index[conn.source], index[conn.target])
    return uf, index


def betti_0(graph: CommunityGraph) -> int:
    """Number of connected components (0 for an empty graph)."""
    if not graph.members:
        return 0
    uf, _ = _union_all(graph)
    return len({uf.find(i) for i in range(len(graph.members))})


def betti_1(graph: CommunityGraph) -> int:
    """Number of independent cycles: |E| - |V| + β₀."""
    return len(graph.connections) - len(graph.members) + betti_0(graph)


def compute_betti(graph: CommunityGraph) -> BettiNumbers:
    """Compute β₀ and β₁ together."""
    b0 = betti_0(graph)
    return BettiNumbers(
        b0=b0,
        b1=len(graph.connections) - len(graph.members) + b0,
        vertices=len(graph.members),
        edges=len(graph.connections),
    )


def component_labels(graph: CommunityGraph) -> dict[str, int]:
    """Map each member to a component index, numbered by first appearance."""
    uf, _ = _union_all(graph)
    labels: dict[str, int] = {}
    root_to_label: dict[int, int] = {}
    for i, member in enumerate(graph.members):
        root = uf.find(i)
        if root not in root_to_label:
            root_to_label[root] = len(root_to_label)
        labels[member.id] = root_to_label[root]
    return labels


def components(graph: CommunityGraph) -> list[list[str]]:
    """Member ids grouped by component, in member order."""
    groups: dict[int, list[str]] = {}
    for member_id, label in component_labels(graph).items():
        groups.setdefault(label, []).append(member_id)
    return [groups[label] for label in sorted(groups)]


def spanning_forest(graph: CommunityGraph) -> tuple[list[Connection], list[Connection]]:
    """Split connections into a spanning forest and the edges that close cycles.

    The number of non-forest edges equals β₁.
    """
    index = _index_of(graph)
    uf = UnionFind(len(graph.members))
    forest: list[Connection] = []
    extra: list[Connection] = []
    for conn in graph.connections:
        if uf.union(index[conn.source], index[conn.target]):
            forest.append(conn)
        else:
            extra.append(conn)
    return forest, extra


def find_cycles(graph: CommunityGraph) -> list[list[str]]:
    """Find one cycle per DFS back-edge.

    Traverses from every unvisited member (in member order). A visited
    neighbor at strictly smaller depth than the current node closes a cycle,
    reconstructed by walking parent pointers back to that ancestor. This is
    not a minimal cycle basis.
    """
    cycles: list[list[str]] = []
    visited: set[str] = set()
    parent: dict[str, Optional[str]] = {}
    depth: dict[str, int] = {}

    for root in graph.member_ids:
        if root in visited:
            continue

        visited.add(root)
        parent[root] = None
        depth[root] = 0
        stack = [(root, iter(graph.adjacency.get(root, [])))]

        while stack:
            v, neighbors = stack[-1]
            advanced = False
            for u in neighbors:
                if u == parent[v]:
                    continue
                if u in visited:
                    if depth[u] < depth[v]:
                        cycle = []
                        curr = v
                        while curr != u:
                            cycle.append(curr)
                            curr = parent[curr]
                        cycle.append(u)
                        cycles.append(cycle)
                else:
                    visited.add(u)
                    parent[u] = v
                    depth[u] = depth[v] + 1
                    stack.append((u, iter(graph.adjacency.get(u, []))))
                    advanced = True
                    break
            if not advanced:
                stack.pop()

    logger.debug(f"Found {len(cycles)} cycles in '{graph.community_id}'")
    return cycles
