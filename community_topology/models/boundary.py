"""
Boundary and Bridge Detection

Finds members on the edge of the community (isolation risk) and members
whose neighborhoods span several subgroups (bridges).
"""

import logging
from typing import Optional

from pydantic import BaseModel, Field

from community_topology.models.entities import CommunityGraph, Member
from community_topology.models.homology import component_labels

logger = logging.getLogger(__name__)


class MemberTopology(BaseModel):
    """Derived topological position of one member."""
    member_id: str
    degree: int = 0
    centrality: float = Field(default=0.0, ge=0.0, le=1.0)
    boundary_score: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="1 - normalized degree; higher = more isolated",
    )
    is_bridge: bool = False
    component_id: int = -1


class TopologySnapshot(BaseModel):
    """A synthesized graph together with its per-member annotations.

    Built from the graph by ``BoundaryDetector.build_topology``; never
    updated in place.
    """
    graph: CommunityGraph
    topology: dict[str, MemberTopology] = Field(default_factory=dict)

    @property
    def members(self) -> list[Member]:
        return self.graph.members

    def get(self, member_id: str) -> MemberTopology:
        return self.topology[member_id]

    def boundary_score(self, member_id: str) -> float:
        return self.topology[member_id].boundary_score

    def is_bridge(self, member_id: str) -> bool:
        return self.topology[member_id].is_bridge


class SubgroupInterface(BaseModel):
    """How two subgroups touch each other."""
    subgroup_a: str
    subgroup_b: str
    shared_members: list[str] = Field(default_factory=list)
    connection_count: int = 0
    interface_strength: float = 0.0


class BoundaryDetector:
    """Computes boundary scores and bridge flags for a synthesized graph."""

    def __init__(self, isolation_threshold: float = 0.7):
        """Initialize detector.

        Args:
            isolation_threshold: Boundary score at or above which a member is
                considered at isolation risk
        """
        self.isolation_threshold = isolation_threshold

    @staticmethod
    def compute_boundary_scores(graph: CommunityGraph) -> dict[str, tuple[int, float, float]]:
        """Degree-based centrality and boundary score per member.

        Degree counts every connection, strong or not.

        Returns:
            member id -> (degree, centrality, boundary score)
        """
        degree = {member.id: 0 for member in graph.members}
        for conn in graph.connections:
            degree[conn.source] = degree.get(conn.source, 0) + 1
            degree[conn.target] = degree.get(conn.target, 0) + 1

        max_degree = max(degree.values(), default=0)

        scores = {}
        for member in graph.members:
            d = degree[member.id]
            centrality = d / max_degree if max_degree > 0 else 0.0
            scores[member.id] = (d, centrality, 1.0 - centrality)
        return scores

    @staticmethod
    def compute_bridges(graph: CommunityGraph) -> set[str]:
        """Members whose direct neighbors span two or more subgroups.

        Members in fewer than two subgroups are never bridges.
        """
        by_id = {member.id: member for member in graph.members}
        bridges = set()

        for member in graph.members:
            if len(member.subgroups) < 2:
                continue

            connected_subgroups: set[str] = set()
            for neighbor_id in graph.adjacency.get(member.id, []):
                connected_subgroups |= by_id[neighbor_id].subgroups

            if len(connected_subgroups) >= 2:
                bridges.add(member.id)

        return bridges

    def build_topology(self, graph: CommunityGraph) -> TopologySnapshot:
        """Annotate every member of a synthesized graph.

        Raises:
            GraphNotSynthesizedError: If the graph's connections are stale
        """
        graph.require_connections()

        scores = self.compute_boundary_scores(graph)
        bridges = self.compute_bridges(graph)
        labels = component_labels(graph)

        topology = {}
        for member in graph.members:
            degree, centrality, boundary = scores[member.id]
            topology[member.id] = MemberTopology(
                member_id=member.id,
                degree=degree,
                centrality=centrality,
                boundary_score=boundary,
                is_bridge=member.id in bridges,
                component_id=labels[member.id],
            )

        logger.info(
            f"Annotated {len(topology)} members: "
            f"{len(self._boundary_ids(topology))} at isolation risk, "
            f"{len(bridges)} bridges"
        )

        return TopologySnapshot(graph=graph, topology=topology)

    def _boundary_ids(
        self,
        topology: dict[str, MemberTopology],
        threshold: Optional[float] = None,
    ) -> list[str]:
        threshold = self.isolation_threshold if threshold is None else threshold
        return [mid for mid, t in topology.items() if t.boundary_score >= threshold]

    def get_boundary_members(
        self,
        snapshot: TopologySnapshot,
        threshold: Optional[float] = None,
    ) -> list[str]:
        """Members at isolation risk, in member order.

        Args:
            snapshot: Annotated graph
            threshold: Override for the isolation threshold
        """
        return self._boundary_ids(snapshot.topology, threshold)

    @staticmethod
    def get_bridge_members(snapshot: TopologySnapshot) -> list[str]:
        """Bridge members, in member order."""
        return [m.id for m in snapshot.members if snapshot.topology[m.id].is_bridge]

    @staticmethod
    def subgroup_interface(
        graph: CommunityGraph,
        subgroup_a: str,
        subgroup_b: str,
    ) -> SubgroupInterface:
        """Describe the members and connections joining two subgroups."""
        in_a = set(graph.subgroup_members.get(subgroup_a, []))
        in_b = set(graph.subgroup_members.get(subgroup_b, []))
        only_a = in_a - in_b
        only_b = in_b - in_a

        count = 0
        strength = 0.0
        for conn in graph.connections:
            s, t = conn.source, conn.target
            crosses = (
                (s in only_a and t in in_b) or (t in only_a and s in in_b)
                or (s in only_b and t in in_a) or (t in only_b and s in in_a)
            )
            if crosses:
                count += 1
                strength += conn.strength

        return SubgroupInterface(
            subgroup_a=subgroup_a,
            subgroup_b=subgroup_b,
            shared_members=[mid for mid in graph.member_ids if mid in in_a and mid in in_b],
            connection_count=count,
            interface_strength=strength,
        )
