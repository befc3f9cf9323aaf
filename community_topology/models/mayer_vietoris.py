"""
Mayer-Vietoris Decomposition

Splits the community along two subgroups and compares the homology of the
pieces with that of the whole:

    ... -> H₁(A∩B) -> H₁(A) ⊕ H₁(B) -> H₁(A∪B) -> H₀(A∩B) -> H₀(A) ⊕ H₀(B) -> ...

The kernel and cokernel values reported here are estimates read off the
Betti numbers of the pieces, not ranks of the actual maps. They are used as
narrative for the diagnosis. The union's β₁ always comes from the whole graph.
"""

import itertools
import logging
from typing import Optional

from pydantic import BaseModel, Field

from community_topology.models.boundary import BoundaryDetector, SubgroupInterface, TopologySnapshot
from community_topology.models.entities import UnknownSubgroupError
from community_topology.models.homology import compute_betti, find_cycles

logger = logging.getLogger(__name__)


class HomologyResult(BaseModel):
    """Whole-community homology and the actions derived from it."""
    h0_union: int = 0
    h1_union: int = 0
    is_cohesive: bool = False
    community_health: float = Field(default=0.0, ge=0.0, le=100.0)

    isolation_risk: list[str] = Field(default_factory=list)
    bridge_members: list[str] = Field(default_factory=list)
    holes: list[list[str]] = Field(default_factory=list)
    suggested_introductions: list[tuple[str, str]] = Field(default_factory=list)

    diagnosis: str = ""


class DecompositionResult(HomologyResult):
    """Homology of two subgroups, their intersection and their union."""
    subgroup_a: str
    subgroup_b: str

    h0_a: int = 0
    h1_a: int = 0
    h0_b: int = 0
    h1_b: int = 0
    h0_intersection: int = 0
    h1_intersection: int = 0
    intersection_size: int = 0

    kernel_i0: int = Field(default=0, description="Estimated intersection components merged in the union")
    cokernel_i1: int = Field(default=0, description="Estimated cycles of the union not from the intersection")

    interface: Optional[SubgroupInterface] = None


class MayerVietorisDecomposer:
    """Decomposes a community along subgroup labels and scores its health."""

    HEALTH_WEIGHT_KEYS = ("component_penalty", "hole_penalty", "isolation_penalty", "bridge_bonus")

    def __init__(
        self,
        isolation_threshold: float = 0.7,
        intro_partner_max_boundary: float = 0.5,
        healthy_cycle_allowance: int = 2,
        component_penalty: float = 15.0,
        hole_penalty: float = 5.0,
        isolation_penalty: float = 3.0,
        bridge_bonus: float = 2.0,
    ):
        """Initialize decomposer.

        Args:
            isolation_threshold: Boundary score at or above which a member is isolated
            intro_partner_max_boundary: Highest boundary score an introduction
                partner may have
            healthy_cycle_allowance: Cycles tolerated before the hole penalty applies
            component_penalty: Health lost per component beyond the first
            hole_penalty: Health lost per cycle beyond the allowance
            isolation_penalty: Health lost per isolated member
            bridge_bonus: Health gained per bridge member
        """
        self.detector = BoundaryDetector(isolation_threshold=isolation_threshold)
        self.intro_partner_max_boundary = intro_partner_max_boundary
        self.healthy_cycle_allowance = healthy_cycle_allowance
        self.component_penalty = component_penalty
        self.hole_penalty = hole_penalty
        self.isolation_penalty = isolation_penalty
        self.bridge_bonus = bridge_bonus

    @staticmethod
    def kernel_i0(h0_a: int, h0_b: int, h0_intersection: int) -> int:
        """Estimate how many intersection components merge once embedded in A∪B."""
        if h0_intersection <= 1:
            return 0
        return max(0, h0_intersection - max(h0_a, h0_b))

    @staticmethod
    def cokernel_i1(h1_a: int, h1_b: int, h1_intersection: int) -> int:
        """Upper-bound estimate of cycles in A ⊕ B not coming from A∩B."""
        return h1_a + h1_b - min(h1_intersection, h1_a + h1_b)

    def health_score(self, h0: int, h1: int, isolated: int, bridges: int) -> float:
        """Weighted health score clamped to [0, 100]."""
        score = (
            100.0
            - (h0 - 1) * self.component_penalty
            - max(0, h1 - self.healthy_cycle_allowance) * self.hole_penalty
            - isolated * self.isolation_penalty
            + bridges * self.bridge_bonus
        )
        return max(0.0, min(100.0, score))

    def suggest_introductions(
        self,
        snapshot: TopologySnapshot,
        holes: list[list[str]],
        isolated: list[str],
    ) -> list[tuple[str, str]]:
        """Greedy first-match introductions.

        Isolated members are paired with the first well-connected member
        sharing a course or an interest. Then, for each hole of three or more
        members, the first outsider sharing a course with at least two hole
        members is paired with the last of those.

        Args:
            snapshot: Annotated graph
            holes: Cycles from find_cycles
            isolated: Members at isolation risk, in order

        Returns:
            List of (member id, member id) pairs
        """
        members = snapshot.members
        by_id = {member.id: member for member in members}
        intros: list[tuple[str, str]] = []

        for iso_id in isolated:
            iso = by_id[iso_id]
            for candidate in members:
                if candidate.id == iso_id:
                    continue
                if snapshot.boundary_score(candidate.id) > self.intro_partner_max_boundary:
                    continue
                shares_course = any(course in candidate.courses for course in iso.courses)
                shares_interest = bool(iso.interests & candidate.interests)
                if shares_course or shares_interest:
                    intros.append((iso_id, candidate.id))
                    break

        for hole in holes:
            if len(hole) < 3:
                continue
            in_hole = set(hole)
            for candidate in members:
                if candidate.id in in_hole:
                    continue
                linked = [
                    hole_id for hole_id in hole
                    if any(course in by_id[hole_id].courses for course in candidate.courses)
                ]
                if len(linked) >= 2:
                    intros.append((candidate.id, linked[-1]))
                    break

        return intros

    def decompose(
        self,
        snapshot: TopologySnapshot,
        subgroup_a: str,
        subgroup_b: str,
    ) -> DecompositionResult:
        """Run the decomposition for two subgroup labels.

        A label with no members yields an empty piece (β₀ = 0).

        Raises:
            UnknownSubgroupError: If neither label exists in the graph
            GraphNotSynthesizedError: If the graph's connections are stale
        """
        graph = snapshot.graph
        graph.require_connections()

        known = graph.subgroup_members
        if subgroup_a not in known and subgroup_b not in known:
            raise UnknownSubgroupError(
                f"Neither '{subgroup_a}' nor '{subgroup_b}' is a subgroup of "
                f"'{graph.community_id}' (known: {', '.join(graph.subgroup_labels) or 'none'})"
            )

        piece_a = compute_betti(graph.subgroup_subgraph(subgroup_a))
        piece_b = compute_betti(graph.subgroup_subgraph(subgroup_b))
        intersection = compute_betti(graph.subgroup_subgraph(subgroup_a, subgroup_b))
        whole = compute_betti(graph)

        result = DecompositionResult(
            subgroup_a=subgroup_a,
            subgroup_b=subgroup_b,
            h0_a=piece_a.b0,
            h1_a=piece_a.b1,
            h0_b=piece_b.b0,
            h1_b=piece_b.b1,
            h0_intersection=intersection.b0,
            h1_intersection=intersection.b1,
            intersection_size=intersection.vertices,
            kernel_i0=self.kernel_i0(piece_a.b0, piece_b.b0, intersection.b0),
            cokernel_i1=self.cokernel_i1(piece_a.b1, piece_b.b1, intersection.b1),
            h0_union=whole.b0,
            h1_union=whole.b1,
            is_cohesive=whole.b1 <= 1,
            interface=self.detector.subgroup_interface(graph, subgroup_a, subgroup_b),
        )

        self._fill_actions(snapshot, result)
        result.community_health = self.health_score(
            whole.b0,
            whole.b1,
            len(result.isolation_risk),
            len(result.bridge_members),
        )
        result.diagnosis = self.decomposition_diagnosis(result)

        logger.info(
            f"Decomposed '{graph.community_id}' along {subgroup_a}/{subgroup_b}: "
            f"β₁(A∪B)={result.h1_union}, health {result.community_health:.1f}"
        )

        return result

    def analyze_full(self, snapshot: TopologySnapshot) -> HomologyResult:
        """Summarize the whole community without decomposing it.

        Health weighs connectivity (30%), cohesion (30%) and the share of
        members not at isolation risk (40%). An empty graph scores 0.
        """
        graph = snapshot.graph
        graph.require_connections()

        whole = compute_betti(graph)
        result = HomologyResult(
            h0_union=whole.b0,
            h1_union=whole.b1,
            is_cohesive=whole.b1 <= whole.vertices // 10,
        )
        self._fill_actions(snapshot, result)

        if whole.vertices:
            connectivity = max(0.0, 100.0 - (whole.b0 - 1) * 20.0)
            cohesion = max(0.0, 100.0 - whole.b1 * 5.0)
            isolation = max(0.0, 100.0 - len(result.isolation_risk) / whole.vertices * 100.0)
            result.community_health = connectivity * 0.3 + cohesion * 0.3 + isolation * 0.4

        result.diagnosis = self.full_diagnosis(result, whole.vertices, whole.edges)

        logger.info(
            f"Community '{graph.community_id}': β₀={whole.b0}, β₁={whole.b1}, "
            f"health {result.community_health:.1f}"
        )

        return result

    def decompose_all_pairs(self, snapshot: TopologySnapshot) -> list[DecompositionResult]:
        """Decompose along every unordered pair of subgroup labels."""
        labels = snapshot.graph.subgroup_labels
        return [self.decompose(snapshot, a, b) for a, b in itertools.combinations(labels, 2)]

    def _fill_actions(self, snapshot: TopologySnapshot, result: HomologyResult) -> None:
        result.isolation_risk = self.detector.get_boundary_members(snapshot)
        result.bridge_members = self.detector.get_bridge_members(snapshot)
        result.holes = find_cycles(snapshot.graph)
        result.suggested_introductions = self.suggest_introductions(
            snapshot, result.holes, result.isolation_risk
        )

    @staticmethod
    def decomposition_diagnosis(result: DecompositionResult) -> str:
        """Render a decomposition as display text."""
        lines = [
            "=== Mayer-Vietoris Decomposition ===",
            f"Subgroup A ({result.subgroup_a}): H₁={result.h1_a}, H₀={result.h0_a}",
            f"Subgroup B ({result.subgroup_b}): H₁={result.h1_b}, H₀={result.h0_b}",
            f"Intersection (A∩B): {result.intersection_size} members, "
            f"H₁={result.h1_intersection}, H₀={result.h0_intersection}",
        ]

        if result.interface is not None:
            lines.append(
                f"Interface: {result.interface.connection_count} crossing connections, "
                f"strength {result.interface.interface_strength:.1f}"
            )

        lines.extend([
            "",
            "Exact sequence estimates:",
            f"  ker(i₀*) = {result.kernel_i0} (components merged by bridges)",
            f"  coker(i₁*) = {result.cokernel_i1} (new cycles in union)",
            f"  H₁(A∪B) = {result.h1_union}",
            "",
        ])

        if result.h1_union > 0:
            lines.append("Structural holes detected. Community has gaps.")
            lines.append(
                f"Recommended: {len(result.suggested_introductions)} introductions to fill holes."
            )
        else:
            lines.append("Community is simply connected. No structural holes.")

        if result.isolation_risk:
            lines.append(f"{len(result.isolation_risk)} members at isolation risk (boundary).")

        return "\n".join(lines) + "\n"

    @staticmethod
    def full_diagnosis(result: HomologyResult, vertices: int, edges: int) -> str:
        """Render a whole-community summary as display text."""
        return (
            f"Community: {vertices} members, {edges} connections\n"
            f"Components (β₀): {result.h0_union}\n"
            f"Structural holes (β₁): {result.h1_union}\n"
            f"Isolation risk: {len(result.isolation_risk)} members\n"
            f"Bridge members: {len(result.bridge_members)}\n"
            f"Health score: {result.community_health:.1f}/100\n"
        )
