"""
Persistence Analysis

Filters connections by descending strength and tracks when components merge,
separating stable subgroups from fragile ones.

This is a single-linkage filtration over connection strength: only component
merges (dimension 0) are recorded, cycles are not tracked across it.
"""

import logging
import math

from pydantic import BaseModel, Field

from community_topology.models.entities import CommunityGraph
from community_topology.models.homology import UnionFind

logger = logging.getLogger(__name__)


class Barcode(BaseModel):
    """Birth/death interval of one merging component."""
    dimension: int = 0
    birth: float = 0.0
    death: float = math.inf
    members: list[str] = Field(default_factory=list)

    @property
    def persistence(self) -> float:
        return self.death - self.birth


class PersistenceResult(BaseModel):
    """Barcodes plus the groups they classify into."""
    barcodes: list[Barcode] = Field(default_factory=list)
    stable_groups: list[list[str]] = Field(default_factory=list)
    fragile_groups: list[list[str]] = Field(default_factory=list)
    emerging_groups: list[list[str]] = Field(default_factory=list)
    max_strength: float = 1.0
    threshold: float = 0.0

    def members_in(self, groups: list[list[str]]) -> set[str]:
        return {member_id for group in groups for member_id in group}

    @property
    def stable_members(self) -> set[str]:
        return self.members_in(self.stable_groups)

    @property
    def fragile_members(self) -> set[str]:
        return self.members_in(self.fragile_groups)


class PersistenceEngine:
    """Computes component persistence over a strength filtration.

    Classification (threshold = threshold_fraction * max strength):
        stable   if persistence > stable_multiplier * threshold
        fragile  if persistence < fragile_multiplier * threshold
        emerging otherwise
    """

    def __init__(
        self,
        threshold_fraction: float = 0.3,
        stable_multiplier: float = 2.0,
        fragile_multiplier: float = 0.5,
    ):
        """Initialize engine.

        Args:
            threshold_fraction: Persistence threshold as a fraction of the
                strongest connection
            stable_multiplier: Threshold multiple above which a group is stable
            fragile_multiplier: Threshold multiple below which a group is fragile
        """
        self.threshold_fraction = threshold_fraction
        self.stable_multiplier = stable_multiplier
        self.fragile_multiplier = fragile_multiplier

    def compute_barcodes(self, graph: CommunityGraph) -> tuple[list[Barcode], float]:
        """Run the filtration and record a barcode for each absorbed component.

        Edges enter strongest first (ties keep their original order). The
        filtration value of an edge is max_strength - strength.

        Returns:
            Tuple of (barcodes, max strength)
        """
        ordered = sorted(graph.connections, key=lambda c: c.strength, reverse=True)
        max_strength = ordered[0].strength if ordered else 1.0

        members = graph.members
        index = {member.id: i for i, member in enumerate(members)}
        uf = UnionFind(len(members))
        birth_time = [0.0] * len(members)

        barcodes = []
        for conn in ordered:
            root_s = uf.find(index[conn.source])
            root_t = uf.find(index[conn.target])
            if root_s == root_t:
                continue

            filtration_value = max_strength - conn.strength

            # Residents of the component that is absorbed
            dying = [m.id for i, m in enumerate(members) if uf.find(i) == root_t]
            if len(dying) > 1:
                barcodes.append(Barcode(
                    dimension=0,
                    birth=birth_time[root_t],
                    death=filtration_value,
                    members=dying,
                ))

            # The absorbed root always hangs under the surviving one
            uf.parent[root_t] = root_s

        return barcodes, max_strength

    def compute(self, graph: CommunityGraph) -> PersistenceResult:
        """Compute barcodes and classify them into stable/fragile/emerging groups."""
        barcodes, max_strength = self.compute_barcodes(graph)
        threshold = max_strength * self.threshold_fraction

        result = PersistenceResult(
            barcodes=barcodes,
            max_strength=max_strength,
            threshold=threshold,
        )

        for barcode in barcodes:
            if barcode.persistence > threshold * self.stable_multiplier:
                result.stable_groups.append(barcode.members)
            elif barcode.persistence < threshold * self.fragile_multiplier:
                result.fragile_groups.append(barcode.members)
            else:
                result.emerging_groups.append(barcode.members)

        logger.info(
            f"Persistence: {len(barcodes)} barcodes, "
            f"{len(result.stable_groups)} stable, "
            f"{len(result.fragile_groups)} fragile, "
            f"{len(result.emerging_groups)} emerging"
        )

        return result
