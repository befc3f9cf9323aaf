"""
Community Analyzer

Runs the full diagnostic pipeline over a community graph:

    edge synthesis -> topology -> homology -> (decomposition) ->
    persistence -> scheduling -> outreach priority
"""

import logging
from typing import Optional

from pydantic import BaseModel, Field

from community_topology.models.boundary import (
    BoundaryDetector,
    MemberTopology,
    TopologySnapshot,
)
from community_topology.models.connections import ConnectionSynthesizer
from community_topology.models.entities import CommunityGraph
from community_topology.models.homology import BettiNumbers, compute_betti
from community_topology.models.mayer_vietoris import (
    DecompositionResult,
    HomologyResult,
    MayerVietorisDecomposer,
)
from community_topology.models.persistence import PersistenceEngine, PersistenceResult
from community_topology.models.scheduling import SchedulingOptimizer, TimeSlotScore
from community_topology.utils.config import Config

logger = logging.getLogger(__name__)


class MemberPriority(BaseModel):
    """Outreach priority of one member."""
    member_id: str
    name: str = ""
    priority: float = 0.0
    reasons: list[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    """Everything one analysis run produces."""
    community_id: str = ""
    betti: BettiNumbers = Field(default_factory=BettiNumbers)
    homology: HomologyResult = Field(default_factory=HomologyResult)
    decomposition: Optional[DecompositionResult] = None
    persistence: PersistenceResult = Field(default_factory=PersistenceResult)
    event_times: list[TimeSlotScore] = Field(default_factory=list)
    priorities: list[MemberPriority] = Field(default_factory=list)
    topology: dict[str, MemberTopology] = Field(default_factory=dict)

    @property
    def isolated(self) -> list[str]:
        return self.homology.isolation_risk

    @property
    def bridges(self) -> list[str]:
        return self.homology.bridge_members

    @property
    def holes(self) -> list[list[str]]:
        return self.homology.holes

    @property
    def introductions(self) -> list[tuple[str, str]]:
        return self.homology.suggested_introductions

    @property
    def health(self) -> float:
        return self.homology.community_health

    @property
    def diagnosis(self) -> str:
        if self.decomposition is not None:
            return self.homology.diagnosis + "\n" + self.decomposition.diagnosis
        return self.homology.diagnosis

    @property
    def priority_pairs(self) -> list[tuple[str, float]]:
        """(member id, priority) in ranked order."""
        return [(p.member_id, p.priority) for p in self.priorities]


class CommunityAnalyzer:
    """Orchestrates every analysis stage over one community graph."""

    DEFAULT_PRIORITY_WEIGHTS = {
        "isolated": 30.0,
        "fragile": 20.0,
        "low_rating": 25.0,
        "follow_up": 15.0,
        "bridge": 5.0,
        "stable": -10.0,
    }

    def __init__(
        self,
        synthesizer: Optional[ConnectionSynthesizer] = None,
        detector: Optional[BoundaryDetector] = None,
        decomposer: Optional[MayerVietorisDecomposer] = None,
        persistence: Optional[PersistenceEngine] = None,
        scheduler: Optional[SchedulingOptimizer] = None,
        base_priority: float = 50.0,
        low_rating_max: int = 2,
        priority_weights: Optional[dict[str, float]] = None,
    ):
        """Initialize analyzer.

        Args:
            synthesizer: Edge synthesis stage
            detector: Boundary and bridge stage
            decomposer: Homology and decomposition stage
            persistence: Filtration stage
            scheduler: Event time stage
            base_priority: Starting priority for every member
            low_rating_max: Highest check-in rating counted as low (ratings of 0 are ignored)
            priority_weights: Overrides for the priority adjustments
        """
        self.synthesizer = synthesizer or ConnectionSynthesizer()
        self.detector = detector or BoundaryDetector()
        self.decomposer = decomposer or MayerVietorisDecomposer(
            isolation_threshold=self.detector.isolation_threshold,
        )
        self.persistence = persistence or PersistenceEngine()
        self.scheduler = scheduler or SchedulingOptimizer(
            isolated_threshold=self.detector.isolation_threshold,
        )
        self.base_priority = base_priority
        self.low_rating_max = low_rating_max

        self.priority_weights = self.DEFAULT_PRIORITY_WEIGHTS.copy()
        if priority_weights:
            self.priority_weights.update(priority_weights)

    @classmethod
    def from_config(cls, config: Config) -> "CommunityAnalyzer":
        """Build an analyzer with every stage configured from a Config."""
        graph = config.graph
        analysis = config.analysis
        sched = config.scheduling

        health_weights = {}
        for key, value in analysis.health_weights.items():
            if key in MayerVietorisDecomposer.HEALTH_WEIGHT_KEYS:
                health_weights[key] = value
            else:
                logger.warning(f"Unknown health weight: {key}")

        return cls(
            synthesizer=ConnectionSynthesizer(
                min_strength=graph.min_strength,
                strong_threshold=graph.strong_threshold,
                proximity_distance=graph.proximity_distance,
                min_overlap_hours=graph.min_overlap_hours,
                overlap_hours_divisor=graph.overlap_hours_divisor,
                weights=graph.weights,
            ),
            detector=BoundaryDetector(isolation_threshold=analysis.isolation_threshold),
            decomposer=MayerVietorisDecomposer(
                isolation_threshold=analysis.isolation_threshold,
                intro_partner_max_boundary=analysis.intro_partner_max_boundary,
                healthy_cycle_allowance=analysis.healthy_cycle_allowance,
                **health_weights,
            ),
            persistence=PersistenceEngine(
                threshold_fraction=config.persistence.threshold_fraction,
                stable_multiplier=config.persistence.stable_multiplier,
                fragile_multiplier=config.persistence.fragile_multiplier,
            ),
            scheduler=SchedulingOptimizer(
                top_n=sched.top_n,
                min_attendance=sched.min_attendance,
                day_start_hour=sched.day_start_hour,
                day_end_hour=sched.day_end_hour,
                isolated_threshold=analysis.isolation_threshold,
                isolated_bonus=sched.isolated_bonus,
                bridge_bonus=sched.bridge_bonus,
            ),
            base_priority=config.priority.base,
            low_rating_max=config.priority.low_rating_max,
            priority_weights=config.priority.weights,
        )

    def build_snapshot(self, graph: CommunityGraph) -> TopologySnapshot:
        """Synthesize connections and annotate every member."""
        self.synthesizer.synthesize(graph)
        return self.detector.build_topology(graph)

    def prioritize(
        self,
        snapshot: TopologySnapshot,
        homology: HomologyResult,
        persistence: PersistenceResult,
    ) -> list[MemberPriority]:
        """Rank members by need for outreach.

        Args:
            snapshot: Annotated graph
            homology: Supplies isolated and bridge members
            persistence: Supplies stable and fragile groups

        Returns:
            Members by descending priority (ties keep member order)

        Raises:
            GraphNotSynthesizedError: If the graph's connections are stale
        """
        snapshot.graph.require_connections()

        isolated = set(homology.isolation_risk)
        bridges = set(homology.bridge_members)
        fragile = persistence.fragile_members
        stable = persistence.stable_members
        w = self.priority_weights

        priorities = []
        for member in snapshot.members:
            score = self.base_priority
            reasons = []

            if member.id in isolated:
                score += w["isolated"]
                reasons.append("isolation risk")
            if member.id in fragile:
                score += w["fragile"]
                reasons.append("fragile group")
            if member.last_rating is not None and 0 < member.last_rating <= self.low_rating_max:
                score += w["low_rating"]
                reasons.append(f"low check-in rating ({member.last_rating})")
            if member.follow_up_needed:
                score += w["follow_up"]
                reasons.append("follow-up flagged")
            if member.id in bridges:
                score += w["bridge"]
                reasons.append("bridge")
            if member.id in stable:
                score += w["stable"]
                reasons.append("stable group")

            priorities.append(MemberPriority(
                member_id=member.id,
                name=member.display_name,
                priority=score,
                reasons=reasons,
            ))

        priorities.sort(key=lambda p: p.priority, reverse=True)
        return priorities

    def analyze(
        self,
        graph: CommunityGraph,
        subgroup_pair: Optional[tuple[str, str]] = None,
    ) -> AnalysisResult:
        """Run every stage over the graph.

        Connections are always rebuilt from member attributes first, so
        repeated runs on an unchanged graph give equal results.

        Args:
            graph: Community graph (its connections are replaced)
            subgroup_pair: Optional pair of subgroup labels to decompose along

        Returns:
            AnalysisResult with every stage's output

        Raises:
            UnknownSubgroupError: If neither label of subgroup_pair exists
        """
        logger.info(f"Analyzing community '{graph.community_id}' ({len(graph.members)} members)")

        snapshot = self.build_snapshot(graph)
        homology = self.decomposer.analyze_full(snapshot)

        decomposition = None
        if subgroup_pair is not None:
            decomposition = self.decomposer.decompose(snapshot, *subgroup_pair)

        persistence = self.persistence.compute(graph)
        event_times = self.scheduler.find_optimal_event_times(snapshot)
        priorities = self.prioritize(snapshot, homology, persistence)

        return AnalysisResult(
            community_id=graph.community_id,
            betti=compute_betti(graph),
            homology=homology,
            decomposition=decomposition,
            persistence=persistence,
            event_times=event_times,
            priorities=priorities,
            topology=snapshot.topology,
        )
