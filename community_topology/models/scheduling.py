"""
Event Scheduling

Scores hourly weekly slots by attendance and by how many topologically
important members (isolated or bridges) could attend.
"""

import logging
from typing import Optional

from pydantic import BaseModel, Field

from community_topology.models.boundary import TopologySnapshot
from community_topology.models.entities import TimeBlock

logger = logging.getLogger(__name__)


class TimeSlotScore(BaseModel):
    """A candidate event time and its score."""
    slot: TimeBlock
    available_count: int = 0
    community_coverage: float = Field(default=0.0, ge=0.0, le=1.0)
    topology_score: float = 0.0
    available_members: list[str] = Field(default_factory=list)

    @property
    def combined_score(self) -> float:
        return self.community_coverage * 100 + self.topology_score


class SchedulingOptimizer:
    """Finds the best hourly slots for community events."""

    def __init__(
        self,
        top_n: int = 5,
        min_attendance: int = 5,
        day_start_hour: int = 8,
        day_end_hour: int = 22,
        isolated_threshold: float = 0.7,
        isolated_bonus: float = 2.0,
        bridge_bonus: float = 1.5,
    ):
        """Initialize optimizer.

        Args:
            top_n: Number of slots to return
            min_attendance: Slots with fewer available members are discarded
            day_start_hour: First candidate hour of each day
            day_end_hour: Hour after the last candidate slot
            isolated_threshold: Boundary score above which a member earns the isolated bonus
            isolated_bonus: Score per available isolated member
            bridge_bonus: Score per available bridge member
        """
        self.top_n = top_n
        self.min_attendance = min_attendance
        self.day_start_hour = day_start_hour
        self.day_end_hour = day_end_hour
        self.isolated_threshold = isolated_threshold
        self.isolated_bonus = isolated_bonus
        self.bridge_bonus = bridge_bonus

    def candidate_slots(self) -> list[TimeBlock]:
        """Hourly blocks for every day of the week, in chronological order."""
        return [
            TimeBlock(day=day, start_min=hour * 60, end_min=(hour + 1) * 60)
            for day in range(7)
            for hour in range(self.day_start_hour, self.day_end_hour)
        ]

    def score_slot(self, snapshot: TopologySnapshot, slot: TimeBlock) -> TimeSlotScore:
        """Score a single slot."""
        available = [m.id for m in snapshot.members if m.is_available(slot)]

        bonus = 0.0
        for member_id in available:
            topo = snapshot.get(member_id)
            if topo.boundary_score > self.isolated_threshold:
                bonus += self.isolated_bonus
            if topo.is_bridge:
                bonus += self.bridge_bonus

        total = len(snapshot.members)
        return TimeSlotScore(
            slot=slot,
            available_count=len(available),
            community_coverage=len(available) / total if total else 0.0,
            topology_score=bonus,
            available_members=available,
        )

    def find_optimal_event_times(
        self,
        snapshot: TopologySnapshot,
        top_n: Optional[int] = None,
    ) -> list[TimeSlotScore]:
        """Rank candidate slots by coverage * 100 + topology bonus.

        Args:
            snapshot: Annotated graph
            top_n: Override for the number of slots returned

        Returns:
            Best slots, highest score first (ties stay chronological)

        Raises:
            GraphNotSynthesizedError: If the graph's connections are stale
        """
        snapshot.graph.require_connections()
        top_n = self.top_n if top_n is None else top_n

        scores = []
        for slot in self.candidate_slots():
            score = self.score_slot(snapshot, slot)
            if score.available_count < self.min_attendance:
                continue
            scores.append(score)

        scores.sort(key=lambda s: s.combined_score, reverse=True)

        logger.info(f"Scored {len(scores)} viable event slots, returning top {top_n}")
        return scores[:max(top_n, 0)]
