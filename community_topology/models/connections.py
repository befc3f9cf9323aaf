"""
Connection Synthesizer

Derives weighted connections between members from independent signals.
"""

import logging
import re
from typing import Optional

from community_topology.models.entities import (
    CommunityGraph,
    Connection,
    ConnectionType,
    Member,
)

logger = logging.getLogger(__name__)

_LEADING_DIGITS = re.compile(r"^\d{1,3}")


class ConnectionSynthesizer:
    """Synthesizes connections by summing signal contributions per pair.

    Formula:
        strength = 2.0 * shared_courses
                 + min(overlap_hours / 5, 2.0)   (only if overlap_hours >= 2)
                 + 1.5 * shared_interests
                 + 5.0 (same room) + 1.0 (nearby room)
                 + 0.5 * shared_subgroups
    """

    DEFAULT_WEIGHTS = {
        ConnectionType.SHARED_COURSE: 2.0,
        ConnectionType.AVAILABILITY_OVERLAP: 2.0,  # cap on the overlap contribution
        ConnectionType.SHARED_INTEREST: 1.5,
        ConnectionType.COHABITATION: 5.0,
        ConnectionType.PHYSICAL_PROXIMITY: 1.0,
        ConnectionType.SHARED_SUBGROUP: 0.5,
    }

    def __init__(
        self,
        min_strength: float = 0.5,
        strong_threshold: float = 2.0,
        proximity_distance: int = 5,
        min_overlap_hours: int = 2,
        overlap_hours_divisor: float = 5.0,
        weights: Optional[dict[str, float]] = None,
    ):
        """Initialize synthesizer with configuration.

        Args:
            min_strength: Minimum summed strength for an edge to be created
            strong_threshold: Strength at which an edge enters the strong index
            proximity_distance: Max room-number distance counted as nearby
            min_overlap_hours: Overlap hours needed before availability counts
            overlap_hours_divisor: Overlap hours per unit of strength
            weights: Custom weights per connection type
        """
        self.min_strength = min_strength
        self.strong_threshold = strong_threshold
        self.proximity_distance = proximity_distance
        self.min_overlap_hours = min_overlap_hours
        self.overlap_hours_divisor = overlap_hours_divisor

        self.weights = self.DEFAULT_WEIGHTS.copy()
        if weights:
            for key, value in weights.items():
                if isinstance(key, str):
                    try:
                        self.weights[ConnectionType(key)] = value
                    except ValueError:
                        logger.warning(f"Unknown connection type: {key}")
                else:
                    self.weights[key] = value

    @staticmethod
    def count_shared_courses(a: Member, b: Member) -> int:
        """Count equal course pairs across both course lists."""
        return sum(1 for c1 in a.courses for c2 in b.courses if c1 == c2)

    @staticmethod
    def overlap_hours(a: Member, b: Member) -> int:
        """Whole hours of overlapping free time across the week."""
        total_minutes = sum(
            b1.overlap_minutes(b2) for b1 in a.free_blocks for b2 in b.free_blocks
        )
        return total_minutes // 60

    @staticmethod
    def room_number(room: str) -> Optional[int]:
        """Parse the leading digits of a room designator, None if absent."""
        match = _LEADING_DIGITS.match(room.strip()) if room else None
        return int(match.group()) if match else None

    def are_neighbors(self, room_a: str, room_b: str) -> bool:
        """Rooms within proximity_distance numbers of each other."""
        r1 = self.room_number(room_a)
        r2 = self.room_number(room_b)
        if r1 is None or r2 is None:
            return False
        return abs(r1 - r2) <= self.proximity_distance

    def signal_contributions(self, a: Member, b: Member) -> dict[ConnectionType, float]:
        """Strength contributed by each signal that fired, in evaluation order.

        Shared subgroups are included when present but are not an edge signal.
        """
        contributions: dict[ConnectionType, float] = {}

        shared_courses = self.count_shared_courses(a, b)
        if shared_courses > 0:
            contributions[ConnectionType.SHARED_COURSE] = (
                shared_courses * self.weights[ConnectionType.SHARED_COURSE]
            )

        hours = self.overlap_hours(a, b)
        if hours >= self.min_overlap_hours:
            contributions[ConnectionType.AVAILABILITY_OVERLAP] = min(
                hours / self.overlap_hours_divisor,
                self.weights[ConnectionType.AVAILABILITY_OVERLAP],
            )

        shared_interests = len(a.interests & b.interests)
        if shared_interests > 0:
            contributions[ConnectionType.SHARED_INTEREST] = (
                shared_interests * self.weights[ConnectionType.SHARED_INTEREST]
            )

        if a.room and a.room == b.room:
            contributions[ConnectionType.COHABITATION] = self.weights[ConnectionType.COHABITATION]

        if self.are_neighbors(a.room, b.room):
            contributions[ConnectionType.PHYSICAL_PROXIMITY] = (
                self.weights[ConnectionType.PHYSICAL_PROXIMITY]
            )

        shared_subgroups = a.subgroups & b.subgroups
        if shared_subgroups:
            contributions[ConnectionType.SHARED_SUBGROUP] = (
                len(shared_subgroups) * self.weights[ConnectionType.SHARED_SUBGROUP]
            )

        return contributions

    def evaluate_pair(self, a: Member, b: Member) -> tuple[float, list[ConnectionType], set[str]]:
        """Evaluate every signal for a pair.

        Returns:
            Tuple of (total strength, fired edge types in order, shared subgroups)
        """
        contributions = self.signal_contributions(a, b)
        fired = [t for t in contributions if t != ConnectionType.SHARED_SUBGROUP]
        return sum(contributions.values()), fired, a.subgroups & b.subgroups

    def synthesize(self, graph: CommunityGraph) -> list[Connection]:
        """Rebuild the graph's connections from scratch.

        Args:
            graph: Community graph to process (connections are replaced)

        Returns:
            The new connection list
        """
        connections: list[Connection] = []
        members = graph.members

        for i in range(len(members)):
            for j in range(i + 1, len(members)):
                a, b = members[i], members[j]
                strength, fired, shared = self.evaluate_pair(a, b)

                if not fired or strength < self.min_strength:
                    continue

                logger.debug(
                    f"{a.id} - {b.id}: {strength:.2f} ({', '.join(t.value for t in fired)})"
                )

                connections.append(Connection(
                    id=len(connections),
                    source=a.id,
                    target=b.id,
                    type=fired[0],
                    strength=strength,
                    is_bridge_edge=(
                        len(shared) < len(a.subgroups) or len(shared) < len(b.subgroups)
                    ),
                    touches_subgroups=shared,
                ))

        graph.set_connections(connections, strong_threshold=self.strong_threshold)

        strong = sum(1 for c in connections if c.strength >= self.strong_threshold)
        logger.info(
            f"Synthesized {len(connections)} connections ({strong} strong) "
            f"among {len(members)} members of '{graph.community_id}'"
        )

        return connections

    def get_strength_breakdown(self, a: Member, b: Member) -> dict:
        """Get detailed breakdown of a pair's connection strength.

        Args:
            a: First member
            b: Second member

        Returns:
            Dictionary with per-signal contributions and the edge decision
        """
        contributions = self.signal_contributions(a, b)
        total, fired, shared = self.evaluate_pair(a, b)

        return {
            "total": total,
            "by_type": {t.value: score for t, score in contributions.items()},
            "primary_type": fired[0].value if fired else None,
            "creates_edge": bool(fired) and total >= self.min_strength,
            "is_strong": total >= self.strong_threshold,
            "overlap_hours": self.overlap_hours(a, b),
            "shared_subgroups": sorted(shared),
        }
