"""
Core Data Models

Pydantic models representing community members, their connections and the
community graph built from them.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


class GraphNotSynthesizedError(RuntimeError):
    """Raised when derived analysis is requested before edge synthesis ran."""


class UnknownSubgroupError(ValueError):
    """Raised when a decomposition names subgroups absent from the graph."""


class ConnectionType(str, Enum):
    """Signals that can connect two members, in evaluation order."""
    SHARED_COURSE = "shared_course"
    AVAILABILITY_OVERLAP = "availability_overlap"
    SHARED_INTEREST = "shared_interest"
    COHABITATION = "cohabitation"
    PHYSICAL_PROXIMITY = "physical_proximity"
    SUBGROUP_INTRODUCED = "subgroup_introduced"
    MANUALLY_INTRODUCED = "manually_introduced"
    SHARED_SUBGROUP = "shared_subgroup"


class TimeBlock(BaseModel):
    """A weekly time window on a single day."""
    day: int = Field(ge=0, le=6, description="0=Mon ... 6=Sun")
    start_min: int = Field(ge=0, le=1440, description="Minutes from midnight")
    end_min: int = Field(ge=0, le=1440, description="Minutes from midnight")

    def overlaps(self, other: "TimeBlock") -> bool:
        """Whether two blocks share any time on the same day."""
        if self.day != other.day:
            return False
        return not (self.end_min <= other.start_min or self.start_min >= other.end_min)

    def overlap_minutes(self, other: "TimeBlock") -> int:
        """Minutes shared with another block (0 if disjoint)."""
        if not self.overlaps(other):
            return 0
        return min(self.end_min, other.end_min) - max(self.start_min, other.start_min)

    @property
    def duration_minutes(self) -> int:
        return max(0, self.end_min - self.start_min)

    @property
    def label(self) -> str:
        """Human-readable label, e.g. 'Tue 19:00-20:00'."""
        start = f"{self.start_min // 60:02d}:{self.start_min % 60:02d}"
        end = f"{self.end_min // 60:02d}:{self.end_min % 60:02d}"
        return f"{DAY_NAMES[self.day]} {start}-{end}"


class Member(BaseModel):
    """A resident of the community (a vertex of the graph)."""
    id: str = Field(description="Stable unique identifier")
    name: str = ""
    room: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None

    # Subgroup memberships (used for Mayer-Vietoris decomposition)
    subgroups: set[str] = Field(default_factory=set)

    # Academic data
    courses: list[str] = Field(default_factory=list)
    class_schedule: list[TimeBlock] = Field(default_factory=list)
    free_blocks: list[TimeBlock] = Field(default_factory=list)

    interests: set[str] = Field(default_factory=set)

    # Check-in data supplied by the survey collaborator
    last_rating: Optional[int] = Field(default=None, ge=0)
    concerns: set[str] = Field(default_factory=set)
    follow_up_needed: bool = False

    @property
    def display_name(self) -> str:
        """Human-readable name for display."""
        return self.name or self.id

    def is_available(self, slot: TimeBlock) -> bool:
        """Whether any free block overlaps the slot."""
        return any(block.overlaps(slot) for block in self.free_blocks)


class Connection(BaseModel):
    """An undirected connection between two members."""
    id: int
    source: str
    target: str
    type: ConnectionType
    strength: float = Field(ge=0.0, description="Sum of all fired signal contributions")
    is_bridge_edge: bool = False
    touches_subgroups: set[str] = Field(default_factory=set)

    def other(self, member_id: str) -> str:
        """Return the endpoint opposite to member_id."""
        return self.target if member_id == self.source else self.source


class CommunityGraph(BaseModel):
    """A community of members and the connections synthesized between them.

    Members are added incrementally; ``compute_connections`` rebuilds the
    connection list and both adjacency indices from scratch.
    """
    community_id: str = ""
    members: list[Member] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)

    # Adjacency for fast lookup
    adjacency: dict[str, list[str]] = Field(default_factory=dict)
    strong_adjacency: dict[str, list[str]] = Field(default_factory=dict)

    subgroup_members: dict[str, list[str]] = Field(default_factory=dict)
    connections_computed: bool = False

    def add_member(self, member: Member) -> None:
        """Append a member and index its subgroups.

        No deduplication is performed; callers must not add an id twice.
        """
        self.members.append(member)
        for label in sorted(member.subgroups):
            self.subgroup_members.setdefault(label, []).append(member.id)
        self.connections_computed = False

    def compute_connections(self, min_strength: float = 0.5, **synth_kwargs) -> None:
        """Rebuild all connections from member attributes.

        Args:
            min_strength: Minimum summed strength for an edge to exist
            **synth_kwargs: Passed to ConnectionSynthesizer
        """
        from community_topology.models.connections import ConnectionSynthesizer

        synthesizer = ConnectionSynthesizer(min_strength=min_strength, **synth_kwargs)
        synthesizer.synthesize(self)

    def set_connections(
        self,
        connections: list[Connection],
        strong_threshold: float = 2.0,
    ) -> None:
        """Replace the connection list and rebuild both adjacency indices."""
        self.connections = list(connections)
        self.adjacency = {m.id: [] for m in self.members}
        self.strong_adjacency = {m.id: [] for m in self.members}

        for conn in self.connections:
            self.adjacency.setdefault(conn.source, []).append(conn.target)
            self.adjacency.setdefault(conn.target, []).append(conn.source)
            if conn.strength >= strong_threshold:
                self.strong_adjacency.setdefault(conn.source, []).append(conn.target)
                self.strong_adjacency.setdefault(conn.target, []).append(conn.source)

        self.connections_computed = True

    def require_connections(self) -> None:
        """Raise unless connections reflect the current member list."""
        if not self.connections_computed:
            raise GraphNotSynthesizedError(
                f"Connections for community '{self.community_id}' are stale; "
                "run compute_connections() first"
            )

    @property
    def member_ids(self) -> list[str]:
        return [m.id for m in self.members]

    @property
    def subgroup_labels(self) -> list[str]:
        return sorted(self.subgroup_members)

    def get_member(self, member_id: str) -> Optional[Member]:
        """Get a member by ID."""
        for member in self.members:
            if member.id == member_id:
                return member
        return None

    def neighbors(self, member_id: str, strong_only: bool = False) -> list[str]:
        """Neighbor ids of a member."""
        index = self.strong_adjacency if strong_only else self.adjacency
        return index.get(member_id, [])

    def degree(self, member_id: str) -> int:
        """Number of incident connections."""
        return len(self.adjacency.get(member_id, []))

    def induced_subgraph(
        self,
        member_ids: set[str],
        community_id: str = "",
    ) -> "CommunityGraph":
        """Build a fresh graph restricted to the given members.

        Only connections with both endpoints inside survive. Connection ids
        are renumbered locally; the source graph is never modified.
        """
        sub = CommunityGraph(community_id=community_id or self.community_id)
        for member in self.members:
            if member.id in member_ids:
                sub.add_member(member)

        kept = []
        for conn in self.connections:
            if conn.source in member_ids and conn.target in member_ids:
                kept.append(conn.model_copy(update={"id": len(kept)}))

        sub.set_connections(kept)
        return sub

    def subgroup_subgraph(self, *labels: str) -> "CommunityGraph":
        """Induced subgraph of members belonging to every given label."""
        member_sets = [set(self.subgroup_members.get(label, [])) for label in labels]
        in_all = set.intersection(*member_sets) if member_sets else set()
        return self.induced_subgraph(in_all, community_id=" & ".join(labels))
