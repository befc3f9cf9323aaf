"""
Pytest Configuration and Shared Fixtures
"""

import random

import pytest

from community_topology.models.entities import (
    CommunityGraph,
    Connection,
    ConnectionType,
    Member,
    TimeBlock,
)
from community_topology.pipeline.ingest import RosterRecord


def build_graph(members: list[Member], community_id: str = "test") -> CommunityGraph:
    """Create a graph from members without synthesizing connections."""
    graph = CommunityGraph(community_id=community_id)
    for member in members:
        graph.add_member(member)
    return graph


def wire(graph: CommunityGraph, pairs: list[tuple[str, str]], strength: float = 2.0) -> CommunityGraph:
    """Set explicit connections on a graph, bypassing synthesis."""
    connections = [
        Connection(
            id=i,
            source=source,
            target=target,
            type=ConnectionType.MANUALLY_INTRODUCED,
            strength=strength,
        )
        for i, (source, target) in enumerate(pairs)
    ]
    graph.set_connections(connections)
    return graph


def random_graph(seed: int, max_members: int = 25, density: float = 0.15) -> CommunityGraph:
    """Seeded random graph with explicit connections."""
    rng = random.Random(seed)
    n = rng.randint(0, max_members)
    labels = ["north", "south", "east"]
    members = [
        Member(id=f"m{i}", subgroups=set(rng.sample(labels, rng.randint(0, 2))))
        for i in range(n)
    ]
    graph = build_graph(members, community_id=f"random-{seed}")
    pairs = [
        (members[i].id, members[j].id)
        for i in range(n)
        for j in range(i + 1, n)
        if rng.random() < density
    ]
    return wire(graph, pairs, strength=round(rng.uniform(0.5, 6.0), 2))


@pytest.fixture
def triangle_graph() -> CommunityGraph:
    """Three members sharing a course plus a fourth with nothing in common."""
    return build_graph([
        Member(id="a", name="Ana", courses=["CS 101"]),
        Member(id="b", name="Ben", courses=["CS 101"]),
        Member(id="c", name="Cy", courses=["CS 101"]),
        Member(id="d", name="Dee", courses=["ART 200"]),
    ], community_id="triangle")


@pytest.fixture
def split_floor_graph() -> CommunityGraph:
    """Triangle in 'north' with c also in 'south' alongside an unconnected d."""
    return build_graph([
        Member(id="a", courses=["CS 101"], subgroups={"north"}),
        Member(id="b", courses=["CS 101"], subgroups={"north"}),
        Member(id="c", courses=["CS 101"], subgroups={"north", "south"}),
        Member(id="d", courses=["ART 200"], subgroups={"south"}),
    ], community_id="floor-2")


@pytest.fixture
def bridge_graph() -> CommunityGraph:
    """Clusters in X and Y joined only through m, who belongs to both."""
    return build_graph([
        Member(id="x1", courses=["HIST 1"], subgroups={"X"}),
        Member(id="x2", courses=["HIST 1"], subgroups={"X"}),
        Member(id="m", courses=["HIST 1", "MATH 2"], subgroups={"X", "Y"}),
        Member(id="y1", courses=["MATH 2"], subgroups={"Y"}),
        Member(id="y2", courses=["MATH 2"], subgroups={"Y"}),
    ], community_id="xy")


@pytest.fixture
def evening_graph() -> CommunityGraph:
    """Six members free Monday evening and one free only on Tuesday."""
    monday = TimeBlock(day=0, start_min=18 * 60, end_min=20 * 60)
    tuesday = TimeBlock(day=1, start_min=9 * 60, end_min=10 * 60)
    members = [Member(id=f"r{i}", free_blocks=[monday]) for i in range(6)]
    members.append(Member(id="late", free_blocks=[tuesday]))
    return build_graph(members, community_id="evening")


@pytest.fixture
def sample_records() -> list[RosterRecord]:
    """Roster records with messy labels and one duplicate id."""
    return [
        RosterRecord(
            id="s1",
            name="Sam Lee",
            room="204",
            subgroups=[" Floor 2 ", "Chess Club"],
            courses=["cs 101", "CS 101", "math  220"],
            interests=["Chess", "chess", "Hiking"],
            class_schedule=[TimeBlock(day=0, start_min=9 * 60, end_min=10 * 60 + 30)],
            last_rating=2,
        ),
        RosterRecord(
            id="s2",
            name="Ria Das",
            room="207",
            subgroups=["Floor 2"],
            courses=["CS 101"],
            interests=["hiking"],
            free_blocks=[TimeBlock(day=2, start_min=17 * 60, end_min=19 * 60)],
            follow_up_needed=True,
        ),
        RosterRecord(id="s1", name="Sam Again"),
    ]
