"""
Roster Normalization

Cleans roster records and builds the community graph from them.
"""

import logging
from collections import defaultdict
from typing import Optional

from community_topology.models.entities import CommunityGraph, Member, TimeBlock
from community_topology.pipeline.ingest import Roster, RosterRecord

logger = logging.getLogger(__name__)

WAKING_START_MIN = 8 * 60
WAKING_END_MIN = 22 * 60


def _dedupe(values: list[str]) -> list[str]:
    """Remove duplicates, keeping first occurrences in order."""
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def normalize_course(code: str) -> str:
    """Canonical course code: upper-cased with single spaces ('cs  101' -> 'CS 101')."""
    return " ".join(code.split()).upper()


def normalize_tag(tag: str) -> str:
    """Canonical interest/concern tag: lower-cased and trimmed."""
    return " ".join(tag.split()).lower()


def normalize_label(label: str) -> str:
    """Canonical subgroup label: trimmed, case preserved."""
    return " ".join(label.split())


def free_blocks_from_schedule(
    class_schedule: list[TimeBlock],
    window_start: int = WAKING_START_MIN,
    window_end: int = WAKING_END_MIN,
) -> list[TimeBlock]:
    """Free time as the complement of the class schedule within the waking window.

    Every day of the week gets its gaps, so a member with no classes is free
    for the whole window every day.

    Args:
        class_schedule: Blocks when the member is busy
        window_start: Start of the waking window in minutes
        window_end: End of the waking window in minutes

    Returns:
        Free blocks ordered by day then start time
    """
    busy: dict[int, list[tuple[int, int]]] = defaultdict(list)
    for block in class_schedule:
        start = max(block.start_min, window_start)
        end = min(block.end_min, window_end)
        if start < end:
            busy[block.day].append((start, end))

    free = []
    for day in range(7):
        cursor = window_start
        for start, end in sorted(busy[day]):
            if start > cursor:
                free.append(TimeBlock(day=day, start_min=cursor, end_min=start))
            cursor = max(cursor, end)
        if cursor < window_end:
            free.append(TimeBlock(day=day, start_min=cursor, end_min=window_end))
    return free


def record_to_member(
    record: RosterRecord,
    window_start: int = WAKING_START_MIN,
    window_end: int = WAKING_END_MIN,
) -> Member:
    """Convert one roster record into a cleaned Member.

    Free time is derived from the class schedule only when the record has a
    schedule and no explicit free blocks. A record with neither has unknown
    availability and gets no free blocks.
    """
    free_blocks = record.free_blocks
    if not free_blocks and record.class_schedule:
        free_blocks = free_blocks_from_schedule(record.class_schedule, window_start, window_end)

    return Member(
        id=record.id.strip(),
        name=record.name.strip(),
        room=record.room.strip(),
        email=record.email.strip().lower() if record.email else None,
        phone=record.phone,
        subgroups=set(_dedupe([normalize_label(s) for s in record.subgroups])),
        courses=_dedupe([normalize_course(c) for c in record.courses]),
        class_schedule=list(record.class_schedule),
        free_blocks=list(free_blocks),
        interests=set(_dedupe([normalize_tag(i) for i in record.interests])),
        last_rating=record.last_rating,
        concerns=set(_dedupe([normalize_tag(c) for c in record.concerns])),
        follow_up_needed=record.follow_up_needed,
    )


def normalize_roster(
    records: list[RosterRecord] | Roster,
    community_id: Optional[str] = None,
    window_start: int = WAKING_START_MIN,
    window_end: int = WAKING_END_MIN,
) -> CommunityGraph:
    """Build a community graph from roster records.

    Connections are not synthesized here; the graph comes back with
    ``connections_computed`` False.

    Args:
        records: Roster or list of records
        community_id: Graph identifier (default: the roster's)
        window_start: Start of the waking window used to derive free time
        window_end: End of the waking window used to derive free time

    Returns:
        CommunityGraph with one member per unique id, in roster order
    """
    if isinstance(records, Roster):
        community_id = community_id or records.community_id
        records = records.records

    graph = CommunityGraph(community_id=community_id or "")
    seen: set[str] = set()
    duplicates = 0

    for record in records:
        member = record_to_member(record, window_start, window_end)
        if member.id in seen:
            duplicates += 1
            logger.warning(f"Skipping duplicate member id: {member.id}")
            continue
        seen.add(member.id)
        graph.add_member(member)

    logger.info(
        f"Normalized {len(graph.members)} members into '{graph.community_id}' "
        f"({len(graph.subgroup_members)} subgroups, {duplicates} duplicates skipped)"
    )

    return graph
