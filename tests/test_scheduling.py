"""
Tests for Event Scheduling
"""

import pytest

from community_topology.models.boundary import BoundaryDetector
from community_topology.models.entities import (
    GraphNotSynthesizedError,
    Member,
    TimeBlock,
)
from community_topology.models.scheduling import SchedulingOptimizer

from conftest import build_graph


def snapshot_of(graph):
    graph.compute_connections()
    return BoundaryDetector().build_topology(graph)


class TestCandidateSlots:
    """Tests for slot generation."""

    def test_hourly_waking_slots(self):
        slots = SchedulingOptimizer().candidate_slots()
        assert len(slots) == 7 * 14
        assert slots[0] == TimeBlock(day=0, start_min=480, end_min=540)
        assert slots[-1] == TimeBlock(day=6, start_min=1260, end_min=1320)

    def test_custom_hours(self):
        slots = SchedulingOptimizer(day_start_hour=18, day_end_hour=20).candidate_slots()
        assert [s.label for s in slots[:2]] == ["Mon 18:00-19:00", "Mon 19:00-20:00"]
        assert len(slots) == 14


class TestFindOptimalEventTimes:
    """Tests for slot ranking."""

    @pytest.fixture
    def optimizer(self):
        return SchedulingOptimizer()

    def test_evening_slots(self, optimizer, evening_graph):
        snapshot = snapshot_of(evening_graph)
        slots = optimizer.find_optimal_event_times(snapshot)

        assert [s.slot.label for s in slots] == ["Mon 18:00-19:00", "Mon 19:00-20:00"]
        first = slots[0]
        assert first.available_count == 6
        assert first.community_coverage == pytest.approx(6 / 7)
        # nobody is connected, so every available member earns the isolated bonus
        assert first.topology_score == pytest.approx(12.0)
        assert first.combined_score == pytest.approx(600 / 7 + 12)
        assert "late" not in first.available_members

    def test_min_attendance(self, evening_graph):
        optimizer = SchedulingOptimizer(min_attendance=7)
        assert optimizer.find_optimal_event_times(snapshot_of(evening_graph)) == []

    def test_top_n_override(self, optimizer, evening_graph):
        slots = optimizer.find_optimal_event_times(snapshot_of(evening_graph), top_n=1)
        assert len(slots) == 1

    def test_small_community_has_no_viable_slots(self, optimizer, triangle_graph):
        assert optimizer.find_optimal_event_times(snapshot_of(triangle_graph)) == []

    def test_stale_graph_rejected(self, optimizer, evening_graph):
        snapshot = snapshot_of(evening_graph)
        evening_graph.add_member(Member(id="newcomer"))
        with pytest.raises(GraphNotSynthesizedError):
            optimizer.find_optimal_event_times(snapshot)

    def test_bridge_bonus_breaks_ties(self, optimizer):
        monday = TimeBlock(day=0, start_min=18 * 60, end_min=19 * 60)
        tuesday = TimeBlock(day=1, start_min=18 * 60, end_min=19 * 60)
        members = [
            Member(id=f"n{i}", courses=["C"], subgroups={"north"}, free_blocks=[monday, tuesday])
            for i in range(4)
        ]
        members += [
            Member(id=f"s{i}", courses=["C"], subgroups={"south"}, free_blocks=[monday, tuesday])
            for i in range(4)
        ]
        members.append(Member(
            id="m", courses=["C"], subgroups={"north", "south"}, free_blocks=[tuesday],
        ))
        members.append(Member(id="o", courses=["C"], free_blocks=[monday]))
        snapshot = snapshot_of(build_graph(members))

        slots = optimizer.find_optimal_event_times(snapshot)
        assert [s.slot.day for s in slots] == [1, 0]
        assert slots[0].topology_score == pytest.approx(1.5)
        assert slots[1].topology_score == 0.0

    def test_scores_sorted_descending(self, optimizer, evening_graph):
        slots = optimizer.find_optimal_event_times(snapshot_of(evening_graph))
        scores = [s.combined_score for s in slots]
        assert scores == sorted(scores, reverse=True)
