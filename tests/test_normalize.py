"""
Tests for Roster Normalization
"""

from community_topology.models.entities import TimeBlock
from community_topology.pipeline.analyzer import CommunityAnalyzer
from community_topology.pipeline.ingest import Roster, RosterRecord
from community_topology.pipeline.normalize import (
    free_blocks_from_schedule,
    normalize_course,
    normalize_label,
    normalize_roster,
    normalize_tag,
    record_to_member,
)


class TestCleaners:
    """Tests for label cleaning helpers."""

    def test_course_codes(self):
        assert normalize_course("cs  101") == "CS 101"
        assert normalize_course(" Math 220 ") == "MATH 220"

    def test_tags(self):
        assert normalize_tag(" Board  Games ") == "board games"

    def test_labels_keep_case(self):
        assert normalize_label("  Floor 2 ") == "Floor 2"


class TestFreeBlocks:
    """Tests for deriving free time from a class schedule."""

    def test_no_classes_means_free_all_window(self):
        """Test that an empty schedule gives one full block per day."""
        free = free_blocks_from_schedule([])
        assert len(free) == 7
        assert all(b.start_min == 480 and b.end_min == 1320 for b in free)
        assert [b.day for b in free] == list(range(7))

    def test_gaps_around_classes(self):
        free = free_blocks_from_schedule([
            TimeBlock(day=0, start_min=570, end_min=630),
            TimeBlock(day=0, start_min=540, end_min=600),
        ])
        monday = [b for b in free if b.day == 0]
        assert monday == [
            TimeBlock(day=0, start_min=480, end_min=540),
            TimeBlock(day=0, start_min=630, end_min=1320),
        ]

    def test_classes_clipped_to_window(self):
        free = free_blocks_from_schedule([
            TimeBlock(day=2, start_min=420, end_min=510),
            TimeBlock(day=2, start_min=1260, end_min=1380),
        ])
        wednesday = [b for b in free if b.day == 2]
        assert wednesday == [TimeBlock(day=2, start_min=510, end_min=1260)]

    def test_custom_window(self):
        free = free_blocks_from_schedule([], window_start=600, window_end=720)
        assert free[0] == TimeBlock(day=0, start_min=600, end_min=720)


class TestRecordToMember:
    """Tests for single record conversion."""

    def test_cleaned_fields(self, sample_records):
        member = record_to_member(sample_records[0])

        assert member.subgroups == {"Floor 2", "Chess Club"}
        assert member.courses == ["CS 101", "MATH 220"]
        assert member.interests == {"chess", "hiking"}
        assert member.last_rating == 2

    def test_free_time_derived_when_missing(self, sample_records):
        member = record_to_member(sample_records[0])
        monday = [b for b in member.free_blocks if b.day == 0]
        assert monday == [
            TimeBlock(day=0, start_min=480, end_min=540),
            TimeBlock(day=0, start_min=630, end_min=1320),
        ]
        assert len(member.free_blocks) == 8

    def test_explicit_free_time_kept(self, sample_records):
        member = record_to_member(sample_records[1])
        assert member.free_blocks == [TimeBlock(day=2, start_min=1020, end_min=1140)]
        assert member.follow_up_needed

    def test_no_schedule_means_unknown_availability(self):
        """Test that a record without schedule data gets no free time."""
        member = record_to_member(RosterRecord(id="x", room="101"))
        assert member.free_blocks == []

    def test_email_lowercased(self):
        member = record_to_member(RosterRecord(id="x", email=" Sam@Uni.EDU "))
        assert member.email == "sam@uni.edu"


class TestNormalizeRoster:
    """Tests for building the community graph."""

    def test_duplicates_skipped(self, sample_records):
        """Test that the first record of a duplicated id wins."""
        graph = normalize_roster(sample_records, community_id="hall")

        assert graph.community_id == "hall"
        assert graph.member_ids == ["s1", "s2"]
        assert graph.get_member("s1").name == "Sam Lee"

    def test_subgroup_index(self, sample_records):
        graph = normalize_roster(sample_records)
        assert graph.subgroup_members == {"Chess Club": ["s1"], "Floor 2": ["s1", "s2"]}

    def test_connections_not_synthesized(self, sample_records):
        graph = normalize_roster(sample_records)
        assert not graph.connections_computed

    def test_rows_without_schedules_stay_unconnected(self):
        """Test that missing schedule data does not connect everyone."""
        records = [RosterRecord(id=f"r{i}", room=str(100 + 20 * i)) for i in range(6)]
        graph = normalize_roster(records, community_id="bare")

        result = CommunityAnalyzer().analyze(graph)

        assert result.betti.edges == 0
        assert result.betti.b0 == 6
        assert result.isolated == [f"r{i}" for i in range(6)]

    def test_roster_input(self, sample_records):
        graph = normalize_roster(Roster(community_id="from-roster", records=sample_records))
        assert graph.community_id == "from-roster"
        assert len(graph.members) == 2
