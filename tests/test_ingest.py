"""
Tests for Roster Ingestion
"""

import json

import pytest

from community_topology.models.entities import TimeBlock
from community_topology.pipeline.ingest import (
    RosterRecord,
    load_roster,
    parse_days,
    parse_list,
    parse_schedule,
    parse_time,
)


CSV_HEADER = "ID,Name,Room,Subgroups,Courses,Interests,Class Schedule,Last Rating,Follow Up Needed\n"


@pytest.fixture
def roster_csv(tmp_path):
    """A small CSV roster with one row missing its id."""
    path = tmp_path / "hall-a.csv"
    path.write_text(
        CSV_HEADER
        + "s1,Sam Lee,204,Floor 2;Chess Club,CS 101;MATH 220,chess,M 09:00-10:30; W 540-600,2,yes\n"
        + "s2,Ria Das,207,Floor 2,CS 101,,,,\n"
        + ",No Id,301,,,,,,\n"
    )
    return path


class TestParseTime:
    """Tests for time parsing."""

    def test_clock_format(self):
        """Test parsing HH:MM."""
        assert parse_time("09:30") == 570

    def test_minute_count(self):
        """Test parsing a bare minute count."""
        assert parse_time(" 540 ") == 540

    def test_end_of_day(self):
        assert parse_time("24:00") == 1440

    @pytest.mark.parametrize("token", ["25:00", "09:75", "abc", "-5"])
    def test_invalid(self, token):
        """Test that invalid times raise ValueError."""
        with pytest.raises(ValueError):
            parse_time(token)


class TestParseDays:
    """Tests for day designators."""

    @pytest.mark.parametrize("token,expected", [
        ("Mon", [0]),
        ("thursday", [3]),
        ("Su", [6]),
        ("Tu", [1]),
        ("3", [3]),
        ("MWF", [0, 2, 4]),
        ("TR", [1, 3]),
        ("TTh", [1, 3]),
        ("MTh", [0, 3]),
        ("TuTh", [1, 3]),
        ("TTH", [1, 3]),
        ("MTWTHF", [0, 1, 2, 3, 4]),
        ("MTWRFSU", [0, 1, 2, 3, 4, 5, 6]),
        ("mwf", [0, 2, 4]),
    ])
    def test_designators(self, token, expected):
        assert parse_days(token) == expected

    def test_unknown_day(self):
        with pytest.raises(ValueError):
            parse_days("Xyz")


class TestParseSchedule:
    """Tests for schedule cells."""

    def test_mixed_formats(self):
        """Test clock times and minute counts in one cell."""
        blocks = parse_schedule("M 09:00-10:30; W 540-600")
        assert blocks == [
            TimeBlock(day=0, start_min=540, end_min=630),
            TimeBlock(day=2, start_min=540, end_min=600),
        ]

    def test_letter_run_expands(self):
        blocks = parse_schedule("MWF 10:00-11:00")
        assert [b.day for b in blocks] == [0, 2, 4]

    def test_thursday_code_in_run(self):
        """Test that TH inside a run is read as Thursday."""
        blocks = parse_schedule("TTh 10:00-11:15")
        assert blocks == [
            TimeBlock(day=1, start_min=600, end_min=675),
            TimeBlock(day=3, start_min=600, end_min=675),
        ]

    def test_blank_values(self):
        assert parse_schedule(None) == []
        assert parse_schedule(float("nan")) == []
        assert parse_schedule("") == []

    def test_structured_input_passes_through(self):
        blocks = parse_schedule([{"day": 1, "start_min": 60, "end_min": 120}])
        assert blocks == [TimeBlock(day=1, start_min=60, end_min=120)]

    def test_reversed_block(self):
        """Test that a block ending before it starts is rejected."""
        with pytest.raises(ValueError):
            parse_schedule("M 10:00-09:00")

    def test_malformed_block(self):
        with pytest.raises(ValueError):
            parse_schedule("sometime in the morning")


class TestParseList:
    """Tests for multi-valued cells."""

    def test_split_and_strip(self):
        assert parse_list(" a; b;;c ") == ["a", "b", "c"]

    def test_custom_separator(self):
        assert parse_list("a|b", separator="|") == ["a", "b"]

    def test_list_passthrough(self):
        assert parse_list(["x", " ", "y "]) == ["x", "y"]

    def test_nan(self):
        assert parse_list(float("nan")) == []


class TestLoadRoster:
    """Tests for loading roster files."""

    def test_load_csv(self, roster_csv):
        """Test loading a CSV roster and skipping the row without an id."""
        roster = load_roster(roster_csv)

        assert roster.community_id == "hall-a"
        assert [r.id for r in roster.records] == ["s1", "s2"]
        assert roster.skipped_rows == 1
        assert "row 3" in roster.errors[0]

        sam = roster.records[0]
        assert sam.subgroups == ["Floor 2", "Chess Club"]
        assert sam.courses == ["CS 101", "MATH 220"]
        assert len(sam.class_schedule) == 2
        assert sam.last_rating == 2
        assert sam.follow_up_needed

        ria = roster.records[1]
        assert ria.interests == []
        assert ria.last_rating is None
        assert not ria.follow_up_needed

    def test_tth_schedule_row_kept(self, tmp_path):
        path = tmp_path / "tth.csv"
        path.write_text(CSV_HEADER + "s1,Sam,204,,,,TTh 10:00-11:15,,\n")
        roster = load_roster(path)
        assert roster.skipped_rows == 0
        assert [b.day for b in roster.records[0].class_schedule] == [1, 3]

    def test_malformed_schedule_row_skipped(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text(
            CSV_HEADER
            + "s1,Sam,204,,,,M 10:00-09:00,,\n"
            + "s2,Ria,207,,,,,,\n"
        )
        roster = load_roster(path)
        assert [r.id for r in roster.records] == ["s2"]
        assert roster.skipped_rows == 1

    def test_load_json_object(self, tmp_path):
        path = tmp_path / "roster.json"
        path.write_text(json.dumps({
            "community_id": "hall-b",
            "members": [
                {
                    "id": "a",
                    "courses": ["CS 101"],
                    "free_blocks": [{"day": 0, "start_min": 540, "end_min": 600}],
                },
                {"member_id": 7, "full_name": "Seven"},
            ],
        }))
        roster = load_roster(path)

        assert roster.community_id == "hall-b"
        assert [r.id for r in roster.records] == ["a", "7"]
        assert roster.records[0].free_blocks == [TimeBlock(day=0, start_min=540, end_min=600)]
        assert roster.records[1].name == "Seven"

    def test_json_list_with_override(self, tmp_path):
        path = tmp_path / "roster.json"
        path.write_text(json.dumps([{"id": "a"}, {"id": "b"}]))
        roster = load_roster(path, community_id="override")
        assert roster.community_id == "override"
        assert len(roster.records) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_roster(tmp_path / "nope.csv")

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "roster.txt"
        path.write_text("id\na\n")
        with pytest.raises(ValueError, match="Unsupported"):
            load_roster(path)

    def test_no_valid_rows(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text(CSV_HEADER + ",Nobody,,,,,,,\n")
        with pytest.raises(ValueError, match="No members"):
            load_roster(path)


class TestRosterRecord:
    """Tests for record validation."""

    def test_negative_rating_rejected(self):
        with pytest.raises(ValueError):
            RosterRecord(id="a", last_rating=-1)
