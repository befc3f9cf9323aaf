"""
Roster Ingestion

Loads community rosters from CSV or JSON files into validated records.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Optional

import pandas as pd
from pydantic import BaseModel, Field

from community_topology.models.entities import TimeBlock

logger = logging.getLogger(__name__)

_DAY_NAMES = {
    "mo": 0, "mon": 0, "monday": 0,
    "tu": 1, "tue": 1, "tues": 1, "tuesday": 1,
    "we": 2, "wed": 2, "wednesday": 2,
    "th": 3, "thu": 3, "thur": 3, "thurs": 3, "thursday": 3,
    "fr": 4, "fri": 4, "friday": 4,
    "sa": 5, "sat": 5, "saturday": 5,
    "su": 6, "sun": 6, "sunday": 6,
}

# Registrar-style single letters: R = Thursday, U = Sunday
_DAY_LETTERS = {"M": 0, "T": 1, "W": 2, "R": 3, "F": 4, "S": 5, "U": 6}
_DAY_PAIRS = {"TH": 3, "SA": 5}
_DAY_PIECE = re.compile(r"[A-Z][a-z]*")

_BLOCK_PATTERN = re.compile(r"^\s*(\S+)\s+(\S+)\s*-\s*(\S+)\s*$")


class RosterRecord(BaseModel):
    """One member row from a roster file."""
    id: str
    name: str = ""
    room: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    subgroups: list[str] = Field(default_factory=list)
    courses: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    class_schedule: list[TimeBlock] = Field(default_factory=list)
    free_blocks: list[TimeBlock] = Field(default_factory=list)
    last_rating: Optional[int] = Field(default=None, ge=0)
    follow_up_needed: bool = False
    concerns: list[str] = Field(default_factory=list)


class Roster(BaseModel):
    """Container for a loaded roster."""
    community_id: str = ""
    records: list[RosterRecord] = Field(default_factory=list)

    # Metadata
    source_file: Optional[str] = None
    skipped_rows: int = 0
    errors: list[str] = Field(default_factory=list)

    @property
    def has_records(self) -> bool:
        return len(self.records) > 0


def parse_time(token: str) -> int:
    """Parse 'HH:MM' or a bare minute count into minutes from midnight.

    Raises:
        ValueError: If the token is not a valid time of day
    """
    token = str(token).strip()
    if ":" in token:
        hours, minutes = token.split(":", 1)
        value = int(hours) * 60 + int(minutes)
        if not 0 <= int(minutes) < 60:
            raise ValueError(f"Invalid minutes in time: {token}")
    else:
        value = int(token)

    if not 0 <= value <= 1440:
        raise ValueError(f"Time out of range: {token}")
    return value


def _parse_day_run(token: str) -> list[int]:
    """Parse a single-case run like 'MWF' or 'TTH'.

    TH and SA are taken before single letters. SU and TU are not, since
    U is itself a day letter ('MTWRFSU').
    """
    run = token.upper()
    days = []
    i = 0
    while i < len(run):
        pair = run[i:i + 2]
        if pair in _DAY_PAIRS:
            days.append(_DAY_PAIRS[pair])
            i += 2
        elif run[i] in _DAY_LETTERS:
            days.append(_DAY_LETTERS[run[i]])
            i += 1
        else:
            raise ValueError(f"Unknown day: {token}")
    return days


def parse_days(token: str) -> list[int]:
    """Parse a day designator ('Mon', 'Thursday', 'MWF', 'TTh', '3') into day indices.

    Mixed-case runs split at capitals, so 'TuTh' is Tuesday and Thursday.

    Raises:
        ValueError: If the designator is not recognized
    """
    token = token.strip()
    if not token:
        raise ValueError("Empty day designator")
    if token.isdigit() and 0 <= int(token) <= 6:
        return [int(token)]
    if token.lower() in _DAY_NAMES:
        return [_DAY_NAMES[token.lower()]]

    if token not in (token.upper(), token.lower()):
        pieces = _DAY_PIECE.findall(token)
        if "".join(pieces) != token:
            raise ValueError(f"Unknown day: {token}")
        days = []
        for piece in pieces:
            if piece.lower() in _DAY_NAMES:
                days.append(_DAY_NAMES[piece.lower()])
            else:
                days.extend(_parse_day_run(piece))
        return days

    return _parse_day_run(token)


def parse_schedule(value: Any, separator: str = ";") -> list[TimeBlock]:
    """Parse a schedule cell like 'M 09:00-10:30; W 540-600'.

    Already-structured values (lists of dicts or TimeBlocks) pass through.

    Raises:
        ValueError: If any block is malformed
    """
    if value is None:
        return []
    if isinstance(value, float) and pd.isna(value):
        return []
    if isinstance(value, list):
        return [v if isinstance(v, TimeBlock) else TimeBlock(**v) for v in value]

    blocks = []
    for part in str(value).split(separator):
        if not part.strip():
            continue
        match = _BLOCK_PATTERN.match(part)
        if not match:
            raise ValueError(f"Malformed time block: {part.strip()}")
        days, start, end = match.groups()
        start_min, end_min = parse_time(start), parse_time(end)
        if end_min <= start_min:
            raise ValueError(f"Time block ends before it starts: {part.strip()}")
        for day in parse_days(days):
            blocks.append(TimeBlock(day=day, start_min=start_min, end_min=end_min))
    return blocks


def parse_list(value: Any, separator: str = ";") -> list[str]:
    """Split a delimited cell into stripped, non-empty items."""
    if value is None:
        return []
    if isinstance(value, float) and pd.isna(value):
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [item.strip() for item in str(value).split(separator) if item.strip()]


def _parse_bool(value: Any) -> bool:
    """Parse yes/no style flags."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return False
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "y", "x")


def _parse_rating(value: Any) -> Optional[int]:
    """Parse a check-in rating; blank means no rating on file."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    text = str(value).strip()
    if not text:
        return None
    return int(float(text))


def _clean_str(value: Any) -> str:
    """Clean a scalar cell into a stripped string."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value).strip()


def _first(row: dict, *keys: str) -> Any:
    """First non-blank value among alternative column names."""
    for key in keys:
        if _clean_str(row.get(key)):
            return row[key]
    return None


def _record_from_row(row: dict, separator: str) -> RosterRecord:
    """Build a RosterRecord from a column-normalized row."""
    member_id = _clean_str(_first(row, "id", "member_id", "student_id"))
    name = _clean_str(_first(row, "name", "full_name"))
    if not member_id:
        raise ValueError("row has no id")

    return RosterRecord(
        id=member_id,
        name=name,
        room=_clean_str(row.get("room")),
        email=_clean_str(row.get("email")) or None,
        phone=_clean_str(row.get("phone")) or None,
        subgroups=parse_list(row.get("subgroups"), separator),
        courses=parse_list(_first(row, "courses", "classes"), separator),
        interests=parse_list(row.get("interests"), separator),
        class_schedule=parse_schedule(row.get("class_schedule"), separator),
        free_blocks=parse_schedule(row.get("free_blocks"), separator),
        last_rating=_parse_rating(row.get("last_rating")),
        follow_up_needed=_parse_bool(row.get("follow_up_needed")),
        concerns=parse_list(row.get("concerns"), separator),
    )


def _normalize_columns(row: dict) -> dict:
    return {str(k).strip().lower().replace(" ", "_"): v for k, v in row.items()}


def _load_rows(rows: list[dict], separator: str, roster: Roster) -> None:
    """Convert raw rows, skipping and logging malformed ones."""
    for line, row in enumerate(rows, 1):
        try:
            roster.records.append(_record_from_row(_normalize_columns(row), separator))
        except Exception as e:
            roster.skipped_rows += 1
            roster.errors.append(f"row {line}: {e}")
            logger.warning(f"Skipping malformed roster row {line}: {e}")


def _load_csv(filepath: Path, separator: str, roster: Roster) -> None:
    """Load a CSV roster."""
    try:
        df = pd.read_csv(filepath, dtype=str)
    except Exception as e:
        logger.error(f"Error loading roster from {filepath}: {e}")
        raise

    df.columns = [col.strip().lower().replace(" ", "_") for col in df.columns]
    _load_rows(df.to_dict(orient="records"), separator, roster)


def _load_json(filepath: Path, separator: str, roster: Roster) -> None:
    """Load a JSON roster: a list of members or {"community_id", "members"}."""
    with open(filepath) as f:
        data = json.load(f)

    if isinstance(data, dict):
        roster.community_id = str(data.get("community_id") or roster.community_id)
        rows = data.get("members", [])
    else:
        rows = data

    _load_rows(rows, separator, roster)


def load_roster(
    path: str | Path,
    community_id: Optional[str] = None,
    list_separator: str = ";",
) -> Roster:
    """Load a community roster from a CSV or JSON file.

    Args:
        path: Roster file (.csv or .json)
        community_id: Community identifier (default: the file stem)
        list_separator: Separator for multi-valued cells

    Returns:
        Roster containing all valid records

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the format is unsupported or no members were loaded
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Roster not found: {path}")

    roster = Roster(community_id=community_id or path.stem, source_file=str(path))

    suffix = path.suffix.lower()
    if suffix == ".csv":
        _load_csv(path, list_separator, roster)
    elif suffix == ".json":
        _load_json(path, list_separator, roster)
        if community_id:
            roster.community_id = community_id
    else:
        raise ValueError(f"Unsupported roster format: {path.suffix}")

    if not roster.has_records:
        raise ValueError(f"No members loaded from {path.name}")

    logger.info(
        f"Roster loaded: {len(roster.records)} members, "
        f"{roster.skipped_rows} rows skipped from {path.name}"
    )

    return roster
