"""
Data Processing Pipeline

Components for ingesting rosters, normalizing them into a community graph,
analyzing it, and writing reports.
"""

from community_topology.pipeline.ingest import load_roster, Roster, RosterRecord
from community_topology.pipeline.normalize import normalize_roster, free_blocks_from_schedule
from community_topology.pipeline.analyzer import CommunityAnalyzer, AnalysisResult
from community_topology.pipeline.outputs import generate_outputs, OutputGenerator

__all__ = [
    "load_roster",
    "Roster",
    "RosterRecord",
    "normalize_roster",
    "free_blocks_from_schedule",
    "CommunityAnalyzer",
    "AnalysisResult",
    "generate_outputs",
    "OutputGenerator",
]
