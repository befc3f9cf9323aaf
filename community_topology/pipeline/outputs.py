"""
Output Generation

Generates CSV, Markdown, and JSON reports from community analysis results.
"""

import json
import logging
import math
from datetime import datetime
from pathlib import Path
from typing import Optional

from community_topology.models.entities import CommunityGraph
from community_topology.models.persistence import PersistenceResult
from community_topology.models.scheduling import TimeSlotScore
from community_topology.pipeline.analyzer import AnalysisResult, MemberPriority

logger = logging.getLogger(__name__)


def _csv_field(value: str) -> str:
    return '"' + str(value).replace('"', '""') + '"'


class OutputGenerator:
    """Generates various output formats from analysis results."""

    def __init__(
        self,
        output_dir: str | Path = "./outputs",
        formats: Optional[list[str]] = None,
        timestamp_filenames: bool = True,
        max_items_per_section: int = 20,
        include_methodology: bool = True,
    ):
        """Initialize output generator.

        Args:
            output_dir: Directory for output files
            formats: List of formats to generate (csv, markdown, json)
            timestamp_filenames: Whether to include timestamp in filenames
            max_items_per_section: Maximum items per report section
            include_methodology: Whether to include methodology in reports
        """
        self.output_dir = Path(output_dir)
        self.formats = formats or ["csv", "markdown", "json"]
        self.timestamp_filenames = timestamp_filenames
        self.max_items_per_section = max_items_per_section
        self.include_methodology = include_methodology

        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _get_filename(self, base_name: str, extension: str) -> Path:
        """Generate output filename."""
        if self.timestamp_filenames:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"{base_name}_{timestamp}.{extension}"
        else:
            filename = f"{base_name}.{extension}"
        return self.output_dir / filename

    @staticmethod
    def _name(graph: CommunityGraph, member_id: str) -> str:
        member = graph.get_member(member_id)
        return member.display_name if member else member_id

    def _priorities_to_csv(self, priorities: list[MemberPriority]) -> str:
        """Convert outreach priorities to CSV format."""
        lines = ["rank,member_id,name,priority,reasons"]

        for rank, p in enumerate(priorities, 1):
            lines.append(
                f"{rank},"
                f"{_csv_field(p.member_id)},"
                f"{_csv_field(p.name)},"
                f"{p.priority:.1f},"
                f"{_csv_field('; '.join(p.reasons))}"
            )

        return "\n".join(lines)

    def _introductions_to_csv(
        self,
        graph: CommunityGraph,
        introductions: list[tuple[str, str]],
    ) -> str:
        """Convert introduction pairs to CSV format."""
        lines = ["member_a,name_a,member_b,name_b"]

        for a, b in introductions:
            lines.append(
                f"{_csv_field(a)},{_csv_field(self._name(graph, a))},"
                f"{_csv_field(b)},{_csv_field(self._name(graph, b))}"
            )

        return "\n".join(lines)

    def _event_times_to_csv(self, slots: list[TimeSlotScore]) -> str:
        """Convert event time candidates to CSV format."""
        lines = ["rank,day,start,end,available,coverage,topology_score,combined_score"]

        for rank, s in enumerate(slots, 1):
            day, times = s.slot.label.split(" ", 1)
            start, end = times.split("-")
            lines.append(
                f"{rank},{day},{start},{end},"
                f"{s.available_count},"
                f"{s.community_coverage:.3f},"
                f"{s.topology_score:.1f},"
                f"{s.combined_score:.2f}"
            )

        return "\n".join(lines)

    def _generate_priorities_md(self, result: AnalysisResult) -> str:
        """Generate outreach priority markdown report."""
        lines = ["# Outreach Priorities\n"]

        if self.include_methodology:
            lines.extend([
                "## Methodology\n",
                "Every member starts at a base priority which is then adjusted:\n",
                "- **Isolation risk** (few connections relative to the best connected member): +30",
                "- **Fragile group** (merges late in the strength filtration): +20",
                "- **Low check-in rating** (1 or 2): +25",
                "- **Follow-up flagged**: +15",
                "- **Bridge member**: +5",
                "- **Stable group**: -10\n",
            ])

        lines.extend([
            f"*Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}*\n",
            f"*Community: {result.community_id}*\n",
            "\n## Check-in Order\n",
            "| Rank | Name | Priority | Reasons |",
            "|------|------|----------|---------|",
        ])

        for i, p in enumerate(result.priorities[:self.max_items_per_section], 1):
            reasons = ", ".join(p.reasons) or "-"
            lines.append(f"| {i} | {p.name or p.member_id} | {p.priority:.0f} | {reasons} |")

        return "\n".join(lines)

    def _generate_introductions_md(
        self,
        graph: CommunityGraph,
        result: AnalysisResult,
    ) -> str:
        """Generate suggested introductions markdown report."""
        lines = ["# Suggested Introductions\n"]

        lines.extend([
            "Pairs that share a course or interest and would close a gap in the community.\n",
            f"*Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}*\n",
        ])

        if not result.introductions:
            lines.append("\n*No introductions suggested.*\n")
            return "\n".join(lines)

        isolated = set(result.isolated)
        lines.extend([
            "| # | Introduce | To | Reason |",
            "|---|-----------|----|--------|",
        ])
        for i, (a, b) in enumerate(result.introductions[:self.max_items_per_section], 1):
            reason = "isolation risk" if a in isolated else "structural hole"
            lines.append(
                f"| {i} | {self._name(graph, a)} | {self._name(graph, b)} | {reason} |"
            )

        return "\n".join(lines)

    def _generate_event_times_md(self, result: AnalysisResult) -> str:
        """Generate event time markdown report."""
        lines = ["# Recommended Event Times\n"]

        if self.include_methodology:
            lines.extend([
                "## Methodology\n",
                "Hourly slots are scored by the share of members free at that time,",
                "plus a bonus for each isolated member (+2.0) and bridge member (+1.5)",
                "who could attend. Slots with too few available members are skipped.\n",
            ])

        lines.append(f"*Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}*\n")

        if not result.event_times:
            lines.append("\n*No slot has enough available members.*\n")
            return "\n".join(lines)

        lines.extend([
            "| Rank | Slot | Available | Coverage | Score |",
            "|------|------|-----------|----------|-------|",
        ])
        for i, s in enumerate(result.event_times, 1):
            lines.append(
                f"| {i} | {s.slot.label} | {s.available_count} | "
                f"{s.community_coverage:.0%} | {s.combined_score:.1f} |"
            )

        return "\n".join(lines)

    def _generate_summary_md(
        self,
        graph: CommunityGraph,
        result: AnalysisResult,
    ) -> str:
        """Generate community summary markdown report."""
        lines = ["# Community Topology Summary\n"]

        health = result.health
        filled = int(health / 10)
        health_bar = "█" * filled + "░" * (10 - filled)

        lines.extend([
            f"*Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}*\n",
            "\n## Overview\n",
            f"- **Community**: {result.community_id}",
            f"- **Members**: {result.betti.vertices}",
            f"- **Connections**: {result.betti.edges}",
            f"- **Components (β₀)**: {result.betti.b0}",
            f"- **Independent cycles (β₁)**: {result.betti.b1}",
            f"- **Cohesive**: {'yes' if result.homology.is_cohesive else 'no'}",
            f"- **Health**: [{health_bar}] {health:.1f}/100\n",
        ])

        if result.isolated:
            lines.append("\n## Isolation Risk\n")
            for member_id in result.isolated[:self.max_items_per_section]:
                lines.append(f"- {self._name(graph, member_id)}")

        if result.bridges:
            lines.append("\n## Bridge Members\n")
            for member_id in result.bridges[:self.max_items_per_section]:
                lines.append(f"- {self._name(graph, member_id)}")

        p = result.persistence
        lines.extend([
            "\n## Persistence\n",
            f"- **Stable groups**: {len(p.stable_groups)}",
            f"- **Emerging groups**: {len(p.emerging_groups)}",
            f"- **Fragile groups**: {len(p.fragile_groups)}\n",
        ])
        for group in p.fragile_groups[:self.max_items_per_section]:
            lines.append(f"- Fragile: {', '.join(self._name(graph, m) for m in group)}")

        if result.decomposition is not None:
            d = result.decomposition
            lines.extend([
                f"\n## Decomposition: {d.subgroup_a} / {d.subgroup_b}\n",
                "| Piece | β₀ | β₁ |",
                "|-------|----|----|",
                f"| {d.subgroup_a} | {d.h0_a} | {d.h1_a} |",
                f"| {d.subgroup_b} | {d.h0_b} | {d.h1_b} |",
                f"| intersection | {d.h0_intersection} | {d.h1_intersection} |",
                f"| union | {d.h0_union} | {d.h1_union} |",
            ])

        lines.extend(["\n## Diagnosis\n", "```", result.diagnosis.rstrip(), "```"])

        return "\n".join(lines)

    @staticmethod
    def _persistence_to_dict(persistence: PersistenceResult) -> dict:
        """Serialize persistence, writing open-ended deaths as null."""
        return {
            "max_strength": persistence.max_strength,
            "threshold": persistence.threshold,
            "barcodes": [
                {
                    "dimension": b.dimension,
                    "birth": b.birth,
                    "death": None if math.isinf(b.death) else b.death,
                    "members": b.members,
                }
                for b in persistence.barcodes
            ],
            "stable_groups": persistence.stable_groups,
            "fragile_groups": persistence.fragile_groups,
            "emerging_groups": persistence.emerging_groups,
        }

    def _write(self, base_name: str, content: dict[str, str]) -> dict[str, Path]:
        """Write each requested format's content."""
        extensions = {"csv": "csv", "markdown": "md", "json": "json"}
        generated = {}
        for fmt, text in content.items():
            if fmt not in self.formats:
                continue
            filepath = self._get_filename(base_name, extensions[fmt])
            filepath.write_text(text)
            generated[fmt] = filepath
        return generated

    def generate_priorities(self, result: AnalysisResult) -> dict[str, Path]:
        """Generate outreach priority reports.

        Returns:
            Dictionary of format -> filepath
        """
        generated = self._write("outreach_priorities", {
            "csv": self._priorities_to_csv(result.priorities),
            "markdown": self._generate_priorities_md(result),
            "json": json.dumps([p.model_dump() for p in result.priorities], indent=2),
        })

        logger.info(f"Generated outreach priority reports: {list(generated.keys())}")
        return generated

    def generate_introductions(
        self,
        graph: CommunityGraph,
        result: AnalysisResult,
    ) -> dict[str, Path]:
        """Generate suggested introduction reports."""
        json_data = [
            {
                "member_a": a,
                "name_a": self._name(graph, a),
                "member_b": b,
                "name_b": self._name(graph, b),
            }
            for a, b in result.introductions
        ]
        generated = self._write("introductions", {
            "csv": self._introductions_to_csv(graph, result.introductions),
            "markdown": self._generate_introductions_md(graph, result),
            "json": json.dumps(json_data, indent=2),
        })

        logger.info(f"Generated introduction reports: {list(generated.keys())}")
        return generated

    def generate_event_times(self, result: AnalysisResult) -> dict[str, Path]:
        """Generate event time reports."""
        json_data = [
            {
                "slot": s.slot.label,
                "day": s.slot.day,
                "start_min": s.slot.start_min,
                "end_min": s.slot.end_min,
                "available_count": s.available_count,
                "community_coverage": s.community_coverage,
                "topology_score": s.topology_score,
                "combined_score": s.combined_score,
                "available_members": s.available_members,
            }
            for s in result.event_times
        ]
        generated = self._write("event_times", {
            "csv": self._event_times_to_csv(result.event_times),
            "markdown": self._generate_event_times_md(result),
            "json": json.dumps(json_data, indent=2),
        })

        logger.info(f"Generated event time reports: {list(generated.keys())}")
        return generated

    def generate_summary(
        self,
        graph: CommunityGraph,
        result: AnalysisResult,
    ) -> dict[str, Path]:
        """Generate community summary report."""
        json_data = {
            "generated_at": datetime.now().isoformat(),
            "community_id": result.community_id,
            "betti": result.betti.model_dump(),
            "homology": result.homology.model_dump(),
            "decomposition": result.decomposition.model_dump() if result.decomposition else None,
            "persistence": self._persistence_to_dict(result.persistence),
            "topology": {k: v.model_dump() for k, v in result.topology.items()},
        }
        generated = self._write("community_summary", {
            "markdown": self._generate_summary_md(graph, result),
            "json": json.dumps(json_data, indent=2, default=str),
        })

        logger.info(f"Generated community summary reports: {list(generated.keys())}")
        return generated


def generate_outputs(
    graph: CommunityGraph,
    result: AnalysisResult,
    output_dir: str | Path = "./outputs",
    formats: Optional[list[str]] = None,
    **options,
) -> dict[str, dict[str, Path]]:
    """Convenience function to generate all outputs.

    Args:
        graph: Analyzed community graph (used for member names)
        result: Analysis result
        output_dir: Output directory
        formats: Formats to generate
        **options: Further OutputGenerator settings

    Returns:
        Dictionary of report_type -> format -> filepath
    """
    generator = OutputGenerator(
        output_dir=output_dir,
        formats=formats or ["csv", "markdown", "json"],
        **options,
    )

    return {
        "outreach_priorities": generator.generate_priorities(result),
        "introductions": generator.generate_introductions(graph, result),
        "event_times": generator.generate_event_times(result),
        "community_summary": generator.generate_summary(graph, result),
    }
