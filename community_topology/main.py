"""
Community Topology CLI

Command-line interface for analyzing community rosters.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

# Initialize console for rich output
console = Console()


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure logging with rich handler."""
    handlers = [RichHandler(console=console, show_path=False)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(message)s",
        handlers=handlers,
    )


def _load_graph(input_path: str, config, community_id: Optional[str] = None):
    """Load and normalize a roster, exiting with a message on failure."""
    from community_topology.pipeline.ingest import load_roster, parse_time
    from community_topology.pipeline.normalize import normalize_roster

    try:
        roster = load_roster(
            input_path,
            community_id=community_id,
            list_separator=config.ingest.list_separator,
        )
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading roster: {e}[/red]")
        sys.exit(1)

    graph = normalize_roster(
        roster,
        window_start=parse_time(config.ingest.waking_start),
        window_end=parse_time(config.ingest.waking_end),
    )
    return roster, graph


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option(
    "--config", "-c",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to config file (default: config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, config_path: Optional[str]) -> None:
    """Community Topology - Find isolation, bridges and gaps in a community."""
    from community_topology.utils.config import load_config

    ctx.ensure_object(dict)
    config = load_config(Path(config_path) if config_path else None)
    ctx.obj["config"] = config

    if verbose:
        ctx.obj["log_level"] = "DEBUG"
    elif quiet:
        ctx.obj["log_level"] = "WARNING"
    else:
        ctx.obj["log_level"] = config.logging.level

    setup_logging(ctx.obj["log_level"], config.logging.file)


@cli.command()
@click.option(
    "--input", "-i",
    "input_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Roster file (.csv or .json)",
)
@click.option(
    "--output", "-o",
    "output_dir",
    default=None,
    type=click.Path(file_okay=False, dir_okay=True),
    help="Output directory for reports (default: from config)",
)
@click.option(
    "--community",
    default=None,
    help="Community identifier (default: roster file name)",
)
@click.option(
    "--pair",
    nargs=2,
    default=None,
    help="Two subgroup labels to decompose along",
)
@click.option(
    "--format", "-f",
    "formats",
    multiple=True,
    type=click.Choice(["csv", "markdown", "json"]),
    default=None,
    help="Output formats to generate",
)
@click.pass_context
def analyze(
    ctx: click.Context,
    input_path: str,
    output_dir: Optional[str],
    community: Optional[str],
    pair: Optional[tuple[str, str]],
    formats: tuple[str, ...],
) -> None:
    """Analyze a roster and generate outreach, introduction and event reports."""
    from community_topology.models.entities import UnknownSubgroupError
    from community_topology.pipeline.analyzer import CommunityAnalyzer
    from community_topology.pipeline.outputs import generate_outputs

    config = ctx.obj["config"]

    console.print("\n[bold blue]Community Topology Analysis[/bold blue]")
    console.print("=" * 50)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Loading roster...", total=None)
        roster, graph = _load_graph(input_path, config, community)
        progress.update(task, completed=True)
        console.print(
            f"  [green]✓[/green] Loaded {len(graph.members)} members "
            f"({roster.skipped_rows} rows skipped)"
        )

        task = progress.add_task("Analyzing topology...", total=None)
        analyzer = CommunityAnalyzer.from_config(config)
        try:
            result = analyzer.analyze(graph, subgroup_pair=tuple(pair) if pair else None)
        except UnknownSubgroupError as e:
            progress.update(task, completed=True)
            console.print(f"  [red]✗[/red] {e}")
            sys.exit(1)
        progress.update(task, completed=True)
        console.print(
            f"  [green]✓[/green] β₀={result.betti.b0}, β₁={result.betti.b1}, "
            f"health {result.health:.1f}/100"
        )

        task = progress.add_task("Generating reports...", total=None)
        output_files = generate_outputs(
            graph,
            result,
            output_dir=output_dir or config.output.directory,
            formats=list(formats) or config.output.formats,
            timestamp_filenames=config.output.timestamp_filenames,
            max_items_per_section=config.output.markdown.get("max_items_per_section", 20),
            include_methodology=config.output.markdown.get("include_methodology", True),
        )
        progress.update(task, completed=True)

    console.print("\n[bold]Reports Generated:[/bold]")
    for report_type, files in output_files.items():
        for fmt, path in files.items():
            console.print(f"  • {report_type}.{fmt}: [cyan]{path}[/cyan]")

    console.print("\n[bold]Top 10 Check-ins:[/bold]")
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Priority", justify="right")
    table.add_column("Reasons")

    for i, p in enumerate(result.priorities[:10], 1):
        table.add_row(str(i), p.name or p.member_id, f"{p.priority:.0f}", ", ".join(p.reasons))

    console.print(table)
    console.print(f"\n{result.diagnosis}")


@cli.command()
@click.option(
    "--input", "-i",
    "input_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Roster file (.csv or .json)",
)
@click.argument("subgroup_a", required=False)
@click.argument("subgroup_b", required=False)
@click.option("--all", "all_pairs", is_flag=True, help="Decompose along every pair of subgroups")
@click.pass_context
def decompose(
    ctx: click.Context,
    input_path: str,
    subgroup_a: Optional[str],
    subgroup_b: Optional[str],
    all_pairs: bool,
) -> None:
    """Compare the homology of two subgroups with that of the whole community."""
    from community_topology.models.entities import UnknownSubgroupError
    from community_topology.pipeline.analyzer import CommunityAnalyzer

    config = ctx.obj["config"]
    if not all_pairs and not (subgroup_a and subgroup_b):
        console.print("[red]Give two subgroup labels or --all[/red]")
        sys.exit(2)

    _, graph = _load_graph(input_path, config)
    analyzer = CommunityAnalyzer.from_config(config)
    snapshot = analyzer.build_snapshot(graph)

    try:
        if all_pairs:
            results = analyzer.decomposer.decompose_all_pairs(snapshot)
        else:
            results = [analyzer.decomposer.decompose(snapshot, subgroup_a, subgroup_b)]
    except UnknownSubgroupError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    if not results:
        console.print("[yellow]Fewer than two subgroups in this roster.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("A")
    table.add_column("B")
    table.add_column("β₀/β₁ A", justify="center")
    table.add_column("β₀/β₁ B", justify="center")
    table.add_column("β₀/β₁ A∩B", justify="center")
    table.add_column("ker i₀", justify="right")
    table.add_column("coker i₁", justify="right")
    table.add_column("Crossing", justify="right")
    table.add_column("Health", justify="right")

    for r in results:
        table.add_row(
            r.subgroup_a,
            r.subgroup_b,
            f"{r.h0_a}/{r.h1_a}",
            f"{r.h0_b}/{r.h1_b}",
            f"{r.h0_intersection}/{r.h1_intersection}",
            str(r.kernel_i0),
            str(r.cokernel_i1),
            str(r.interface.connection_count) if r.interface else "-",
            f"{r.community_health:.1f}",
        )

    console.print(table)
    if len(results) == 1:
        console.print(f"\n{results[0].diagnosis}")


@cli.command()
@click.option(
    "--input", "-i",
    "input_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Roster file (.csv or .json)",
)
@click.option("--top-n", "-n", default=None, type=int, help="Number of slots to show")
@click.pass_context
def schedule(ctx: click.Context, input_path: str, top_n: Optional[int]) -> None:
    """Recommend event times that reach isolated and bridge members."""
    from community_topology.pipeline.analyzer import CommunityAnalyzer

    config = ctx.obj["config"]
    _, graph = _load_graph(input_path, config)
    analyzer = CommunityAnalyzer.from_config(config)
    snapshot = analyzer.build_snapshot(graph)
    slots = analyzer.scheduler.find_optimal_event_times(snapshot, top_n=top_n)

    if not slots:
        console.print(
            f"\n[yellow]No slot has at least {analyzer.scheduler.min_attendance} "
            "available members[/yellow]"
        )
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Slot")
    table.add_column("Available", justify="right")
    table.add_column("Coverage", justify="right")
    table.add_column("Score", justify="right")

    for i, s in enumerate(slots, 1):
        table.add_row(
            str(i),
            s.slot.label,
            str(s.available_count),
            f"{s.community_coverage:.0%}",
            f"{s.combined_score:.1f}",
        )

    console.print(table)


@cli.command()
@click.option(
    "--input", "-i",
    "input_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Roster file (.csv or .json)",
)
@click.argument("member_a")
@click.argument("member_b")
@click.pass_context
def explain(ctx: click.Context, input_path: str, member_a: str, member_b: str) -> None:
    """Show how the connection between two members is scored."""
    from community_topology.pipeline.analyzer import CommunityAnalyzer

    config = ctx.obj["config"]
    _, graph = _load_graph(input_path, config)

    a = graph.get_member(member_a)
    b = graph.get_member(member_b)
    missing = [mid for mid, m in ((member_a, a), (member_b, b)) if m is None]
    if missing:
        console.print(f"[red]Unknown member id: {', '.join(missing)}[/red]")
        sys.exit(1)

    synthesizer = CommunityAnalyzer.from_config(config).synthesizer
    breakdown = synthesizer.get_strength_breakdown(a, b)

    console.print(f"\n[bold]{a.display_name}[/bold] ↔ [bold]{b.display_name}[/bold]")
    table = Table(show_header=True, header_style="bold")
    table.add_column("Signal")
    table.add_column("Contribution", justify="right")
    for signal, value in breakdown["by_type"].items():
        table.add_row(signal, f"{value:.2f}")
    table.add_row("[bold]total[/bold]", f"[bold]{breakdown['total']:.2f}[/bold]")
    console.print(table)

    console.print(f"Free-time overlap: {breakdown['overlap_hours']}h")
    if breakdown["shared_subgroups"]:
        console.print(f"Shared subgroups: {', '.join(breakdown['shared_subgroups'])}")
    if breakdown["creates_edge"]:
        strong = " (strong)" if breakdown["is_strong"] else ""
        console.print(f"[green]Connected[/green] as {breakdown['primary_type']}{strong}")
    else:
        console.print("[dim]Not connected[/dim]")


@cli.command()
@click.option(
    "--input", "-i",
    "input_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Roster file (.csv or .json)",
)
@click.pass_context
def stats(ctx: click.Context, input_path: str) -> None:
    """Show quick statistics about a roster."""
    config = ctx.obj["config"]

    console.print("\n[bold blue]Roster Statistics[/bold blue]")
    console.print("=" * 50)

    roster, graph = _load_graph(input_path, config)

    console.print(f"\n[bold]Source:[/bold] {roster.source_file}")
    if roster.errors:
        console.print(f"\n[dim]Rows skipped:[/dim]")
        for error in roster.errors:
            console.print(f"  • {error}")

    console.print(f"\n[bold]Data Summary:[/bold]")
    table = Table(show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Count", justify="right")

    table.add_row("Members", str(len(graph.members)))
    table.add_row("Subgroups", str(len(graph.subgroup_members)))
    table.add_row("With class schedule", str(sum(1 for m in graph.members if m.class_schedule)))
    table.add_row("With check-in rating", str(sum(1 for m in graph.members if m.last_rating is not None)))
    table.add_row("Follow-up flagged", str(sum(1 for m in graph.members if m.follow_up_needed)))

    console.print(table)

    if graph.subgroup_members:
        console.print(f"\n[bold]Subgroups:[/bold]")
        table = Table(show_header=True, header_style="bold")
        table.add_column("Subgroup")
        table.add_column("Members", justify="right")
        for label in graph.subgroup_labels:
            table.add_row(label, str(len(graph.subgroup_members[label])))
        console.print(table)

    courses: dict[str, int] = {}
    for member in graph.members:
        for course in member.courses:
            courses[course] = courses.get(course, 0) + 1

    if courses:
        top_courses = sorted(courses.items(), key=lambda x: x[1], reverse=True)[:10]

        console.print(f"\n[bold]Most Shared Courses:[/bold]")
        table = Table(show_header=True, header_style="bold")
        table.add_column("Course")
        table.add_column("Members", justify="right")

        for course, count in top_courses:
            table.add_row(course, str(count))

        console.print(table)

    console.print()


@cli.command()
@click.pass_context
def version(ctx: click.Context) -> None:
    """Show version information."""
    from community_topology import __version__

    console.print(f"Community Topology v{__version__}")


def main() -> None:
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
