# Copyright (c) Syntropy Systems
"""megaverse analyze command."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from megaverse.cli.common import (
    KIND_LABELS,
    console,
    fail,
    goal_reader,
    resolve_config,
)
from megaverse.domain import ObjectKind
from megaverse.errors import InvalidGoalError
from megaverse.patterns import render
from megaverse.translator import analyze_goal


def analyze(
    goal_file: Optional[Path] = typer.Option(
        None,
        "--goal-file", "-f",
        exists=True,
        dir_okay=False,
        help="Read the goal grid from a JSON file instead of the API",
    ),
    show_grid: bool = typer.Option(
        False,
        "--show-grid", "-g",
        help="Print a preview of the grid",
    ),
    candidate_id: Optional[str] = typer.Option(
        None,
        "--candidate-id",
        envvar="MEGAVERSE_CANDIDATE_ID",
        help="Candidate identifier for the API",
    ),
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        envvar="MEGAVERSE_BASE_URL",
        help="API base URL",
    ),
) -> None:
    """Show what the goal map asks for, without changing anything."""
    config = resolve_config(candidate_id, base_url)

    with goal_reader(config, goal_file) as reader:
        goal = reader.fetch_goal()

    if goal.error is not None or goal.goal is None:
        raise fail(f"Failed to retrieve goal map: {goal.error or 'no grid'}")
    try:
        analysis = analyze_goal(goal.goal)
    except InvalidGoalError as e:
        raise fail(str(e)) from e

    table = Table(show_header=True, header_style="bold")
    table.add_column("Cells")
    table.add_column("Count", justify="right")
    for kind in ObjectKind.creation_order():
        table.add_row(KIND_LABELS[kind], str(analysis.count_of(kind)))
    table.add_row("Empty", str(analysis.space_count))
    if analysis.unknown_count:
        table.add_row("[yellow]Unknown[/yellow]", str(analysis.unknown_count))
    table.add_row("[bold]Objects[/bold]", f"[bold]{analysis.total_objects}[/bold]")

    console.print(f"\n[bold]Goal map[/bold] {analysis.rows}x{analysis.columns}")
    console.print(table)
    if show_grid:
        console.print(render(goal.goal))
