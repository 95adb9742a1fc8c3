# Copyright (c) Syntropy Systems
"""megaverse build command."""

from pathlib import Path
from typing import Optional

import typer

from megaverse.cli.common import (
    build_orchestrator,
    cancellable,
    console,
    endpoints,
    exit_code,
    load_target,
    resolve_config,
    show_summary,
    show_target,
)


def build(
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Simulate in memory without network calls (needs --goal-file)",
    ),
    goal_file: Optional[Path] = typer.Option(
        None,
        "--goal-file", "-f",
        exists=True,
        dir_okay=False,
        help="Read the goal grid from a JSON file instead of the API",
    ),
    concurrency: Optional[int] = typer.Option(
        None,
        "--concurrency", "-c",
        help="Submissions in flight at once (default from config: 1)",
    ),
    delay: Optional[float] = typer.Option(
        None,
        "--delay",
        help="Seconds between submissions (default from config: 1.0)",
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
    """
    Build the megaverse described by the goal map.

    Fetches the goal, creates POLYanets, then SOLoons, then comETHs, and
    prints a summary with every failed cell.

    Examples:

        megaverse build --candidate-id <id>

        megaverse build --dry-run --goal-file goal.json
    """
    config = resolve_config(candidate_id, base_url, concurrency)
    inter_call_delay = config.inter_call_delay if delay is None else delay
    if dry_run:
        console.print("[dim]Dry run: no network calls will be made[/dim]")
        inter_call_delay = 0.0

    with endpoints(config, dry_run, goal_file) as (reader, writer):
        target = load_target(reader)
        show_target(target)

        with cancellable() as pacer:
            orchestrator = build_orchestrator(config, writer, pacer, inter_call_delay)
            result = orchestrator.run(target)

    show_summary(result, verb="Would create" if dry_run else "Created")
    raise typer.Exit(exit_code(result))
