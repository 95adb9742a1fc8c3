# Copyright (c) Syntropy Systems
"""megaverse clear command."""

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
)


def clear(
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show what would be deleted, without network calls (needs --goal-file)",
    ),
    goal_file: Optional[Path] = typer.Option(
        None,
        "--goal-file", "-f",
        exists=True,
        dir_okay=False,
        help="Read the goal grid from a JSON file instead of the API",
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
    """Delete every object the goal map places.

    comETHs and SOLoons go first so no POLYanet is removed from under them.
    """
    config = resolve_config(candidate_id, base_url)

    with endpoints(config, dry_run, goal_file) as (reader, writer):
        target = load_target(reader)
        console.print(f"Deleting {target.total_objects} objects...")

        with cancellable() as pacer:
            orchestrator = build_orchestrator(
                config,
                writer,
                pacer,
                0.0 if dry_run else config.inter_call_delay,
            )
            result = orchestrator.teardown(target)

    show_summary(result, verb="Would delete" if dry_run else "Deleted")
    raise typer.Exit(exit_code(result))
