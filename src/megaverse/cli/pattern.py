# Copyright (c) Syntropy Systems
"""megaverse pattern command."""

from typing import Optional

import typer

from megaverse.cli.common import (
    build_orchestrator,
    cancellable,
    console,
    exit_code,
    open_client,
    resolve_config,
    show_summary,
)
from megaverse.endpoint import DryRunEndpoint
from megaverse.patterns import PHASE_ONE_SIZE, render, x_pattern
from megaverse.translator import translate


def pattern(
    size: int = typer.Option(
        PHASE_ONE_SIZE,
        "--size",
        min=1,
        help="Grid size of the X pattern",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Preview and simulate without any network calls",
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
    """Place the fixed X pattern of POLYanets.

    Uses the shorter pattern delay between calls.
    """
    config = resolve_config(candidate_id, base_url)
    grid = x_pattern(size)
    target = translate(grid)

    console.print(f"\n[bold]X pattern ({size}x{size})[/bold]")
    console.print(render(grid))
    console.print(f"[dim]POLYanets:[/dim] {len(target.polyanets)}\n")

    if dry_run:
        console.print("[dim]Dry run: no network calls will be made[/dim]")
        writer = DryRunEndpoint(grid)
        with cancellable() as pacer:
            result = build_orchestrator(config, writer, pacer, 0.0).run(target)
    else:
        with open_client(config) as client, cancellable() as pacer:
            orchestrator = build_orchestrator(
                config, client, pacer, config.pattern_delay
            )
            result = orchestrator.run(target)

    show_summary(result, verb="Would create" if dry_run else "Created")
    raise typer.Exit(exit_code(result))
