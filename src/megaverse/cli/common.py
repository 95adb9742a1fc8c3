# Copyright (c) Syntropy Systems
"""Helpers shared by the megaverse commands."""
from __future__ import annotations

import json
import signal
from contextlib import contextmanager
from typing import TYPE_CHECKING, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from megaverse.client import MegaverseClient
from megaverse.config import load_config
from megaverse.domain import ObjectKind
from megaverse.endpoint import DryRunEndpoint
from megaverse.errors import InvalidGoalError
from megaverse.models.api import GoalResponse
from megaverse.orchestrator import CreationOrchestrator
from megaverse.pacing import Pacer
from megaverse.submitter import ObjectSubmitter
from megaverse.translator import translate_goal

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from megaverse.config import MegaverseConfig
    from megaverse.domain import TargetObjectSet
    from megaverse.endpoint import PlacementEndpoint
    from megaverse.results import BatchResult

console = Console()

KIND_LABELS = {
    ObjectKind.POLYANET: "POLYanets",
    ObjectKind.SOLOON: "SOLoons",
    ObjectKind.COMETH: "comETHs",
}


def fail(message: str) -> typer.Exit:
    """Print an error and build the exit to raise."""
    console.print(f"[red]Error:[/red] {message}")
    return typer.Exit(1)


def read_goal_file(path: Path) -> GoalResponse:
    """Load a goal from a JSON file holding ``{"goal": [...]}`` or a bare grid."""
    try:
        data = json.loads(path.read_text())
    except (OSError, ValueError) as e:
        return GoalResponse(error=f"Cannot read goal file {path}: {e}")

    if isinstance(data, list):
        data = {"goal": data}
    try:
        return GoalResponse.model_validate(data)
    except ValidationError:
        return GoalResponse(error=f"Goal file {path} has an invalid structure")


def resolve_config(
    candidate_id: Optional[str],
    base_url: Optional[str],
    concurrency: Optional[int] = None,
) -> MegaverseConfig:
    """Load file configuration and apply command-line overrides."""
    config = load_config()
    if candidate_id:
        config.candidate_id = candidate_id
    if base_url:
        config.base_url = base_url
    if concurrency is not None:
        if concurrency < 1:
            raise fail("--concurrency must be at least 1")
        config.concurrency = concurrency
    return config


def open_client(config: MegaverseConfig) -> MegaverseClient:
    """HTTP client for the configured candidate, exiting if none is set."""
    if not config.candidate_id:
        raise fail(
            "No candidate id. Pass --candidate-id or set MEGAVERSE_CANDIDATE_ID."
        )
    return MegaverseClient(
        config.candidate_id,
        base_url=config.base_url,
        timeout=config.timeout,
    )


@contextmanager
def goal_reader(
    config: MegaverseConfig,
    goal_file: Optional[Path] = None,
) -> Iterator[PlacementEndpoint]:
    """Yield an endpoint that supplies the goal, from a file or the API."""
    if goal_file is not None:
        yield DryRunEndpoint.from_goal(read_goal_file(goal_file))
        return
    with open_client(config) as client:
        yield client


@contextmanager
def endpoints(
    config: MegaverseConfig,
    dry_run: bool,
    goal_file: Optional[Path] = None,
) -> Iterator[tuple[PlacementEndpoint, PlacementEndpoint]]:
    """Yield (reader, writer) endpoints for a run.

    The reader supplies the goal; the writer receives placements. Dry runs
    make no network calls, so they read the goal from a file.
    """
    if dry_run:
        if goal_file is None:
            raise fail("--dry-run needs --goal-file (dry runs make no network calls)")
        yield DryRunEndpoint.from_goal(read_goal_file(goal_file)), DryRunEndpoint()
        return

    with open_client(config) as client:
        if goal_file is not None:
            yield DryRunEndpoint.from_goal(read_goal_file(goal_file)), client
        else:
            yield client, client


def load_target(reader: PlacementEndpoint) -> TargetObjectSet:
    """Fetch the goal and translate it, exiting on a bad goal."""
    try:
        return translate_goal(reader.fetch_goal())
    except InvalidGoalError as e:
        raise fail(str(e)) from e


def build_orchestrator(
    config: MegaverseConfig,
    endpoint: PlacementEndpoint,
    pacer: Pacer,
    inter_call_delay: float,
) -> CreationOrchestrator:
    """Wire submitter and orchestrator from configuration."""
    submitter = ObjectSubmitter(
        endpoint,
        max_retries=config.max_retries,
        retry_delay=config.retry_delay,
        rate_limit_delay=config.rate_limit_delay,
        pacer=pacer,
    )
    return CreationOrchestrator(
        submitter,
        inter_call_delay=inter_call_delay,
        concurrency=config.concurrency,
        pacer=pacer,
    )


@contextmanager
def cancellable() -> Iterator[Pacer]:
    """Yield a pacer that SIGINT/SIGTERM cancel; restore handlers after."""
    pacer = Pacer()

    def _signal_handler(signum: int, frame: object) -> None:
        console.print("\n[yellow]Shutdown requested, finishing in-flight calls...[/yellow]")
        pacer.cancel()

    previous = {
        sig: signal.signal(sig, _signal_handler)
        for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        yield pacer
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


def show_target(target: TargetObjectSet) -> None:
    """Print what a target set will create."""
    console.print(f"[dim]grid:[/dim] {target.rows}x{target.columns}")
    for kind in ObjectKind.creation_order():
        console.print(f"  [dim]{KIND_LABELS[kind]}:[/dim] {len(target.objects_of(kind))}")
    console.print(f"  [dim]empty:[/dim] {len(target.empties)}")
    for diagnostic in target.diagnostics:
        console.print(f"[yellow]Warning:[/yellow] {diagnostic}")


def show_summary(result: BatchResult, verb: str = "Created") -> None:
    """Print totals and every failure with its last error."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Kind")
    table.add_column("Succeeded", justify="right")
    table.add_column("Submitted", justify="right")

    for kind in ObjectKind.creation_order():
        table.add_row(
            KIND_LABELS[kind],
            str(result.succeeded[kind]),
            str(result.counts[kind]),
        )
    table.add_row(
        "[bold]Total[/bold]",
        f"[bold]{result.success_count}[/bold]",
        f"[bold]{result.total}[/bold]",
    )
    console.print(table)

    if result.failures:
        console.print(f"\n[red]{result.failure_count} failed:[/red]")
        for outcome in result.failures:
            console.print(
                f"  {outcome.kind.value} {outcome.position}: {outcome.error}"
            )

    if result.cancelled:
        console.print("[yellow]Run cancelled before completion[/yellow]")
    elif result.is_fully_successful:
        console.print(f"[green]{verb} {result.success_count} objects[/green]")
    else:
        console.print(
            f"[yellow]{verb} {result.success_count} objects, "
            f"{result.failure_count} failed[/yellow]"
        )


def exit_code(result: BatchResult) -> int:
    """0 for a complete, fully successful run, else 1."""
    return 0 if result.is_fully_successful and not result.cancelled else 1
