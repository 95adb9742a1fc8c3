# Copyright (c) Syntropy Systems
"""megaverse init command."""

from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console

from megaverse.config import CONFIG_DIR_NAME, CONFIG_FILE_NAME, MegaverseConfig

console = Console()


def init(
    path: Path = typer.Argument(
        Path(),
        help="Directory to initialize (default: current directory)",
    ),
    candidate_id: Optional[str] = typer.Option(
        None,
        "--candidate-id",
        envvar="MEGAVERSE_CANDIDATE_ID",
        help="Candidate identifier to store in the config",
    ),
) -> None:
    """Initialize a megaverse project.

    Creates a .megaverse directory with a default configuration.
    """
    target = path.resolve()
    config_dir = target / CONFIG_DIR_NAME

    if config_dir.exists():
        console.print(f"[yellow]Already initialized:[/yellow] {config_dir}")
        return

    config_dir.mkdir(parents=True)
    config = MegaverseConfig(candidate_id=candidate_id)

    config_path = config_dir / CONFIG_FILE_NAME
    with config_path.open("w") as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)

    console.print(f"[green]Initialized megaverse project:[/green] {config_dir}")
    console.print(f"  [dim]config:[/dim] {config_path}")
    if candidate_id is None:
        console.print("  [dim]set candidate_id in the config or MEGAVERSE_CANDIDATE_ID[/dim]")
