# Copyright (c) Syntropy Systems
"""Main CLI entry point for megaverse."""

import logging

import typer

from megaverse.cli.analyze import analyze
from megaverse.cli.build import build
from megaverse.cli.clear import clear
from megaverse.cli.init_cmd import init
from megaverse.cli.pattern import pattern

app = typer.Typer(
    name="megaverse",
    help=(
        "Build a megaverse from its goal map. Retries transient failures, "
        "respects rate limits, reports every failed cell."
    ),
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    verbose: int = typer.Option(
        0,
        "--verbose", "-v",
        count=True,
        help="Log progress (-v) or every call (-vv)",
    ),
) -> None:
    """Configure logging for all commands."""
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Register commands
_ = app.command()(init)
_ = app.command()(analyze)
_ = app.command()(build)
_ = app.command()(pattern)
_ = app.command()(clear)


if __name__ == "__main__":
    app()
