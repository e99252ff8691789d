"""Main Typer application — registers all CLI commands.

Entry point: ``tagrelease`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from tagrelease.cli.commands.history import history_cmd
from tagrelease.cli.commands.match import match_cmd
from tagrelease.cli.commands.platforms import platforms_cmd
from tagrelease.cli.commands.run import run_cmd
from tagrelease.config import ReleaseSettings

app = typer.Typer(
    name="tagrelease",
    help="tagrelease: tag-triggered multi-platform build and release pipeline.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

app.command(name="run", help="Build all platforms and publish a release for a tag.")(run_cmd)
app.command(name="match", help="Check whether a reference triggers a release.")(match_cmd)
app.command(name="platforms", help="List the platform build matrix.")(platforms_cmd)
app.command(name="history", help="Show the recorded ledger of a run.")(history_cmd)


def configure_logging(level: str) -> None:
    """Route stdlib logging through Rich on stderr."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=Console(stderr=True),
                show_path=False,
                rich_tracebacks=True,
            )
        ],
        force=True,
    )


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log at DEBUG regardless of settings."
    ),
) -> None:
    """Configure logging before any command runs."""
    configure_logging("DEBUG" if verbose else ReleaseSettings().log_level)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
