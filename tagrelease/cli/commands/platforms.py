"""``tagrelease platforms`` — show and validate the build matrix."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from tagrelease.errors import DuplicateKeyError, PlatformConfigError
from tagrelease.models.pipeline import ExitCode
from tagrelease.models.platforms import (
    DEFAULT_PLATFORMS,
    PlatformDescriptor,
    load_platforms,
    validate_platforms,
)
from tagrelease.monitor.renderer import SummaryRenderer

console = Console()


def resolve_platforms(platforms_file: Path | None) -> list[PlatformDescriptor]:
    """Load descriptors from ``platforms_file`` or fall back to the defaults."""
    if platforms_file is None:
        platforms = list(DEFAULT_PLATFORMS)
        validate_platforms(platforms)
        return platforms
    return load_platforms(platforms_file)


def platforms_cmd(
    platforms_file: Path | None = typer.Option(
        None,
        "--platforms",
        "-p",
        help="TOML file of [[platform]] tables; defaults to the built-in matrix.",
    ),
) -> None:
    """List the platform descriptors a run would build."""
    try:
        platforms = resolve_platforms(platforms_file)
    except (DuplicateKeyError, PlatformConfigError) as exc:
        console.print(f"[bold red]Configuration error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=int(ExitCode.CONFIG_ERROR))

    console.print(SummaryRenderer(console=console).render_platforms(platforms))
