"""``tagrelease run --ref REF`` — execute the release pipeline for a reference.

Builds every platform in parallel, then creates the release and uploads
the renamed artifacts. Exit codes tell the build stage apart from the
publish stage so callers can react without parsing output.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from tagrelease.cli.commands.platforms import resolve_platforms
from tagrelease.config import ReleaseSettings
from tagrelease.core.builders import SubprocessBuilder
from tagrelease.core.controller import PipelineController
from tagrelease.core.release_client import DryRunReleaseClient, GhReleaseClient, ReleaseClient
from tagrelease.errors import DuplicateKeyError, PlatformConfigError
from tagrelease.models.pipeline import ExitCode
from tagrelease.models.trigger import TriggerEvent
from tagrelease.monitor.renderer import SummaryRenderer

console = Console()


def run_cmd(
    ref: str = typer.Option(
        ...,
        "--ref",
        "-r",
        help="Pushed reference, e.g. refs/tags/v1.2.3.",
    ),
    source: Path = typer.Option(
        Path("."),
        "--source",
        "-s",
        help="Checked-out source tree to build.",
    ),
    commit: str = typer.Option(
        "",
        "--commit",
        help="Commit SHA of the snapshot, recorded for reference.",
    ),
    platforms_file: Path | None = typer.Option(
        None,
        "--platforms",
        "-p",
        help="TOML file of [[platform]] tables; defaults to the built-in matrix.",
    ),
    pattern: str | None = typer.Option(
        None,
        "--pattern",
        help="Tag glob that triggers a release (default from settings: v*).",
    ),
    repo: str | None = typer.Option(
        None,
        "--repo",
        help="OWNER/NAME of the repository to release into.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Build for real but keep the release in memory instead of calling gh.",
    ),
) -> None:
    """Run the tag-triggered release pipeline."""
    settings = ReleaseSettings()
    overrides: dict[str, object] = {}
    if pattern is not None:
        overrides["tag_pattern"] = pattern
    if repo is not None:
        overrides["repository"] = repo
    if overrides:
        settings = settings.model_copy(update=overrides)

    try:
        platforms = resolve_platforms(platforms_file)
        client: ReleaseClient
        if dry_run:
            client = DryRunReleaseClient()
        else:
            client = GhReleaseClient(
                gh_path=settings.gh_path,
                repository=settings.repository,
                cwd=source,
                timeout=settings.gh_timeout_seconds,
            )
        controller = PipelineController(
            SubprocessBuilder.from_settings(settings, source),
            client,
            platforms=platforms,
            settings=settings,
        )
    except (DuplicateKeyError, PlatformConfigError) as exc:
        console.print(f"[bold red]Configuration error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=int(ExitCode.CONFIG_ERROR))

    summary = controller.run(
        TriggerEvent(reference=ref, snapshot=source, commit_sha=commit)
    )

    console.print()
    SummaryRenderer(console=console).print_summary(summary)
    raise typer.Exit(code=summary.exit_code)
