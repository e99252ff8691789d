"""``tagrelease match REF`` — check whether a reference would trigger a run."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape

from tagrelease.config import ReleaseSettings
from tagrelease.core.trigger import TriggerMatcher

console = Console()


def match_cmd(
    ref: str = typer.Argument(..., help="Reference to test, e.g. refs/tags/v1.2.3."),
    pattern: str | None = typer.Option(
        None,
        "--pattern",
        help="Tag glob (default from settings: v*).",
    ),
) -> None:
    """Exit 0 if REF triggers a release, 1 otherwise."""
    matcher = TriggerMatcher(pattern or ReleaseSettings().tag_pattern)
    if matcher.matches(ref):
        console.print(f"[green]{escape(ref)} matches {escape(repr(matcher.pattern))}[/green]")
        return
    console.print(f"[yellow]{escape(ref)} does not match {escape(repr(matcher.pattern))}[/yellow]")
    raise typer.Exit(code=1)
