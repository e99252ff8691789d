"""Rich terminal renderer for run summaries, descriptor tables and history.

Color scheme
------------
- green  : SUCCEEDED / COMPLETED / uploaded
- red    : FAILED / upload failed
- yellow : RUNNING / partial
- dim    : PENDING / not triggered
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tagrelease.models.jobs import JobStatus
from tagrelease.models.ledger import LedgerEntry
from tagrelease.models.pipeline import FailureStage, PipelineState, RunSummary
from tagrelease.models.platforms import PlatformDescriptor

_JOB_ICONS: dict[JobStatus, str] = {
    JobStatus.SUCCEEDED: "[green]SUCCEEDED[/green]",
    JobStatus.FAILED: "[bold red]FAILED[/bold red]",
    JobStatus.RUNNING: "[yellow]RUNNING[/yellow]",
    JobStatus.PENDING: "[dim]PENDING[/dim]",
}

_FAILURE_LABELS: dict[FailureStage, str] = {
    FailureStage.BUILD: "build stage",
    FailureStage.CREATE_RELEASE: "release creation",
    FailureStage.UPLOAD: "asset upload (release is PARTIAL)",
}


class SummaryRenderer:
    """Renders pipeline output as Rich renderables.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Run summary
    # ------------------------------------------------------------------

    def render_summary(self, summary: RunSummary) -> Panel:
        if not summary.triggered:
            return Panel(
                f"[dim]{escape(summary.reference)} does not match the release pattern; "
                "nothing was built or published.[/dim]",
                title="[bold]tagrelease[/bold]",
                border_style="dim",
                padding=(1, 2),
            )

        parts: list[object] = [self._build_job_table(summary)]

        if summary.uploads:
            parts.extend([Text(""), self._build_upload_table(summary)])

        lines = [
            f"[bold]Run:[/bold] {escape(summary.run_id)}",
            f"[bold]Tag:[/bold] {escape(summary.tag or '-')}",
            f"[bold]State:[/bold] {self._state_markup(summary.state)}",
        ]
        if summary.release is not None:
            release = summary.release
            lines.append(f"[bold]Release:[/bold] {escape(release.release_id)}")
            if release.url:
                lines.append(f"[bold]URL:[/bold] {escape(release.url)}")
            attached = escape(", ".join(release.attached_artifacts)) or "-"
            lines.append(f"[bold]Attached:[/bold] {attached}")
        if summary.failure_stage != FailureStage.NONE:
            lines.append(
                f"[bold red]Failed in:[/bold red] {_FAILURE_LABELS[summary.failure_stage]}"
            )
            if summary.failure_stage == FailureStage.BUILD and summary.artifacts_in_store:
                lines.append(
                    "[yellow]Unpublished artifacts left in store:[/yellow] "
                    + escape(", ".join(summary.artifacts_in_store))
                )
        if summary.error:
            lines.append(f"[red]{escape(summary.error)}[/red]")

        parts.extend([Text(""), Text.from_markup("\n".join(lines))])
        border = "green" if summary.succeeded else "red"
        return Panel(
            Group(*parts),
            title="[bold]Release Run[/bold]",
            border_style=border,
            padding=(1, 2),
        )

    def _build_job_table(self, summary: RunSummary) -> Table:
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("Platform", min_width=16)
        table.add_column("Status", justify="center", min_width=12)
        table.add_column("Asset", min_width=20)
        table.add_column("Details")

        for job in summary.jobs:
            details = f"[red]{escape(job.error)}[/red]" if job.error else "[dim]-[/dim]"
            table.add_row(
                escape(job.platform_id),
                _JOB_ICONS.get(job.status, job.status.value),
                escape(job.descriptor.published_asset_name),
                details,
            )
        return table

    def _build_upload_table(self, summary: RunSummary) -> Table:
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("Asset", min_width=20)
        table.add_column("Upload", justify="center")
        table.add_column("Error")
        for outcome in summary.uploads:
            status = "[green]uploaded[/green]" if outcome.uploaded else "[bold red]failed[/bold red]"
            table.add_row(escape(outcome.key), status, escape(outcome.error) if outcome.error else "[dim]-[/dim]")
        return table

    @staticmethod
    def _state_markup(state: PipelineState) -> str:
        if state == PipelineState.COMPLETED:
            return "[bold green]COMPLETED[/bold green]"
        if state == PipelineState.FAILED:
            return "[bold red]FAILED[/bold red]"
        return f"[yellow]{state.value.upper()}[/yellow]"

    def print_summary(self, summary: RunSummary) -> None:
        self.console.print(self.render_summary(summary))

    # ------------------------------------------------------------------
    # Descriptors
    # ------------------------------------------------------------------

    def render_platforms(self, platforms: Sequence[PlatformDescriptor]) -> Table:
        table = Table(title="Release Platforms", header_style="bold cyan")
        table.add_column("Platform", style="cyan")
        table.add_column("Raw artifact")
        table.add_column("Published asset", style="green")
        table.add_column("Target", style="dim")
        for p in platforms:
            table.add_row(
                escape(p.platform_id),
                escape(p.raw_artifact_name),
                escape(p.published_asset_name),
                escape(p.target) if p.target else "-",
            )
        return table

    # ------------------------------------------------------------------
    # Ledger history
    # ------------------------------------------------------------------

    def render_history(self, run_id: str, entries: Sequence[LedgerEntry]) -> Table:
        table = Table(title=f"Run {escape(run_id)}", header_style="bold cyan", expand=True)
        table.add_column("Time", style="dim", width=10)
        table.add_column("Subject", min_width=20)
        table.add_column("Transition", min_width=18)
        table.add_column("Detail")
        for entry in entries:
            table.add_row(
                entry.timestamp_utc.strftime("%H:%M:%S"),
                escape(entry.subject),
                escape(entry.transition),
                escape(entry.detail) if entry.detail else "[dim]-[/dim]",
            )
        return table

    def print_chain_verification(self, run_id: str, valid: bool) -> None:
        if valid:
            self.console.print(f"[green]Ledger chain for run {run_id} is valid.[/green]")
        else:
            self.console.print(f"[bold red]Ledger chain for run {run_id} is BROKEN![/bold red]")
