"""``tagrelease history [RUN_ID]`` — show recorded transitions for a run."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from tagrelease.config import ReleaseSettings
from tagrelease.core.run_ledger import RunLedger
from tagrelease.errors import LedgerIntegrityError
from tagrelease.monitor.renderer import SummaryRenderer

console = Console()


def history_cmd(
    run_id: str | None = typer.Argument(
        None,
        help="Run to show. Lists known runs when omitted.",
    ),
    ledger_db: Path | None = typer.Option(
        None,
        "--ledger",
        "-l",
        help="Path to the ledger SQLite database (default from settings).",
    ),
) -> None:
    """Show the ledger for a run and verify its hash chain."""
    db_path = ledger_db or ReleaseSettings().ledger_path
    if not db_path.exists():
        console.print(f"[bold red]Ledger not found:[/bold red] {db_path}")
        raise typer.Exit(code=1)

    ledger = RunLedger(db_path)
    renderer = SummaryRenderer(console=console)

    if run_id is None:
        run_ids = ledger.get_all_run_ids()
        if not run_ids:
            console.print("[dim]No runs recorded.[/dim]")
            return
        for rid in run_ids:
            console.print(rid)
        return

    entries = ledger.get_run_entries(run_id)
    if not entries:
        console.print(f"[bold red]No entries for run {escape(run_id)}.[/bold red]")
        raise typer.Exit(code=1)

    console.print(renderer.render_history(run_id, entries))
    try:
        valid = ledger.verify_chain(run_id)
    except LedgerIntegrityError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        valid = False
    renderer.print_chain_verification(run_id, valid)
    if not valid:
        raise typer.Exit(code=1)
