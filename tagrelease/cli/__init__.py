"""tagrelease CLI — Typer-based command-line interface.

Provides the ``tagrelease`` command with subcommands for running the
release pipeline, checking references, listing the platform matrix and
reading run history.

All output uses Rich for formatted terminal display.
"""
