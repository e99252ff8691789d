"""Runtime configuration — env-driven via pydantic-settings.

Reads from a ``.env`` file and ``TAGRELEASE_*`` environment variables.
Credentials are deliberately absent: the ``gh`` CLI owns authentication.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class ReleaseSettings(BaseSettings):
    """Pipeline settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export TAGRELEASE_TAG_PATTERN='release-*'
        export TAGRELEASE_LOG_LEVEL=DEBUG
        export TAGRELEASE_REPOSITORY=owner/project

    Build command and artifact directory are templates. Available fields:
    ``{target}``, ``{platform_id}``, ``{target_dir}``, ``{work_dir}`` and
    ``{source_dir}``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TAGRELEASE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime
    log_level: str = "INFO"

    # Trigger
    tag_pattern: str = "v*"

    # Storage paths; each run gets its own subdirectory
    work_dir: Path = Path(".tagrelease/work")
    artifact_store_path: Path = Path(".tagrelease/artifacts")
    ledger_path: Path = Path(".tagrelease/ledger.db")

    # Build stage
    max_parallel_builds: int = 3
    build_command: str = (
        "cargo build --release --target {target} --target-dir {target_dir}"
    )
    artifact_dir: str = "{target_dir}/{target}/release"
    build_timeout_seconds: float | None = None
    build_env: dict[str, str] = {"CARGO_TERM_COLOR": "always"}

    # Publish stage
    gh_path: str = "gh"
    repository: str = ""  # OWNER/NAME; empty means the gh default for the cwd
    release_title_template: str = "Release {tag}"
    gh_timeout_seconds: float = 300.0
