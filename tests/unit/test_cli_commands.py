"""Unit tests for the CLI — Typer command registration and behavior.

Runs the real SubprocessBuilder against a tiny Python "build tool", with
``--dry-run`` so no release host is contacted.
"""

from __future__ import annotations

import shlex
import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

from tagrelease.cli.app import app
from tagrelease.core.run_ledger import RunLedger

runner = CliRunner()

_FAKE_BUILD = """\
import pathlib, sys
work, platform_id = pathlib.Path(sys.argv[1]), sys.argv[2]
if platform_id in sys.argv[3:]:
    print("error: build broke", file=sys.stderr)
    sys.exit(1)
out = work / "out"
out.mkdir(parents=True, exist_ok=True)
for name in ("boot", "boot.exe"):
    (out / name).write_bytes(platform_id.encode())
"""


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point every setting at the temp dir and use the fake build tool."""
    monkeypatch.chdir(tmp_path)
    script = tmp_path / "fake_build.py"
    script.write_text(_FAKE_BUILD)
    monkeypatch.setenv("TAGRELEASE_WORK_DIR", str(tmp_path / "work"))
    monkeypatch.setenv("TAGRELEASE_ARTIFACT_STORE_PATH", str(tmp_path / "store"))
    monkeypatch.setenv("TAGRELEASE_LEDGER_PATH", str(tmp_path / "ledger.db"))
    monkeypatch.setenv("TAGRELEASE_ARTIFACT_DIR", "{work_dir}/out")
    monkeypatch.setenv(
        "TAGRELEASE_BUILD_COMMAND",
        f"{shlex.quote(sys.executable)} {shlex.quote(str(script))} {{work_dir}} {{platform_id}}",
    )
    return tmp_path


def _fail_platform(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, platform_id: str) -> None:
    script = tmp_path / "fake_build.py"
    monkeypatch.setenv(
        "TAGRELEASE_BUILD_COMMAND",
        f"{shlex.quote(sys.executable)} {shlex.quote(str(script))} "
        f"{{work_dir}} {{platform_id}} {platform_id}",
    )


# ---------------------------------------------------------------------------
# Test: CLI help and registration
# ---------------------------------------------------------------------------


class TestCliApp:
    """The CLI must register all expected commands and show help."""

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        # Typer's no_args_is_help may exit with 0 or 2 depending on version
        assert result.exit_code in (0, 2)
        assert "usage" in result.output.lower()

    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("run", "match", "platforms", "history"):
            assert command in result.output

    @pytest.mark.parametrize("command", ["run", "match", "platforms", "history"])
    def test_command_help(self, command: str):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0


# ---------------------------------------------------------------------------
# Test: match
# ---------------------------------------------------------------------------


class TestMatchCommand:
    def test_matching_tag(self, cli_env: Path):
        result = runner.invoke(app, ["match", "refs/tags/v1.2.3"])
        assert result.exit_code == 0

    def test_branch(self, cli_env: Path):
        result = runner.invoke(app, ["match", "refs/heads/main"])
        assert result.exit_code == 1

    def test_custom_pattern(self, cli_env: Path):
        result = runner.invoke(app, ["match", "refs/tags/release-7", "--pattern", "release-*"])
        assert result.exit_code == 0


# ---------------------------------------------------------------------------
# Test: platforms
# ---------------------------------------------------------------------------


class TestPlatformsCommand:
    def test_default_matrix(self, cli_env: Path):
        result = runner.invoke(app, ["platforms"])
        assert result.exit_code == 0
        assert "linux-amd64" in result.output

    def test_invalid_file_is_config_error(self, cli_env: Path):
        bad = cli_env / "platforms.toml"
        bad.write_text("[[platform]]\nplatform_id = 'x'\n")
        result = runner.invoke(app, ["platforms", "--platforms", str(bad)])
        assert result.exit_code == 6


# ---------------------------------------------------------------------------
# Test: run
# ---------------------------------------------------------------------------


class TestRunCommand:
    def test_dry_run_success(self, cli_env: Path):
        result = runner.invoke(
            app, ["run", "--ref", "refs/tags/v2.0.0", "--source", str(cli_env), "--dry-run"]
        )
        assert result.exit_code == 0, result.output
        run_dirs = list((cli_env / "store").iterdir())
        assert len(run_dirs) == 1
        assert sorted(p.name for p in run_dirs[0].iterdir()) == [
            "boot-linux-amd64",
            "boot-macos-amd64",
            "boot-windows-amd64.exe",
        ]

    def test_non_matching_reference(self, cli_env: Path):
        result = runner.invoke(
            app, ["run", "--ref", "refs/heads/main", "--source", str(cli_env), "--dry-run"]
        )
        assert result.exit_code == 0
        assert not (cli_env / "store").exists()
        assert not (cli_env / "ledger.db").exists()

    def test_build_failure_exit_code(
        self, cli_env: Path, monkeypatch: pytest.MonkeyPatch
    ):
        _fail_platform(monkeypatch, cli_env, "windows-amd64")
        result = runner.invoke(
            app, ["run", "--ref", "refs/tags/v2.0.0", "--source", str(cli_env), "--dry-run"]
        )
        assert result.exit_code == 3

    def test_colliding_platform_file(self, cli_env: Path):
        path = cli_env / "platforms.toml"
        entry = (
            "[[platform]]\n"
            'platform_id = "{pid}"\n'
            'raw_artifact_name = "boot"\n'
            'published_asset_name = "boot"\n'
        )
        path.write_text(entry.format(pid="a") + entry.format(pid="b"))
        result = runner.invoke(
            app,
            ["run", "--ref", "refs/tags/v2.0.0", "--platforms", str(path), "--dry-run"],
        )
        assert result.exit_code == 6
        assert not (cli_env / "work").exists()

    def test_hidden_asset_name_fails_before_build(self, cli_env: Path):
        path = cli_env / "platforms.toml"
        path.write_text(
            "[[platform]]\n"
            'platform_id = "linux-amd64"\n'
            'raw_artifact_name = "boot"\n'
            'published_asset_name = ".boot-linux"\n'
        )
        result = runner.invoke(
            app,
            ["run", "--ref", "refs/tags/v2.0.0", "--platforms", str(path), "--dry-run"],
        )
        assert result.exit_code == 6
        assert not (cli_env / "work").exists()
        assert not (cli_env / "store").exists()


# ---------------------------------------------------------------------------
# Test: history
# ---------------------------------------------------------------------------


class TestHistoryCommand:
    def test_history_after_run(self, cli_env: Path):
        runner.invoke(
            app, ["run", "--ref", "refs/tags/v2.0.0", "--source", str(cli_env), "--dry-run"]
        )
        run_id = RunLedger(cli_env / "ledger.db").get_all_run_ids()[0]

        listing = runner.invoke(app, ["history"])
        assert listing.exit_code == 0
        assert run_id in listing.output

        detail = runner.invoke(app, ["history", run_id])
        assert detail.exit_code == 0
        assert "valid" in detail.output

    def test_missing_ledger(self, cli_env: Path):
        result = runner.invoke(app, ["history", "nope"])
        assert result.exit_code == 1

    def test_unknown_run(self, cli_env: Path):
        RunLedger(cli_env / "ledger.db").record("other", "pipeline", "idle->running")
        result = runner.invoke(app, ["history", "nope"])
        assert result.exit_code == 1
