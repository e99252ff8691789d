"""Release hosting backends.

``ReleaseClient`` is the boundary the publisher talks to: create a release
record for a tag, then upload assets to it. ``GhReleaseClient`` drives the
GitHub CLI, which owns authentication. ``DryRunReleaseClient`` keeps
everything in memory for rehearsals.
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from tagrelease.errors import CreateReleaseError, UploadError
from tagrelease.models.release import ReleaseRecord

logger = logging.getLogger(__name__)

_ALREADY_EXISTS_MARKERS = ("already exists", "already_exists")


@runtime_checkable
class ReleaseClient(Protocol):
    """Protocol for release hosting backends."""

    def create_release(
        self, tag: str, title: str, *, draft: bool = False, prerelease: bool = False
    ) -> ReleaseRecord:
        """Create the release for ``tag``. Raises CreateReleaseError."""
        ...

    def upload_asset(self, record: ReleaseRecord, key: str, data: bytes) -> None:
        """Attach ``data`` to ``record`` under ``key``. Raises UploadError."""
        ...


class GhReleaseClient:
    """Creates releases and uploads assets with ``gh release``.

    Parameters
    ----------
    gh_path:
        The ``gh`` executable.
    repository:
        ``OWNER/NAME``; empty lets ``gh`` infer it from ``cwd``.
    cwd:
        Working directory for ``gh`` invocations.
    timeout:
        Seconds per ``gh`` call.
    """

    def __init__(
        self,
        *,
        gh_path: str = "gh",
        repository: str = "",
        cwd: Path | None = None,
        timeout: float | None = 300.0,
    ) -> None:
        self.gh_path = gh_path
        self.repository = repository
        self.cwd = Path(cwd) if cwd is not None else None
        self.timeout = timeout

    def _run(self, args: list[str]) -> subprocess.CompletedProcess[str]:
        cmd = [self.gh_path, *args]
        if self.repository:
            cmd += ["--repo", self.repository]
        logger.debug("Running %s", " ".join(cmd))
        return subprocess.run(
            cmd,
            cwd=str(self.cwd) if self.cwd else None,
            capture_output=True,
            text=True,
            timeout=self.timeout,
            check=False,
        )

    @staticmethod
    def _error_text(proc: subprocess.CompletedProcess[str]) -> str:
        return (proc.stderr or proc.stdout or "").strip() or f"exit code {proc.returncode}"

    def create_release(
        self, tag: str, title: str, *, draft: bool = False, prerelease: bool = False
    ) -> ReleaseRecord:
        args = ["release", "create", tag, "--title", title, "--notes", "", "--verify-tag"]
        if draft:
            args.append("--draft")
        if prerelease:
            args.append("--prerelease")

        try:
            proc = self._run(args)
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise CreateReleaseError(tag, str(exc)) from exc

        if proc.returncode != 0:
            reason = self._error_text(proc)
            already = any(m in reason.lower() for m in _ALREADY_EXISTS_MARKERS)
            raise CreateReleaseError(tag, reason, already_exists=already)

        # gh prints the release URL as its last line of output
        lines = proc.stdout.strip().splitlines()
        url = lines[-1] if lines else ""
        logger.info("Created release %s %s", tag, url)
        return ReleaseRecord(
            release_id=tag,
            tag=tag,
            title=title,
            draft=draft,
            prerelease=prerelease,
            url=url,
        )

    def upload_asset(self, record: ReleaseRecord, key: str, data: bytes) -> None:
        # gh names the asset after the file, so stage the bytes under ``key``
        try:
            with tempfile.TemporaryDirectory(prefix="tagrelease-upload-") as tmp:
                path = Path(tmp) / key
                path.write_bytes(data)
                proc = self._run(["release", "upload", record.tag, str(path)])
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise UploadError(key, str(exc)) from exc

        if proc.returncode != 0:
            raise UploadError(key, self._error_text(proc))
        logger.info("Uploaded %s to release %s", key, record.tag)


class DryRunReleaseClient:
    """In-memory release backend; nothing leaves the process.

    Parameters
    ----------
    existing_tags:
        Tags treated as already released, so ``create_release`` refuses them.
    """

    def __init__(self, existing_tags: set[str] | None = None) -> None:
        self.releases: dict[str, ReleaseRecord] = {}
        self.uploads: dict[str, dict[str, bytes]] = {}
        self._existing = set(existing_tags or ())

    def create_release(
        self, tag: str, title: str, *, draft: bool = False, prerelease: bool = False
    ) -> ReleaseRecord:
        if tag in self._existing or tag in self.releases:
            raise CreateReleaseError(
                tag, "a release for this tag already exists", already_exists=True
            )
        record = ReleaseRecord(
            release_id=f"dry-run:{tag}",
            tag=tag,
            title=title,
            draft=draft,
            prerelease=prerelease,
        )
        self.releases[tag] = record
        self.uploads[tag] = {}
        logger.info("[dry-run] Would create release %s (%r)", tag, title)
        return record

    def upload_asset(self, record: ReleaseRecord, key: str, data: bytes) -> None:
        if record.tag not in self.releases:
            raise UploadError(key, f"no release for tag {record.tag}")
        self.uploads[record.tag][key] = data
        logger.info("[dry-run] Would upload %s (%d bytes) to %s", key, len(data), record.tag)
