"""Build backends: the opaque collaborator that turns source into a binary.

Defines the ``Builder`` Protocol that every backend satisfies, and
``SubprocessBuilder``, which runs a templated command (``cargo build`` by
default) once per platform in an isolated target directory.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from pathlib import Path
from typing import Protocol, runtime_checkable

from tagrelease.config import ReleaseSettings
from tagrelease.errors import BuildFailure
from tagrelease.models.platforms import PlatformDescriptor

logger = logging.getLogger(__name__)

# Lines of build output kept on a BuildFailure.
_OUTPUT_TAIL_LINES = 20


@runtime_checkable
class Builder(Protocol):
    """Protocol for build backends.

    Any object with a ``build(descriptor, work_dir) -> Path`` method
    satisfies it.
    """

    def build(self, descriptor: PlatformDescriptor, work_dir: Path) -> Path:
        """Build one platform and return the path of ``raw_artifact_name``.

        ``work_dir`` is private to this platform's job. Raises
        ``BuildFailure`` when the tool fails or leaves no artifact.
        """
        ...


class SubprocessBuilder:
    """Runs an external build command per platform.

    Parameters
    ----------
    source_dir:
        Checked-out source tree; the command runs with this as its cwd.
    command:
        Command template, split with ``shlex``. Each argument is formatted
        with ``target``, ``platform_id``, ``target_dir``, ``work_dir`` and
        ``source_dir``.
    artifact_dir:
        Template for the directory holding ``raw_artifact_name`` after a
        successful build. Relative results are resolved against
        ``source_dir``.
    env:
        Extra environment variables layered over the current environment.
    timeout:
        Seconds before the build is abandoned; None waits indefinitely.
    """

    def __init__(
        self,
        source_dir: Path,
        command: str,
        artifact_dir: str,
        *,
        env: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> None:
        self.source_dir = Path(source_dir).resolve()
        self.command = command
        self.artifact_dir = artifact_dir
        self.env = dict(env or {})
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: ReleaseSettings, source_dir: Path) -> SubprocessBuilder:
        return cls(
            source_dir,
            settings.build_command,
            settings.artifact_dir,
            env=settings.build_env,
            timeout=settings.build_timeout_seconds,
        )

    def _template_fields(self, descriptor: PlatformDescriptor, work_dir: Path) -> dict[str, str]:
        work_dir = Path(work_dir).resolve()
        return {
            "target": descriptor.target,
            "platform_id": descriptor.platform_id,
            "target_dir": str(work_dir / "target"),
            "work_dir": str(work_dir),
            "source_dir": str(self.source_dir),
        }

    def render_command(self, descriptor: PlatformDescriptor, work_dir: Path) -> list[str]:
        fields = self._template_fields(descriptor, work_dir)
        return [part.format(**fields) for part in shlex.split(self.command)]

    def expected_artifact(self, descriptor: PlatformDescriptor, work_dir: Path) -> Path:
        fields = self._template_fields(descriptor, work_dir)
        directory = Path(self.artifact_dir.format(**fields))
        if not directory.is_absolute():
            directory = self.source_dir / directory
        return directory / descriptor.raw_artifact_name

    def build(self, descriptor: PlatformDescriptor, work_dir: Path) -> Path:
        platform_id = descriptor.platform_id
        cmd = self.render_command(descriptor, work_dir)
        logger.info("Building %s: %s", platform_id, shlex.join(cmd))

        try:
            proc = subprocess.run(
                cmd,
                cwd=str(self.source_dir),
                env={**os.environ, **self.env},
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            raise BuildFailure(platform_id, f"build tool not found: {cmd[0]}") from exc
        except subprocess.TimeoutExpired as exc:
            raise BuildFailure(platform_id, f"timed out after {self.timeout}s") from exc

        if proc.returncode != 0:
            output = (proc.stderr or proc.stdout or "").strip().splitlines()
            raise BuildFailure(
                platform_id,
                f"exit code {proc.returncode}",
                output="\n".join(output[-_OUTPUT_TAIL_LINES:]),
            )

        artifact = self.expected_artifact(descriptor, work_dir)
        if not artifact.is_file():
            raise BuildFailure(platform_id, f"expected artifact not found: {artifact}")

        logger.debug("Build %s produced %s", platform_id, artifact)
        return artifact

    def __repr__(self) -> str:
        return f"<SubprocessBuilder source_dir={str(self.source_dir)!r} command={self.command!r}>"
