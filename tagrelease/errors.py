"""Exception taxonomy for the release pipeline.

A reference that does not match the release pattern is not an error; the
controller simply returns an untriggered summary. Everything else surfaces
as one of the exceptions below, always carrying the platform or key that
identifies what went wrong.
"""

from __future__ import annotations


class ReleasePipelineError(RuntimeError):
    """Base class for every pipeline failure."""


class PlatformConfigError(ReleasePipelineError):
    """Raised when a platform descriptor set is empty or malformed."""


class DuplicateKeyError(ReleasePipelineError):
    """Raised when an artifact key is written twice.

    Also raised by descriptor validation when two platforms would publish
    under the same asset name.
    """

    def __init__(self, key: str, detail: str = "") -> None:
        self.key = key
        message = f"Artifact key already written: {key}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class ArtifactNotFoundError(ReleasePipelineError, KeyError):
    """Raised when a key has no stored artifact."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Artifact not found: {key}")

    def __str__(self) -> str:
        return str(self.args[0])


class BuildFailure(ReleasePipelineError):
    """Raised when a platform build does not produce its artifact."""

    def __init__(self, platform_id: str, reason: str, *, output: str = "") -> None:
        self.platform_id = platform_id
        self.reason = reason
        self.output = output
        super().__init__(f"Build failed for {platform_id}: {reason}")


class CreateReleaseError(ReleasePipelineError):
    """Raised when the release record cannot be created."""

    def __init__(self, tag: str, reason: str, *, already_exists: bool = False) -> None:
        self.tag = tag
        self.reason = reason
        self.already_exists = already_exists
        super().__init__(f"Cannot create release {tag}: {reason}")


class UploadError(ReleasePipelineError):
    """Raised when a single asset upload fails."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Upload of {key} failed: {reason}")


class InvalidTransitionError(ReleasePipelineError):
    """Raised when a job or pipeline state change is not allowed."""


class LedgerIntegrityError(ReleasePipelineError):
    """Raised when the run ledger hash chain is broken."""
