"""Release record and upload outcome models."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class StoredArtifact(BaseModel):
    """Metadata for an artifact held by the store; the bytes live on disk."""

    model_config = ConfigDict(frozen=True)

    key: str
    size_bytes: int
    sha256: str
    path: Path


class ReleaseRecord(BaseModel):
    """The published grouping of a tag and its attached artifacts.

    Identity (``release_id`` and ``tag``) is fixed at creation. The attached
    artifact list grows as uploads succeed.
    """

    model_config = ConfigDict(validate_assignment=True)

    release_id: str = Field(frozen=True)
    tag: str = Field(frozen=True)
    title: str
    draft: bool = False
    prerelease: bool = False
    url: str = ""
    attached_artifacts: list[str] = Field(default_factory=list)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def attach(self, key: str) -> None:
        """Record a successfully uploaded artifact."""
        if key not in self.attached_artifacts:
            self.attached_artifacts.append(key)


class UploadOutcome(BaseModel):
    """Result of uploading one artifact."""

    model_config = ConfigDict(frozen=True)

    key: str
    uploaded: bool
    error: str = ""


class PublishResult(BaseModel):
    """What the publisher produced: the release and one outcome per artifact."""

    release: ReleaseRecord
    uploads: list[UploadOutcome] = Field(default_factory=list)

    @property
    def failed_uploads(self) -> list[UploadOutcome]:
        return [u for u in self.uploads if not u.uploaded]

    @property
    def complete(self) -> bool:
        """True when every artifact was attached."""
        return not self.failed_uploads
