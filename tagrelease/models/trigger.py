"""Trigger event model: the reference push that starts a run."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

TAG_REF_PREFIX = "refs/tags/"


class TriggerEvent(BaseModel):
    """An inbound reference push. Immutable once received."""

    model_config = ConfigDict(frozen=True)

    reference: str  # e.g. "refs/tags/v1.2.3"
    snapshot: Path = Path(".")  # checked-out source tree the builders run in
    commit_sha: str = ""
    received_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def tag_name(self) -> str | None:
        """The tag named by the reference, or None for non-tag references."""
        if not self.reference.startswith(TAG_REF_PREFIX):
            return None
        return self.reference[len(TAG_REF_PREFIX):] or None
