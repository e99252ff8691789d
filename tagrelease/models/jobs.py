"""Build job models: one job per platform, terminal exactly once."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from tagrelease.models.platforms import PlatformDescriptor


class JobStatus(str, Enum):
    """Lifecycle of a single platform build."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# Terminal states have no outgoing transitions: jobs are never retried.
VALID_JOB_TRANSITIONS: dict[JobStatus, set[JobStatus]] = {
    JobStatus.PENDING: {JobStatus.RUNNING},
    JobStatus.RUNNING: {JobStatus.SUCCEEDED, JobStatus.FAILED},
    JobStatus.SUCCEEDED: set(),
    JobStatus.FAILED: set(),
}

TERMINAL_JOB_STATUSES: frozenset[JobStatus] = frozenset(
    {JobStatus.SUCCEEDED, JobStatus.FAILED}
)


class BuildJob(BaseModel):
    """Snapshot of one platform build. Replaced, never mutated."""

    model_config = ConfigDict(frozen=True)

    job_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    descriptor: PlatformDescriptor
    status: JobStatus = JobStatus.PENDING
    produced_artifact_path: Path | None = None
    error: str = ""
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def platform_id(self) -> str:
        return self.descriptor.platform_id

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_JOB_STATUSES
