"""Pipeline state machine and run summary models."""

from __future__ import annotations

from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field

from tagrelease.models.jobs import BuildJob, JobStatus
from tagrelease.models.release import ReleaseRecord, UploadOutcome


class PipelineState(str, Enum):
    """Run-level state: Idle -> Running -> AllJobsDone -> Publishing -> Completed."""

    IDLE = "idle"
    RUNNING = "running"
    ALL_JOBS_DONE = "all_jobs_done"
    PUBLISHING = "publishing"
    COMPLETED = "completed"
    FAILED = "failed"


# Publishing is only reachable through ALL_JOBS_DONE, so a failed build
# can never lead to a release.
VALID_PIPELINE_TRANSITIONS: dict[PipelineState, set[PipelineState]] = {
    PipelineState.IDLE: {PipelineState.RUNNING},
    PipelineState.RUNNING: {PipelineState.ALL_JOBS_DONE, PipelineState.FAILED},
    PipelineState.ALL_JOBS_DONE: {PipelineState.PUBLISHING},
    PipelineState.PUBLISHING: {PipelineState.COMPLETED, PipelineState.FAILED},
    PipelineState.COMPLETED: set(),
    PipelineState.FAILED: set(),
}


class FailureStage(str, Enum):
    """Which stage made a run fail."""

    NONE = "none"
    BUILD = "build"
    CREATE_RELEASE = "create_release"
    UPLOAD = "upload"


class ExitCode(IntEnum):
    """Process exit codes. 1 and 2 are left to Typer/Click."""

    OK = 0
    BUILD_FAILED = 3
    CREATE_RELEASE_FAILED = 4
    UPLOAD_FAILED = 5
    CONFIG_ERROR = 6


_FAILURE_EXIT_CODES: dict[FailureStage, ExitCode] = {
    FailureStage.NONE: ExitCode.OK,
    FailureStage.BUILD: ExitCode.BUILD_FAILED,
    FailureStage.CREATE_RELEASE: ExitCode.CREATE_RELEASE_FAILED,
    FailureStage.UPLOAD: ExitCode.UPLOAD_FAILED,
}


class RunSummary(BaseModel):
    """Operator-facing outcome of one pipeline run."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    reference: str
    tag: str | None = None
    triggered: bool = True
    state: PipelineState = PipelineState.IDLE
    failure_stage: FailureStage = FailureStage.NONE
    jobs: list[BuildJob] = Field(default_factory=list)
    release: ReleaseRecord | None = None
    uploads: list[UploadOutcome] = Field(default_factory=list)
    artifacts_in_store: list[str] = Field(default_factory=list)
    error: str = ""

    @property
    def succeeded(self) -> bool:
        return self.state == PipelineState.COMPLETED

    @property
    def failed_jobs(self) -> list[BuildJob]:
        return [j for j in self.jobs if j.status == JobStatus.FAILED]

    @property
    def exit_code(self) -> int:
        if not self.triggered:
            return int(ExitCode.OK)
        return int(_FAILURE_EXIT_CODES[self.failure_stage])
