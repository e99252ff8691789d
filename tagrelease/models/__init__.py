"""tagrelease data models — Pydantic v2, frozen wherever identity is fixed."""

from tagrelease.models.jobs import (
    TERMINAL_JOB_STATUSES,
    VALID_JOB_TRANSITIONS,
    BuildJob,
    JobStatus,
)
from tagrelease.models.ledger import LedgerEntry
from tagrelease.models.pipeline import (
    VALID_PIPELINE_TRANSITIONS,
    ExitCode,
    FailureStage,
    PipelineState,
    RunSummary,
)
from tagrelease.models.platforms import (
    DEFAULT_PLATFORMS,
    PlatformDescriptor,
    asset_names,
    load_platforms,
    validate_platforms,
)
from tagrelease.models.release import (
    PublishResult,
    ReleaseRecord,
    StoredArtifact,
    UploadOutcome,
)
from tagrelease.models.trigger import TAG_REF_PREFIX, TriggerEvent

__all__ = [
    # trigger
    "TAG_REF_PREFIX",
    "TriggerEvent",
    # platforms
    "PlatformDescriptor",
    "DEFAULT_PLATFORMS",
    "asset_names",
    "load_platforms",
    "validate_platforms",
    # jobs
    "JobStatus",
    "BuildJob",
    "VALID_JOB_TRANSITIONS",
    "TERMINAL_JOB_STATUSES",
    # release
    "StoredArtifact",
    "ReleaseRecord",
    "UploadOutcome",
    "PublishResult",
    # pipeline
    "PipelineState",
    "VALID_PIPELINE_TRANSITIONS",
    "FailureStage",
    "ExitCode",
    "RunSummary",
    # ledger
    "LedgerEntry",
]
