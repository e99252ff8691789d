"""Job and pipeline state machines for a single run.

Enforces:
- Valid job transitions only (VALID_JOB_TRANSITIONS): each job reaches a
  terminal status exactly once and is never retried.
- Valid pipeline transitions only (VALID_PIPELINE_TRANSITIONS).
- Publishing requires every job to have succeeded.
- Every transition is recorded in the run ledger when one is attached.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path

from tagrelease.core.run_ledger import RunLedger
from tagrelease.errors import InvalidTransitionError
from tagrelease.models.jobs import VALID_JOB_TRANSITIONS, BuildJob, JobStatus
from tagrelease.models.pipeline import VALID_PIPELINE_TRANSITIONS, PipelineState
from tagrelease.models.platforms import PlatformDescriptor
from tagrelease.models.release import UploadOutcome

logger = logging.getLogger(__name__)


class JobTracker:
    """Tracks every build job and the pipeline state of one run.

    Parameters
    ----------
    run_id:
        The run being tracked.
    ledger:
        Optional ledger that receives one entry per transition.
    """

    def __init__(self, run_id: str, ledger: RunLedger | None = None) -> None:
        self.run_id = run_id
        self._ledger = ledger
        self._lock = threading.Lock()
        self._jobs: dict[str, BuildJob] = {}
        self._state = PipelineState.IDLE

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def create_jobs(self, platforms: Sequence[PlatformDescriptor]) -> list[BuildJob]:
        """Create one pending job per descriptor."""
        with self._lock:
            if self._jobs:
                raise InvalidTransitionError(f"Jobs already created for run {self.run_id}")
            for descriptor in platforms:
                self._jobs[descriptor.platform_id] = BuildJob(descriptor=descriptor)
            jobs = list(self._jobs.values())
        for job in jobs:
            self._record(f"job:{job.platform_id}", "created", job.job_id)
        return jobs

    def transition(
        self,
        platform_id: str,
        target: JobStatus,
        *,
        produced_artifact_path: Path | None = None,
        error: str = "",
    ) -> BuildJob:
        """Move a job to ``target``, validating against the transition table."""
        with self._lock:
            job = self._jobs.get(platform_id)
            if job is None:
                raise InvalidTransitionError(f"Unknown platform: {platform_id}")

            allowed = VALID_JOB_TRANSITIONS[job.status]
            if target not in allowed:
                raise InvalidTransitionError(
                    f"Cannot transition job {platform_id} from {job.status.value} "
                    f"to {target.value}. Allowed: {sorted(s.value for s in allowed)}"
                )

            now = datetime.now(timezone.utc)
            update: dict[str, object] = {"status": target}
            if target == JobStatus.RUNNING:
                update["started_at"] = now
            else:
                update["finished_at"] = now
            if produced_artifact_path is not None:
                update["produced_artifact_path"] = produced_artifact_path
            if error:
                update["error"] = error

            previous = job.status
            job = job.model_copy(update=update)
            self._jobs[platform_id] = job

        self._record(f"job:{platform_id}", f"{previous.value}->{target.value}", error)
        return job

    def get(self, platform_id: str) -> BuildJob:
        with self._lock:
            return self._jobs[platform_id]

    def jobs(self) -> list[BuildJob]:
        """Snapshot of every job, in creation order."""
        with self._lock:
            return list(self._jobs.values())

    def all_terminal(self) -> bool:
        return all(job.is_terminal for job in self.jobs())

    def all_succeeded(self) -> bool:
        jobs = self.jobs()
        return bool(jobs) and all(j.status == JobStatus.SUCCEEDED for j in jobs)

    def failed_jobs(self) -> list[BuildJob]:
        return [j for j in self.jobs() if j.status == JobStatus.FAILED]

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    @property
    def state(self) -> PipelineState:
        return self._state

    def advance(self, target: PipelineState, detail: str = "") -> PipelineState:
        """Move the pipeline to ``target``.

        Entering ALL_JOBS_DONE requires every job to be terminal; entering
        PUBLISHING additionally requires every job to have succeeded.
        """
        allowed = VALID_PIPELINE_TRANSITIONS[self._state]
        if target not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition pipeline from {self._state.value} to {target.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )
        if target == PipelineState.ALL_JOBS_DONE and not self.all_terminal():
            raise InvalidTransitionError("Jobs are still in flight.")
        if target == PipelineState.PUBLISHING and not self.all_succeeded():
            raise InvalidTransitionError(
                "Cannot publish: not every build job succeeded."
            )

        previous = self._state
        self._state = target
        logger.info("Run %s: %s -> %s", self.run_id, previous.value, target.value)
        self._record("pipeline", f"{previous.value}->{target.value}", detail)
        return target

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    def record_upload(self, outcome: UploadOutcome) -> None:
        self._record(
            f"upload:{outcome.key}",
            "uploaded" if outcome.uploaded else "failed",
            outcome.error,
        )

    def _record(self, subject: str, transition: str, detail: str = "") -> None:
        if self._ledger is not None:
            self._ledger.record(self.run_id, subject, transition, detail)
