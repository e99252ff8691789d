"""Pipeline controller — sequences the release run.

Wires together the TriggerMatcher, ArtifactStore, JobTracker, RunLedger,
PlatformBuildTasks and ReleasePublisher:

    match trigger -> fan out builds -> join on all jobs -> publish

The join is the one critical ordering guarantee: no release is created and
no upload starts until every build job has reached a terminal status, and
publishing only happens when all of them succeeded. A failed build does not
cancel its siblings; their artifacts stay in the store for inspection.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from concurrent.futures import ALL_COMPLETED, ThreadPoolExecutor, wait
from datetime import datetime, timezone

from tagrelease.config import ReleaseSettings
from tagrelease.core.artifact_store import ArtifactStore
from tagrelease.core.build_task import PlatformBuildTask
from tagrelease.core.builders import Builder
from tagrelease.core.job_tracker import JobTracker
from tagrelease.core.publisher import ReleasePublisher
from tagrelease.core.release_client import ReleaseClient
from tagrelease.core.run_ledger import RunLedger
from tagrelease.core.trigger import TriggerMatcher
from tagrelease.errors import BuildFailure, CreateReleaseError
from tagrelease.models.pipeline import FailureStage, PipelineState, RunSummary
from tagrelease.models.platforms import (
    DEFAULT_PLATFORMS,
    PlatformDescriptor,
    validate_platforms,
)
from tagrelease.models.release import PublishResult
from tagrelease.models.trigger import TriggerEvent

logger = logging.getLogger(__name__)


class PipelineController:
    """Runs one tag-triggered release.

    Parameters
    ----------
    builder:
        Build backend shared by every platform task.
    release_client:
        Release hosting backend used by the publisher.
    platforms:
        Descriptor set; defaults to DEFAULT_PLATFORMS. Validated here so a
        naming collision fails before any build runs.
    settings:
        Runtime settings. Uses defaults if not provided.
    ledger:
        Run ledger. Opened lazily from ``settings.ledger_path`` once a
        reference actually triggers a run.
    run_id:
        Identifier for this run. Generated if None.
    """

    def __init__(
        self,
        builder: Builder,
        release_client: ReleaseClient,
        *,
        platforms: Sequence[PlatformDescriptor] | None = None,
        settings: ReleaseSettings | None = None,
        ledger: RunLedger | None = None,
        run_id: str | None = None,
    ) -> None:
        self.settings = settings or ReleaseSettings()
        self.platforms = list(platforms if platforms is not None else DEFAULT_PLATFORMS)
        validate_platforms(self.platforms)

        self.builder = builder
        self.release_client = release_client
        self.matcher = TriggerMatcher(self.settings.tag_pattern)
        self._ledger = ledger

        ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        self.run_id = run_id or f"tr-{ts}-{uuid.uuid4().hex[:6]}"

    @property
    def ledger(self) -> RunLedger:
        if self._ledger is None:
            self._ledger = RunLedger(self.settings.ledger_path)
        return self._ledger

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, event: TriggerEvent) -> RunSummary:
        """Execute the pipeline for ``event`` and return its summary.

        A reference that does not match the tag pattern is a no-op: no job,
        no store directory, no ledger entry, no release.
        """
        if not self.matcher.matches(event.reference):
            logger.info(
                "Reference %s does not match %r; nothing to release.",
                event.reference,
                self.matcher.pattern,
            )
            return RunSummary(
                run_id=self.run_id,
                reference=event.reference,
                tag=event.tag_name,
                triggered=False,
                state=PipelineState.IDLE,
            )

        tag = event.tag_name or ""

        tracker = JobTracker(self.run_id, self.ledger)
        store = ArtifactStore(self.settings.artifact_store_path / self.run_id)

        tracker.advance(PipelineState.RUNNING, detail=event.reference)
        tracker.create_jobs(self.platforms)
        logger.info(
            "Run %s: building %d platforms for %s",
            self.run_id,
            len(self.platforms),
            tag,
        )

        failures = self._run_builds(tracker, store)
        if failures:
            detail = "; ".join(str(f) for f in failures)
            tracker.advance(PipelineState.FAILED, detail=detail)
            logger.error(
                "Run %s failed in build stage (%s); no release created.",
                self.run_id,
                ", ".join(f.platform_id for f in failures),
            )
            return self._summary(
                event, tracker, store,
                failure_stage=FailureStage.BUILD,
                error=detail,
            )

        tracker.advance(PipelineState.ALL_JOBS_DONE)
        tracker.advance(PipelineState.PUBLISHING, detail=tag)

        publisher = ReleasePublisher(
            self.release_client,
            title_template=self.settings.release_title_template,
        )
        try:
            result = publisher.publish(tag, store)
        except CreateReleaseError as exc:
            tracker.advance(PipelineState.FAILED, detail=str(exc))
            logger.error("Run %s failed creating release: %s", self.run_id, exc)
            return self._summary(
                event, tracker, store,
                failure_stage=FailureStage.CREATE_RELEASE,
                error=str(exc),
            )

        for outcome in result.uploads:
            tracker.record_upload(outcome)

        if not result.complete:
            failed = ", ".join(u.key for u in result.failed_uploads)
            tracker.advance(PipelineState.FAILED, detail=f"partial upload: {failed}")
            return self._summary(
                event, tracker, store,
                failure_stage=FailureStage.UPLOAD,
                publish=result,
                error=f"Release {tag} is partially published; failed uploads: {failed}",
            )

        tracker.advance(PipelineState.COMPLETED, detail=result.release.release_id)
        return self._summary(event, tracker, store, publish=result)

    # ------------------------------------------------------------------
    # Build stage
    # ------------------------------------------------------------------

    def _run_builds(
        self, tracker: JobTracker, store: ArtifactStore
    ) -> list[BuildFailure]:
        """Fan out one task per platform and block until all are terminal."""
        run_work_dir = self.settings.work_dir / self.run_id
        tasks = [
            PlatformBuildTask(
                descriptor,
                self.builder,
                store,
                tracker,
                run_work_dir / descriptor.platform_id,
            )
            for descriptor in self.platforms
        ]

        workers = max(1, min(len(tasks), self.settings.max_parallel_builds))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="build") as pool:
            futures = {pool.submit(task.run): task for task in tasks}
            wait(futures, return_when=ALL_COMPLETED)

        failures: list[BuildFailure] = []
        for future in futures:
            exc = future.exception()
            if exc is None:
                continue
            if not isinstance(exc, BuildFailure):
                tracker.advance(
                    PipelineState.FAILED, detail=f"{type(exc).__name__}: {exc}"
                )
                raise exc
            failures.append(exc)
        return failures

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def _summary(
        self,
        event: TriggerEvent,
        tracker: JobTracker,
        store: ArtifactStore,
        *,
        failure_stage: FailureStage = FailureStage.NONE,
        publish: PublishResult | None = None,
        error: str = "",
    ) -> RunSummary:
        return RunSummary(
            run_id=self.run_id,
            reference=event.reference,
            tag=event.tag_name,
            triggered=True,
            state=tracker.state,
            failure_stage=failure_stage,
            jobs=tracker.jobs(),
            release=publish.release if publish else None,
            uploads=publish.uploads if publish else [],
            artifacts_in_store=store.keys(),
            error=error,
        )

    def __repr__(self) -> str:
        return f"<PipelineController run_id={self.run_id!r} platforms={len(self.platforms)}>"
