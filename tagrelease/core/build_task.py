"""Platform build task: build, rename, deposit.

One task runs per platform descriptor. Tasks share no mutable state apart
from disjoint keys in the artifact store, so they run in parallel without
coordination.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from tagrelease.core.artifact_store import ArtifactStore
from tagrelease.core.builders import Builder
from tagrelease.core.job_tracker import JobTracker
from tagrelease.errors import BuildFailure
from tagrelease.models.jobs import JobStatus
from tagrelease.models.platforms import PlatformDescriptor
from tagrelease.models.release import StoredArtifact

logger = logging.getLogger(__name__)


class PlatformBuildTask:
    """Builds one platform and publishes its renamed artifact to the store.

    Parameters
    ----------
    descriptor:
        The platform to build.
    builder:
        Build backend invoked once; never retried.
    store:
        Shared artifact store; this task writes exactly one key.
    tracker:
        Receives the job's status transitions.
    work_dir:
        Directory private to this task.
    """

    def __init__(
        self,
        descriptor: PlatformDescriptor,
        builder: Builder,
        store: ArtifactStore,
        tracker: JobTracker,
        work_dir: Path,
    ) -> None:
        self.descriptor = descriptor
        self._builder = builder
        self._store = store
        self._tracker = tracker
        self.work_dir = Path(work_dir)

    @property
    def platform_id(self) -> str:
        return self.descriptor.platform_id

    def run(self) -> StoredArtifact:
        """Execute the task. Raises BuildFailure identifying the platform."""
        self._tracker.transition(self.platform_id, JobStatus.RUNNING)
        self.work_dir.mkdir(parents=True, exist_ok=True)

        try:
            raw_path = Path(self._builder.build(self.descriptor, self.work_dir))
            if not raw_path.is_file():
                raise BuildFailure(
                    self.platform_id, f"builder returned missing file {raw_path}"
                )
            published = self._rename(raw_path)
            stored = self._store.put(
                self.descriptor.published_asset_name, published.read_bytes()
            )
        except BuildFailure as exc:
            self._fail(exc)
            raise
        except Exception as exc:
            failure = BuildFailure(self.platform_id, str(exc) or type(exc).__name__)
            self._fail(failure)
            raise failure from exc

        self._tracker.transition(
            self.platform_id,
            JobStatus.SUCCEEDED,
            produced_artifact_path=published,
        )
        logger.info("Build %s succeeded -> %s", self.platform_id, stored.key)
        return stored

    def _rename(self, raw_path: Path) -> Path:
        """Copy the raw artifact to its published name, byte for byte."""
        published = self.work_dir / self.descriptor.published_asset_name
        if raw_path.resolve() != published.resolve():
            shutil.copyfile(raw_path, published)
        return published

    def _fail(self, failure: BuildFailure) -> None:
        logger.error("%s", failure)
        if failure.output:
            logger.error("Build output for %s:\n%s", self.platform_id, failure.output)
        self._tracker.transition(
            self.platform_id, JobStatus.FAILED, error=failure.reason
        )

    def __repr__(self) -> str:
        return f"<PlatformBuildTask platform_id={self.platform_id!r}>"
