"""Release publisher — the aggregation stage.

Creates one release record for the tag, then uploads every artifact in the
store to it. A failed creation aborts before any upload. A failed upload is
reported and the remaining artifacts are still attempted; nothing already
uploaded is rolled back and nothing is retried.
"""

from __future__ import annotations

import logging

from tagrelease.core.artifact_store import ArtifactStore
from tagrelease.core.release_client import ReleaseClient
from tagrelease.errors import UploadError
from tagrelease.models.release import PublishResult, UploadOutcome

logger = logging.getLogger(__name__)


class ReleasePublisher:
    """Publishes the store's contents as a release.

    Must only be invoked once every build job has succeeded; the pipeline
    controller enforces that join.

    Parameters
    ----------
    client:
        Release hosting backend.
    title_template:
        Format string for the release title; receives ``tag``.
    """

    def __init__(self, client: ReleaseClient, *, title_template: str = "Release {tag}") -> None:
        self._client = client
        self.title_template = title_template

    def publish(self, tag: str, store: ArtifactStore) -> PublishResult:
        """Create the release for ``tag`` and attach every stored artifact.

        Raises
        ------
        CreateReleaseError
            If the release cannot be created. No upload is attempted.
        """
        title = self.title_template.format(tag=tag)
        record = self._client.create_release(tag, title, draft=False, prerelease=False)
        logger.info("Release %s created (%s)", record.tag, record.release_id)

        result = PublishResult(release=record)
        for key, data in store.list():
            try:
                self._client.upload_asset(record, key, data)
            except UploadError as exc:
                logger.error("%s", exc)
                result.uploads.append(UploadOutcome(key=key, uploaded=False, error=exc.reason))
                continue
            except Exception as exc:
                # remaining keys are still attempted
                logger.exception("Unexpected error uploading %s", key)
                result.uploads.append(
                    UploadOutcome(key=key, uploaded=False, error=str(exc) or type(exc).__name__)
                )
                continue
            result.release.attach(key)
            result.uploads.append(UploadOutcome(key=key, uploaded=True))

        if result.complete:
            logger.info(
                "Release %s published with %d artifacts",
                record.tag,
                len(result.release.attached_artifacts),
            )
        else:
            logger.error(
                "Release %s is PARTIAL: %d of %d uploads failed (%s)",
                record.tag,
                len(result.failed_uploads),
                len(result.uploads),
                ", ".join(u.key for u in result.failed_uploads),
            )
        return result
