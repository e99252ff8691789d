"""Shared test fixtures for tagrelease."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import pytest

from tagrelease.config import ReleaseSettings
from tagrelease.core.artifact_store import ArtifactStore
from tagrelease.core.job_tracker import JobTracker
from tagrelease.core.release_client import DryRunReleaseClient
from tagrelease.core.run_ledger import RunLedger
from tagrelease.errors import BuildFailure, UploadError
from tagrelease.models.platforms import DEFAULT_PLATFORMS, PlatformDescriptor
from tagrelease.models.release import ReleaseRecord
from tagrelease.models.trigger import TriggerEvent


# ---------------------------------------------------------------------------
# Fakes — stand-ins for the build tool and the release host
# ---------------------------------------------------------------------------


class FakeBuilder:
    """Writes ``binary-<platform_id>`` as the raw artifact.

    Platforms listed in ``failing`` raise BuildFailure instead.
    """

    def __init__(self, failing: Iterable[str] = ()) -> None:
        self.failing = set(failing)
        self.built: list[str] = []

    def build(self, descriptor: PlatformDescriptor, work_dir: Path) -> Path:
        self.built.append(descriptor.platform_id)
        if descriptor.platform_id in self.failing:
            raise BuildFailure(descriptor.platform_id, "compiler exploded", output="error[E0001]")
        path = Path(work_dir) / descriptor.raw_artifact_name
        path.write_bytes(b"binary-" + descriptor.platform_id.encode())
        return path


class FlakyReleaseClient(DryRunReleaseClient):
    """Dry-run client whose uploads fail for the keys in ``failing_keys``."""

    def __init__(self, failing_keys: Iterable[str] = (), **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.failing_keys = set(failing_keys)

    def upload_asset(self, record: ReleaseRecord, key: str, data: bytes) -> None:
        if key in self.failing_keys:
            raise UploadError(key, "connection reset")
        super().upload_asset(record, key, data)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def ledger(tmp_dir: Path) -> RunLedger:
    """Provide a fresh RunLedger backed by a temp SQLite database."""
    return RunLedger(tmp_dir / "test_ledger.db")


@pytest.fixture
def store(tmp_dir: Path) -> ArtifactStore:
    """Provide a fresh ArtifactStore in a temp directory."""
    return ArtifactStore(tmp_dir / "artifacts")


@pytest.fixture
def run_id() -> str:
    """Provide a deterministic test run ID."""
    return "tr-test-run-001"


@pytest.fixture
def tracker(run_id: str, ledger: RunLedger) -> JobTracker:
    """Provide a JobTracker wired to the test ledger."""
    return JobTracker(run_id, ledger)


@pytest.fixture
def platforms() -> list[PlatformDescriptor]:
    """The default three-platform matrix."""
    return list(DEFAULT_PLATFORMS)


@pytest.fixture
def settings(tmp_dir: Path) -> ReleaseSettings:
    """Settings with every path under the temp directory."""
    return ReleaseSettings(
        work_dir=tmp_dir / "work",
        artifact_store_path=tmp_dir / "store",
        ledger_path=tmp_dir / "ledger.db",
    )


@pytest.fixture
def make_event() -> Callable[..., TriggerEvent]:
    """Factory fixture: build a TriggerEvent for a tag or raw reference."""

    def _factory(tag: str = "v2.0.0", *, reference: str | None = None, **overrides: Any) -> TriggerEvent:
        return TriggerEvent(reference=reference or f"refs/tags/{tag}", **overrides)

    return _factory


@pytest.fixture
def make_builder() -> Callable[..., FakeBuilder]:
    """Factory fixture: a FakeBuilder failing the given platform ids."""

    def _factory(*failing: str) -> FakeBuilder:
        return FakeBuilder(failing)

    return _factory


@pytest.fixture
def make_client() -> Callable[..., FlakyReleaseClient]:
    """Factory fixture: an in-memory release client with optional upload failures."""

    def _factory(
        failing_keys: Iterable[str] = (), existing_tags: set[str] | None = None
    ) -> FlakyReleaseClient:
        return FlakyReleaseClient(failing_keys, existing_tags=existing_tags)

    return _factory
