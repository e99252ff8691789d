"""Tests for JobTracker — job and pipeline transitions, publish guard."""

from __future__ import annotations

from pathlib import Path

import pytest

from tagrelease.core.job_tracker import JobTracker
from tagrelease.core.run_ledger import RunLedger
from tagrelease.errors import InvalidTransitionError
from tagrelease.models.jobs import JobStatus
from tagrelease.models.pipeline import PipelineState
from tagrelease.models.platforms import PlatformDescriptor
from tagrelease.models.release import UploadOutcome


def _finish_all(tracker: JobTracker, status: JobStatus = JobStatus.SUCCEEDED) -> None:
    for job in tracker.jobs():
        tracker.transition(job.platform_id, JobStatus.RUNNING)
        tracker.transition(job.platform_id, status)


class TestJobTransitions:
    def test_create_jobs(self, tracker: JobTracker, platforms: list[PlatformDescriptor]):
        jobs = tracker.create_jobs(platforms)
        assert [j.platform_id for j in jobs] == [p.platform_id for p in platforms]
        assert all(j.status == JobStatus.PENDING for j in jobs)

    def test_create_twice_rejected(self, tracker: JobTracker, platforms):
        tracker.create_jobs(platforms)
        with pytest.raises(InvalidTransitionError):
            tracker.create_jobs(platforms)

    def test_happy_path_sets_timestamps(self, tracker: JobTracker, platforms):
        tracker.create_jobs(platforms)
        running = tracker.transition("linux-amd64", JobStatus.RUNNING)
        assert running.started_at is not None
        done = tracker.transition(
            "linux-amd64",
            JobStatus.SUCCEEDED,
            produced_artifact_path=Path("/w/boot-linux-amd64"),
        )
        assert done.finished_at is not None
        assert done.produced_artifact_path == Path("/w/boot-linux-amd64")
        assert tracker.get("linux-amd64").is_terminal

    def test_pending_cannot_skip_to_succeeded(self, tracker: JobTracker, platforms):
        tracker.create_jobs(platforms)
        with pytest.raises(InvalidTransitionError):
            tracker.transition("linux-amd64", JobStatus.SUCCEEDED)

    def test_terminal_is_final(self, tracker: JobTracker, platforms):
        tracker.create_jobs(platforms)
        tracker.transition("linux-amd64", JobStatus.RUNNING)
        tracker.transition("linux-amd64", JobStatus.FAILED, error="boom")
        with pytest.raises(InvalidTransitionError):
            tracker.transition("linux-amd64", JobStatus.RUNNING)
        with pytest.raises(InvalidTransitionError):
            tracker.transition("linux-amd64", JobStatus.SUCCEEDED)
        assert tracker.get("linux-amd64").error == "boom"

    def test_unknown_platform(self, tracker: JobTracker, platforms):
        tracker.create_jobs(platforms)
        with pytest.raises(InvalidTransitionError, match="Unknown platform"):
            tracker.transition("solaris-sparc", JobStatus.RUNNING)


class TestPipelineTransitions:
    def test_full_happy_path(self, tracker: JobTracker, platforms):
        tracker.advance(PipelineState.RUNNING)
        tracker.create_jobs(platforms)
        _finish_all(tracker)
        tracker.advance(PipelineState.ALL_JOBS_DONE)
        tracker.advance(PipelineState.PUBLISHING)
        tracker.advance(PipelineState.COMPLETED)
        assert tracker.state == PipelineState.COMPLETED

    def test_all_jobs_done_requires_terminal_jobs(self, tracker: JobTracker, platforms):
        tracker.advance(PipelineState.RUNNING)
        tracker.create_jobs(platforms)
        tracker.transition("linux-amd64", JobStatus.RUNNING)
        with pytest.raises(InvalidTransitionError, match="in flight"):
            tracker.advance(PipelineState.ALL_JOBS_DONE)

    def test_publishing_requires_all_succeeded(self, tracker: JobTracker, platforms):
        tracker.advance(PipelineState.RUNNING)
        tracker.create_jobs(platforms)
        for job in tracker.jobs():
            tracker.transition(job.platform_id, JobStatus.RUNNING)
        tracker.transition("linux-amd64", JobStatus.SUCCEEDED)
        tracker.transition("windows-amd64", JobStatus.FAILED)
        tracker.transition("macos-amd64", JobStatus.SUCCEEDED)
        tracker.advance(PipelineState.ALL_JOBS_DONE)
        with pytest.raises(InvalidTransitionError, match="not every build job"):
            tracker.advance(PipelineState.PUBLISHING)
        assert tracker.state == PipelineState.ALL_JOBS_DONE

    def test_cannot_publish_from_running(self, tracker: JobTracker):
        tracker.advance(PipelineState.RUNNING)
        with pytest.raises(InvalidTransitionError):
            tracker.advance(PipelineState.PUBLISHING)

    def test_failed_is_final(self, tracker: JobTracker):
        tracker.advance(PipelineState.RUNNING)
        tracker.advance(PipelineState.FAILED)
        with pytest.raises(InvalidTransitionError):
            tracker.advance(PipelineState.RUNNING)


class TestLedgerRecording:
    def test_transitions_recorded(self, tracker: JobTracker, ledger: RunLedger, platforms, run_id):
        tracker.advance(PipelineState.RUNNING, detail="refs/tags/v1.0.0")
        tracker.create_jobs(platforms[:1])
        tracker.transition("linux-amd64", JobStatus.RUNNING)
        tracker.transition("linux-amd64", JobStatus.FAILED, error="exit code 101")

        entries = ledger.get_run_entries(run_id)
        assert [(e.subject, e.transition) for e in entries] == [
            ("pipeline", "idle->running"),
            ("job:linux-amd64", "created"),
            ("job:linux-amd64", "pending->running"),
            ("job:linux-amd64", "running->failed"),
        ]
        assert entries[-1].detail == "exit code 101"
        assert ledger.verify_chain(run_id) is True

    def test_upload_outcomes_recorded(self, tracker: JobTracker, ledger: RunLedger, run_id):
        tracker.record_upload(UploadOutcome(key="boot-linux-amd64", uploaded=True))
        tracker.record_upload(UploadOutcome(key="boot-macos-amd64", uploaded=False, error="503"))
        entries = ledger.get_run_entries(run_id)
        assert [(e.subject, e.transition, e.detail) for e in entries] == [
            ("upload:boot-linux-amd64", "uploaded", ""),
            ("upload:boot-macos-amd64", "failed", "503"),
        ]

    def test_works_without_ledger(self, platforms):
        tracker = JobTracker("no-ledger")
        tracker.advance(PipelineState.RUNNING)
        tracker.create_jobs(platforms)
        _finish_all(tracker, JobStatus.FAILED)
        assert len(tracker.failed_jobs()) == 3
        assert tracker.all_terminal() is True
        assert tracker.all_succeeded() is False
