"""Tests for the retention sweeper."""

import time

import pytest

from resumegen.schemas import ResumeSnapshot
from conftest import run_next_job


def wait_for(predicate, timeout=10.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return False


@pytest.mark.unit
class TestRetentionSweeper:
    """Test reclaim and retention passes."""

    def test_deletes_expired_jobs_and_their_artifacts(self, pipeline, clock):
        job_id = pipeline.service.enqueue_render(ResumeSnapshot(), requester_id="u1", resume_id="r1")
        run_next_job(pipeline)
        artifact_ref = pipeline.queue.get_status(job_id).result["artifact_ref"]
        assert pipeline.artifact_store.exists(artifact_ref)

        clock.advance(hours=24, seconds=1)
        report = pipeline.sweeper().run_once()

        assert report.deleted_jobs == [job_id]
        assert report.deleted_artifacts == 1
        assert not pipeline.artifact_store.exists(artifact_ref)
        assert pipeline.service.get_status(job_id).status == "not_found"

    def test_keeps_jobs_inside_retention(self, pipeline, clock):
        job_id = pipeline.service.enqueue_render(ResumeSnapshot(), requester_id="u1", resume_id="r1")
        run_next_job(pipeline)
        clock.advance(hours=23)

        report = pipeline.sweeper().run_once()

        assert report.deleted_jobs == []
        assert pipeline.service.get_status(job_id).status == "completed"

    def test_reclaims_jobs_from_lost_workers(self, pipeline, clock):
        job_id = pipeline.service.enqueue_render(ResumeSnapshot(), requester_id="u1", resume_id="r1")
        pipeline.queue.claim_next("vanished-worker")
        clock.advance(seconds=pipeline.settings.active_lease_seconds + 1)

        report = pipeline.sweeper().run_once()

        assert report.reclaimed == 1
        assert pipeline.queue.get_status(job_id).state == "queued"

    def test_liveness_check_can_be_disabled(self, pipeline, clock):
        pipeline.queue.enqueue("generate-pdf", {})
        pipeline.queue.claim_next("slow-worker")
        clock.advance(days=1)
        sweeper = pipeline.sweeper()
        sweeper.active_lease = None

        assert sweeper.run_once().reclaimed == 0

    def test_report_serializes(self, pipeline):
        report = pipeline.sweeper().run_once()
        assert report.to_dict() == {"reclaimed": 0, "deleted_jobs": 0, "deleted_artifacts": 0}

    def test_unremovable_artifact_does_not_abort_the_pass(self, pipeline, clock, monkeypatch):
        first = pipeline.service.enqueue_render(ResumeSnapshot(), requester_id="u1", resume_id="r1")
        second = pipeline.service.enqueue_render(ResumeSnapshot(), requester_id="u1", resume_id="r2")
        run_next_job(pipeline)
        run_next_job(pipeline)
        clock.advance(hours=25)

        def read_only(artifact_ref):
            raise PermissionError("read-only file system")

        monkeypatch.setattr(pipeline.artifact_store, "delete", read_only)
        report = pipeline.sweeper().run_once()

        assert sorted(report.deleted_jobs) == sorted([first, second])
        assert report.deleted_artifacts == 0

    def test_background_thread_survives_a_failed_pass(self, pipeline, monkeypatch):
        sweeper = pipeline.sweeper()
        sweeper.interval = 0.01
        passes = []

        def flaky_sweep(completed_older_than, failed_older_than):
            passes.append(1)
            if len(passes) == 1:
                raise RuntimeError("unexpected driver error")
            return []

        monkeypatch.setattr(pipeline.queue, "sweep", flaky_sweep)
        sweeper.start()
        try:
            assert wait_for(lambda: len(passes) >= 3)
            assert sweeper._thread.is_alive()
        finally:
            sweeper.stop(timeout=5)

    def test_background_thread_runs_and_stops(self, pipeline):
        sweeper = pipeline.sweeper()
        sweeper.interval = 60
        sweeper.start()
        sweeper.stop(timeout=5)
        assert not sweeper._thread.is_alive()
