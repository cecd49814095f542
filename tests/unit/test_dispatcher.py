"""Tests for the render dispatcher worker pool."""

import time
from datetime import timedelta

import pytest

from resumegen.exceptions import EngineCrashError, InvalidContentError, StoreUnavailableError
from resumegen.schemas import ResumeSnapshot
from resumegen.services.dispatcher import Dispatcher


class RecordingHandler:
    """Handler stub that records calls and discarded results."""

    def __init__(self, action=None):
        self.action = action
        self.calls = []
        self.discarded = []

    def __call__(self, job, report_progress):
        self.calls.append(job.job_id)
        report_progress(50)
        if self.action is not None:
            return self.action(job)
        return {"artifact_ref": f"{job.job_id}.pdf"}

    def discard(self, result):
        self.discarded.append(result)


def wait_for(predicate, timeout=10.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return False


@pytest.mark.unit
class TestDispatcherProcess:
    """Test outcome reporting for a single job."""

    def test_success_completes_job(self, queue):
        job_id = queue.enqueue("generate-pdf", {})
        handler = RecordingHandler()
        dispatcher = Dispatcher(queue, handler, worker_count=1)

        dispatcher.process("w", queue.claim_next("w"))

        status = queue.get_status(job_id)
        assert status.state == "completed"
        assert status.result == {"artifact_ref": f"{job_id}.pdf"}

    def test_retryable_error_requeues(self, queue):
        job_id = queue.enqueue("generate-pdf", {})

        def crash(job):
            raise EngineCrashError("engine died")

        Dispatcher(queue, RecordingHandler(crash)).process("w", queue.claim_next("w"))

        status = queue.get_status(job_id)
        assert status.state == "queued"
        assert status.error_reason == "engine_crash: engine died"

    def test_non_retryable_error_fails(self, queue):
        job_id = queue.enqueue("generate-pdf", {})

        def reject(job):
            raise InvalidContentError("malformed")

        Dispatcher(queue, RecordingHandler(reject)).process("w", queue.claim_next("w"))

        status = queue.get_status(job_id)
        assert status.state == "failed"
        assert status.attempts == 1

    def test_unexpected_error_is_recorded_without_its_message(self, queue):
        job_id = queue.enqueue("generate-pdf", {})

        def explode(job):
            raise KeyError("internal detail")

        Dispatcher(queue, RecordingHandler(explode)).process("w", queue.claim_next("w"))

        status = queue.get_status(job_id)
        assert status.state == "failed"
        assert status.error_reason == "unexpected_error: KeyError"

    def test_rejected_completion_discards_output(self, queue, clock):
        job_id = queue.enqueue("generate-pdf", {})

        def lose_claim(job):
            # Liveness check reclaims the job while it is rendering
            clock.advance(minutes=5)
            queue.reclaim_expired(timedelta(seconds=120))
            return {"artifact_ref": "late.pdf"}

        handler = RecordingHandler(lose_claim)
        Dispatcher(queue, handler).process("w", queue.claim_next("w"))

        assert handler.discarded == [{"artifact_ref": "late.pdf"}]
        status = queue.get_status(job_id)
        assert status.state == "queued"
        assert status.result is None

    def test_unrecorded_completion_discards_output(self, queue, monkeypatch):
        job_id = queue.enqueue("generate-pdf", {})
        job = queue.claim_next("w")

        def store_down(*args, **kwargs):
            raise StoreUnavailableError("connection refused")

        monkeypatch.setattr(queue, "complete", store_down)
        handler = RecordingHandler()
        Dispatcher(queue, handler).process("w", job)

        assert handler.discarded == [{"artifact_ref": f"{job_id}.pdf"}]
        assert queue.get_status(job_id).state == "active"

    def test_unrecorded_completion_removes_stored_artifact(self, pipeline, monkeypatch):
        job_id = pipeline.service.enqueue_render(ResumeSnapshot(), requester_id="u1", resume_id="r1")
        job = pipeline.queue.claim_next("w")
        saved = []
        original_save = pipeline.artifact_store.save

        def recording_save(job_id, content):
            ref = original_save(job_id, content)
            saved.append(ref)
            return ref

        def store_down(*args, **kwargs):
            raise StoreUnavailableError("connection refused")

        monkeypatch.setattr(pipeline.artifact_store, "save", recording_save)
        monkeypatch.setattr(pipeline.queue, "complete", store_down)
        pipeline.dispatcher().process("w", job)

        assert len(saved) == 1
        assert not pipeline.artifact_store.exists(saved[0])
        assert pipeline.queue.get_status(job_id).state == "active"


@pytest.mark.unit
class TestDispatcherPool:
    """Test the threaded worker pool."""

    def test_rejects_empty_pool(self, queue):
        with pytest.raises(ValueError):
            Dispatcher(queue, RecordingHandler(), worker_count=0)

    def test_workers_drain_queue_and_stop(self, pipeline, fake_engine):
        fake_engine.delay = 0.05
        service = pipeline.service

        job_ids = [
            service.enqueue_render(ResumeSnapshot(), requester_id="u1", resume_id=f"r{i}")
            for i in range(6)
        ]
        dispatcher = pipeline.dispatcher(idle_interval=0.01)

        dispatcher.start()
        try:
            assert wait_for(lambda: pipeline.queue.counts()["completed"] == len(job_ids))
        finally:
            dispatcher.stop(timeout=10)

        assert not dispatcher.is_running
        assert fake_engine.max_in_use <= pipeline.worker_count
        assert len(fake_engine.documents) == len(job_ids)

    def test_worker_ids_are_stable_and_distinct(self, queue):
        dispatcher = Dispatcher(queue, RecordingHandler(), worker_count=3, name="render-worker")
        ids = [dispatcher.worker_id(i) for i in (1, 2, 3)]
        assert len(set(ids)) == 3
        assert ids[0] == dispatcher.worker_id(1)
        assert ids[0].endswith(":render-worker-1")
