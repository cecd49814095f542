"""
Render Dispatcher

A fixed-size pool of worker threads. Each loop claims a ready job, runs the
job handler, and reports the outcome back to the queue:

    claim -> handle -> complete / fail -> repeat

Workers share nothing but the queue. On shutdown every loop finishes the job
it is holding (bounded by the render timeout) and exits; a worker that dies
without reporting is picked up later by the queue's liveness check.
"""
import logging
import os
import signal
import socket
import threading
from typing import Any, Callable, Dict, List, Optional

from resumegen.exceptions import DoubleCompletionError, RenderPipelineError, StoreUnavailableError
from resumegen.services.job_queue_service import ClaimedJob, JobQueue

logger = logging.getLogger(__name__)

ProgressReporter = Callable[[int], None]
JobHandler = Callable[[ClaimedJob, ProgressReporter], Dict[str, Any]]

STORE_RETRY_INTERVAL_SECONDS = 5.0


class Dispatcher:
    """
    Bounded worker pool over a JobQueue.

    Args:
        queue: the shared job queue
        handler: callable(job, report_progress) -> result dict. If the handler
            has a `discard(result)` method it is called when a completion is
            rejected or cannot be recorded, so the orphaned output is removed.
        worker_count: number of concurrent worker loops (N)
        idle_interval: seconds to wait when no job is ready
        name: prefix for worker ids
    """

    def __init__(
        self,
        queue: JobQueue,
        handler: JobHandler,
        worker_count: int = 2,
        idle_interval: float = 0.5,
        name: str = "render-worker",
        store_retry_interval: float = STORE_RETRY_INTERVAL_SECONDS,
    ):
        if worker_count < 1:
            raise ValueError("worker_count must be at least 1")
        self.queue = queue
        self.handler = handler
        self.worker_count = worker_count
        self.idle_interval = idle_interval
        self.name = name
        self.store_retry_interval = store_retry_interval
        self._stop = threading.Event()
        self._threads: List[threading.Thread] = []

    @property
    def is_running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def worker_id(self, index: int) -> str:
        """Stable identity of one worker loop, used in logs and job ownership."""
        return f"{socket.gethostname()}:{os.getpid()}:{self.name}-{index}"

    def start(self) -> None:
        """Start N worker threads."""
        if self.is_running:
            raise RuntimeError("Dispatcher already running")

        self._stop.clear()
        self._threads = []
        for index in range(1, self.worker_count + 1):
            worker_id = self.worker_id(index)
            thread = threading.Thread(
                target=self._worker_loop,
                args=(worker_id,),
                name=f"{self.name}-{index}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)

        logger.info(f"[DISPATCHER] Started {self.worker_count} worker(s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal every loop to exit after its current job and wait for them."""
        self._stop.set()
        for thread in self._threads:
            thread.join(timeout)
        still_running = [thread.name for thread in self._threads if thread.is_alive()]
        if still_running:
            logger.warning(f"[DISPATCHER] Workers still finishing: {still_running}")
        else:
            logger.info("[DISPATCHER] All workers stopped gracefully")

    def run_forever(self) -> None:
        """Run until SIGINT/SIGTERM, then shut down gracefully."""

        def _handler(signum, frame):
            logger.info(f"[DISPATCHER] Received signal {signum}, stopping workers")
            self._stop.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            signal.signal(sig, _handler)

        self.start()
        try:
            while not self._stop.wait(1.0):
                if not self.is_running:
                    break
        finally:
            self.stop()

    # ------------------------------------------------------------------

    def _worker_loop(self, worker_id: str) -> None:
        logger.info(f"[DISPATCHER] {worker_id} started")

        while not self._stop.is_set():
            try:
                job = self.queue.claim_next(worker_id)
            except StoreUnavailableError as e:
                logger.error(f"[DISPATCHER] {worker_id} cannot reach job store: {e.reason}")
                self._stop.wait(self.store_retry_interval)
                continue

            if job is None:
                self._stop.wait(self.idle_interval)
                continue

            self.process(worker_id, job)

        logger.info(f"[DISPATCHER] {worker_id} stopped")

    def process(self, worker_id: str, job: ClaimedJob) -> None:
        """Run the handler for one claimed job and report its outcome."""

        def report_progress(progress: int) -> None:
            try:
                self.queue.report_progress(job.job_id, job.claim_token, progress)
            except StoreUnavailableError as e:
                logger.warning(f"[DISPATCHER] {worker_id} could not report progress for {job.job_id}: {e.reason}")

        logger.info(f"[DISPATCHER] {worker_id} processing job {job.job_id} (attempt {job.attempts}/{job.max_attempts})")

        try:
            result = self.handler(job, report_progress)
        except RenderPipelineError as e:
            self._report_failure(worker_id, job, e.reason, e.retryable)
            return
        except Exception as e:
            # Only the exception type is persisted.
            logger.exception(f"[DISPATCHER] {worker_id} unexpected error in job {job.job_id}: {e}")
            self._report_failure(worker_id, job, f"unexpected_error: {type(e).__name__}", False)
            return

        try:
            self.queue.complete(job.job_id, job.claim_token, result)
        except DoubleCompletionError:
            logger.warning(f"[DISPATCHER] {worker_id} lost job {job.job_id} before completing it, discarding output")
            self._discard(result)
        except StoreUnavailableError as e:
            # Job stays active until the liveness check re-queues it
            logger.error(f"[DISPATCHER] {worker_id} could not record completion of {job.job_id}: {e.reason}")
            self._discard(result)

    def _discard(self, result: Dict[str, Any]) -> None:
        discard = getattr(self.handler, "discard", None)
        if discard is not None:
            discard(result)

    def _report_failure(self, worker_id: str, job: ClaimedJob, reason: str, retryable: bool) -> None:
        try:
            self.queue.fail(job.job_id, job.claim_token, reason, retryable)
        except DoubleCompletionError:
            logger.warning(f"[DISPATCHER] {worker_id} lost job {job.job_id} before reporting failure")
        except StoreUnavailableError as e:
            logger.error(f"[DISPATCHER] {worker_id} could not record failure of {job.job_id}: {e.reason}")
