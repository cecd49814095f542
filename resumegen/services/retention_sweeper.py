"""
Retention Sweeper

Periodic maintenance for the render queue:
- reclaims active jobs whose worker has gone quiet (liveness check)
- deletes completed jobs and their artifacts after the completed retention
- deletes failed jobs after the (longer) failed retention
"""
import logging
import threading
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Optional

from resumegen.exceptions import ArtifactNotFoundError, StoreUnavailableError
from resumegen.services.artifact_store import LocalArtifactStore
from resumegen.services.job_queue_service import JobQueue

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    reclaimed: int = 0
    deleted_jobs: List[str] = field(default_factory=list)
    deleted_artifacts: int = 0

    def to_dict(self):
        return {
            "reclaimed": self.reclaimed,
            "deleted_jobs": len(self.deleted_jobs),
            "deleted_artifacts": self.deleted_artifacts,
        }


class RetentionSweeper:
    """
    Args:
        queue: the shared job queue
        artifact_store: where completed jobs' artifacts live
        completed_retention: age after which completed jobs are deleted
        failed_retention: age after which failed jobs are deleted
        active_lease: idle time after which an active job is reclaimed
            (None disables the liveness check)
        interval: seconds between passes when run in the background
    """

    def __init__(
        self,
        queue: JobQueue,
        artifact_store: LocalArtifactStore,
        completed_retention: timedelta = timedelta(hours=24),
        failed_retention: timedelta = timedelta(days=7),
        active_lease: Optional[timedelta] = timedelta(seconds=120),
        interval: float = 3600,
    ):
        self.queue = queue
        self.artifact_store = artifact_store
        self.completed_retention = completed_retention
        self.failed_retention = failed_retention
        self.active_lease = active_lease
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run_once(self) -> SweepReport:
        """One reclaim + sweep pass."""
        report = SweepReport()

        if self.active_lease is not None:
            report.reclaimed = self.queue.reclaim_expired(self.active_lease)

        swept = self.queue.sweep(self.completed_retention, self.failed_retention)
        for job in swept:
            report.deleted_jobs.append(job.job_id)
            artifact_ref = (job.result or {}).get("artifact_ref")
            if not artifact_ref:
                continue
            try:
                if self.artifact_store.delete(artifact_ref):
                    report.deleted_artifacts += 1
            except ArtifactNotFoundError:
                logger.warning(f"[SWEEPER] Job {job.job_id} has an invalid artifact reference {artifact_ref!r}")
            except OSError as e:
                logger.error(f"[SWEEPER] Could not delete artifact {artifact_ref} of job {job.job_id}: {e}")

        logger.info(
            f"[SWEEPER] Pass complete: reclaimed={report.reclaimed} "
            f"deleted_jobs={len(report.deleted_jobs)} deleted_artifacts={report.deleted_artifacts}"
        )
        return report

    def start(self) -> None:
        """Run passes every `interval` seconds in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="retention-sweeper", daemon=True)
        self._thread.start()
        logger.info(f"[SWEEPER] Started (interval={self.interval}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.run_once()
            except StoreUnavailableError as e:
                logger.error(f"[SWEEPER] Job store unavailable, skipping pass: {e.reason}")
            except Exception:
                logger.exception("[SWEEPER] Pass failed, retrying next interval")
            self._stop.wait(self.interval)
