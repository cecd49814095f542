"""
Job Queue Service

Durable, shared FIFO-with-priority queue of render jobs backed by the
`render_jobs` table. Any number of processes may point at the same
database; the claim is the single source of mutual exclusion between them.

Claim protocol:
1. SELECT the oldest ready job (priority first, then insertion order)
   FOR UPDATE SKIP LOCKED
2. compare-and-swap UPDATE ... WHERE state = 'queued'
3. the CAS row count decides ownership; a lost race simply tries again

Every claim stamps a fresh claim token. Completion and failure must present
that token, so a worker whose claim was reclaimed can never overwrite the
state written by the job's newer owner.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.engine import Engine

from resumegen.exceptions import (
    DoubleCompletionError,
    JobNotFoundError,
    JobStateConflictError,
    WorkerLostError,
)
from resumegen.models import RenderJob, RenderJobState, utcnow
from resumegen.utils.database import StoreSession

logger = logging.getLogger(__name__)

CLAIM_RACE_RETRIES = 5


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt limit and capped exponential backoff between attempts."""

    max_attempts: int = 3
    backoff_base: float = 1.0
    backoff_max: float = 300.0

    def delay_for(self, attempts: int) -> timedelta:
        """Delay before re-claim after the given (1-based) failed attempt."""
        seconds = self.backoff_base * (2 ** max(attempts - 1, 0))
        return timedelta(seconds=min(seconds, self.backoff_max))


@dataclass(frozen=True)
class ClaimedJob:
    """A job as seen by the worker that owns the current claim."""

    job_id: str
    kind: str
    payload: Dict[str, Any]
    attempts: int
    max_attempts: int
    priority: int
    owner: str
    claim_token: str
    started_at: datetime


@dataclass(frozen=True)
class JobStatus:
    """Read-only view of a job for status polling."""

    job_id: str
    state: str
    attempts: int
    max_attempts: int
    progress: int
    result: Optional[Dict[str, Any]]
    error_reason: Optional[str]
    created_at: datetime
    started_at: Optional[datetime]
    finished_at: Optional[datetime]


@dataclass(frozen=True)
class SweptJob:
    """A terminal job removed by the sweep or an explicit purge."""

    job_id: str
    state: str
    result: Optional[Dict[str, Any]]


class JobQueue:
    """
    Render job queue.

    Args:
        engine: SQLAlchemy engine of the shared job store
        retry_policy: attempt limit and backoff for retryable failures
        clock: returns the current naive UTC time
    """

    def __init__(
        self,
        engine: Engine,
        retry_policy: Optional[RetryPolicy] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = StoreSession(engine)
        self.retry_policy = retry_policy or RetryPolicy()
        self.clock = clock

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def enqueue(
        self,
        kind: str,
        payload: Dict[str, Any],
        priority: int = 0,
        max_attempts: Optional[int] = None,
    ) -> str:
        """
        Persist a new job in the queued state.

        Lower priority values are claimed first.

        Raises:
            StoreUnavailableError: the job store is unreachable
        """
        if max_attempts is None:
            max_attempts = self.retry_policy.max_attempts
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        now = self.clock()
        job = RenderJob(
            job_id=str(uuid.uuid4()),
            kind=kind,
            payload=payload,
            state=RenderJobState.QUEUED.value,
            attempts=0,
            max_attempts=max_attempts,
            priority=priority,
            available_at=now,
            progress=0,
            created_at=now,
            updated_at=now,
        )
        with self.store.begin() as session:
            session.add(job)

        logger.info(f"[RENDER-QUEUE] Enqueued {kind} job {job.job_id} (priority={priority}, max_attempts={max_attempts})")
        return job.job_id

    def get_status(self, job_id: str) -> JobStatus:
        """
        Raises:
            JobNotFoundError: no job with this id
        """
        with self.store.begin() as session:
            job = session.scalar(select(RenderJob).where(RenderJob.job_id == job_id))
            if job is None:
                raise JobNotFoundError(f"job {job_id} not found")
            return JobStatus(
                job_id=job.job_id,
                state=job.state,
                attempts=job.attempts,
                max_attempts=job.max_attempts,
                progress=job.progress,
                result=job.result,
                error_reason=job.error_reason,
                created_at=job.created_at,
                started_at=job.started_at,
                finished_at=job.finished_at,
            )

    # ------------------------------------------------------------------
    # Worker side
    # ------------------------------------------------------------------

    def claim_next(self, worker_id: str) -> Optional[ClaimedJob]:
        """
        Atomically take ownership of the next ready job.

        Returns None without blocking when no job is ready.

        Raises:
            StoreUnavailableError: the job store is unreachable
        """
        for _ in range(CLAIM_RACE_RETRIES):
            now = self.clock()
            with self.store.begin() as session:
                candidate = session.scalar(
                    select(RenderJob.id)
                    .where(
                        RenderJob.state == RenderJobState.QUEUED.value,
                        RenderJob.available_at <= now,
                        RenderJob.attempts < RenderJob.max_attempts,
                    )
                    .order_by(RenderJob.priority.asc(), RenderJob.id.asc())
                    .limit(1)
                    .with_for_update(skip_locked=True)
                )
                if candidate is None:
                    return None

                claim_token = str(uuid.uuid4())
                swapped = session.execute(
                    update(RenderJob)
                    .where(
                        RenderJob.id == candidate,
                        RenderJob.state == RenderJobState.QUEUED.value,
                    )
                    .values(
                        state=RenderJobState.ACTIVE.value,
                        attempts=RenderJob.attempts + 1,
                        started_at=now,
                        updated_at=now,
                        owner=worker_id,
                        claim_token=claim_token,
                        progress=0,
                    )
                    .execution_options(synchronize_session=False)
                )
                if swapped.rowcount != 1:
                    logger.debug(f"[RENDER-QUEUE] {worker_id} lost claim race for row {candidate}, retrying")
                    continue

                job = session.get(RenderJob, candidate)
                claimed = ClaimedJob(
                    job_id=job.job_id,
                    kind=job.kind,
                    payload=job.payload,
                    attempts=job.attempts,
                    max_attempts=job.max_attempts,
                    priority=job.priority,
                    owner=worker_id,
                    claim_token=claim_token,
                    started_at=now,
                )

            logger.info(
                f"[RENDER-QUEUE] {worker_id} claimed job {claimed.job_id} "
                f"(attempt {claimed.attempts}/{claimed.max_attempts})"
            )
            return claimed

        return None

    def report_progress(self, job_id: str, claim_token: str, progress: int) -> bool:
        """
        Record progress (0-100) for an owned job. Also refreshes its lease.

        Returns False when the caller no longer owns the job.
        """
        progress = max(0, min(100, int(progress)))
        with self.store.begin() as session:
            updated = session.execute(
                update(RenderJob)
                .where(
                    RenderJob.job_id == job_id,
                    RenderJob.state == RenderJobState.ACTIVE.value,
                    RenderJob.claim_token == claim_token,
                )
                .values(progress=progress, updated_at=self.clock())
                .execution_options(synchronize_session=False)
            )
        if updated.rowcount != 1:
            logger.debug(f"[RENDER-QUEUE] Ignoring progress for job {job_id}: claim no longer held")
            return False
        return True

    def complete(self, job_id: str, claim_token: str, result: Dict[str, Any]) -> None:
        """
        Transition an owned job from active to completed.

        Raises:
            DoubleCompletionError: the job is not active under this claim
        """
        now = self.clock()
        with self.store.begin() as session:
            updated = session.execute(
                update(RenderJob)
                .where(
                    RenderJob.job_id == job_id,
                    RenderJob.state == RenderJobState.ACTIVE.value,
                    RenderJob.claim_token == claim_token,
                )
                .values(
                    state=RenderJobState.COMPLETED.value,
                    result=result,
                    progress=100,
                    error_reason=None,
                    finished_at=now,
                    updated_at=now,
                    claim_token=None,
                )
                .execution_options(synchronize_session=False)
            )

        if updated.rowcount != 1:
            logger.warning(f"[RENDER-QUEUE] Rejected completion of job {job_id}: claim no longer held")
            raise DoubleCompletionError(f"job {job_id} is not active under this claim")

        logger.info(f"[RENDER-QUEUE] Job {job_id} completed")

    def fail(self, job_id: str, claim_token: str, reason: str, retryable: bool) -> str:
        """
        Record a failed attempt.

        A retryable failure with attempts left re-queues the job after the
        backoff delay; anything else fails it terminally.

        Returns:
            The job's new state ("queued" or "failed")

        Raises:
            DoubleCompletionError: the job is not active under this claim
        """
        with self.store.begin() as session:
            job = session.scalar(
                select(RenderJob)
                .where(
                    RenderJob.job_id == job_id,
                    RenderJob.state == RenderJobState.ACTIVE.value,
                    RenderJob.claim_token == claim_token,
                )
                .with_for_update()
            )
            if job is None:
                logger.warning(f"[RENDER-QUEUE] Rejected failure report for job {job_id}: claim no longer held")
                raise DoubleCompletionError(f"job {job_id} is not active under this claim")

            new_state = self._record_failure(job, reason, retryable)

        return new_state

    def reclaim_expired(self, lease: timedelta) -> int:
        """
        Liveness check: fail active jobs whose owner has gone quiet.

        A job is expired when neither its claim nor a progress report has
        touched it within `lease`. Expired jobs are treated as retryable
        failures, so they are re-queued while attempts remain.

        Returns:
            Number of jobs reclaimed
        """
        cutoff = self.clock() - lease
        with self.store.begin() as session:
            expired = session.scalars(
                select(RenderJob)
                .where(
                    RenderJob.state == RenderJobState.ACTIVE.value,
                    RenderJob.updated_at < cutoff,
                )
                .with_for_update(skip_locked=True)
            ).all()

            for job in expired:
                error = WorkerLostError(f"no progress from {job.owner} within {int(lease.total_seconds())}s")
                self._record_failure(job, error.reason, error.retryable)

        if expired:
            logger.warning(f"[RENDER-QUEUE] Reclaimed {len(expired)} job(s) from lost workers")
        return len(expired)

    def _record_failure(self, job: RenderJob, reason: str, retryable: bool) -> str:
        now = self.clock()
        job.error_reason = reason
        job.claim_token = None
        job.updated_at = now

        if retryable and job.attempts < job.max_attempts:
            delay = self.retry_policy.delay_for(job.attempts)
            job.state = RenderJobState.QUEUED.value
            job.owner = None
            job.progress = 0
            job.available_at = now + delay
            logger.warning(
                f"[RENDER-QUEUE] Job {job.job_id} attempt {job.attempts}/{job.max_attempts} failed "
                f"({reason}), retrying in {delay.total_seconds():g}s"
            )
        else:
            job.state = RenderJobState.FAILED.value
            job.finished_at = now
            logger.error(
                f"[RENDER-QUEUE] Job {job.job_id} failed after {job.attempts} attempt(s): {reason}"
            )
        return job.state

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def sweep(self, completed_older_than: timedelta, failed_older_than: timedelta) -> List[SweptJob]:
        """
        Delete terminal jobs that finished strictly before their retention cutoff.

        Active and queued jobs are never touched. Returns the removed jobs so
        the caller can delete their artifacts.
        """
        now = self.clock()
        completed_cutoff = now - completed_older_than
        failed_cutoff = now - failed_older_than

        with self.store.begin() as session:
            rows = session.scalars(
                select(RenderJob)
                .where(
                    (
                        (RenderJob.state == RenderJobState.COMPLETED.value)
                        & (RenderJob.finished_at < completed_cutoff)
                    )
                    | (
                        (RenderJob.state == RenderJobState.FAILED.value)
                        & (RenderJob.finished_at < failed_cutoff)
                    )
                )
                .with_for_update(skip_locked=True)
            ).all()

            swept = [SweptJob(job_id=row.job_id, state=row.state, result=row.result) for row in rows]
            if rows:
                session.execute(
                    delete(RenderJob)
                    .where(
                        RenderJob.id.in_([row.id for row in rows]),
                        RenderJob.state.in_(RenderJobState.terminal()),
                    )
                    .execution_options(synchronize_session=False)
                )

        if swept:
            logger.info(f"[RENDER-QUEUE] Swept {len(swept)} expired job(s)")
        return swept

    def purge(self, job_id: str) -> SweptJob:
        """
        Delete one terminal job immediately.

        Raises:
            JobNotFoundError: no job with this id
            JobStateConflictError: the job is still queued or active
        """
        with self.store.begin() as session:
            job = session.scalar(
                select(RenderJob).where(RenderJob.job_id == job_id).with_for_update()
            )
            if job is None:
                raise JobNotFoundError(f"job {job_id} not found")
            if not job.is_terminal:
                raise JobStateConflictError(f"job {job_id} is {job.state}")

            purged = SweptJob(job_id=job.job_id, state=job.state, result=job.result)
            session.delete(job)

        logger.info(f"[RENDER-QUEUE] Purged job {job_id}")
        return purged

    def counts(self) -> Dict[str, int]:
        """Number of jobs in each state."""
        totals = {state.value: 0 for state in RenderJobState}
        with self.store.begin() as session:
            rows = session.execute(
                select(RenderJob.state, func.count(RenderJob.id)).group_by(RenderJob.state)
            ).all()
        for state, count in rows:
            totals[state] = count
        return totals
