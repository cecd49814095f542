"""
Render Job Model

One request to render a resume snapshot into a downloadable document.
Rows are created by enqueue, mutated only by the worker holding the current
claim (or by the liveness check), and deleted by the retention sweep.
"""
import enum

from sqlalchemy import Index

from resumegen import db
from resumegen.models import BaseModel


class RenderJobState(str, enum.Enum):
    """Lifecycle states of a render job."""
    QUEUED = "queued"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def terminal(cls):
        return (cls.COMPLETED.value, cls.FAILED.value)


class RenderJob(BaseModel):
    """Durable render job record."""

    __tablename__ = "render_jobs"
    __table_args__ = (
        Index("ix_render_jobs_claim_order", "state", "priority", "available_at", "id"),
        Index("ix_render_jobs_state_finished", "state", "finished_at"),
    )

    # UUID for external reference (avoids exposing auto-increment IDs)
    job_id = db.Column(db.String(36), unique=True, nullable=False, index=True)
    kind = db.Column(db.String(50), nullable=False)
    payload = db.Column(db.JSON, nullable=False)

    state = db.Column(db.String(20), nullable=False, default=RenderJobState.QUEUED.value)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    max_attempts = db.Column(db.Integer, nullable=False)
    priority = db.Column(db.Integer, nullable=False, default=0)

    # Earliest time the job may be claimed (retry backoff)
    available_at = db.Column(db.DateTime, nullable=False)
    started_at = db.Column(db.DateTime, nullable=True)
    finished_at = db.Column(db.DateTime, nullable=True)

    # Ownership of the current claim
    owner = db.Column(db.String(100), nullable=True)
    claim_token = db.Column(db.String(36), nullable=True)

    progress = db.Column(db.Integer, nullable=False, default=0)
    result = db.Column(db.JSON, nullable=True)
    error_reason = db.Column(db.Text, nullable=True)

    @property
    def is_terminal(self) -> bool:
        return self.state in RenderJobState.terminal()

    def to_dict(self):
        """Convert model to dictionary."""
        data = super().to_dict()
        data.update({
            "job_id": self.job_id,
            "kind": self.kind,
            "state": self.state,
            "attempts": self.attempts,
            "max_attempts": self.max_attempts,
            "priority": self.priority,
            "progress": self.progress,
            "available_at": self.available_at.isoformat() if self.available_at else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "owner": self.owner,
            "result": self.result,
            "error_reason": self.error_reason,
        })
        return data

    def __repr__(self):
        return f"<RenderJob {self.job_id} state={self.state} attempts={self.attempts}/{self.max_attempts}>"
