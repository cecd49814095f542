"""SQLAlchemy models package."""

from datetime import datetime, timezone

from resumegen import db


def utcnow() -> datetime:
    """Naive UTC timestamp, the convention for every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BaseModel(db.Model):
    """Base model with common columns."""

    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        """String representation."""
        return f"<{self.__class__.__name__} id={self.id}>"


# Import models to ensure they're registered with SQLAlchemy
from resumegen.models.render_job import RenderJob, RenderJobState  # noqa: E402

__all__ = ["BaseModel", "RenderJob", "RenderJobState", "utcnow"]
