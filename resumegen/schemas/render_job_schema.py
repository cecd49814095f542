"""
Pydantic schemas for render job requests and status responses.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from resumegen.schemas.resume_snapshot_schema import ResumeSnapshot


class CamelModel(BaseModel):
    """Base schema speaking the CRUD layer's camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Request Schemas
# ============================================================================

class EnqueueRenderRequest(CamelModel):
    """Schema for a "render this resume" request"""
    resume_snapshot: ResumeSnapshot = Field(..., description="Resume content to render")
    template_name: Optional[str] = Field(default=None, max_length=100)
    requester_id: str = Field(..., min_length=1, max_length=100)
    resume_id: str = Field(..., min_length=1, max_length=100)
    priority: Optional[int] = Field(default=None, ge=0, le=100)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    @field_validator("template_name")
    @classmethod
    def blank_template_is_default(cls, v):
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v


# ============================================================================
# Response Schemas
# ============================================================================

class EnqueueRenderResponse(CamelModel):
    job_id: str


class RenderJobStatusResponse(CamelModel):
    """Status document returned to pollers"""
    job_id: str
    status: str = Field(..., description="not_found | queued | active | completed | failed")
    attempts: int = 0
    progress: Optional[int] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class TemplateInfoSchema(CamelModel):
    id: str
    name: str
    description: str
    is_default: bool = False


class HealthCheckSchema(BaseModel):
    """Schema for health check response."""
    status: str
    timestamp: datetime
    environment: str
    queue: Dict[str, int] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Schema for error responses."""
    error: str
    message: str
    status: int


class AppInfoSchema(BaseModel):
    """Schema for application info response."""
    name: str
    version: str
    environment: str
    debug: bool
    timestamp: datetime
