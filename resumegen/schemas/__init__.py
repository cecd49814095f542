"""Pydantic schemas for request/response validation."""

from resumegen.schemas.resume_snapshot_schema import (
    CertificationEntry,
    CustomSection,
    EducationEntry,
    ExperienceEntry,
    LanguageEntry,
    PersonalInfo,
    ProjectEntry,
    ReferenceEntry,
    ResumeSnapshot,
    SkillEntry,
)
from resumegen.schemas.render_job_schema import (
    AppInfoSchema,
    EnqueueRenderRequest,
    EnqueueRenderResponse,
    ErrorResponse,
    HealthCheckSchema,
    RenderJobStatusResponse,
    TemplateInfoSchema,
)

__all__ = [
    "CertificationEntry",
    "CustomSection",
    "EducationEntry",
    "ExperienceEntry",
    "LanguageEntry",
    "PersonalInfo",
    "ProjectEntry",
    "ReferenceEntry",
    "ResumeSnapshot",
    "SkillEntry",
    "AppInfoSchema",
    "EnqueueRenderRequest",
    "EnqueueRenderResponse",
    "ErrorResponse",
    "HealthCheckSchema",
    "RenderJobStatusResponse",
    "TemplateInfoSchema",
]
