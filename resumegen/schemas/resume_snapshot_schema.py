"""
Pydantic schemas for the resume snapshot captured at enqueue time.

The CRUD layer sends camelCase JSON; snake_case field names are accepted too
so a snapshot stored in a job payload validates back into the same model.
Snapshots are frozen: a job always renders the data it was enqueued with.
"""
from datetime import date
from typing import Annotated, Any, List, Optional

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _coerce_date(value: Any) -> Any:
    """Accept full ISO timestamps ("2021-03-01T00:00:00.000Z") as dates."""
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        return value[:10]
    return value


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


def _none_to_dict(value: Any) -> Any:
    return {} if value is None else value


FlexibleDate = Annotated[Optional[date], BeforeValidator(_coerce_date)]


class SnapshotModel(BaseModel):
    """Base for all snapshot models."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class PersonalInfo(SnapshotModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    linked_in: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("linked_in", "linkedIn", "linkedin")
    )
    website: Optional[str] = None
    github: Optional[str] = None
    summary: Optional[str] = None
    job_title: Optional[str] = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class EducationEntry(SnapshotModel):
    institution: Optional[str] = None
    degree: Optional[str] = None
    field_of_study: Optional[str] = None
    start_date: FlexibleDate = None
    end_date: FlexibleDate = None
    description: Optional[str] = None
    is_currently_studying: bool = False


class ExperienceEntry(SnapshotModel):
    company: Optional[str] = None
    position: Optional[str] = None
    location: Optional[str] = None
    start_date: FlexibleDate = None
    end_date: FlexibleDate = None
    description: Optional[str] = None
    is_current_job: bool = False


class SkillEntry(SnapshotModel):
    name: Optional[str] = None
    level: Optional[str] = None


class LanguageEntry(SnapshotModel):
    name: Optional[str] = None
    proficiency: Optional[str] = None


class ProjectEntry(SnapshotModel):
    title: Optional[str] = Field(default=None, validation_alias=AliasChoices("title", "name"))
    description: Optional[str] = None
    technologies: Annotated[List[str], BeforeValidator(_none_to_list)] = Field(default_factory=list)
    start_date: FlexibleDate = None
    end_date: FlexibleDate = None
    link: Optional[str] = Field(default=None, validation_alias=AliasChoices("link", "url"))


class CertificationEntry(SnapshotModel):
    name: Optional[str] = None
    organization: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("organization", "issuer")
    )
    issue_date: FlexibleDate = Field(
        default=None, validation_alias=AliasChoices("issue_date", "issueDate", "date")
    )
    expiry_date: FlexibleDate = Field(
        default=None, validation_alias=AliasChoices("expiry_date", "expiryDate")
    )
    credential_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("credential_id", "credentialId", "credentialID")
    )
    credential_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("credential_url", "credentialUrl", "credentialURL")
    )


class ReferenceEntry(SnapshotModel):
    name: Optional[str] = None
    position: Optional[str] = None
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class CustomSection(SnapshotModel):
    title: Optional[str] = None
    content: Optional[str] = None


def _section(model):
    return Annotated[List[model], BeforeValidator(_none_to_list)]


class ResumeSnapshot(SnapshotModel):
    """Immutable copy of a resume taken when a render job is enqueued."""

    title: Optional[str] = None
    personal_info: Annotated[PersonalInfo, BeforeValidator(_none_to_dict)] = Field(
        default_factory=PersonalInfo
    )
    education: _section(EducationEntry) = Field(default_factory=list)
    experience: _section(ExperienceEntry) = Field(default_factory=list)
    skills: _section(SkillEntry) = Field(default_factory=list)
    languages: _section(LanguageEntry) = Field(default_factory=list)
    projects: _section(ProjectEntry) = Field(default_factory=list)
    certifications: _section(CertificationEntry) = Field(default_factory=list)
    references: _section(ReferenceEntry) = Field(default_factory=list)
    custom_sections: _section(CustomSection) = Field(default_factory=list)
