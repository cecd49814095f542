"""
Base Resume Template

Abstract base class for all resume templates, plus the placeholder token
vocabulary every skeleton is written against.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional


# Matches well-formed tokens and near misses such as "{{ Full_Name }}" so a
# typo'd token is reported instead of silently surviving substitution.
PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Za-z0-9_]+)\s*\}\}")

SCALAR_TOKENS: FrozenSet[str] = frozenset({
    "RESUME_TITLE",
    "FULL_NAME",
    "JOB_TITLE",
    "EMAIL",
    "PHONE",
    "ADDRESS",
    "CITY",
    "STATE",
    "ZIP_CODE",
    "COUNTRY",
    "LINKEDIN",
    "WEBSITE",
    "GITHUB",
    "SUMMARY",
    "CONTACT_LINE",
})

SECTION_TOKENS: FrozenSet[str] = frozenset({
    "EDUCATION_SECTION",
    "EXPERIENCE_SECTION",
    "SKILLS_SECTION",
    "LANGUAGES_SECTION",
    "PROJECTS_SECTION",
    "CERTIFICATIONS_SECTION",
    "REFERENCES_SECTION",
    "CUSTOM_SECTIONS",
})

KNOWN_TOKENS: FrozenSet[str] = SCALAR_TOKENS | SECTION_TOKENS


def find_placeholders(markup: str) -> FrozenSet[str]:
    """Return every placeholder token name present in the markup."""
    return frozenset(match.group(1) for match in PLACEHOLDER_PATTERN.finditer(markup))


class ResumeTemplateType(str, Enum):
    """Built-in resume template types."""
    MODERN = "modern"
    CLASSIC = "classic"
    DEFAULT = "default"


@dataclass(frozen=True)
class TemplateMetadata:
    """Metadata about a resume template."""
    id: str
    name: str
    description: str
    preview_image: Optional[str] = None
    is_default: bool = False


@dataclass(frozen=True)
class TemplateSkeleton:
    """Named markup with placeholder tokens, read-only at render time."""
    name: str
    markup: str

    @property
    def tokens(self) -> FrozenSet[str]:
        return find_placeholders(self.markup)

    @property
    def unknown_tokens(self) -> FrozenSet[str]:
        return self.tokens - KNOWN_TOKENS


class BaseResumeTemplate(ABC):
    """
    Abstract base class for resume templates.

    A template provides metadata for UI display and an HTML skeleton whose
    placeholders are filled by the document compositor. Page size, margins,
    header and footer are applied by the rendering engine, so skeletons
    must not declare their own @page rules.
    """

    @property
    @abstractmethod
    def metadata(self) -> TemplateMetadata:
        """Return template metadata for UI display."""
        pass

    @property
    @abstractmethod
    def markup(self) -> str:
        """Return the HTML skeleton with placeholder tokens."""
        pass

    def skeleton(self) -> TemplateSkeleton:
        return TemplateSkeleton(name=self.metadata.id, markup=self.markup)
