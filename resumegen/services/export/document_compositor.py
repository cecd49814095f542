"""
Document Compositor

Fills a template skeleton's placeholder tokens from a resume snapshot.
Substitution runs over a token -> fragment mapping in a single pass and the
output is checked afterwards, so a token nobody filled is an error instead
of stray text in the rendered resume.
"""

import logging
from typing import Dict, Optional

from resumegen.exceptions import UnresolvedPlaceholderError
from resumegen.schemas.resume_snapshot_schema import ResumeSnapshot
from resumegen.services.export.base_template import (
    PLACEHOLDER_PATTERN,
    TemplateSkeleton,
    find_placeholders,
)
from resumegen.services.export.section_renderer import SectionRenderer, escape_text

logger = logging.getLogger(__name__)


def document_title(snapshot: ResumeSnapshot) -> str:
    """Plain-text title used for the page header and the download name."""
    title = (snapshot.title or "").strip()
    if title:
        return title
    name = snapshot.personal_info.full_name.strip()
    return f"{name} Resume" if name else "Resume"


class DocumentCompositor:
    """Pure function of (snapshot, skeleton) -> composed HTML document."""

    def __init__(self, section_renderer: Optional[SectionRenderer] = None):
        self.section_renderer = section_renderer or SectionRenderer()

    def build_values(self, snapshot: ResumeSnapshot) -> Dict[str, str]:
        """Compute the rendered value of every known token."""
        info = snapshot.personal_info
        values = {
            "RESUME_TITLE": escape_text(document_title(snapshot)),
            "FULL_NAME": escape_text(info.full_name),
            "JOB_TITLE": escape_text(info.job_title),
            "EMAIL": escape_text(info.email),
            "PHONE": escape_text(info.phone),
            "ADDRESS": escape_text(info.address),
            "CITY": escape_text(info.city),
            "STATE": escape_text(info.state),
            "ZIP_CODE": escape_text(info.zip_code),
            "COUNTRY": escape_text(info.country),
            "LINKEDIN": escape_text(info.linked_in),
            "WEBSITE": escape_text(info.website),
            "GITHUB": escape_text(info.github),
            "SUMMARY": escape_text(info.summary),
            "CONTACT_LINE": self.section_renderer.contact_line(info),
        }
        values.update(self.section_renderer.render_sections(snapshot))
        return values

    def compose(self, snapshot: ResumeSnapshot, skeleton: TemplateSkeleton) -> str:
        """
        Substitute every placeholder in the skeleton.

        Raises:
            UnresolvedPlaceholderError: the skeleton uses a token with no value,
                or a token survived substitution.
        """
        values = self.build_values(snapshot)

        missing = skeleton.tokens - values.keys()
        if missing:
            logger.error(f"[COMPOSITOR] Template '{skeleton.name}' uses unknown tokens: {sorted(missing)}")
            raise UnresolvedPlaceholderError(missing)

        document = PLACEHOLDER_PATTERN.sub(lambda match: values[match.group(1)], skeleton.markup)

        leftover = find_placeholders(document)
        if leftover:
            raise UnresolvedPlaceholderError(leftover)

        return document
