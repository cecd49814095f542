"""
Section Renderer

Turns the typed sub-sections of a resume snapshot into HTML fragments.
An empty collection yields an empty fragment (no heading), absent fields are
omitted, and every piece of user text is escaped before it reaches markup.
"""

from datetime import date
from typing import Dict, Iterable, List, Optional
from urllib.parse import urlsplit

from markupsafe import escape

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


LINK_SCHEMES = ("http", "https", "mailto")

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

PRESENT = "Present"


def escape_text(value) -> str:
    """
    HTML-escape user text and entity-encode curly braces.

    Encoding the braces means user content can never form a placeholder
    token, whatever it contains.
    """
    if value is None:
        return ""
    text = str(escape(str(value).strip()))
    return text.replace("{", "&#123;").replace("}", "&#125;")


def escape_multiline(value) -> str:
    """Escape user text and keep its line breaks."""
    return "<br>".join(escape_text(line) for line in str(value or "").strip().splitlines())


def format_month(value: Optional[date]) -> str:
    """Format a date as "Jan 2020". Locale independent."""
    if value is None:
        return ""
    return f"{MONTH_ABBREVIATIONS[value.month - 1]} {value.year}"


def format_date_range(start: Optional[date], end: Optional[date], is_current: bool = False) -> str:
    """
    Format a start/end pair.

    "<start> - <end>", or "<start> - Present" when there is no end date or the
    entry is flagged as current. A range without a start date shows only its
    end; a range with neither renders as "".
    """
    if start is None:
        return "" if is_current else format_month(end)
    if is_current or end is None:
        return f"{format_month(start)} - {PRESENT}"
    return f"{format_month(start)} - {format_month(end)}"


def _join(parts: Iterable[str], separator: str) -> str:
    return separator.join(part for part in parts if part)


def _div(css_class: str, content: str) -> str:
    return f'<div class="{css_class}">{content}</div>' if content else ""


def _link(url: Optional[str]) -> str:
    if not url:
        return ""
    safe_url = escape_text(url)
    scheme = urlsplit(url.strip()).scheme.lower()
    if scheme and scheme not in LINK_SCHEMES:
        # Shown as text only
        return safe_url
    return f'<a href="{safe_url}">{safe_url}</a>'


class SectionRenderer:
    """Produces the HTML fragment for every section placeholder."""

    def render_sections(self, snapshot: ResumeSnapshot) -> Dict[str, str]:
        """Return a mapping of section token name to rendered fragment."""
        return {
            "EDUCATION_SECTION": self.education(snapshot.education),
            "EXPERIENCE_SECTION": self.experience(snapshot.experience),
            "SKILLS_SECTION": self.skills(snapshot.skills),
            "LANGUAGES_SECTION": self.languages(snapshot.languages),
            "PROJECTS_SECTION": self.projects(snapshot.projects),
            "CERTIFICATIONS_SECTION": self.certifications(snapshot.certifications),
            "REFERENCES_SECTION": self.references(snapshot.references),
            "CUSTOM_SECTIONS": self.custom_sections(snapshot.custom_sections),
        }

    def contact_line(self, info: PersonalInfo) -> str:
        """Email, phone, location and profile links joined with separators."""
        location = _join(
            (escape_text(info.city), escape_text(info.state), escape_text(info.country)), ", "
        )
        parts = [
            escape_text(info.email),
            escape_text(info.phone),
            location,
            escape_text(info.linked_in),
            escape_text(info.website),
            escape_text(info.github),
        ]
        return _join(parts, " | ")

    def _section(self, heading: str, items: List[str], body_class: Optional[str] = None) -> str:
        items = [item for item in items if item]
        if not items:
            return ""
        body = "".join(items)
        if body_class:
            body = f'<div class="{body_class}">{body}</div>'
        return f'<div class="section"><h2>{heading}</h2>{body}</div>'

    def _item(self, *parts: str) -> str:
        content = "".join(part for part in parts if part)
        return f'<div class="item">{content}</div>' if content else ""

    def education(self, entries: List[EducationEntry]) -> str:
        items = []
        for edu in entries:
            title = escape_text(edu.degree)
            if edu.field_of_study:
                title = _join((title, f"in {escape_text(edu.field_of_study)}"), " ")
            items.append(self._item(
                _div("item-title", title),
                _div("item-subtitle", escape_text(edu.institution)),
                _div("item-date", format_date_range(edu.start_date, edu.end_date, edu.is_currently_studying)),
                _div("item-description", escape_multiline(edu.description)),
            ))
        return self._section("Education", items)

    def experience(self, entries: List[ExperienceEntry]) -> str:
        items = []
        for exp in entries:
            subtitle = _join((escape_text(exp.company), escape_text(exp.location)), ", ")
            items.append(self._item(
                _div("item-title", escape_text(exp.position)),
                _div("item-subtitle", subtitle),
                _div("item-date", format_date_range(exp.start_date, exp.end_date, exp.is_current_job)),
                _div("item-description", escape_multiline(exp.description)),
            ))
        return self._section("Experience", items)

    def skills(self, entries: List[SkillEntry]) -> str:
        items = []
        for skill in entries:
            if not skill.name:
                continue
            label = escape_text(skill.name)
            if skill.level:
                label = f"{label} ({escape_text(skill.level)})"
            items.append(_div("skill", label))
        return self._section("Skills", items, body_class="skills-container")

    def languages(self, entries: List[LanguageEntry]) -> str:
        items = []
        for language in entries:
            if not language.name:
                continue
            label = escape_text(language.name)
            if language.proficiency:
                label = f"{label} ({escape_text(language.proficiency)})"
            items.append(_div("language", label))
        return self._section("Languages", items, body_class="skills-container")

    def projects(self, entries: List[ProjectEntry]) -> str:
        items = []
        for project in entries:
            technologies = _join((escape_text(tech) for tech in project.technologies), ", ")
            items.append(self._item(
                _div("item-title", escape_text(project.title)),
                _div("item-subtitle", _link(project.link)),
                _div("item-date", format_date_range(project.start_date, project.end_date)),
                _div("item-description", escape_multiline(project.description)),
                _div("item-technologies", technologies),
            ))
        return self._section("Projects", items)

    def certifications(self, entries: List[CertificationEntry]) -> str:
        items = []
        for cert in entries:
            dates = format_month(cert.issue_date)
            if cert.expiry_date:
                dates = _join((dates, f"Expires {format_month(cert.expiry_date)}"), " | ")
            credential = escape_text(cert.credential_id)
            if credential:
                credential = f"Credential ID: {credential}"
            items.append(self._item(
                _div("item-title", escape_text(cert.name)),
                _div("item-subtitle", escape_text(cert.organization)),
                _div("item-date", dates),
                _div("item-description", _join((credential, _link(cert.credential_url)), " | ")),
            ))
        return self._section("Certifications", items)

    def references(self, entries: List[ReferenceEntry]) -> str:
        items = []
        for ref in entries:
            role = _join((escape_text(ref.position), escape_text(ref.company)), ", ")
            contact = _join((escape_text(ref.email), escape_text(ref.phone)), " | ")
            items.append(self._item(
                _div("item-title", escape_text(ref.name)),
                _div("item-subtitle", role),
                _div("item-description", contact),
            ))
        return self._section("References", items)

    def custom_sections(self, sections: List[CustomSection]) -> str:
        # Each custom section carries its own heading.
        fragments = []
        for section in sections:
            content = escape_multiline(section.content)
            if not content:
                continue
            heading = escape_text(section.title)
            heading_html = f"<h2>{heading}</h2>" if heading else ""
            fragments.append(
                f'<div class="section">{heading_html}<div class="item-description">{content}</div></div>'
            )
        return "".join(fragments)
