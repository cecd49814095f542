"""
Default Resume Template

Plain fallback layout used when a requested template cannot be found.
"""

from ..base_template import BaseResumeTemplate, TemplateMetadata


class DefaultTemplate(BaseResumeTemplate):
    """Minimal single-column layout that renders every section in order."""

    @property
    def metadata(self) -> TemplateMetadata:
        return TemplateMetadata(
            id="default",
            name="Default",
            description="Simple single-column layout. Used as the fallback when a template is unavailable.",
            is_default=False
        )

    @property
    def markup(self) -> str:
        return """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{{RESUME_TITLE}}</title>
    <style>
        body {
            font-family: Arial, sans-serif;
            font-size: 10pt;
            line-height: 1.4;
            color: #000;
        }

        h1 {
            font-size: 20pt;
            margin: 0;
        }

        h2 {
            font-size: 11pt;
            text-transform: uppercase;
            margin: 14px 0 6px;
            border-bottom: 1px solid #000;
        }

        .item {
            margin-bottom: 8px;
            page-break-inside: avoid;
        }

        .item-title {
            font-weight: bold;
        }

        .item-date {
            font-style: italic;
        }
    </style>
</head>
<body>
    <h1>{{FULL_NAME}}</h1>
    <p>{{JOB_TITLE}}</p>
    <p>{{CONTACT_LINE}}</p>
    <p>{{SUMMARY}}</p>
    {{EXPERIENCE_SECTION}}
    {{EDUCATION_SECTION}}
    {{SKILLS_SECTION}}
    {{LANGUAGES_SECTION}}
    {{PROJECTS_SECTION}}
    {{CERTIFICATIONS_SECTION}}
    {{REFERENCES_SECTION}}
    {{CUSTOM_SECTIONS}}
</body>
</html>"""
