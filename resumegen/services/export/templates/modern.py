"""
Modern Resume Template

Clean, minimal design with sans-serif fonts.
- Left-aligned name and contact info
- Thin underline section headers
- Skills displayed as inline chips
- Black and white only
"""

from ..base_template import BaseResumeTemplate, TemplateMetadata


class ModernTemplate(BaseResumeTemplate):
    """
    Modern resume template with clean, minimal design.

    Characteristics:
    - Sans-serif font (Helvetica Neue, Arial)
    - Left-aligned layout
    - Name: 24pt bold
    - Section headers: 11pt uppercase with thin underline
    - Black and white only
    """

    @property
    def metadata(self) -> TemplateMetadata:
        return TemplateMetadata(
            id="modern",
            name="Modern",
            description="Clean, minimal design with a contemporary feel. Best for tech, startups, and creative roles.",
            is_default=True
        )

    @property
    def markup(self) -> str:
        return """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{{RESUME_TITLE}}</title>
    <style>
        * {
            margin: 0;
            padding: 0;
            box-sizing: border-box;
        }

        body {
            font-family: 'Helvetica Neue', Arial, sans-serif;
            font-size: 10pt;
            line-height: 1.4;
            color: #000;
        }

        .name {
            font-size: 24pt;
            font-weight: 700;
            margin-bottom: 2px;
            letter-spacing: -0.5px;
        }

        .job-title {
            font-size: 12pt;
            color: #333;
            margin-bottom: 4px;
        }

        .contact {
            font-size: 9pt;
            color: #333;
            margin-bottom: 12px;
            padding-bottom: 10px;
            border-bottom: 1px solid #000;
        }

        .summary {
            margin-bottom: 12px;
        }

        h2 {
            font-size: 11pt;
            font-weight: 600;
            text-transform: uppercase;
            letter-spacing: 1px;
            margin-top: 16px;
            margin-bottom: 8px;
            padding-bottom: 4px;
            border-bottom: 1px solid #000;
        }

        .item {
            margin-bottom: 10px;
            page-break-inside: avoid;
        }

        .item-title {
            font-weight: 600;
        }

        .item-subtitle, .item-date {
            font-size: 9pt;
            color: #333;
        }

        .item-date {
            font-style: italic;
        }

        .item-description {
            margin-top: 2px;
        }

        .skills-container {
            display: flex;
            flex-wrap: wrap;
            gap: 6px;
        }

        .skill, .language {
            border: 1px solid #000;
            padding: 1px 6px;
            font-size: 9pt;
        }

        a {
            color: #000;
            text-decoration: none;
        }
    </style>
</head>
<body>
    <header>
        <div class="name">{{FULL_NAME}}</div>
        <div class="job-title">{{JOB_TITLE}}</div>
        <div class="contact">{{CONTACT_LINE}}</div>
        <div class="summary">{{SUMMARY}}</div>
    </header>

    {{EXPERIENCE_SECTION}}
    {{EDUCATION_SECTION}}
    {{SKILLS_SECTION}}
    {{PROJECTS_SECTION}}
    {{CERTIFICATIONS_SECTION}}
    {{LANGUAGES_SECTION}}
    {{REFERENCES_SECTION}}
    {{CUSTOM_SECTIONS}}
</body>
</html>"""
