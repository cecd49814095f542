"""
Classic Resume Template

Traditional, formal design with serif fonts.
- Centered name and contact info
- Full-width underline section headers
- Black and white only
"""

from ..base_template import BaseResumeTemplate, TemplateMetadata


class ClassicTemplate(BaseResumeTemplate):
    """
    Classic resume template with traditional, formal design.

    Characteristics:
    - Serif font (Georgia, Times New Roman)
    - Centered header layout
    - Name: 26pt bold, centered, uppercase
    - Section headers: 11pt uppercase, full-width underline
    - Education listed before experience
    """

    @property
    def metadata(self) -> TemplateMetadata:
        return TemplateMetadata(
            id="classic",
            name="Classic",
            description="Traditional, formal design with a professional feel. Best for corporate, finance, and legal roles.",
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
        * {
            margin: 0;
            padding: 0;
            box-sizing: border-box;
        }

        body {
            font-family: Georgia, 'Times New Roman', serif;
            font-size: 10.5pt;
            line-height: 1.5;
            color: #000;
        }

        header {
            text-align: center;
            margin-bottom: 16px;
        }

        .name {
            font-size: 26pt;
            font-weight: 700;
            text-transform: uppercase;
            letter-spacing: 2px;
        }

        .job-title {
            font-size: 11pt;
            font-style: italic;
        }

        .contact {
            font-size: 10pt;
            margin-top: 4px;
        }

        .summary {
            text-align: justify;
            margin-bottom: 10px;
        }

        h2 {
            font-size: 11pt;
            font-weight: 700;
            text-transform: uppercase;
            letter-spacing: 1.5px;
            margin-top: 18px;
            margin-bottom: 10px;
            padding-bottom: 4px;
            border-bottom: 2px solid #000;
        }

        .item {
            margin-bottom: 12px;
            page-break-inside: avoid;
        }

        .item-title {
            font-weight: 700;
            text-transform: uppercase;
        }

        .item-subtitle, .item-date {
            font-style: italic;
        }

        .item-description {
            text-align: justify;
        }

        .skill, .language {
            display: inline;
        }

        .skill + .skill:before, .language + .language:before {
            content: " \\2022  ";
        }

        a {
            color: #000;
        }
    </style>
</head>
<body>
    <header>
        <div class="name">{{FULL_NAME}}</div>
        <div class="job-title">{{JOB_TITLE}}</div>
        <div class="contact">{{CONTACT_LINE}}</div>
    </header>
    <div class="summary">{{SUMMARY}}</div>

    {{EDUCATION_SECTION}}
    {{EXPERIENCE_SECTION}}
    {{PROJECTS_SECTION}}
    {{SKILLS_SECTION}}
    {{LANGUAGES_SECTION}}
    {{CERTIFICATIONS_SECTION}}
    {{REFERENCES_SECTION}}
    {{CUSTOM_SECTIONS}}
</body>
</html>"""
