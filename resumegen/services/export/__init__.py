"""
Resume Export

Template resolution, section rendering, document composition and the
out-of-process rendering engine used by render workers.
"""

from .base_template import BaseResumeTemplate, ResumeTemplateType, TemplateMetadata, TemplateSkeleton
from .document_compositor import DocumentCompositor, document_title
from .rendering_engine import PageLayout, WeasyPrintEngine
from .section_renderer import SectionRenderer
from .template_resolver import TemplateResolver

__all__ = [
    "BaseResumeTemplate",
    "ResumeTemplateType",
    "TemplateMetadata",
    "TemplateSkeleton",
    "DocumentCompositor",
    "document_title",
    "PageLayout",
    "WeasyPrintEngine",
    "SectionRenderer",
    "TemplateResolver",
]
