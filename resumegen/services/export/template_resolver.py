"""
Template Resolver

Maps a template name to a read-only skeleton. Built-in templates are Python
classes; additional `<name>.html` skeletons can be dropped into a template
directory. A missing template is never fatal: resolve() falls back to the
built-in default skeleton.
"""

import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from resumegen.exceptions import TemplateNotFoundError
from resumegen.services.export.base_template import (
    BaseResumeTemplate,
    ResumeTemplateType,
    TemplateMetadata,
    TemplateSkeleton,
)
from resumegen.services.export.templates import ClassicTemplate, DefaultTemplate, ModernTemplate

logger = logging.getLogger(__name__)

TEMPLATE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class TemplateResolver:
    """
    Resolves template names to skeletons.

    Lookup order: registered template classes, then `<template_dir>/<name>.html`.
    File templates are read on each lookup so edits are picked up without a
    restart; a file using tokens outside the known vocabulary is treated as
    missing.
    """

    def __init__(
        self,
        template_dir: Optional[Union[str, Path]] = None,
        templates: Optional[Iterable[BaseResumeTemplate]] = None,
        default_name: str = ResumeTemplateType.MODERN.value,
    ):
        if templates is None:
            templates = (ModernTemplate(), ClassicTemplate())

        self._templates: Dict[str, BaseResumeTemplate] = {}
        for template in templates:
            self.register(template)

        self._fallback = DefaultTemplate().skeleton()
        self.template_dir = Path(template_dir) if template_dir else None
        self.default_name = default_name

    def register(self, template: BaseResumeTemplate) -> None:
        """Register a template class instance. Rejects unknown tokens."""
        skeleton = template.skeleton()
        if skeleton.unknown_tokens:
            raise ValueError(
                f"Template '{skeleton.name}' uses unknown tokens: {sorted(skeleton.unknown_tokens)}"
            )
        self._templates[skeleton.name] = template

    def get(self, name: str) -> TemplateSkeleton:
        """
        Look up a template by name.

        Raises:
            TemplateNotFoundError: no registered or file template has this name
        """
        template = self._templates.get(name)
        if template is not None:
            return template.skeleton()

        if name == ResumeTemplateType.DEFAULT.value:
            return self._fallback

        skeleton = self._load_file_template(name)
        if skeleton is None:
            raise TemplateNotFoundError(f"template '{name}' not found")
        return skeleton

    def resolve(self, name: Optional[str]) -> TemplateSkeleton:
        """Look up a template, falling back to the default skeleton."""
        name = name or self.default_name
        try:
            return self.get(name)
        except TemplateNotFoundError:
            logger.warning(f"[COMPOSITOR] Template '{name}' not found, using default skeleton")
            return self._fallback

    def _load_file_template(self, name: str) -> Optional[TemplateSkeleton]:
        if self.template_dir is None or not TEMPLATE_NAME_PATTERN.match(name):
            return None

        path = self.template_dir / f"{name}.html"
        if not path.is_file():
            return None

        try:
            markup = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"[COMPOSITOR] Could not read template file {path}: {e}")
            return None

        skeleton = TemplateSkeleton(name=name, markup=markup)
        if skeleton.unknown_tokens:
            logger.warning(
                f"[COMPOSITOR] Template file {path} uses unknown tokens "
                f"{sorted(skeleton.unknown_tokens)}, ignoring it"
            )
            return None
        return skeleton

    @property
    def available_templates(self) -> List[TemplateMetadata]:
        """Metadata for every selectable template."""
        metadata = [template.metadata for template in self._templates.values()]
        known = {meta.id for meta in metadata}

        if self.template_dir is not None and self.template_dir.is_dir():
            for path in sorted(self.template_dir.glob("*.html")):
                name = path.stem
                if name in known or not TEMPLATE_NAME_PATTERN.match(name):
                    continue
                metadata.append(TemplateMetadata(
                    id=name,
                    name=name.replace("-", " ").replace("_", " ").title(),
                    description=f"Custom template loaded from {path.name}",
                ))
        return metadata
