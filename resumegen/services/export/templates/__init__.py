"""
Resume Templates Package

Contains all built-in resume templates.
"""

from .modern import ModernTemplate
from .classic import ClassicTemplate
from .default import DefaultTemplate

__all__ = [
    "ModernTemplate",
    "ClassicTemplate",
    "DefaultTemplate",
]
