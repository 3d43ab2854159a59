"""
Code Emission Module

Renders inferred Field trees as Python source:
- Template-based module headers and docstrings
- Request/response dataclasses per action
- Collection-only types and paging accessors for paginated actions
"""

from .template_engine import TemplateEngine
from .type_renderer import TypeRenderer

__all__ = [
    "TemplateEngine",
    "TypeRenderer",
]
