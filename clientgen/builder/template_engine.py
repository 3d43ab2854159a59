"""
Template Engine - Evaluates ${variable} templates for generated source files

Supports:
- Variable substitution (${variable})
- Cleaning of HTML-flavoured API descriptions for docstrings and comments
"""

import logging
import re
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

GENERATED_WARNING = "# AUTOMATICALLY GENERATED, DO NOT EDIT BY HAND!"

MODULE_TEMPLATE = '''${warning}
"""${docstring}"""

${imports}
'''


class TemplateEngine:
    """Simple template engine for generated modules"""

    # Pattern for variable substitution: ${var_name}
    VARIABLE_PATTERN = re.compile(r'\$\{([^}]+)\}')

    # HTML fragments found in API descriptions
    LINE_BREAK_PATTERN = re.compile(r'<br\s*/?>|</li>|<ul>', re.IGNORECASE)
    LIST_ITEM_PATTERN = re.compile(r'<li>', re.IGNORECASE)
    TAG_PATTERN = re.compile(r'</?[a-zA-Z][^>]*>')

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        """
        Initialize TemplateEngine

        Args:
            context: Dictionary of variables available for substitution
        """
        self.context = context or {}

    def render(self, template: str, **overrides) -> str:
        """
        Substitute ${...} variables in a template

        Args:
            template: Template string (e.g., "class ${name}:")
            overrides: Variables that take precedence over the context

        Returns:
            Rendered text
        """
        context = dict(self.context)
        context.update(overrides)

        def replace_var(match):
            var_name = match.group(1).strip()
            value = context.get(var_name)

            if value is None:
                logger.warning(f"Variable not found in context: {var_name}")
                return ""

            return str(value)

        return self.VARIABLE_PATTERN.sub(replace_var, template)

    def render_module_header(self, docstring: str, imports: List[str]) -> str:
        """Header of a generated module: warning, docstring, imports"""
        return self.render(
            MODULE_TEMPLATE,
            warning=GENERATED_WARNING,
            docstring=self.escape_docstring(docstring),
            imports="\n".join(imports),
        )

    def set_context(self, context: Dict[str, Any]) -> None:
        """Update template context"""
        self.context = context

    def update_context(self, **kwargs) -> None:
        """Update template context with keyword arguments"""
        self.context.update(kwargs)

    @classmethod
    def clean_description(cls, value: Optional[str]) -> List[str]:
        """Turn an HTML-ish description into plain text lines"""
        if not value:
            return []

        text = cls.LINE_BREAK_PATTERN.sub("\n", str(value))
        text = cls.LIST_ITEM_PATTERN.sub(" * ", text)
        text = cls.TAG_PATTERN.sub("", text)
        lines = [line.rstrip() for line in text.splitlines()]
        return [line for line in lines if line.strip()]

    @classmethod
    def escape_docstring(cls, value: Optional[str]) -> str:
        """Make a description safe inside a triple-quoted docstring"""
        text = "\n".join(cls.clean_description(value))
        text = text.replace("\\", "\\\\")
        text = text.replace('"""', '\\"\\"\\"')
        if text.endswith('"'):
            text += " "
        return text

    @classmethod
    def as_comment(cls, value: Optional[str], indent: str = "") -> List[str]:
        """Render a description as `#` comment lines"""
        return [f"{indent}# {line.strip()}" for line in cls.clean_description(value)]
