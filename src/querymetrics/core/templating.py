"""
Jinja2 templating for configuration files.

Config files are rendered before YAML parsing so that credentials and
per-environment values can come from the process environment or a
.env file, e.g. ``password: "{{ MYSQL_PASSWORD }}"``.
"""

from typing import Any

from jinja2 import Environment, StrictUndefined, Template

from querymetrics.core.exceptions import TemplateError


class TemplateEngine:
    """
    Jinja2 string renderer with a runtime-modifiable context.

    Undefined variables raise instead of rendering as empty strings.

    Usage:
        engine = TemplateEngine()
        engine.set_context({"DB_HOST": "db1"})
        engine.render_string("host: {{ DB_HOST }}")
    """

    def __init__(self, context: dict[str, Any] | None = None) -> None:
        self._context: dict[str, Any] = dict(context or {})
        self._template_cache: dict[str, Template] = {}
        self._env = Environment(
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )

    @property
    def context(self) -> dict[str, Any]:
        """Get current context (copy)."""
        return self._context.copy()

    def set_context(self, context: dict[str, Any]) -> None:
        """Replace the entire context."""
        self._context = dict(context)

    def render_string(
        self,
        source: str,
        extra_context: dict[str, Any] | None = None,
    ) -> str:
        """
        Render a template string.

        Args:
            source: Template source.
            extra_context: Additional context to merge (doesn't modify base context).

        Returns:
            Rendered string.

        Raises:
            TemplateError: If the template is invalid or references an
                undefined variable.
        """
        try:
            template = self._template_cache.get(source)
            if template is None:
                template = self._env.from_string(source)
                self._template_cache[source] = template
            return template.render(**{**self._context, **(extra_context or {})})
        except Exception as e:
            raise TemplateError(f"Failed to render template: {e}") from e
