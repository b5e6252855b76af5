"""Jinja2-backed template store for project scaffolding.

Templates live under ``nodeforge/scaffolder/templates/`` as ``<key>.j2``
files and are addressed by a logical key without the extension, e.g.
``main/express``, ``config/db/drizzle-postgresql`` or ``package.json``.
The store is read-only: callers look templates up and render them, they
never add to it.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from jinja2 import BaseLoader, DictLoader, Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from ..errors import TemplateMissing

# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"
_SUFFIX = ".j2"


# ---------------------------------------------------------------------------
# TemplateStore
# ---------------------------------------------------------------------------


class TemplateStore:
    """Looks up and renders scaffold templates by logical key.

    By default templates are read from the packaged ``templates/``
    directory.  Tests and embedders can pass an explicit *loader* (see
    :meth:`from_mapping`) to supply their own set.
    """

    def __init__(
        self,
        template_dir: str | Path | None = None,
        loader: BaseLoader | None = None,
    ) -> None:
        if loader is None:
            if template_dir is None:
                template_dir = _DEFAULT_TEMPLATE_DIR
            loader = FileSystemLoader(str(template_dir))
        self.env = Environment(
            loader=loader,
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["title_case"] = _title_case_filter

    @classmethod
    def from_mapping(cls, templates: Mapping[str, str]) -> "TemplateStore":
        """Build a store from an in-memory ``{key: source}`` mapping."""
        return cls(loader=DictLoader({f"{key}{_SUFFIX}": source for key, source in templates.items()}))

    # -- Lookup ------------------------------------------------------------

    def has(self, key: str) -> bool:
        return f"{key}{_SUFFIX}" in self._template_names()

    def render(self, key: str, context: dict[str, Any]) -> str:
        """Render the template stored under *key*.

        Raises:
            TemplateMissing: If no template exists for *key*.
        """
        try:
            template = self.env.get_template(f"{key}{_SUFFIX}")
        except TemplateNotFound:
            raise TemplateMissing(key) from None
        return template.render(**context)

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        """Render an inline template string that is not part of the store."""
        template = self.env.from_string(template_string)
        return template.render(**context)

    def list_templates(self, prefix: str = "") -> list[str]:
        """Return the sorted logical keys under *prefix*."""
        return sorted(
            name[: -len(_SUFFIX)]
            for name in self._template_names()
            if name.startswith(prefix)
        )

    def _template_names(self) -> list[str]:
        return [name for name in self.env.list_templates() if name.endswith(_SUFFIX)]


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------


def _title_case_filter(value: str) -> str:
    """``postgresql`` -> ``Postgresql``, matching how the README names the stack."""
    return value[:1].upper() + value[1:]
