"""Template engine adapter around a Jinja2 environment."""

from __future__ import annotations

import logging
import re
import traceback
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

from jinja2 import (
    ChainableUndefined,
    Environment,
    FileSystemLoader,
    Template,
    TemplateSyntaxError,
)

from pressline.engine.compat import register_compat_tags
from pressline.engine.filters import register_builtin_filters
from pressline.engine.tags import TagExtension, TagFactory
from pressline.exceptions import TemplateError, parse_error_location
from pressline.markdown import MarkdownProcessor

if TYPE_CHECKING:
    from pressline.site import Site

log = logging.getLogger(__name__)

TEMPLATE_CACHE_SIZE = 256

_TAG_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
# Jinja parses these itself before consulting extensions
_RESERVED_TAGS = frozenset(
    {
        "autoescape", "block", "call", "extends", "filter", "for", "from",
        "if", "import", "include", "macro", "print", "raw", "set", "with",
    }
)


class TemplateEngine:
    """Owns the Jinja2 environment used to render documents and layouts.

    Filters and tags are registered by name; registering a name again
    replaces the earlier definition. Templates are compiled lazily and
    cached by source until the next registration.

    Args:
        site: Site whose source directory backs ``{% include %}`` lookups
            (``_includes/`` first, then the source root).
    """

    def __init__(self, site: "Site"):
        self.site = site
        self.markdown = MarkdownProcessor(site.config.markdown)

        source = Path(site.source)
        self.env = Environment(
            loader=FileSystemLoader([str(source / "_includes"), str(source)]),
            extensions=[TagExtension],
            enable_async=True,
            undefined=ChainableUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )
        self.env.pressline_engine = self  # type: ignore[attr-defined]
        self._tags: TagExtension = self.env.extensions[TagExtension.identifier]  # type: ignore[assignment]
        self._templates: dict[str, Template] = {}

        register_builtin_filters(self)
        register_compat_tags(self)

    def register_filter(self, name: str, fn: Callable[..., Any]) -> None:
        self.env.filters[name] = fn
        self._invalidate()
        log.debug(f"Registered filter '{name}'")

    def register_tag(self, name: str, tag: TagFactory) -> None:
        """Register a Liquid-style tag.

        Args:
            name: Tag name as written in templates.
            tag: Callable (usually a ``Tag`` subclass) returning a fresh tag
                object for each occurrence.

        Raises:
            ValueError: If the name is not an identifier or is a built-in
                Jinja statement.
        """
        if not _TAG_NAME.match(name) or name in _RESERVED_TAGS:
            raise ValueError(f"Invalid tag name: {name!r}")
        self._tags.add_tag(name, tag)
        self._invalidate()
        log.debug(f"Registered tag '{name}'")

    @property
    def filters(self) -> dict[str, Callable[..., Any]]:
        return dict(self.env.filters)

    @property
    def tags(self) -> dict[str, TagFactory]:
        return dict(self._tags.factories)

    def _invalidate(self) -> None:
        # Compiled templates bind filters and tags at compile time
        self._templates.clear()
        if self.env.cache is not None:
            self.env.cache.clear()

    def _compile(self, source: str) -> Template:
        template = self._templates.get(source)
        if template is None:
            template = self.env.from_string(source)
            if len(self._templates) >= TEMPLATE_CACHE_SIZE:
                self._templates.pop(next(iter(self._templates)))
            self._templates[source] = template
        return template

    async def render(
        self, source: str, context: dict[str, Any], *, name: str | None = None
    ) -> str:
        """Render a template string.

        Args:
            source: Template text.
            context: Variables visible to the template.
            name: Optional template name recorded on errors.

        Raises:
            TemplateError: On any parse or evaluation failure.
        """
        try:
            template = self._compile(source)
            return await template.render_async(context)
        except TemplateError as e:
            if name and e.template_name is None:
                raise TemplateError.wrap(e, template_name=name) from e
            raise
        except Exception as e:
            line, column = _error_location(e)
            message = e.message if isinstance(e, TemplateSyntaxError) and e.message else str(e)
            raise TemplateError(
                message, line=line, column=column, template_name=name, cause=e
            ) from e

    async def render_file(self, path: Path | str, context: dict[str, Any]) -> str:
        """Render a template file; relative paths resolve against the site source.

        Raises:
            TemplateError: If the file cannot be read or fails to render. The
                error's ``file`` is ``path``.
        """
        full = Path(path)
        if not full.is_absolute():
            full = Path(self.site.source) / full

        try:
            source = full.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise TemplateError(f"Cannot read template: {e}", file=str(path), cause=e) from e

        try:
            return await self.render(source, context, name=full.name)
        except TemplateError as e:
            raise TemplateError.wrap(e, file=str(path)) from e


def _error_location(error: Exception) -> tuple[int | None, int | None]:
    """Best-effort line/column for an engine failure."""
    if isinstance(error, TemplateSyntaxError) and error.lineno:
        return error.lineno, None

    # Jinja rewrites tracebacks so template frames carry template line numbers
    for frame in reversed(traceback.extract_tb(error.__traceback__)):
        if frame.filename == "<template>":
            return frame.lineno, None

    return parse_error_location(str(error))
