"""Document rendering pipeline.

``DocumentRenderer.render_document`` runs one document through:

1. template rendering of the body against ``page`` and ``site``
2. the ``documents:pre_render`` hook (read-only signal)
3. converter dispatch, or the built-in markdown conversion
4. the ``documents:post_render`` hook, whose ``content`` replaces the
   working content
5. layout application
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pressline.cache import SiteDataCache
from pressline.engine import TemplateEngine
from pressline.exceptions import CircularLayoutReference, ConverterFailure, TemplateError
from pressline.hooks import DocumentHookContext, HookBus
from pressline.layouts import LayoutResolver
from pressline.plugins.base import ConverterPlugin, plugin_name
from pressline.plugins.registry import PluginRegistry
from pressline.utils import maybe_await

if TYPE_CHECKING:
    from pressline.pagination import Paginator
    from pressline.site import Document, Site

log = logging.getLogger(__name__)


class DocumentRenderer:
    """Renders documents to final HTML.

    Args:
        site: Site providing layouts, configuration and the snapshot.
        engine: Template engine; a new one is created for ``site`` if omitted.
        plugins: Plugin registry; defaults to ``site.plugins``.
        hooks: Hook bus; defaults to ``site.hooks``.
    """

    def __init__(
        self,
        site: "Site",
        engine: TemplateEngine | None = None,
        *,
        plugins: PluginRegistry | None = None,
        hooks: HookBus | None = None,
    ):
        self.site = site
        self.engine = engine or TemplateEngine(site)
        self.plugins = plugins if plugins is not None else site.plugins
        self.hooks = hooks if hooks is not None else site.hooks
        self.markdown = self.engine.markdown
        self.layouts = LayoutResolver(self.engine, site.get_layout)
        self.site_cache = SiteDataCache(site)

    def build_context(
        self, document: "Document", additional_context: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return {
            "page": document.to_context(),
            "site": self.site_cache.get(),
            **(additional_context or {}),
        }

    def invalidate_site_cache(self) -> None:
        """Drop the cached site snapshot; call after changing site state."""
        self.site_cache.invalidate()

    def is_markdown(self, document: "Document") -> bool:
        return document.extname.lower() in self.site.config.markdown_extensions

    async def render_document(
        self, document: "Document", additional_context: dict[str, Any] | None = None
    ) -> str:
        """Render a document through templates, conversion and layouts.

        Raises:
            TemplateError: If the body or a layout fails to render. ``file``
                is the document path; the original error is the ``cause``.
            CircularLayoutReference: If the layout chain loops.
        """
        context = self.build_context(document, additional_context)

        try:
            content = await self.engine.render(document.content, context)
        except TemplateError as e:
            raise TemplateError.wrap(e, file=document.path) from e

        await self._trigger(
            "pre_render", DocumentHookContext(document, self.site, self, content)
        )

        markdown = self.is_markdown(document)
        converter = self.plugins.find_converter(document.extname.lower())
        if converter is not None:
            content = await self._convert(converter, content, document, markdown)
        elif markdown:
            content = self._convert_markdown(content, document)

        hook_context = DocumentHookContext(document, self.site, self, content)
        await self._trigger("post_render", hook_context)
        if isinstance(hook_context.content, str):
            content = hook_context.content

        context["page"]["content"] = content

        layout_name = document.layout
        if not layout_name:
            return content

        layout = self.layouts.get_layout(layout_name)
        if layout is None:
            log.warning(f"Layout '{layout_name}' requested by {document.path} does not exist")
            return content

        try:
            return await self.layouts.apply_layout(content, layout, context)
        except CircularLayoutReference as e:
            raise CircularLayoutReference(e.chain, file=document.path, cause=e) from e
        except TemplateError as e:
            raise TemplateError.wrap(
                e, file=document.path, template_name=e.template_name or layout.name
            ) from e

    async def render_document_with_paginator(
        self,
        document: "Document",
        paginator: "Paginator",
        additional_context: dict[str, Any] | None = None,
    ) -> str:
        """Render a listing page with ``paginator`` in its context."""
        context = {**(additional_context or {}), "paginator": paginator.to_context()}
        return await self.render_document(document, context)

    async def _convert(
        self,
        converter: ConverterPlugin,
        content: str,
        document: "Document",
        markdown: bool,
    ) -> str:
        try:
            return await maybe_await(converter.convert(content, document, self.site))
        except Exception as e:
            failure = ConverterFailure(plugin_name(converter), file=document.path, cause=e)
            fallback = "built-in markdown" if markdown else "unconverted content"
            log.warning(f"{failure.location()}: {failure.message}; using {fallback}")

        if markdown:
            return self._convert_markdown(content, document)
        return content

    def _convert_markdown(self, content: str, document: "Document") -> str:
        try:
            return self.markdown.convert(content)
        except Exception as e:
            log.warning(f"Markdown conversion failed for {document.path}: {e}")
            return content

    async def _trigger(self, event: str, context: DocumentHookContext) -> None:
        # Hook failures never abort a document render
        try:
            await self.hooks.trigger("documents", event, context)
        except Exception as e:
            log.warning(f"documents:{event} hook failed for {context.document.path}: {e}")
