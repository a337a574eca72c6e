"""Build steps: plugin setup, generators, rendering and writing output."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Any, Iterable, Optional

from pressline.engine import TemplateEngine
from pressline.exceptions import PresslineError
from pressline.hooks import DocumentHookContext, SiteHookContext
from pressline.plugins import builtin_plugins
from pressline.plugins.base import GeneratedFile
from pressline.plugins.redirect_from import output_path
from pressline.renderer import DocumentRenderer

if TYPE_CHECKING:
    from pressline.site import Document, Site

log = logging.getLogger(__name__)


@dataclass
class SiteRenderResult:
    """Outputs keyed by document path, plus per-document failures."""

    outputs: dict[str, str] = field(default_factory=dict)
    errors: dict[str, PresslineError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


async def setup_renderer(
    site: "Site", plugins: Optional[Iterable[Any]] = None
) -> DocumentRenderer:
    """Create the engine and renderer for ``site`` and register plugins.

    Built-in plugins enabled in the site config are registered first, then
    ``plugins``. A plugin that fails to register is logged and skipped.
    Triggers ``site:after_init`` once everything is registered.
    """
    engine = TemplateEngine(site)
    renderer = DocumentRenderer(site, engine)

    candidates = [*builtin_plugins(site.config), *(plugins or ())]
    failed = site.plugins.register_all(candidates, engine, site)
    if failed:
        log.warning(f"{len(failed)} plugin(s) failed to register")
    log.info(f"Registered plugins: {site.plugins.counts()}")

    await site.hooks.trigger("site", "after_init", SiteHookContext(site, renderer))
    return renderer


async def run_generators(site: "Site", renderer: DocumentRenderer) -> list[GeneratedFile]:
    """Run generator plugins in priority order and collect their files."""
    return await site.plugins.run_generators(site, renderer.engine)


async def render_site(
    site: "Site",
    renderer: DocumentRenderer,
    documents: Optional[Iterable["Document"]] = None,
) -> SiteRenderResult:
    """Render every published document, one at a time.

    A failing document is recorded in ``errors`` and does not stop the
    others. Documents with ``output: false`` are skipped. Triggers
    ``site:pre_render`` before and ``site:post_render`` after.
    """
    hook_context = SiteHookContext(site, renderer)
    await site.hooks.trigger("site", "pre_render", hook_context)
    renderer.invalidate_site_cache()

    result = SiteRenderResult()
    for document in documents if documents is not None else site.all_documents():
        if not document.published or document.data.get("output") is False:
            log.debug(f"Skipping {document.path}")
            continue
        try:
            result.outputs[document.path] = await renderer.render_document(document)
        except PresslineError as e:
            log.error(e.formatted_message())
            result.errors[document.path] = e

    await site.hooks.trigger("site", "post_render", hook_context)
    return result


async def initialize_documents(site: "Site", renderer: DocumentRenderer) -> None:
    """Announce that posts and pages are loaded.

    Triggers ``posts:post_init`` then ``pages:post_init``, after which hooks
    may have added or edited documents, so the site snapshot is dropped.
    """
    hook_context = SiteHookContext(site, renderer)
    await site.hooks.trigger("posts", "post_init", hook_context)
    await site.hooks.trigger("pages", "post_init", hook_context)
    renderer.invalidate_site_cache()


async def reset_site(site: "Site", renderer: DocumentRenderer) -> None:
    """Forget every page, post and collection document before a rebuild.

    Layouts, data and registered plugins are kept. Triggers
    ``site:after_reset``.
    """
    site.pages.clear()
    site.posts.clear()
    site.collections.clear()
    renderer.invalidate_site_cache()
    await site.hooks.trigger("site", "after_reset", SiteHookContext(site, renderer))


def document_output_path(document: "Document") -> str:
    """Destination-relative file for a rendered document, derived from its URL."""
    url = document.url or "/" + PurePosixPath(document.path).with_suffix(".html").as_posix()
    return output_path(url)


async def write_site(
    site: "Site",
    renderer: DocumentRenderer,
    result: SiteRenderResult,
    destination: Path | str,
    files: Iterable[GeneratedFile] = (),
) -> list[Path]:
    """Write rendered documents and generated files under ``destination``.

    Triggers ``documents:post_write`` after each document and
    ``site:post_write`` once everything is written.

    Raises:
        PresslineError: If an output path would land outside ``destination``.
    """
    root = Path(destination).resolve()
    written: list[Path] = []

    def write(relative: str, content: str) -> Path:
        target = (root / relative).resolve()
        if not target.is_relative_to(root):
            raise PresslineError(f"Output path escapes destination: {relative}")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        written.append(target)
        return target

    documents = {document.path: document for document in site.all_documents()}
    for path, content in result.outputs.items():
        document = documents.get(path)
        if document is None:
            log.warning(f"Skipping output for unknown document {path}")
            continue
        target = write(document_output_path(document), content)
        await site.hooks.trigger(
            "documents",
            "post_write",
            DocumentHookContext(document, site, renderer, content, str(target)),
        )

    for generated in files:
        write(generated.path, generated.content)

    log.info(f"Wrote {len(written)} files to {root}")
    await site.hooks.trigger("site", "post_write", SiteHookContext(site, renderer))
    return written
