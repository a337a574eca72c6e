"""pressline - Jekyll-style document rendering on Jinja2

Renders pages, posts and collection documents through templates,
converters and nested layouts, with ordered lifecycle hooks and a
priority-ordered plugin registry.
"""

from pressline._version import __version__

# Core pipeline
from pressline.build import (
    SiteRenderResult,
    initialize_documents,
    render_site,
    reset_site,
    run_generators,
    setup_renderer,
    write_site,
)
from pressline.engine import Tag, TagContext, TagToken, TemplateEngine
from pressline.exceptions import (
    CircularLayoutReference,
    ConfigError,
    ConverterFailure,
    FrontMatterError,
    InvalidHookError,
    PluginError,
    PresslineError,
    TemplateError,
)
from pressline.hooks import DocumentHookContext, HookBus, PluginHooks, SiteHookContext
from pressline.layouts import LayoutResolver
from pressline.pagination import Paginator
from pressline.renderer import DocumentRenderer
from pressline.site import Document, DocumentKind, Site

__all__ = [
    "__version__",
    # pipeline
    "DocumentRenderer",
    "LayoutResolver",
    "TemplateEngine",
    "Tag",
    "TagContext",
    "TagToken",
    "setup_renderer",
    "run_generators",
    "render_site",
    "initialize_documents",
    "reset_site",
    "write_site",
    "SiteRenderResult",
    # hooks
    "HookBus",
    "PluginHooks",
    "SiteHookContext",
    "DocumentHookContext",
    # models
    "Document",
    "DocumentKind",
    "Site",
    "Paginator",
    # errors
    "PresslineError",
    "TemplateError",
    "CircularLayoutReference",
    "ConverterFailure",
    "InvalidHookError",
    "ConfigError",
    "FrontMatterError",
    "PluginError",
]
