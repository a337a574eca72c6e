"""Plugin interfaces, registry and built-in plugins."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from pressline.plugins.avatar import AvatarPlugin
from pressline.plugins.base import (
    ConverterPriority,
    GeneratedFile,
    GeneratorPriority,
    GeneratorResult,
    PluginKind,
)
from pressline.plugins.jemoji import JemojiPlugin
from pressline.plugins.mentions import MentionsPlugin
from pressline.plugins.redirect_from import RedirectFromPlugin
from pressline.plugins.registry import PluginRegistry
from pressline.plugins.seo import SeoPlugin

if TYPE_CHECKING:
    from pressline.config import SiteConfig

# Built-in plugin registry: name -> factory
_BUILTIN_PLUGINS: dict[str, Callable[[], Any]] = {
    AvatarPlugin.name: AvatarPlugin,
    MentionsPlugin.name: MentionsPlugin,
    RedirectFromPlugin.name: RedirectFromPlugin,
    SeoPlugin.name: SeoPlugin,
    JemojiPlugin.name: JemojiPlugin,
}


def list_builtin_plugins() -> list[str]:
    """List all built-in plugin names."""
    return list(_BUILTIN_PLUGINS.keys())


def builtin_plugins(config: "SiteConfig") -> list[Any]:
    """Fresh instances of the built-in plugins enabled by ``config.plugins``.

    An empty ``plugins`` list enables every built-in. Names may use the
    ``jekyll-`` aliases.
    """
    wanted = set(config.plugins)
    plugins = []
    for name, factory in _BUILTIN_PLUGINS.items():
        aliases = {name, *getattr(factory, "aliases", ())}
        if not wanted or wanted & aliases:
            plugins.append(factory())
    return plugins


__all__ = [
    "AvatarPlugin",
    "MentionsPlugin",
    "RedirectFromPlugin",
    "SeoPlugin",
    "JemojiPlugin",
    "PluginRegistry",
    "PluginKind",
    "GeneratedFile",
    "GeneratorResult",
    "GeneratorPriority",
    "ConverterPriority",
    "builtin_plugins",
    "list_builtin_plugins",
]
