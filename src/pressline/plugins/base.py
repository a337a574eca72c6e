"""Plugin interfaces.

A plugin is any object exposing one or more of three capability shapes:

- Extension: ``register(engine, site)`` adds filters, tags or hooks
- Generator: ``priority`` + ``generate(site, engine)`` emits extra files
- Converter: ``priority`` + ``matches(ext)`` + ``convert(content, document, site)``

Capabilities are detected once, at registration time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Protocol, Union, runtime_checkable

if TYPE_CHECKING:
    from pressline.engine import TemplateEngine
    from pressline.site import Document, Site

DEFAULT_PRIORITY = 50


class GeneratorPriority:
    HIGH = 10
    NORMAL = 50
    LOW = 90
    # sitemap-style generators that need every URL
    LOWEST = 100


class ConverterPriority:
    HIGH = 10
    NORMAL = 50
    LOW = 90


class PluginKind(str, Enum):
    EXTENSION = "extension"
    GENERATOR = "generator"
    CONVERTER = "converter"


@dataclass
class GeneratedFile:
    """A file produced by a generator, relative to the destination."""

    path: str
    content: str


@dataclass
class GeneratorResult:
    files: list[GeneratedFile] = field(default_factory=list)


@runtime_checkable
class ExtensionPlugin(Protocol):
    """Adds template filters/tags or hooks."""

    def register(self, engine: "TemplateEngine", site: "Site") -> None: ...


@runtime_checkable
class GeneratorPlugin(Protocol):
    """Emits additional output files not tied to one source document."""

    def generate(
        self, site: "Site", engine: "TemplateEngine"
    ) -> Union[GeneratorResult, None, Awaitable[Union[GeneratorResult, None]]]: ...


@runtime_checkable
class ConverterPlugin(Protocol):
    """Transforms document content chosen by file extension."""

    def matches(self, ext: str) -> bool: ...

    def convert(
        self, content: str, document: "Document", site: "Site"
    ) -> Union[str, Awaitable[str]]: ...


def _has_method(plugin: Any, name: str) -> bool:
    return callable(getattr(plugin, name, None))


def is_extension_plugin(plugin: Any) -> bool:
    return plugin is not None and _has_method(plugin, "register")


def is_generator_plugin(plugin: Any) -> bool:
    return plugin is not None and _has_method(plugin, "generate")


def is_converter_plugin(plugin: Any) -> bool:
    return (
        plugin is not None
        and _has_method(plugin, "matches")
        and _has_method(plugin, "convert")
    )


def plugin_name(plugin: Any) -> str:
    name = getattr(plugin, "name", None)
    if isinstance(name, str) and name:
        return name
    return type(plugin).__name__


def plugin_priority(plugin: Any) -> float:
    """Priority of a generator/converter; lower runs earlier."""
    priority = getattr(plugin, "priority", None)
    if priority is None:
        return DEFAULT_PRIORITY
    if isinstance(priority, bool) or not isinstance(priority, (int, float)):
        raise TypeError(f"priority must be a number, got {priority!r}")
    return priority
