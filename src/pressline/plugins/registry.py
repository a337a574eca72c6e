"""Plugin registry with deterministic, priority-ordered dispatch."""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any, Iterable

from pressline.exceptions import PluginError
from pressline.plugins.base import (
    ConverterPlugin,
    ExtensionPlugin,
    GeneratedFile,
    GeneratorPlugin,
    GeneratorResult,
    PluginKind,
    is_converter_plugin,
    is_extension_plugin,
    is_generator_plugin,
    plugin_name,
    plugin_priority,
)
from pressline.utils import maybe_await

if TYPE_CHECKING:
    from pressline.engine import TemplateEngine
    from pressline.site import Site

log = logging.getLogger(__name__)


class PluginRegistry:
    """Holds extension, generator and converter plugins.

    One object may land in several lists. Generator and converter lists are
    kept sorted ascending by priority; the sort is stable, so equal
    priorities keep registration order.
    """

    def __init__(self) -> None:
        self._extensions: list[ExtensionPlugin] = []
        self._generators: list[GeneratorPlugin] = []
        self._converters: list[ConverterPlugin] = []

    def detect_kinds(self, plugin: Any) -> set[PluginKind]:
        """Kinds whose shape ``plugin`` satisfies, without registering it.

        Raises:
            PluginError: If the object matches no kind or its priority is
                not a number.
        """
        name = plugin_name(plugin)
        kinds: set[PluginKind] = set()
        if is_extension_plugin(plugin):
            kinds.add(PluginKind.EXTENSION)
        if is_generator_plugin(plugin):
            kinds.add(PluginKind.GENERATOR)
        if is_converter_plugin(plugin):
            kinds.add(PluginKind.CONVERTER)

        if not kinds:
            raise PluginError(f"Object '{name}' is not a plugin")

        if kinds & {PluginKind.GENERATOR, PluginKind.CONVERTER}:
            try:
                plugin_priority(plugin)
            except TypeError as e:
                raise PluginError(f"Plugin '{name}': {e}", cause=e) from e
        return kinds

    def register(self, plugin: Any) -> set[PluginKind]:
        """Add ``plugin`` to every list whose shape it satisfies.

        Returns:
            The detected kinds.

        Raises:
            PluginError: See ``detect_kinds``.
        """
        kinds = self.detect_kinds(plugin)
        self._add(plugin, kinds)
        return kinds

    def _add(self, plugin: Any, kinds: set[PluginKind]) -> None:
        if PluginKind.EXTENSION in kinds:
            self._extensions.append(plugin)
        if PluginKind.GENERATOR in kinds:
            self._generators.append(plugin)
            self._generators.sort(key=plugin_priority)
        if PluginKind.CONVERTER in kinds:
            self._converters.append(plugin)
            self._converters.sort(key=plugin_priority)

        log.debug(
            f"Registered plugin '{plugin_name(plugin)}' as {', '.join(sorted(k.value for k in kinds))}"
        )

    def register_all(
        self, plugins: Iterable[Any], engine: "TemplateEngine", site: "Site"
    ) -> list[Any]:
        """Register each plugin and run extension plugins' ``register``.

        A failing plugin is logged and skipped; the rest still register.
        An extension whose ``register`` raises is left out of every list.

        Returns:
            Plugins whose registration failed.
        """
        failed: list[Any] = []
        for plugin in plugins:
            try:
                kinds = self.detect_kinds(plugin)
                if PluginKind.EXTENSION in kinds:
                    plugin.register(engine, site)
                self._add(plugin, kinds)
            except Exception as e:
                log.warning(f"Failed to register plugin '{plugin_name(plugin)}': {e}")
                failed.append(plugin)
        return failed

    def find_converter(self, ext: str) -> ConverterPlugin | None:
        """First converter, in priority order, whose ``matches(ext)`` is true."""
        for converter in self._converters:
            if converter.matches(ext):
                return converter
        return None

    def get_basic_plugins(self) -> list[ExtensionPlugin]:
        return list(self._extensions)

    def get_generators(self) -> list[GeneratorPlugin]:
        return list(self._generators)

    def get_converters(self) -> list[ConverterPlugin]:
        return list(self._converters)

    def counts(self) -> dict[str, int]:
        return {
            PluginKind.EXTENSION.value: len(self._extensions),
            PluginKind.GENERATOR.value: len(self._generators),
            PluginKind.CONVERTER.value: len(self._converters),
        }

    def clear(self) -> None:
        self._extensions.clear()
        self._generators.clear()
        self._converters.clear()

    async def run_generators(
        self, site: "Site", engine: "TemplateEngine"
    ) -> list[GeneratedFile]:
        """Run generators one at a time in priority order.

        A failing generator is logged and skipped. Files whose path is
        absolute or climbs out of the destination are rejected.
        """
        files: list[GeneratedFile] = []
        generators = self.get_generators()
        if not generators:
            return files

        log.info(f"Running {len(generators)} generator plugins")
        for generator in generators:
            name = plugin_name(generator)
            try:
                result = await maybe_await(generator.generate(site, engine))
                generated_files = _result_files(result)
            except Exception as e:
                log.warning(f"Generator '{name}' failed: {e}")
                continue

            for generated in generated_files:
                if not _is_safe_output_path(generated.path):
                    log.warning(
                        f"Generator '{name}' tried to write outside destination: {generated.path}"
                    )
                    continue
                log.debug(f"Generator '{name}' created: {generated.path}")
                files.append(generated)
        return files


def _result_files(result: Any) -> list[GeneratedFile]:
    if result is None:
        return []
    if isinstance(result, GeneratorResult):
        return list(result.files)
    if isinstance(result, dict):
        return [
            f if isinstance(f, GeneratedFile) else GeneratedFile(f["path"], f["content"])
            for f in result.get("files", [])
        ]
    raise TypeError(f"Unsupported generator result: {type(result).__name__}")


def _is_safe_output_path(path: str) -> bool:
    pure = PurePosixPath(path.replace("\\", "/"))
    if not path or pure.is_absolute():
        return False
    return ".." not in pure.parts
