"""Tests for the plugin registry."""

import asyncio
import logging

import pytest

from pressline.exceptions import PluginError
from pressline.plugins import GeneratedFile, GeneratorResult, PluginKind, PluginRegistry
from pressline.plugins.base import DEFAULT_PRIORITY, plugin_name, plugin_priority
from pressline.renderer import DocumentRenderer
from pressline.site import Document, Site


class Converter:
    def __init__(self, name, priority=None, ext=".txt"):
        self.name = name
        if priority is not None:
            self.priority = priority
        self.ext = ext

    def matches(self, ext):
        return ext == self.ext

    def convert(self, content, document, site):
        return f"{self.name}:{content}"


class Generator:
    def __init__(self, name, priority=50, files=None, error=None):
        self.name = name
        self.priority = priority
        self.files = files or []
        self.error = error

    def generate(self, site, engine):
        if self.error:
            raise self.error
        return GeneratorResult(files=[GeneratedFile(p, c) for p, c in self.files])


class Extension:
    name = "ext"

    def __init__(self):
        self.registered_with = None

    def register(self, engine, site):
        self.registered_with = (engine, site)


# =============================================================================
# Registration
# =============================================================================


def test_lower_priority_converter_wins_regardless_of_order():
    """find_converter is deterministic by priority, not registration order."""
    for order in ([("late", 90), ("early", 10)], [("early", 10), ("late", 90)]):
        registry = PluginRegistry()
        for name, priority in order:
            registry.register(Converter(name, priority))
        assert registry.find_converter(".txt").name == "early"


def test_equal_priorities_keep_registration_order():
    registry = PluginRegistry()
    for name in ("a", "b", "c"):
        registry.register(Converter(name, 50))
    registry.register(Converter("first", 10))
    assert [c.name for c in registry.get_converters()] == ["first", "a", "b", "c"]


def test_default_priority_is_fifty():
    converter = Converter("plain")
    assert plugin_priority(converter) == DEFAULT_PRIORITY == 50


def test_find_converter_without_match():
    registry = PluginRegistry()
    registry.register(Converter("txt"))
    assert registry.find_converter(".rst") is None


def test_plugin_may_have_several_kinds():
    class Both(Converter, Generator):
        def __init__(self):
            Converter.__init__(self, "both", 20)

        def generate(self, site, engine):
            return None

        def register(self, engine, site):
            pass

    registry = PluginRegistry()
    plugin = Both()
    kinds = registry.register(plugin)

    assert kinds == {PluginKind.EXTENSION, PluginKind.GENERATOR, PluginKind.CONVERTER}
    assert registry.get_basic_plugins() == [plugin]
    assert registry.get_generators() == [plugin]
    assert registry.get_converters() == [plugin]
    assert registry.counts() == {"extension": 1, "generator": 1, "converter": 1}


def test_getters_return_copies():
    registry = PluginRegistry()
    registry.register(Converter("txt"))
    registry.get_converters().clear()
    registry.get_generators().append(object())
    assert len(registry.get_converters()) == 1
    assert registry.get_generators() == []


def test_register_rejects_non_plugins():
    with pytest.raises(PluginError, match="not a plugin"):
        PluginRegistry().register(object())


@pytest.mark.parametrize("priority", ["10", True, [1]])
def test_register_rejects_non_numeric_priority(priority):
    converter = Converter("bad")
    converter.priority = priority
    with pytest.raises(PluginError):
        PluginRegistry().register(converter)


def test_plugin_name_falls_back_to_class_name():
    assert plugin_name(Extension()) == "ext"
    assert plugin_name(Converter("")) == "Converter"


def test_register_all_tolerates_failures(tmp_path, caplog):
    """One failing plugin does not stop the rest."""

    class Broken:
        name = "broken"

        def register(self, engine, site):
            raise RuntimeError("cannot register")

    site = Site(tmp_path)
    engine = object()
    good = Extension()
    broken = Broken()
    registry = PluginRegistry()

    failed = registry.register_all([broken, object(), good], engine, site)

    assert failed[0] is broken
    assert len(failed) == 2
    assert good.registered_with == (engine, site)
    assert "Failed to register plugin 'broken'" in caplog.text


def test_failed_extension_is_not_kept_as_converter(tmp_path):
    """An extension whose register raises leaves no trace in any list."""

    class HalfBroken:
        def register(self, engine, site):
            raise RuntimeError("cannot register")

        def matches(self, ext):
            return ext == ".txt"

        def convert(self, content, document, site):
            return "CONVERTED"

    site = Site(tmp_path)
    renderer = DocumentRenderer(site)
    plugin = HalfBroken()

    failed = site.plugins.register_all([plugin], renderer.engine, site)

    assert failed == [plugin]
    assert site.plugins.counts() == {"extension": 0, "generator": 0, "converter": 0}
    assert site.plugins.find_converter(".txt") is None
    assert asyncio.run(renderer.render_document(Document("a.txt", content="x"))) == "x"


def test_clear():
    registry = PluginRegistry()
    registry.register(Converter("txt"))
    registry.register(Generator("gen"))
    registry.clear()
    assert registry.counts() == {"extension": 0, "generator": 0, "converter": 0}


# =============================================================================
# Generators
# =============================================================================


def test_generators_run_in_priority_order(tmp_path):
    order = []

    class Recording(Generator):
        def generate(self, site, engine):
            order.append(self.name)
            return super().generate(site, engine)

    registry = PluginRegistry()
    registry.register(Recording("sitemap", 100, [("sitemap.xml", "<urlset/>")]))
    registry.register(Recording("redirects", 90, [("old.html", "moved")]))
    registry.register(Recording("first", 10))

    files = asyncio.run(registry.run_generators(Site(tmp_path), object()))

    assert order == ["first", "redirects", "sitemap"]
    assert [f.path for f in files] == ["old.html", "sitemap.xml"]


def test_failing_generator_is_skipped(tmp_path, caplog):
    registry = PluginRegistry()
    registry.register(Generator("bad", 10, error=RuntimeError("boom")))
    registry.register(Generator("good", 20, [("ok.html", "ok")]))

    with caplog.at_level(logging.WARNING):
        files = asyncio.run(registry.run_generators(Site(tmp_path), object()))

    assert [f.path for f in files] == ["ok.html"]
    assert "Generator 'bad' failed: boom" in caplog.text


def test_generator_output_outside_destination_is_rejected(tmp_path, caplog):
    registry = PluginRegistry()
    registry.register(
        Generator(
            "evil",
            files=[("../escape.html", "x"), ("/etc/passwd", "x"), ("feed.xml", "ok")],
        )
    )

    files = asyncio.run(registry.run_generators(Site(tmp_path), object()))

    assert [f.path for f in files] == ["feed.xml"]
    assert caplog.text.count("outside destination") == 2


def test_async_generator_and_dict_result(tmp_path):
    class AsyncGenerator:
        name = "async"
        priority = 50

        async def generate(self, site, engine):
            return {"files": [{"path": "robots.txt", "content": "User-agent: *"}]}

    registry = PluginRegistry()
    registry.register(AsyncGenerator())
    files = asyncio.run(registry.run_generators(Site(tmp_path), object()))
    assert files == [GeneratedFile("robots.txt", "User-agent: *")]
