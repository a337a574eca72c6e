"""Liquid-style tags on top of Jinja2.

Site templates write tags with free-form arguments, e.g.
``{% avatar octocat size=80 %}`` or ``{% highlight ruby linenos %}``. Jinja
cannot parse that argument text, so :class:`TagExtension` rewrites every
registered tag into ``{% avatar "octocat size=80" %}`` before lexing and
hands the raw text to a :class:`Tag` object.

A tag is parsed twice: once at compile time so that bad arguments become a
``TemplateSyntaxError`` with a line number, and once per render because
compiled templates only carry the tag name and its argument text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Union

from jinja2 import nodes
from jinja2.exceptions import TemplateSyntaxError
from jinja2.ext import Extension
from jinja2.runtime import Context
from jinja2.utils import missing

from pressline.exceptions import PresslineError, TemplateError
from pressline.utils import maybe_await, resolve_path

if TYPE_CHECKING:
    from pressline.engine.environment import TemplateEngine
    from pressline.site import Site

_QUOTED = re.compile(r"""^(["'])(.*)\1$""", re.DOTALL)
_RAW_BLOCK = re.compile(
    r"\{%-?\s*raw\s*-?%\}.*?\{%-?\s*endraw\s*-?%\}", re.DOTALL
)


@dataclass(frozen=True)
class TagToken:
    """What a tag sees at parse time."""

    name: str
    args: str
    lineno: int
    filename: str | None = None


class Tag:
    """Base class for tags registered with ``TemplateEngine.register_tag``.

    Subclasses override :meth:`parse` to validate and store the argument text
    and :meth:`render` to produce output. Set ``block = True`` for tags that
    wrap a body closed by ``{% end<name> %}``.
    """

    block = False

    def __init__(self) -> None:
        self.token: TagToken | None = None

    def parse(self, token: TagToken) -> None:
        """Capture the tag's arguments.

        Raises:
            ValueError: If the arguments are malformed.
        """
        self.token = token

    def render(
        self, context: "TagContext", body: str | None = None
    ) -> Union[str, Awaitable[str]]:
        raise NotImplementedError


TagFactory = Callable[[], Tag]


class TagContext:
    """Render-time view of the template context handed to tags."""

    def __init__(self, context: Context, engine: "TemplateEngine"):
        self.context = context
        self.engine = engine

    @property
    def site(self) -> "Site":
        return self.engine.site

    @property
    def variables(self) -> dict[str, Any]:
        """All variables visible at the tag's position."""
        return dict(self.context.get_all())

    def lookup(self, expr: str) -> Any:
        """Resolve a dotted variable path such as ``page.author``.

        Raises:
            KeyError: If any segment is missing.
        """
        head, _, rest = expr.strip().partition(".")
        value = self.context.resolve_or_missing(head)
        if value is missing:
            raise KeyError(head)
        return resolve_path(value, rest) if rest else value

    def get(self, expr: str, default: Any = None) -> Any:
        try:
            return self.lookup(expr)
        except KeyError:
            return default

    def argument(self, raw: str) -> Any:
        """Interpret a tag argument as a quoted literal or a variable.

        Unquoted text that names no variable is returned as-is, matching how
        Liquid treats bare words in tag arguments.
        """
        raw = raw.strip()
        match = _QUOTED.match(raw)
        if match:
            return match.group(2)
        try:
            return self.lookup(raw)
        except KeyError:
            return raw


def _quote(args: str) -> str:
    return '"' + args.replace("\\", "\\\\").replace('"', '\\"') + '"'


class TagExtension(Extension):
    """Dispatches registered Liquid-style tags to :class:`Tag` objects.

    The set of handled tag names lives on the instance and grows as tags are
    registered; Jinja reads it each time a template is parsed.
    """

    def __init__(self, environment):
        super().__init__(environment)
        self.tags: set[str] = set()
        self._tag_pattern: re.Pattern[str] | None = None
        # These are runtime attributes, not part of Environment's type definition
        environment.pressline_tags = {}  # type: ignore[attr-defined]
        environment.pressline_engine = None  # type: ignore[attr-defined]

    @property
    def factories(self) -> dict[str, TagFactory]:
        return self.environment.pressline_tags  # type: ignore[attr-defined]

    def add_tag(self, name: str, factory: TagFactory) -> None:
        self.factories[name] = factory
        self.tags.add(name)
        self._tag_pattern = None

    def _pattern(self) -> re.Pattern[str]:
        pattern = self._tag_pattern
        if pattern is None:
            names = "|".join(sorted((re.escape(n) for n in self.tags), key=len, reverse=True))
            pattern = re.compile(
                r"\{%(?P<lstrip>[-+]?)\s*(?P<name>" + names + r")\b"
                r"(?P<args>.*?)(?P<rstrip>[-+]?)%\}",
                re.DOTALL,
            )
            self._tag_pattern = pattern
        return pattern

    def preprocess(self, source, name, filename=None):
        """Quote free-form tag arguments so Jinja can lex them.

        ``{% raw %}`` regions are left untouched and line numbers are kept.
        """
        if not self.tags:
            return source
        pattern = self._pattern()

        def quote(match: re.Match[str]) -> str:
            args = match.group("args").strip()
            return (
                "{%" + match.group("lstrip") + " " + match.group("name") + " "
                + _quote(args) + " " + match.group("rstrip") + "%}"
            )

        parts: list[str] = []
        pos = 0
        for raw in _RAW_BLOCK.finditer(source):
            parts.append(pattern.sub(quote, source[pos:raw.start()]))
            parts.append(raw.group(0))
            pos = raw.end()
        parts.append(pattern.sub(quote, source[pos:]))
        return "".join(parts)

    def parse(self, parser):
        token = next(parser.stream)
        name = token.value
        lineno = token.lineno
        args = parser.stream.expect("string").value

        factory = self.factories[name]
        tag = factory()
        try:
            tag.parse(TagToken(name, args, lineno, parser.filename))
        except ValueError as e:
            parser.fail(f"{name}: {e}", lineno, TemplateSyntaxError)

        call = self.call_method(
            "_render_tag",
            [
                nodes.Const(name),
                nodes.Const(args),
                nodes.Const(lineno),
                nodes.ContextReference(),
            ],
        )
        if tag.block:
            body = parser.parse_statements((f"name:end{name}",), drop_needle=True)
            return nodes.CallBlock(call, [], [], body).set_lineno(lineno)
        return nodes.Output([call]).set_lineno(lineno)

    async def _render_tag(self, name, args, lineno, context, caller=None):
        """Instantiate, parse and render one tag occurrence."""
        engine = self.environment.pressline_engine  # type: ignore[attr-defined]
        try:
            tag = self.factories[name]()
            tag.parse(TagToken(name, args, lineno))
            body = None
            if caller is not None:
                body = await maybe_await(caller())
            return await maybe_await(tag.render(TagContext(context, engine), body))
        except PresslineError:
            raise
        except Exception as e:
            raise TemplateError(f"{name}: {e}", line=lineno, cause=e) from e
