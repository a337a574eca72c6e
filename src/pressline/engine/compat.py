"""Jekyll compatibility tags: include_relative, link, post_url, highlight."""

from __future__ import annotations

import logging
import re
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from pygments import highlight as pygments_highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.util import ClassNotFound

from pressline.engine.tags import Tag, TagContext, TagToken
from pressline.exceptions import TemplateError

if TYPE_CHECKING:
    from pressline.engine.environment import TemplateEngine

log = logging.getLogger(__name__)

_LANG_INVALID = re.compile(r"[^A-Za-z0-9_+-]")


class IncludeRelativeTag(Tag):
    """``{% include_relative file.md %}``: render a file next to the page."""

    def parse(self, token: TagToken) -> None:
        super().parse(token)
        self.path = token.args.strip().strip("\"'")
        if not self.path:
            raise ValueError("a file path is required")

    async def render(self, context: TagContext, body: str | None = None) -> str:
        root = context.site.source.resolve()
        page_path = context.get("page.path") or ""
        base = root / PurePosixPath(str(page_path)).parent
        target = (base / self.path).resolve()
        if not _is_within(target, root):
            raise TemplateError(
                f"include_relative path escapes the site source: {self.path}",
                line=self.token.lineno if self.token else None,
            )
        return await context.engine.render_file(target, context.variables)


def _is_within(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


class LinkTag(Tag):
    """``{% link _posts/2024-01-01-hello.md %}``: URL of a source document."""

    def parse(self, token: TagToken) -> None:
        super().parse(token)
        self.path = token.args.strip()
        if not self.path:
            raise ValueError("a document path is required")

    def render(self, context: TagContext, body: str | None = None) -> str:
        path = str(context.argument(self.path))
        document = context.site.find_document(path)
        if document is None or document.url is None:
            raise ValueError(f"could not find document '{path}'")
        return (context.site.config.baseurl or "") + document.url


class PostUrlTag(Tag):
    """``{% post_url 2024-01-01-hello %}``: URL of a post by name."""

    def parse(self, token: TagToken) -> None:
        super().parse(token)
        self.post = token.args.strip()
        if not self.post:
            raise ValueError("a post name is required")

    def render(self, context: TagContext, body: str | None = None) -> str:
        name = str(context.argument(self.post))
        post = context.site.find_post(name)
        if post is None or post.url is None:
            raise ValueError(f"could not find post '{name}'")
        return (context.site.config.baseurl or "") + post.url


class HighlightTag(Tag):
    """``{% highlight lang [linenos] %}...{% endhighlight %}`` via Pygments."""

    block = True

    def parse(self, token: TagToken) -> None:
        super().parse(token)
        parts = token.args.split()
        if not parts:
            raise ValueError("a language is required")
        self.lang = _LANG_INVALID.sub("", parts[0])
        self.linenos = "linenos" in parts[1:]

    def render(self, context: TagContext, body: str | None = None) -> str:
        code = (body or "").strip("\n")
        try:
            lexer = get_lexer_by_name(self.lang) if self.lang else TextLexer()
        except ClassNotFound:
            log.debug(f"No lexer for '{self.lang}', highlighting as plain text")
            lexer = TextLexer()

        formatter = HtmlFormatter(
            nowrap=not self.linenos, linenos="table" if self.linenos else False
        )
        highlighted = pygments_highlight(code, lexer, formatter).rstrip("\n")
        return (
            '<figure class="highlight"><pre>'
            f'<code class="language-{self.lang}" data-lang="{self.lang}">'
            f"{highlighted}</code></pre></figure>"
        )


def register_compat_tags(engine: "TemplateEngine") -> None:
    engine.register_tag("include_relative", IncludeRelativeTag)
    engine.register_tag("link", LinkTag)
    engine.register_tag("post_url", PostUrlTag)
    engine.register_tag("highlight", HighlightTag)
