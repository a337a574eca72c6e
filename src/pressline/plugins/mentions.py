"""@mention linking.

Adds a ``mentionify`` filter and links mentions in converted markdown
documents after rendering.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from pressline.hooks import DocumentHookContext, PluginHooks
from pressline.html import escape_html

if TYPE_CHECKING:
    from pressline.engine import TemplateEngine
    from pressline.site import Site

log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://github.com"

# GitHub usernames: alphanumerics and inner hyphens, at most 39 characters
_MENTION = re.compile(r"(?<![A-Za-z0-9])@([A-Za-z0-9](?:[A-Za-z0-9-]{0,37}[A-Za-z0-9])?)")
_ANCHOR_OPEN = re.compile(r"<a(?:\s+[^>]*)?>", re.IGNORECASE)


def _inside_html_tag(text: str, position: int) -> bool:
    last_open = text.rfind("<", 0, position)
    if last_open == -1:
        return False
    return ">" not in text[last_open:position]


def _inside_link(text: str, position: int) -> bool:
    before = text[:position]
    opens = [m.start() for m in _ANCHOR_OPEN.finditer(before)]
    if not opens:
        return False
    return opens[-1] > before.lower().rfind("</a>")


def mentionify(text: str | None, base_url: str = DEFAULT_BASE_URL) -> str:
    """Replace ``@user`` with a profile link.

    Mentions inside HTML tags or existing ``<a>`` elements are left alone.
    """
    if not text:
        return ""
    base = base_url.rstrip("/")
    source = str(text)

    def link(match: re.Match[str]) -> str:
        if _inside_html_tag(source, match.start()) or _inside_link(source, match.start()):
            return match.group(0)
        username = escape_html(match.group(1))
        url = escape_html(f"{base}/{match.group(1)}")
        return f'<a href="{url}" class="user-mention">@{username}</a>'

    return _MENTION.sub(link, source)


class MentionsPlugin:
    name = "pressline-mentions"
    aliases = ("jekyll-mentions",)

    def register(self, engine: "TemplateEngine", site: "Site") -> None:
        def mentionify_filter(text: str | None) -> str:
            return mentionify(text, site.config.mentions.base_url)

        def link_mentions(context: DocumentHookContext) -> None:
            document = context.document
            if document.extname.lower() not in site.config.markdown_extensions:
                return
            if context.content:
                context.content = mentionify(context.content, site.config.mentions.base_url)

        engine.register_filter("mentionify", mentionify_filter)
        PluginHooks(site.hooks, self.name).on_document_post_render(link_mentions)
