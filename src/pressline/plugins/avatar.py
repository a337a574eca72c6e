"""GitHub avatar tag.

Usage::

    {% avatar octocat %}
    {% avatar "octocat" size=80 %}
    {% avatar page.author %}
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from pressline.engine import Tag, TagContext, TagToken
from pressline.html import escape_html, escape_html_attribute

if TYPE_CHECKING:
    from pressline.engine import TemplateEngine
    from pressline.site import Site

MAX_USERNAME_LENGTH = 39
DEFAULT_SIZE = 40
# srcset doubles the size for high-DPI displays
RETINA_MULTIPLIER = 2

_ARGS = re.compile(r"^(\S+)(?:\s+size\s*=\s*(\d+))?$", re.IGNORECASE)
_USERNAME_INVALID = re.compile(r"[^A-Za-z0-9-]")
_HYPHENS = re.compile(r"-+")


def sanitize_username(username: str) -> str:
    """Reduce ``username`` to GitHub's rules: alphanumerics and single hyphens.

    Leading and trailing hyphens are dropped and the result is capped at
    39 characters.
    """
    cleaned = _HYPHENS.sub("-", _USERNAME_INVALID.sub("", str(username))).strip("-")
    return cleaned[:MAX_USERNAME_LENGTH].rstrip("-")


def avatar_url(username: str, size: int = DEFAULT_SIZE) -> str:
    sanitized = sanitize_username(username)
    if not sanitized:
        return ""
    return f"https://avatars.githubusercontent.com/{sanitized}?v=4&s={size}"


def avatar_tag(username: str, size: int = DEFAULT_SIZE) -> str:
    """``<img>`` markup for a GitHub avatar; empty for an unusable username."""
    sanitized = sanitize_username(username)
    if not sanitized:
        return ""
    url = escape_html_attribute(avatar_url(sanitized, size * RETINA_MULTIPLIER))
    return (
        f'<img class="avatar avatar-small" src="{url}" alt="{escape_html(sanitized)}" '
        f'srcset="{url} 2x" width="{size}" height="{size}" />'
    )


class AvatarTag(Tag):
    def parse(self, token: TagToken) -> None:
        super().parse(token)
        match = _ARGS.match(token.args.strip())
        if not match:
            raise ValueError("a username argument is required")
        self.username = match.group(1)
        self.size = int(match.group(2)) if match.group(2) else DEFAULT_SIZE

    def render(self, context: TagContext, body: str | None = None) -> str:
        username = context.argument(self.username)
        if username is None:
            return ""
        return avatar_tag(str(username), self.size)


class AvatarPlugin:
    name = "pressline-avatar"
    aliases = ("jekyll-avatar",)

    def register(self, engine: "TemplateEngine", site: "Site") -> None:
        engine.register_tag("avatar", AvatarTag)
