"""GitHub-style emoji shortcodes.

Adds an ``emojify`` filter turning ``:smile:`` into the emoji character.
Unknown shortcodes are left as written.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import emoji

if TYPE_CHECKING:
    from pressline.engine import TemplateEngine
    from pressline.site import Site


def emojify(text: str | None) -> str:
    if not text:
        return ""
    # "alias" accepts GitHub names such as :thumbsup: next to the CLDR ones
    return emoji.emojize(str(text), language="alias")


def has_emoji(name: str) -> bool:
    """Whether ``name`` (without colons) is a known shortcode."""
    code = f":{name.strip(':')}:"
    return emoji.emojize(code, language="alias") != code


class JemojiPlugin:
    name = "pressline-jemoji"
    aliases = ("jemoji",)

    def register(self, engine: "TemplateEngine", site: "Site") -> None:
        engine.register_filter("emojify", emojify)
