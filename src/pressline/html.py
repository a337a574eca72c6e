"""HTML escaping helpers.

Anything built from free-form text and emitted as HTML goes through one of
these first.
"""

from __future__ import annotations

import json
import re
from typing import Any

from markupsafe import Markup, escape

_TAG = re.compile(r"<[^>]*>")

_JS_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "'": "\\'",
    "<": "\\x3c",
    ">": "\\x3e",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\f": "\\f",
}


def escape_html(value: Any) -> str:
    """Escape ``& < > " '`` for HTML text and attributes."""
    return str(escape(str(value)))


def escape_html_attribute(value: Any) -> str:
    return escape_html(value)


def escape_xml(value: Any) -> str:
    """Escape for XML content; uses ``&apos;`` for single quotes."""
    return (
        str(value)
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def escape_js(value: Any) -> str:
    """Escape a value for use inside a quoted JavaScript string."""
    return "".join(_JS_ESCAPES.get(ch, ch) for ch in str(value))


def safe_json_dumps(data: Any, indent: int | None = None) -> str:
    """JSON that can be embedded in a ``<script>`` tag.

    Escapes ``<``, ``>`` and the U+2028/U+2029 separators.
    """
    text = json.dumps(data, indent=indent, default=str)
    return (
        text.replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )


def strip_html(value: Any) -> str:
    """Remove tags and unescape entities."""
    return Markup(_TAG.sub("", str(value))).unescape()
