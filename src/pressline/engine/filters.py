"""Jekyll-compatible template filters."""

from __future__ import annotations

import operator
import re
from email.utils import format_datetime
from typing import TYPE_CHECKING, Any, Callable
from urllib.parse import quote, quote_plus

from jinja2 import Undefined

from pressline import html
from pressline.utils import coerce_datetime

if TYPE_CHECKING:
    from pressline.engine.environment import TemplateEngine

_SLUG_SPACES = re.compile(r"[\s_]+")
_SLUG_INVALID = re.compile(r"[^\w-]+")
_SLUG_DASHES = re.compile(r"--+")

_COMPARISONS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
}


def _is_blank(value: Any) -> bool:
    return value is None or isinstance(value, Undefined) or value == ""


def _field(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def _as_items(value: Any) -> list[Any]:
    if isinstance(value, dict):
        return list(value.values())
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def _date_filter(fmt: Callable[[Any], str]) -> Callable[[Any], str]:
    def apply(value: Any) -> str:
        if _is_blank(value):
            return ""
        parsed = coerce_datetime(value)
        if parsed is None:
            return str(value)
        return fmt(parsed)

    return apply


date_to_xmlschema = _date_filter(lambda d: d.isoformat())
date_to_rfc822 = _date_filter(lambda d: format_datetime(d))
date_to_string = _date_filter(lambda d: d.strftime("%d %b %Y"))
date_to_long_string = _date_filter(lambda d: d.strftime("%d %B %Y"))


def slugify(value: Any) -> str:
    """Lower-case, dash-separated, word characters only."""
    if _is_blank(value):
        return ""
    slug = _SLUG_SPACES.sub("-", str(value).strip().lower())
    slug = _SLUG_INVALID.sub("", slug)
    return _SLUG_DASHES.sub("-", slug).strip("-")


def array_to_sentence_string(value: Any, connector: str = "and") -> str:
    items = [str(v) for v in _as_items(value)]
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return f"{items[0]} {connector} {items[1]}"
    return f"{', '.join(items[:-1])}, {connector} {items[-1]}"


def where(value: Any, prop: str, target: Any) -> list[Any]:
    return [item for item in _as_items(value) if _field(item, prop) == target]


def where_exp(value: Any, prop: str, op: str, target: Any) -> list[Any]:
    """Filter items by ``item[prop] <op> target``.

    Unknown operators and incomparable values exclude the item.
    """
    compare = _COMPARISONS.get(op)
    if compare is None:
        return []
    result = []
    for item in _as_items(value):
        try:
            if compare(_field(item, prop), target):
                result.append(item)
        except TypeError:
            continue
    return result


def group_by(value: Any, prop: str) -> list[dict[str, Any]]:
    groups: dict[Any, dict[str, Any]] = {}
    for item in _as_items(value):
        key = _field(item, prop)
        group = groups.setdefault(key, {"name": key, "items": []})
        group["items"].append(item)
    for group in groups.values():
        group["size"] = len(group["items"])
    return list(groups.values())


def xml_escape(value: Any) -> str:
    return "" if _is_blank(value) else html.escape_xml(value)


def cgi_escape(value: Any) -> str:
    return "" if _is_blank(value) else quote_plus(str(value))


def uri_escape(value: Any) -> str:
    return "" if _is_blank(value) else quote(str(value), safe="!#$&'()*+,/:;=?@[]~")


def number_of_words(value: Any) -> int:
    if _is_blank(value):
        return 0
    return len(str(value).split())


def jsonify(value: Any) -> str:
    return html.safe_json_dumps(value)


def strip_html(value: Any) -> str:
    return "" if _is_blank(value) else html.strip_html(value)


def _url_filters(engine: "TemplateEngine") -> dict[str, Callable[..., str]]:
    # Config is read on every call so later config changes are seen
    def relative_url(value: Any) -> str:
        baseurl = engine.site.config.baseurl or ""
        if _is_blank(value):
            return baseurl
        url = str(value)
        if url.startswith(("http://", "https://", "//")):
            return url
        return baseurl + (url if url.startswith("/") else "/" + url)

    def absolute_url(value: Any) -> str:
        config = engine.site.config
        prefix = (config.url or "") + (config.baseurl or "")
        if _is_blank(value):
            return prefix
        url = str(value)
        if url.startswith(("http://", "https://")):
            return url
        return prefix + (url if url.startswith("/") else "/" + url)

    return {"relative_url": relative_url, "absolute_url": absolute_url}


def register_builtin_filters(engine: "TemplateEngine") -> None:
    """Register the Jekyll-compatible filter set on ``engine``."""

    def markdownify(value: Any) -> str:
        return "" if _is_blank(value) else engine.markdown.convert(str(value))

    filters: dict[str, Callable[..., Any]] = {
        "date_to_xmlschema": date_to_xmlschema,
        "date_to_rfc822": date_to_rfc822,
        "date_to_string": date_to_string,
        "date_to_long_string": date_to_long_string,
        "slugify": slugify,
        "markdownify": markdownify,
        "array_to_sentence_string": array_to_sentence_string,
        "where": where,
        "where_exp": where_exp,
        "group_by": group_by,
        "xml_escape": xml_escape,
        "cgi_escape": cgi_escape,
        "uri_escape": uri_escape,
        "number_of_words": number_of_words,
        "jsonify": jsonify,
        "strip_html": strip_html,
        **_url_filters(engine),
    }
    for name, fn in filters.items():
        engine.register_filter(name, fn)
