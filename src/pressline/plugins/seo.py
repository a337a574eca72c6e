"""SEO metadata tag.

``{% seo %}`` expands to a ``<title>``, description and canonical link,
Open Graph and Twitter Card meta tags, and a JSON-LD block. Page values win
over site values. ``{% seo title=false %}`` leaves out the ``<title>``.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import TYPE_CHECKING, Any, Mapping

from pressline.engine import Tag, TagContext, TagToken
from pressline.html import escape_html, safe_json_dumps
from pressline.utils import coerce_datetime

if TYPE_CHECKING:
    from pressline.config import SiteConfig
    from pressline.engine import TemplateEngine
    from pressline.site import Site

_TITLE_OPTION = re.compile(r"^title\s*=\s*(true|false)$", re.IGNORECASE)


def _absolute(url: str, config: "SiteConfig") -> str:
    if url.startswith(("http://", "https://")):
        return url
    return f"{config.url}{config.baseurl}{url}"


def _author_name(author: Any) -> str:
    if isinstance(author, Mapping):
        return str(author.get("name") or "")
    return str(author or "")


def _iso(value: Any) -> str | None:
    parsed = value if isinstance(value, datetime) else coerce_datetime(value)
    return parsed.isoformat() if parsed else None


def seo_metadata(page: Mapping[str, Any], config: "SiteConfig") -> dict[str, Any]:
    """Resolved values the tag renders, before escaping."""
    extra = config.model_extra or {}
    page_title = str(page.get("title") or "")
    site_title = config.title
    if page_title and site_title and page_title != site_title:
        title = f"{page_title} | {site_title}"
    else:
        title = page_title or site_title

    image = str(page.get("image") or extra.get("image") or "")
    twitter = extra.get("twitter")
    handle = str(
        (twitter.get("username") if isinstance(twitter, Mapping) else None)
        or extra.get("twitter_username")
        or ""
    )
    if handle and not handle.startswith("@"):
        handle = f"@{handle}"

    return {
        "title": title,
        "page_title": page_title,
        "site_title": site_title,
        "description": str(page.get("description") or config.description or ""),
        "url": _absolute(page["url"], config) if page.get("url") else "",
        "image": _absolute(image, config) if image else "",
        "author": _author_name(page.get("author") or extra.get("author")),
        "article": page.get("layout") == "post" or bool(page.get("date")),
        "published": _iso(page.get("date")),
        "modified": _iso(page.get("last_modified_at")),
        "twitter_site": handle,
        "logo": _absolute(str(extra["logo"]), config) if extra.get("logo") else "",
    }


def json_ld(meta: Mapping[str, Any]) -> dict[str, Any]:
    """schema.org structured data: ``BlogPosting`` for articles, else ``WebSite``."""
    data: dict[str, Any] = {"@context": "https://schema.org"}
    if not meta["article"]:
        data.update({"@type": "WebSite", "name": meta["title"]})
        if meta["description"]:
            data["description"] = meta["description"]
        if meta["url"]:
            data["url"] = meta["url"]
        return data

    data.update({"@type": "BlogPosting", "headline": meta["title"]})
    if meta["description"]:
        data["description"] = meta["description"]
    if meta["url"]:
        data["url"] = meta["url"]
        data["mainEntityOfPage"] = {"@type": "WebPage", "@id": meta["url"]}
    if meta["published"]:
        data["datePublished"] = meta["published"]
    if meta["modified"]:
        data["dateModified"] = meta["modified"]
    if meta["image"]:
        data["image"] = meta["image"]
    if meta["author"]:
        data["author"] = {"@type": "Person", "name": meta["author"]}
    if meta["site_title"]:
        data["publisher"] = {"@type": "Organization", "name": meta["site_title"]}
        if meta["logo"]:
            data["publisher"]["logo"] = {"@type": "ImageObject", "url": meta["logo"]}
    return data


def seo_tags(page: Mapping[str, Any], config: "SiteConfig", *, title: bool = True) -> str:
    """Render the SEO block for ``page``; every value is HTML-escaped."""
    meta = seo_metadata(page, config)
    tags: list[str] = []

    def meta_tag(attr: str, key: str, value: str) -> None:
        if value:
            tags.append(f'<meta {attr}="{key}" content="{escape_html(value)}">')

    if title and meta["title"]:
        tags.append(f"<title>{escape_html(meta['title'])}</title>")
    meta_tag("name", "description", meta["description"])
    if meta["url"]:
        tags.append(f'<link rel="canonical" href="{escape_html(meta["url"])}">')

    meta_tag("property", "og:title", meta["page_title"])
    meta_tag("property", "og:description", meta["description"])
    meta_tag("property", "og:url", meta["url"])
    meta_tag("property", "og:site_name", meta["site_title"])
    meta_tag("property", "og:type", "article" if meta["article"] else "website")
    meta_tag("property", "og:image", meta["image"])

    meta_tag("name", "twitter:card", "summary_large_image" if meta["image"] else "summary")
    meta_tag("name", "twitter:title", meta["page_title"])
    meta_tag("name", "twitter:description", meta["description"])
    meta_tag("name", "twitter:image", meta["image"])
    meta_tag("name", "twitter:site", meta["twitter_site"])

    if meta["article"]:
        meta_tag("name", "author", meta["author"])
        meta_tag("property", "article:published_time", meta["published"] or "")
        meta_tag("property", "article:modified_time", meta["modified"] or "")

    tags.append(f'<script type="application/ld+json">{safe_json_dumps(json_ld(meta))}</script>')
    return "\n".join(tags)


class SeoTag(Tag):
    def parse(self, token: TagToken) -> None:
        super().parse(token)
        self.title = True
        args = token.args.strip()
        if args:
            match = _TITLE_OPTION.match(args)
            if not match:
                raise ValueError(f"unsupported argument '{args}'")
            self.title = match.group(1).lower() == "true"

    def render(self, context: TagContext, body: str | None = None) -> str:
        page = context.get("page")
        if not isinstance(page, Mapping):
            page = {}
        return seo_tags(page, context.site.config, title=self.title)


class SeoPlugin:
    name = "pressline-seo"
    aliases = ("jekyll-seo-tag",)

    def register(self, engine: "TemplateEngine", site: "Site") -> None:
        engine.register_tag("seo", SeoTag)
