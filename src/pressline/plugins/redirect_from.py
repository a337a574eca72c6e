"""Redirect pages from ``redirect_from`` / ``redirect_to`` front matter."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pressline.html import escape_html, escape_js
from pressline.plugins.base import GeneratedFile, GeneratorPriority, GeneratorResult

if TYPE_CHECKING:
    from pressline.engine import TemplateEngine
    from pressline.site import Site

log = logging.getLogger(__name__)

_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)
_HAS_EXTENSION = re.compile(r"\.[A-Za-z0-9]+$")

REDIRECT_TEMPLATE = """<!DOCTYPE html>
<html lang="en-US">
  <head>
    <meta charset="utf-8">
    <title>Redirecting&hellip;</title>
    <link rel="canonical" href="{url}">
    <script>window.location.href="{js_url}";</script>
    <meta http-equiv="refresh" content="0; url={url}">
    <meta name="robots" content="noindex">
  </head>
  <body>
    <h1>Redirecting&hellip;</h1>
    <a href="{url}">Click here if you are not redirected.</a>
  </body>
</html>"""


@dataclass
class Redirect:
    source: str
    target: str

    @property
    def html(self) -> str:
        return redirect_html(self.target)


def redirect_html(target: str) -> str:
    return REDIRECT_TEMPLATE.format(url=escape_html(target), js_url=escape_js(target))


def _normalize_url(url: str) -> str:
    if not url:
        return "/"
    return url if url.startswith("/") else f"/{url}"


def output_path(url: str) -> str:
    """Destination-relative file for a redirect source URL.

    ``/`` maps to ``index.html``, ``/dir/`` to ``dir/index.html`` and
    extensionless paths get ``.html``.
    """
    path = url.lstrip("/")
    if not path:
        return "index.html"
    if path.endswith("/"):
        return path + "index.html"
    if not _HAS_EXTENSION.search(path):
        return path + ".html"
    return path


class RedirectFromPlugin:
    """Generator emitting one redirect page per ``redirect_from`` entry.

    Runs late so that document URLs are final.
    """

    name = "pressline-redirect-from"
    aliases = ("jekyll-redirect-from",)
    priority = GeneratorPriority.LOW

    def collect(self, site: "Site") -> list[Redirect]:
        baseurl = site.config.baseurl or ""
        redirects: list[Redirect] = []
        for document in site.all_documents():
            sources = document.data.get("redirect_from")
            if sources:
                if isinstance(sources, str):
                    sources = [sources]
                target = baseurl + (document.url or "/")
                for source in sources:
                    redirects.append(Redirect(_normalize_url(str(source)), target))

            redirect_to = document.data.get("redirect_to")
            if redirect_to:
                redirect_to = str(redirect_to)
                if not _ABSOLUTE_URL.match(redirect_to):
                    redirect_to = baseurl + _normalize_url(redirect_to)
                redirects.append(Redirect(document.url or "", redirect_to))
        return redirects

    def generate(self, site: "Site", engine: "TemplateEngine") -> GeneratorResult:
        redirects = self.collect(site)

        # Documents with redirect_to are replaced by their redirect page
        for document in site.all_documents():
            if document.data.get("redirect_to"):
                document.data["output"] = False

        log.debug(f"Generated {len(redirects)} redirect pages")
        return GeneratorResult(
            files=[GeneratedFile(output_path(r.source), r.html) for r in redirects]
        )
