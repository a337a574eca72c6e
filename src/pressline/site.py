"""Site and Document models consumed by the rendering pipeline."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any

import yaml

from pressline.config import CONFIG_FILENAME, SiteConfig, load_config
from pressline.exceptions import ConfigError, FrontMatterError
from pressline.hooks import HookBus
from pressline.plugins.registry import PluginRegistry
from pressline.utils import coerce_datetime

log = logging.getLogger(__name__)

EXCERPT_LENGTH = 150

_FRONT_MATTER = re.compile(r"\A---[ \t]*\r?\n(.*?\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_POST_DATE_PREFIX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})-")


class DocumentKind(str, Enum):
    PAGE = "page"
    POST = "post"
    LAYOUT = "layout"
    DOCUMENT = "document"


def _yaml_error_line(error: yaml.YAMLError, offset: int = 0) -> int | None:
    """1-based line of a YAML error, shifted by ``offset`` lines."""
    mark = getattr(error, "problem_mark", None)
    if mark is None:
        return None
    return mark.line + 1 + offset


def parse_front_matter(text: str, path: str | None = None) -> tuple[dict[str, Any], str]:
    """Split a leading ``---`` YAML block from the body.

    Returns:
        ``(data, body)``; ``data`` is empty when there is no front matter.

    Raises:
        FrontMatterError: If the block is not valid YAML.
    """
    match = _FRONT_MATTER.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1) or "") or {}
    except yaml.YAMLError as e:
        raise FrontMatterError(
            f"Invalid front matter: {e}", file=path, line=_yaml_error_line(e, 1), cause=e
        ) from e

    if not isinstance(data, dict):
        data = {}
    return data, text[match.end():]


@dataclass
class Document:
    """A single source content unit (page, post, layout, collection entry).

    Identity is the relative source path.
    """

    path: str
    content: str = ""
    data: dict[str, Any] = field(default_factory=dict)
    url: str | None = None
    collection: str | None = None
    kind: DocumentKind = DocumentKind.PAGE

    @classmethod
    def from_text(
        cls, path: str, text: str, kind: DocumentKind = DocumentKind.PAGE, **kwargs: Any
    ) -> "Document":
        """Create a document from raw file text with optional front matter."""
        data, body = parse_front_matter(text, path)
        return cls(path=path, content=body, data=data, kind=kind, **kwargs)

    @property
    def extname(self) -> str:
        return PurePosixPath(self.path).suffix

    @property
    def basename(self) -> str:
        return PurePosixPath(self.path).name

    @property
    def name(self) -> str:
        """File stem; layouts are looked up by this."""
        return PurePosixPath(self.path).stem

    @property
    def layout(self) -> str | None:
        value = self.data.get("layout")
        return str(value) if value else None

    @property
    def title(self) -> str:
        return str(self.data.get("title") or "")

    @property
    def permalink(self) -> str | None:
        return self.data.get("permalink")

    @property
    def published(self) -> bool:
        return self.data.get("published", True) is not False

    @property
    def date(self) -> datetime | None:
        """Front matter date, or the ``YYYY-MM-DD-`` filename prefix of posts."""
        value = self.data.get("date")
        if value is not None:
            return coerce_datetime(value)
        if self.kind == DocumentKind.POST:
            match = _POST_DATE_PREFIX.match(self.basename)
            if match:
                year, month, day = (int(part) for part in match.groups())
                return datetime(year, month, day, tzinfo=timezone.utc)
        return None

    @property
    def categories(self) -> list[str]:
        return _as_list(self.data.get("categories", self.data.get("category")))

    @property
    def tags(self) -> list[str]:
        return _as_list(self.data.get("tags"))

    def excerpt(self) -> str:
        first = self.content.split("\n\n", 1)[0]
        if len(first) > EXCERPT_LENGTH:
            return first[:EXCERPT_LENGTH] + "..."
        return first

    def to_context(self) -> dict[str, Any]:
        """Project this document into the mapping templates see as ``page``."""
        return {
            **self.data,
            "url": self.url,
            "title": self.title,
            "date": self.date,
            "content": self.content,
            "excerpt": self.excerpt(),
            "path": self.path,
            "collection": self.collection,
            "categories": self.categories,
            "tags": self.tags,
        }


def _as_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return value.split()
    return [str(v) for v in value]


class Site:
    """In-memory site: configuration, layouts, data and documents.

    The site also owns the build-scoped hook bus and plugin registry so that
    separate sites (and separate tests) never share registrations.
    """

    def __init__(
        self,
        source: Path | str = ".",
        config: SiteConfig | dict[str, Any] | None = None,
    ):
        self.source = Path(source)
        if isinstance(config, SiteConfig):
            self.config = config
        else:
            self.config = SiteConfig.model_validate(config or {})

        self.layouts: dict[str, Document] = {}
        self.pages: list[Document] = []
        self.posts: list[Document] = []
        self.collections: dict[str, list[Document]] = {}
        self.data: dict[str, Any] = {}

        self.hooks = HookBus()
        self.plugins = PluginRegistry()

    @classmethod
    def read(cls, source: Path | str) -> "Site":
        """Load config, layouts and data files from a source directory.

        Includes are not loaded here; the template loader reads them from
        ``_includes/`` on demand.

        Raises:
            ConfigError: If ``_config.yml`` or a ``_data`` file is invalid.
            FrontMatterError: If a layout's front matter is invalid.
        """
        root = Path(source)
        site = cls(root, load_config(root / CONFIG_FILENAME))

        for path in sorted((root / "_layouts").glob("*")):
            if path.is_file():
                rel = path.relative_to(root).as_posix()
                text = path.read_text(encoding="utf-8")
                site.add_layout(Document.from_text(rel, text, DocumentKind.LAYOUT))

        for path in sorted((root / "_data").glob("*.y*ml")):
            try:
                site.data[path.stem] = yaml.safe_load(path.read_text(encoding="utf-8"))
            except yaml.YAMLError as e:
                raise ConfigError(
                    f"Invalid data file: {e}",
                    file=str(path),
                    line=_yaml_error_line(e),
                    cause=e,
                ) from e


        log.debug(f"Read site {root}: {len(site.layouts)} layouts, {len(site.data)} data files")
        return site

    def add_layout(self, layout: Document) -> None:
        layout.kind = DocumentKind.LAYOUT
        self.layouts[layout.name] = layout

    def add_page(self, page: Document) -> None:
        self._apply_defaults(page, "pages")
        self.pages.append(page)

    def add_post(self, post: Document) -> None:
        post.kind = DocumentKind.POST
        post.collection = post.collection or "posts"
        self._apply_defaults(post, "posts")
        self.posts.append(post)

    def add_document(self, document: Document, collection: str) -> None:
        document.kind = DocumentKind.DOCUMENT
        document.collection = collection
        self._apply_defaults(document, collection)
        self.collections.setdefault(collection, []).append(document)

    def _apply_defaults(self, document: Document, doc_type: str) -> None:
        # Front matter written in the file wins over configured defaults
        defaults = self.config.front_matter_defaults(document.path, doc_type)
        if defaults:
            document.data = {**defaults, **document.data}

    def get_layout(self, name: str) -> Document | None:
        return self.layouts.get(name)

    def all_documents(self) -> list[Document]:
        documents = [*self.pages, *self.posts]
        for docs in self.collections.values():
            documents.extend(docs)
        return documents

    def find_document(self, relative_path: str) -> Document | None:
        """Find a page, post or collection document by relative source path."""
        wanted = PurePosixPath(relative_path.strip().lstrip("/")).as_posix()
        for document in self.all_documents():
            if PurePosixPath(document.path).as_posix() == wanted:
                return document
        return None

    def find_post(self, name: str) -> Document | None:
        """Find a post by file stem, with or without its date prefix."""
        wanted = name.strip()
        for post in self.posts:
            stem = post.name
            if stem == wanted or _POST_DATE_PREFIX.sub("", stem) == wanted:
                return post
        return None

    def to_json(self) -> dict[str, Any]:
        """Flattened, template-facing projection of the whole site."""
        posts = sorted(
            self.posts,
            key=lambda p: p.date or datetime.min.replace(tzinfo=timezone.utc),
            reverse=True,
        )
        return {
            **self.config.model_dump(),
            "time": datetime.now(timezone.utc),
            "pages": [p.to_context() for p in self.pages],
            "posts": [p.to_context() for p in posts],
            "collections": {
                name: [d.to_context() for d in docs]
                for name, docs in self.collections.items()
            },
            "data": self.data,
        }
