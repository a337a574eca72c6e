"""Paginator consumed by ``DocumentRenderer.render_document_with_paginator``."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pressline.site import Document


@dataclass
class Paginator:
    """One page of a paginated post listing."""

    page: int
    per_page: int
    posts: list["Document"] = field(default_factory=list)
    total_posts: int = 0
    total_pages: int = 1
    previous_page: int | None = None
    previous_page_path: str | None = None
    next_page: int | None = None
    next_page_path: str | None = None

    def to_context(self) -> dict[str, Any]:
        """Template-facing mapping with posts projected to their fields."""
        return {
            "page": self.page,
            "per_page": self.per_page,
            "posts": [post.to_context() for post in self.posts],
            "total_posts": self.total_posts,
            "total_pages": self.total_pages,
            "previous_page": self.previous_page,
            "previous_page_path": self.previous_page_path,
            "next_page": self.next_page,
            "next_page_path": self.next_page_path,
        }
