"""Built-in markdown conversion."""

from __future__ import annotations

import markdown

from pressline.config import MarkdownConfig


class MarkdownProcessor:
    """Renders Markdown to HTML with configured extensions.

    Raw HTML in the source is passed through unchanged; only trusted site
    content should be processed.
    """

    def __init__(self, config: MarkdownConfig | None = None) -> None:
        self.config = config or MarkdownConfig()
        self._md = markdown.Markdown(
            extensions=self.config.extensions,
            extension_configs=self.config.extension_configs,
        )

    def convert(self, content: str) -> str:
        """Render Markdown content to HTML."""
        # Reset the markdown instance for a fresh render
        self._md.reset()
        return self._md.convert(content)
