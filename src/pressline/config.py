"""Configuration parsing for _config.yml"""

from __future__ import annotations

import fnmatch
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from pressline.exceptions import ConfigError

CONFIG_FILENAME = "_config.yml"
DEFAULT_MARKDOWN_EXT = "markdown,mkdown,mkdn,mkd,md"


class MarkdownConfig(BaseModel):
    """Options for the built-in markdown converter"""

    extensions: list[str] = Field(
        default_factory=lambda: ["extra", "sane_lists"],
        description="Python-Markdown extension names",
    )
    extension_configs: dict[str, dict[str, Any]] = Field(default_factory=dict)


class MentionsConfig(BaseModel):
    """Options for the mentions plugin"""

    base_url: str = "https://github.com"


class DefaultScope(BaseModel):
    """Which documents a front matter default applies to"""

    path: str = Field(default="", description="Directory prefix or glob; empty matches all")
    type: str | None = Field(
        default=None, description="'pages', 'posts' or a collection name"
    )

    def matches(self, relative_path: str, doc_type: str) -> bool:
        if self.type and self.type != doc_type:
            return False

        scope = self.path.replace("\\", "/").strip("/")
        if not scope:
            return True
        path = relative_path.replace("\\", "/").lstrip("/")
        if any(ch in scope for ch in "*?["):
            return fnmatch.fnmatchcase(path, scope)
        return path == scope or path.startswith(scope + "/")


class FrontMatterDefault(BaseModel):
    """One entry of the ``defaults`` list"""

    scope: DefaultScope = Field(default_factory=DefaultScope)
    values: dict[str, Any] = Field(default_factory=dict)


class SiteConfig(BaseModel):
    """Main _config.yml configuration.

    Unknown keys are kept so templates can read arbitrary ``site.*`` values.
    """

    model_config = {"extra": "allow"}

    title: str = ""
    description: str = ""
    url: str = ""
    baseurl: str = ""
    markdown_ext: str = Field(
        default=DEFAULT_MARKDOWN_EXT,
        description="Comma-separated list of extensions treated as markdown",
    )
    plugins: list[str] = Field(
        default_factory=list,
        description="Built-in plugins to enable (all when empty)",
    )
    markdown: MarkdownConfig = Field(default_factory=MarkdownConfig)
    mentions: MentionsConfig = Field(default_factory=MentionsConfig)
    defaults: list[FrontMatterDefault] = Field(
        default_factory=list,
        description="Front matter values applied by path and document type",
    )

    @property
    def markdown_extensions(self) -> frozenset[str]:
        """Dotted, lower-cased markdown extensions (e.g. ``.md``)."""
        return frozenset(
            f".{ext.strip().lstrip('.').lower()}"
            for ext in self.markdown_ext.split(",")
            if ext.strip()
        )

    def front_matter_defaults(self, relative_path: str, doc_type: str) -> dict[str, Any]:
        """Merged ``values`` of every matching default, later entries winning."""
        merged: dict[str, Any] = {}
        for default in self.defaults:
            if default.scope.matches(relative_path, doc_type):
                merged.update(default.values)
        return merged


def load_config(path: Path) -> SiteConfig:
    """Load and validate a config file.

    A missing file yields the default configuration.

    Raises:
        ConfigError: If the YAML is malformed or fails validation.
    """
    if not path.exists():
        return SiteConfig()

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}", file=str(path), cause=e) from e

    if not isinstance(data, dict):
        raise ConfigError("Config must be a mapping", file=str(path))

    try:
        return SiteConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config: {e}", file=str(path), cause=e) from e
