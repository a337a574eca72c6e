"""Template engine adapter: Jinja2 environment, filters and Liquid-style tags."""

from pressline.engine.environment import TemplateEngine
from pressline.engine.tags import Tag, TagContext, TagToken

__all__ = ["TemplateEngine", "Tag", "TagContext", "TagToken"]
