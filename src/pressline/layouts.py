"""Layout resolution - recursively wraps rendered content in named layouts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from pressline.exceptions import CircularLayoutReference, TemplateError

if TYPE_CHECKING:
    from pressline.engine import TemplateEngine
    from pressline.site import Document

log = logging.getLogger(__name__)

LayoutLookup = Callable[[str], Optional["Document"]]


class LayoutResolver:
    """Applies a layout and its parents to rendered content.

    The visited chain is a tuple passed down the recursion, so every
    top-level call starts from an empty chain and concurrent renders never
    share one.
    """

    def __init__(self, engine: "TemplateEngine", get_layout: LayoutLookup):
        self.engine = engine
        self.get_layout = get_layout

    async def apply_layout(
        self,
        content: str,
        layout: "Document",
        context: dict[str, Any],
        visited: tuple[str, ...] = (),
    ) -> str:
        """Render ``content`` inside ``layout``, then inside its parents.

        Args:
            content: Already rendered inner content.
            layout: Layout to apply first.
            context: Render context; ``content`` and ``layout`` are set on it.
            visited: Layout names already applied in this chain.

        Returns:
            Content wrapped by the whole chain. An unresolvable parent stops
            the chain with a warning.

        Raises:
            CircularLayoutReference: If a layout appears twice in the chain.
            TemplateError: If a layout fails to render; ``file`` and
                ``template_name`` point at the layout.
        """
        name = layout.name
        if name in visited:
            raise CircularLayoutReference([*visited, name])

        chain = (*visited, name)
        context["content"] = content
        context["layout"] = layout.data

        try:
            rendered = await self.engine.render(layout.content, context, name=name)
        except TemplateError as e:
            raise TemplateError.wrap(e, file=layout.path, template_name=name) from e

        parent_name = layout.layout
        if not parent_name:
            return rendered

        parent = self.get_layout(parent_name)
        if parent is None:
            log.warning(f"Layout '{parent_name}' requested by layout '{name}' does not exist")
            return rendered

        return await self.apply_layout(rendered, parent, context, chain)
