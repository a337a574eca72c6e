"""Lifecycle hook bus.

Plugins subscribe callbacks to ``(owner, event)`` pairs drawn from a fixed
vocabulary:

- site: after_init, after_reset, pre_render, post_render, post_write
- pages: post_init
- posts: post_init
- documents: pre_render, post_render, post_write

The renderer fires the document render hooks; everything else is fired by
the steps in :mod:`pressline.build`.

Callbacks for one pair run sequentially in registration order and share a
single mutable context object, so a later callback sees an earlier one's
changes. A raising callback aborts the remaining callbacks of that trigger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, NamedTuple, Union

from pressline.exceptions import InvalidHookError
from pressline.utils import maybe_await

if TYPE_CHECKING:
    from pressline.renderer import DocumentRenderer
    from pressline.site import Document, Site

log = logging.getLogger(__name__)

# hook id -> kind of context it receives
VALID_HOOKS: dict[str, str] = {
    "site:after_init": "site",
    "site:after_reset": "site",
    "site:pre_render": "site",
    "site:post_render": "site",
    "site:post_write": "site",
    "pages:post_init": "site",
    "posts:post_init": "site",
    "documents:pre_render": "document",
    "documents:post_render": "document",
    "documents:post_write": "document",
}


@dataclass
class SiteHookContext:
    """Context passed to site-level hooks."""

    site: "Site"
    renderer: "DocumentRenderer | None" = None


@dataclass
class DocumentHookContext:
    """Context passed to document-level hooks.

    ``content`` is the rendered content; only ``documents:post_render``
    changes to it are applied by the pipeline.
    """

    document: "Document"
    site: "Site"
    renderer: "DocumentRenderer | None" = None
    content: str | None = None
    output_path: str | None = None


HookContext = Union[SiteHookContext, DocumentHookContext]
HookCallback = Callable[[Any], Union[None, Awaitable[None]]]


class RegisteredHook(NamedTuple):
    callback: HookCallback
    plugin_name: str


def hook_id(owner: str, event: str) -> str:
    return f"{owner}:{event}"


class HookBus:
    """Ordered pub/sub keyed by (owner, event)."""

    def __init__(self) -> None:
        self._hooks: dict[str, list[RegisteredHook]] = {}

    def _validate(self, owner: str, event: str) -> str:
        key = hook_id(owner, event)
        if key not in VALID_HOOKS:
            raise InvalidHookError(owner, event, list(VALID_HOOKS))
        return key

    def register(
        self,
        owner: str,
        event: str,
        callback: HookCallback,
        plugin_name: str = "anonymous",
    ) -> None:
        """Subscribe ``callback`` to ``owner:event``.

        Raises:
            InvalidHookError: If the pair is not in the supported vocabulary.
        """
        key = self._validate(owner, event)
        self._hooks.setdefault(key, []).append(RegisteredHook(callback, plugin_name))
        log.debug(f"Registered hook {key} from plugin '{plugin_name}'")

    async def trigger(self, owner: str, event: str, context: HookContext) -> None:
        """Invoke every callback for ``owner:event`` in registration order.

        Exceptions from callbacks propagate; remaining callbacks are skipped.
        """
        key = self._validate(owner, event)
        hooks = list(self._hooks.get(key, ()))
        if not hooks:
            return

        log.debug(f"Triggering hook {key} ({len(hooks)} callbacks)")
        for hook in hooks:
            await maybe_await(hook.callback(context))

    def get_hooks(self, owner: str, event: str) -> list[RegisteredHook]:
        return list(self._hooks.get(hook_id(owner, event), ()))

    def has_hooks(self, owner: str, event: str) -> bool:
        return bool(self._hooks.get(hook_id(owner, event)))

    def registered_hook_ids(self) -> list[str]:
        return [key for key, hooks in self._hooks.items() if hooks]

    def clear(self) -> None:
        self._hooks.clear()


class PluginHooks:
    """Registers hooks on a bus under a fixed plugin name."""

    def __init__(self, bus: HookBus, plugin_name: str):
        self.bus = bus
        self.plugin_name = plugin_name

    def on(self, owner: str, event: str, callback: HookCallback) -> None:
        self.bus.register(owner, event, callback, self.plugin_name)

    def on_site_after_init(self, callback: HookCallback) -> None:
        self.on("site", "after_init", callback)

    def on_site_after_reset(self, callback: HookCallback) -> None:
        self.on("site", "after_reset", callback)

    def on_site_pre_render(self, callback: HookCallback) -> None:
        self.on("site", "pre_render", callback)

    def on_site_post_render(self, callback: HookCallback) -> None:
        self.on("site", "post_render", callback)

    def on_site_post_write(self, callback: HookCallback) -> None:
        self.on("site", "post_write", callback)

    def on_pages_post_init(self, callback: HookCallback) -> None:
        self.on("pages", "post_init", callback)

    def on_posts_post_init(self, callback: HookCallback) -> None:
        self.on("posts", "post_init", callback)

    def on_document_pre_render(self, callback: HookCallback) -> None:
        self.on("documents", "pre_render", callback)

    def on_document_post_render(self, callback: HookCallback) -> None:
        self.on("documents", "post_render", callback)

    def on_document_post_write(self, callback: HookCallback) -> None:
        self.on("documents", "post_write", callback)
