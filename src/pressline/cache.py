"""Site snapshot cache shared by every document render in a build."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pressline.site import Site

log = logging.getLogger(__name__)


class SiteDataCache:
    """Memoizes ``site.to_json()`` until explicitly invalidated."""

    def __init__(self, site: "Site"):
        self.site = site
        self._snapshot: dict[str, Any] | None = None

    def get(self) -> dict[str, Any]:
        if self._snapshot is None:
            self._snapshot = self.site.to_json()
            log.debug("Built site snapshot")
        return self._snapshot

    def invalidate(self) -> None:
        self._snapshot = None

    @property
    def is_cached(self) -> bool:
        return self._snapshot is not None
