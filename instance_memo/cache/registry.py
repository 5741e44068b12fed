"""Tag registry shared by memoized members and the invalidation helpers.

The process-wide registry is created on first use and lives for the rest of
the process. It is not synchronised: use it from one thread, or guard calls
with your own lock.
"""

from __future__ import annotations

import weakref
from functools import lru_cache
from typing import Dict, Iterable, List

from instance_memo.logging_config import get_logger

from .store import CacheStore

logger = get_logger(name=__name__)


class TagRegistry:
    """Maps tag names to the cache stores registered under them.

    Stores are referenced weakly; a store disappears from every tag once the
    instance owning it has been garbage collected.
    """

    def __init__(self):
        self._stores: Dict[str, "weakref.WeakSet[CacheStore]"] = {}

    def register(self, tag: str, store: CacheStore) -> None:
        """Associate ``store`` with ``tag``. Registering twice has no effect."""
        self._stores.setdefault(tag, weakref.WeakSet()).add(store)

    def stores_for(self, tag: str) -> List[CacheStore]:
        """Live stores currently registered under ``tag``."""
        return list(self._stores.get(tag, ()))

    def tags(self) -> List[str]:
        """Every tag that has had a store registered, in registration order."""
        return list(self._stores)

    def clear(self, tags: Iterable[str]) -> int:
        """Clear every store registered under any of ``tags``.

        Each store is cleared at most once per call, however many of the tags
        it is registered under.

        Returns:
            Number of distinct stores cleared.
        """
        if isinstance(tags, str):
            tags = [tags]

        cleared: Dict[int, CacheStore] = {}
        for tag in tags:
            for store in self.stores_for(tag):
                if id(store) not in cleared:
                    store.clear()
                    cleared[id(store)] = store
        return len(cleared)

    def clear_all(self) -> int:
        """Clear every registered store. Returns the number of stores cleared."""
        return self.clear(self.tags())

    def reset(self) -> None:
        """Forget all registrations without clearing the stores."""
        self._stores.clear()


@lru_cache()
def get_tag_registry() -> TagRegistry:
    """Get the process-wide tag registry (singleton pattern)."""
    logger.debug("Creating process-wide tag registry")
    return TagRegistry()
