"""Cache invalidation helpers.

Tag-scoped invalidation over the stores of every memoized instance, without
needing references to the instances themselves.
"""

from typing import Iterable, Optional

from instance_memo.logging_config import get_logger

from .registry import TagRegistry, get_tag_registry

logger = get_logger(name=__name__)


def clear_tags(tags: Iterable[str], registry: Optional[TagRegistry] = None) -> int:
    """Clear all cache stores registered under any of the given tags.

    Args:
        tags: Tag names (e.g., ["users", "profiles"]). Unknown tags are ignored.
        registry: Registry to use; defaults to the process-wide one.

    Returns:
        Number of distinct stores cleared.
    """
    registry = registry or get_tag_registry()
    tags = [tags] if isinstance(tags, str) else list(tags)
    cleared = registry.clear(tags)

    if cleared > 0:
        logger.info("Cleared {} cache stores for tags {}", cleared, tags)
    else:
        logger.debug("No cache stores registered for tags {}", tags)

    return cleared


def clear_all(registry: Optional[TagRegistry] = None) -> int:
    """Clear every tagged cache store.

    Stores of members declared without tags are not reachable from the
    registry and keep their entries.

    Returns:
        Number of stores cleared.
    """
    registry = registry or get_tag_registry()
    cleared = registry.clear_all()
    logger.info("Cleared ALL {} tagged cache stores", cleared)
    return cleared
