"""Per-instance memoization for methods and properties.

This package provides:
- memoize / memoize_expiring decorators
- Tag-based invalidation with clear_tags / clear_all
- Settings and loguru logging configuration
"""

from loguru import logger

from .cache import (
    MemberConfiguration,
    TagRegistry,
    clear_all,
    clear_tags,
    get_tag_registry,
    memoize,
    memoize_expiring,
)
from .exceptions import MemoizeUsageError
from .logging_config import configure_logging

logger.disable(__name__)

__all__ = [
    "memoize",
    "memoize_expiring",
    "clear_tags",
    "clear_all",
    "MemberConfiguration",
    "TagRegistry",
    "get_tag_registry",
    "MemoizeUsageError",
    "configure_logging",
]
