"""Memoization internals: decorator, stores, key derivation and invalidation."""

from .decorator import MemoizedMember, memoize, memoize_expiring
from .equality import deep_equal
from .expiration import ExpirationPolicy
from .invalidation import clear_all, clear_tags
from .options import KeyDerivation, MemberConfiguration
from .registry import TagRegistry, get_tag_registry
from .store import (
    CacheEntry,
    CacheStore,
    CanonicalCacheStore,
    DeepEqualCacheStore,
    ShallowCacheStore,
)

__all__ = [
    # Decorators
    "memoize",
    "memoize_expiring",
    "MemoizedMember",
    # Configuration
    "MemberConfiguration",
    "KeyDerivation",
    "ExpirationPolicy",
    "deep_equal",
    # Stores
    "CacheEntry",
    "CacheStore",
    "ShallowCacheStore",
    "DeepEqualCacheStore",
    "CanonicalCacheStore",
    # Invalidation
    "TagRegistry",
    "get_tag_registry",
    "clear_tags",
    "clear_all",
]
