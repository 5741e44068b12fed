"""Per-instance cache stores.

Each (memoized member, instance) pair owns exactly one store. Three kinds
exist, selected by the member's equality mode:

- ``ShallowCacheStore``: dict lookup; hashable keys compare by ``==``
  (so ``1`` and ``1.0`` share an entry, while ``True`` stays apart from ``1``),
  unhashable keys by identity.
- ``DeepEqualCacheStore``: linear scan comparing keys with a structural
  equality predicate. Meant for a handful of distinct keys per instance.
- ``CanonicalCacheStore``: dict lookup on an ``orjson`` encoding of the
  normalised key; structural equality without the scan.

Timestamps are kept alongside values only for members with an expiration
window; a store never decides staleness itself.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Hashable, List, NamedTuple, Optional

from .keys import canonical_key


class CacheEntry(NamedTuple):
    """A stored value and the time it was stored (``None`` when not expiring)."""

    value: Any
    stored_at: Optional[float] = None


class _IdentityKey:
    """Wraps an unhashable key so it compares by reference."""

    __slots__ = ("obj",)

    def __init__(self, obj: Any):
        self.obj = obj

    def __hash__(self) -> int:
        return id(self.obj)

    def __eq__(self, other) -> bool:
        return isinstance(other, _IdentityKey) and other.obj is self.obj


class _BoolKey:
    """Keeps ``True``/``False`` apart from ``1``/``0``, which hash the same."""

    __slots__ = ("value",)

    def __init__(self, value: bool):
        self.value = value

    def __hash__(self) -> int:
        return hash((_BoolKey, self.value))

    def __eq__(self, other) -> bool:
        return isinstance(other, _BoolKey) and other.value is self.value


def _hashable(key: Any) -> Hashable:
    if isinstance(key, bool):
        return _BoolKey(key)
    try:
        hash(key)
    except TypeError:
        return _IdentityKey(key)
    return key


class CacheStore:
    """Common interface of all store kinds."""

    kind = "base"

    def lookup(self, key: Any) -> Optional[CacheEntry]:
        raise NotImplementedError

    def store(self, key: Any, value: Any, stored_at: Optional[float] = None) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def __len__(self) -> int:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} entries={len(self)}>"


class ShallowCacheStore(CacheStore):
    kind = "shallow"

    def __init__(self):
        self._values: Dict[Hashable, Any] = {}
        self._timestamps: Dict[Hashable, float] = {}

    def lookup(self, key: Any) -> Optional[CacheEntry]:
        k = _hashable(key)
        if k not in self._values:
            return None
        return CacheEntry(self._values[k], self._timestamps.get(k))

    def store(self, key: Any, value: Any, stored_at: Optional[float] = None) -> None:
        k = _hashable(key)
        self._values[k] = value
        if stored_at is None:
            self._timestamps.pop(k, None)
        else:
            self._timestamps[k] = stored_at

    def clear(self) -> None:
        self._values.clear()
        self._timestamps.clear()

    def __len__(self) -> int:
        return len(self._values)


class _DeepEntry:
    __slots__ = ("key", "value", "stored_at")

    def __init__(self, key: Any, value: Any, stored_at: Optional[float]):
        self.key = key
        self.value = value
        self.stored_at = stored_at


class DeepEqualCacheStore(CacheStore):
    """Store comparing keys with a structural equality predicate.

    Lookups and stores are O(n) in the number of distinct keys. Storing a key
    equal to an existing one replaces that entry, so each structural shape has
    at most one entry and the most recent write wins.

    Keys are stored as passed, not copied. Mutating an argument after the call
    also changes the stored key, and later lookups match the mutated value.
    """

    kind = "deep"

    def __init__(self, equality: Callable[[Any, Any], bool]):
        self._equality = equality
        self._entries: List[_DeepEntry] = []

    def _find(self, key: Any) -> int:
        for index, entry in enumerate(self._entries):
            if self._equality(entry.key, key):
                return index
        return -1

    def lookup(self, key: Any) -> Optional[CacheEntry]:
        index = self._find(key)
        if index < 0:
            return None
        entry = self._entries[index]
        return CacheEntry(entry.value, entry.stored_at)

    def store(self, key: Any, value: Any, stored_at: Optional[float] = None) -> None:
        index = self._find(key)
        if index >= 0:
            del self._entries[index]
        self._entries.append(_DeepEntry(key, value, stored_at))

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class CanonicalCacheStore(CacheStore):
    """Structural-equality store keyed by a canonical byte encoding of the key."""

    kind = "canonical"

    def __init__(self):
        self._entries: Dict[bytes, CacheEntry] = {}

    def lookup(self, key: Any) -> Optional[CacheEntry]:
        return self._entries.get(canonical_key(key))

    def store(self, key: Any, value: Any, stored_at: Optional[float] = None) -> None:
        self._entries[canonical_key(key)] = CacheEntry(value, stored_at)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def create_store(config) -> CacheStore:
    """Create an empty store of the kind required by a ``MemberConfiguration``."""
    if not config.deep_equality:
        return ShallowCacheStore()
    if config.canonical_keys:
        return CanonicalCacheStore()
    return DeepEqualCacheStore(config.equality)
