"""Per-instance memoization decorator.

Usage:
    from instance_memo import memoize, clear_tags

    class Planet:
        @memoize()
        def greeting(self, greeting, planet):
            ...

        @memoize(True, tags=["geo"], expiring=60_000)
        def distance(self, a, b):
            ...

        @memoize()
        @property
        def mass(self):
            ...

    clear_tags(["geo"])
"""

from __future__ import annotations

import functools
import inspect
import weakref
from typing import Any, Callable, Dict, Iterable, Optional, Union

from instance_memo.exceptions import MemoizeUsageError
from instance_memo.logging_config import get_logger

from .expiration import Clock, ExpirationPolicy
from .keys import bind_arguments, derive_key
from .options import KeyFunc, MemberConfiguration, build_configuration
from .registry import TagRegistry, get_tag_registry
from .store import CacheStore, create_store

logger = get_logger(name=__name__)

_RECEIVER_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


class MemoizedMember:
    """Caching state and call logic behind one memoized method or property.

    Stores are kept in a side table keyed by ``id(instance)`` and dropped when
    the instance is garbage collected. Instances that do not support weak
    references get their store in a private ``__dict__`` slot instead.
    """

    def __init__(self, func: Callable, config: MemberConfiguration):
        self.func = func
        self.config = config
        self.name = getattr(func, "__qualname__", repr(func))
        self.policy = ExpirationPolicy(config.expiring, config.clock)
        self.signature = _receiverless_signature(func)
        self._stores: Dict[int, CacheStore] = {}
        self._slot = f"_memoized_store_{id(self):x}"

    @property
    def registry(self) -> TagRegistry:
        return self.config.registry or get_tag_registry()

    def store_for(self, instance: Any, create: bool = True) -> Optional[CacheStore]:
        """Return the store ``instance`` owns for this member, creating it if asked."""
        store = self._stores.get(id(instance))
        if store is None:
            store = getattr(instance, "__dict__", {}).get(self._slot)
        if store is None and create:
            store = self._create_store(instance)
        return store

    def clear(self, instance: Any) -> None:
        """Drop every entry ``instance`` has cached for this member."""
        store = self.store_for(instance, create=False)
        if store is not None:
            store.clear()

    def _create_store(self, instance: Any) -> CacheStore:
        store = create_store(self.config)
        key = id(instance)
        try:
            finalizer = weakref.finalize(instance, self._stores.pop, key, None)
        except TypeError:
            if not hasattr(instance, "__dict__"):
                raise TypeError(
                    f"Cannot memoize {self.name}: {type(instance).__name__} instances "
                    "support neither weak references nor a __dict__"
                ) from None
            instance.__dict__[self._slot] = store
        else:
            finalizer.atexit = False
            self._stores[key] = store

        for tag in self.config.tags:
            self.registry.register(tag, store)

        logger.debug(
            "Created {} store for {} on {}",
            store.kind,
            self.name,
            type(instance).__name__,
        )
        return store

    def _lookup(self, instance: Any, args: tuple, kwargs: dict):
        arguments = bind_arguments(self.signature, args, kwargs)
        key = derive_key(self.config, instance, arguments, args, kwargs)
        store = self.store_for(instance)
        entry = store.lookup(key)
        if entry is not None and not self.policy.is_stale(entry):
            logger.debug("Memoize HIT: {} key={!r}", self.name, key)
            return store, key, entry
        logger.debug("Memoize MISS: {} key={!r}", self.name, key)
        return store, key, None

    def call(self, instance: Any, args: tuple, kwargs: dict) -> Any:
        store, key, entry = self._lookup(instance, args, kwargs)
        if entry is not None:
            return entry.value

        result = self.func(instance, *args, **kwargs)
        store.store(key, result, stored_at=self.policy.stamp())
        return result

    async def acall(self, instance: Any, args: tuple, kwargs: dict) -> Any:
        store, key, entry = self._lookup(instance, args, kwargs)
        if entry is not None:
            return entry.value

        result = await self.func(instance, *args, **kwargs)
        store.store(key, result, stored_at=self.policy.stamp())
        return result

    def wrap(self) -> Callable:
        """Build the function that replaces the decorated one."""
        func = self.func
        member = self

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(self, *args, **kwargs):
                return await member.acall(self, args, kwargs)

            wrapper = async_wrapper
        else:

            @functools.wraps(func)
            def sync_wrapper(self, *args, **kwargs):
                return member.call(self, args, kwargs)

            wrapper = sync_wrapper

        wrapper.__memoized__ = member
        return wrapper


def _receiverless_signature(func: Callable) -> inspect.Signature:
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError) as e:
        raise MemoizeUsageError(f"Cannot inspect the signature of {func!r}: {e}") from e

    params = list(signature.parameters.values())
    if not params or params[0].kind not in _RECEIVER_KINDS:
        raise MemoizeUsageError(
            f"memoize() needs a method taking the instance as its first parameter: "
            f"{getattr(func, '__qualname__', func)!r}"
        )
    return signature.replace(parameters=params[1:])


def memoize(
    options: Union[MemberConfiguration, KeyFunc] = None,
    *,
    key_func: KeyFunc = None,
    expiring: Optional[int] = None,
    tags: Optional[Iterable[str]] = None,
    deep_equality: Optional[bool] = None,
    canonical_keys: bool = False,
    equality: Optional[Callable[[Any, Any], bool]] = None,
    clock: Optional[Clock] = None,
    registry: Optional[TagRegistry] = None,
) -> Callable:
    """Decorator caching a method's or property's result per instance.

    Args:
        options: Shorthand for ``key_func`` (a callable or ``True``), or a
            complete ``MemberConfiguration``.
        key_func: ``True`` keys on every argument; a callable receives
            ``(instance, *args, **kwargs)`` and returns the key.
        expiring: Expiration window in milliseconds.
        tags: Tags under which this member's stores can be cleared with
            ``clear_tags``.
        deep_equality: Compare keys structurally. Defaults to the
            ``INSTANCE_MEMO_DEEP_EQUALITY`` setting (True).
        canonical_keys: With deep equality, hash a canonical encoding of the
            key instead of scanning entries.
        equality: Replacement structural equality predicate.
        clock: Replacement millisecond clock for expiration.
        registry: Tag registry to register with instead of the process-wide one.

    Raises:
        MemoizeUsageError: On invalid options, or when the decorated object
            is not a plain function or a ``property``.

    Notes:
        - Always call it: ``@memoize()``. A bare ``@memoize`` would take the
          method for a key function.
        - Exceptions from the method or the key function propagate and
          nothing is cached for that call.
        - Stores live in a side table owned by the class-level member and are
          released when their instance is collected. A cached value that
          refers back to its own instance keeps that instance alive until the
          member itself goes away.
    """
    config = build_configuration(
        options,
        key_func=key_func,
        expiring=expiring,
        tags=tags,
        deep_equality=deep_equality,
        canonical_keys=canonical_keys,
        equality=equality,
        clock=clock,
        registry=registry,
    )

    def decorator(target):
        if isinstance(target, property):
            if target.fget is None:
                raise MemoizeUsageError("Only put memoize() on a property that has a getter.")
            getter = MemoizedMember(target.fget, config).wrap()
            return property(getter, target.fset, target.fdel, target.__doc__)

        if isinstance(target, functools.cached_property):
            raise MemoizeUsageError(
                "cached_property already caches; put memoize() on a plain property instead."
            )

        if not inspect.isfunction(target):
            raise MemoizeUsageError(
                f"Only put memoize() on a method or a property, got {target!r}"
            )

        return MemoizedMember(target, config).wrap()

    return decorator


def memoize_expiring(expiring: int, key_func: KeyFunc = None) -> Callable:
    """Shorthand for ``memoize(key_func=key_func, expiring=expiring)``."""
    return memoize(key_func=key_func, expiring=expiring)
