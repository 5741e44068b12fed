"""Per-member memoization configuration.

A ``MemberConfiguration`` is built once, when ``memoize()`` is applied, and
never changes afterwards. All option validation happens here so that a
misconfigured decorator fails at class-definition time rather than on the
first call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Tuple, Union

from instance_memo.exceptions import MemoizeUsageError
from instance_memo.settings import get_settings

from .equality import deep_equal
from .expiration import Clock, monotonic_ms

KeyFunc = Union[bool, Callable[..., Any], None]


class KeyDerivation(str, Enum):
    """How a member turns its call arguments into a cache key."""

    DEFAULT = "default"
    ALL_ARGUMENTS = "all_arguments"
    CUSTOM = "custom"


@dataclass(frozen=True)
class MemberConfiguration:
    """Options for one memoized member.

    Attributes:
        key_func: ``None`` for the equality mode's default key, ``True`` to key
            on every argument, or a callable receiving ``(instance, *args, **kwargs)``.
        expiring: Expiration window in milliseconds; ``None`` never expires.
        tags: Tags whose invalidation clears this member's stores.
        deep_equality: Compare keys structurally instead of by hash/identity.
        canonical_keys: In deep mode, hash a canonical encoding of the key
            instead of scanning entries with ``equality``.
        equality: Structural equality predicate used by the scanning store.
        clock: Millisecond clock used for expiration timestamps.
        registry: Tag registry the member's stores are registered with;
            ``None`` means the process-wide registry.
    """

    key_func: KeyFunc = None
    expiring: Optional[int] = None
    tags: Tuple[str, ...] = ()
    deep_equality: bool = True
    canonical_keys: bool = False
    equality: Callable[[Any, Any], bool] = deep_equal
    clock: Clock = monotonic_ms
    registry: Any = field(default=None, compare=False)

    def __post_init__(self):
        if not (self.key_func is None or self.key_func is True or callable(self.key_func)):
            raise MemoizeUsageError(
                f"key_func must be a callable or True, got {self.key_func!r}"
            )
        if self.expiring is not None:
            if isinstance(self.expiring, bool) or not isinstance(self.expiring, int):
                raise MemoizeUsageError(
                    f"expiring must be an integer number of milliseconds, got {self.expiring!r}"
                )
            if self.expiring < 0:
                raise MemoizeUsageError(f"expiring must not be negative, got {self.expiring}")
            if self.expiring == 0:
                object.__setattr__(self, "expiring", None)
        object.__setattr__(self, "tags", _normalize_tags(self.tags))
        if not callable(self.equality):
            raise MemoizeUsageError("equality must be a callable taking two values")
        if not callable(self.clock):
            raise MemoizeUsageError("clock must be a callable returning milliseconds")
        if self.canonical_keys and not self.deep_equality:
            raise MemoizeUsageError("canonical_keys requires deep_equality=True")

    @property
    def key_derivation(self) -> KeyDerivation:
        if self.key_func is True:
            return KeyDerivation.ALL_ARGUMENTS
        if self.key_func is not None:
            return KeyDerivation.CUSTOM
        return KeyDerivation.DEFAULT

    @property
    def expires(self) -> bool:
        return self.expiring is not None


def _normalize_tags(tags: Optional[Iterable[str]]) -> Tuple[str, ...]:
    """Return tags as an ordered tuple without duplicates."""
    if tags is None:
        return ()
    if isinstance(tags, (str, bytes)):
        raise MemoizeUsageError(
            f"tags must be a list of strings, not a single string ({tags!r})"
        )
    try:
        items = list(tags)
    except TypeError:
        raise MemoizeUsageError(f"tags must be a list of strings, got {tags!r}") from None
    for tag in items:
        if not isinstance(tag, str):
            raise MemoizeUsageError(f"tags must be strings, got {tag!r}")
    return tuple(dict.fromkeys(items))


def build_configuration(
    options: Union[MemberConfiguration, KeyFunc] = None,
    *,
    key_func: KeyFunc = None,
    expiring: Optional[int] = None,
    tags: Optional[Iterable[str]] = None,
    deep_equality: Optional[bool] = None,
    canonical_keys: bool = False,
    equality: Optional[Callable[[Any, Any], bool]] = None,
    clock: Optional[Clock] = None,
    registry: Any = None,
) -> MemberConfiguration:
    """Resolve the positional shorthand and keyword options into a configuration.

    ``options`` may be a ready ``MemberConfiguration``, a key function, or
    ``True``. Mixing the positional form with ``key_func`` is rejected.
    """
    if isinstance(options, MemberConfiguration):
        return options

    if options is not None:
        if options is False:
            options = None
        elif key_func is not None:
            raise MemoizeUsageError(
                "Pass the key function either positionally or as key_func, not both"
            )
        elif options is True or callable(options):
            key_func = options
        else:
            raise MemoizeUsageError(
                f"memoize() expects a key function, True or a MemberConfiguration, got {options!r}"
            )

    if deep_equality is None:
        deep_equality = get_settings().deep_equality

    return MemberConfiguration(
        key_func=key_func,
        expiring=expiring,
        tags=tags,
        deep_equality=bool(deep_equality),
        canonical_keys=canonical_keys,
        equality=equality or deep_equal,
        clock=clock or monotonic_ms,
        registry=registry,
    )
