"""Cache key derivation.

Order of precedence for a member's key:

1. ``key_func=True``: every argument. Shallow mode joins ``str(arg)`` with
   ``"!"`` (``multiply(4, 6)`` -> ``"4!6"``); deep mode uses the argument list.
2. A callable ``key_func``: its return value, called as
   ``key_func(instance, *args, **kwargs)``.
3. The equality mode's default. Shallow mode keys on the first argument only
   (later arguments are ignored) or on the receiver when there are none. Deep
   mode keys on the full argument list, ``[]`` when there are none.

Arguments are bound to the decorated function's signature first, so
positional and keyword spellings of the same call derive the same key.
"""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, List, Tuple

import orjson

if TYPE_CHECKING:
    from .options import MemberConfiguration

ARGUMENT_DELIMITER = "!"


class _Receiver:
    """Default shallow key for argument-less calls.

    Stands for the instance itself; the store is already per instance, so a
    sentinel keeps the key from holding a reference to its owner.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return "<receiver>"


RECEIVER_KEY = _Receiver()


def bind_arguments(signature: inspect.Signature, args: tuple, kwargs: dict) -> Tuple[Any, ...]:
    """Flatten a call into the ordered tuple of its argument values.

    ``signature`` is the decorated function's signature without its receiver
    parameter. Defaults are applied, ``*args`` are spread in place and
    ``**kwargs`` become sorted ``(name, value)`` pairs. Raises ``TypeError``
    for calls the function would reject.
    """
    bound = signature.bind(*args, **kwargs)
    bound.apply_defaults()

    values: List[Any] = []
    for name, value in bound.arguments.items():
        kind = signature.parameters[name].kind
        if kind is inspect.Parameter.VAR_POSITIONAL:
            values.extend(value)
        elif kind is inspect.Parameter.VAR_KEYWORD:
            values.extend(sorted(value.items()))
        else:
            values.append(value)
    return tuple(values)


def derive_key(
    config: "MemberConfiguration",
    instance: Any,
    arguments: Tuple[Any, ...],
    args: tuple,
    kwargs: dict,
) -> Any:
    """Compute the lookup key for one call.

    Args:
        config: The member's configuration.
        instance: The receiver of the call.
        arguments: The bound argument values (see ``bind_arguments``).
        args: Positional arguments exactly as passed, for the key function.
        kwargs: Keyword arguments exactly as passed, for the key function.
    """
    from .options import KeyDerivation

    derivation = config.key_derivation
    if derivation is KeyDerivation.ALL_ARGUMENTS:
        if config.deep_equality:
            return list(arguments)
        return ARGUMENT_DELIMITER.join(str(a) for a in arguments)

    if derivation is KeyDerivation.CUSTOM:
        return config.key_func(instance, *args, **kwargs)

    if config.deep_equality:
        return list(arguments)
    if arguments:
        return arguments[0]
    return RECEIVER_KEY


def canonical_key(key: Any) -> bytes:
    """Encode a key so structurally equal keys produce identical bytes."""
    return orjson.dumps(_normalize(key), option=orjson.OPT_SORT_KEYS)


def _normalize(obj):
    """Normalize a key for deterministic encoding."""
    from datetime import date, datetime, time

    from pydantic import BaseModel

    if isinstance(obj, (str, int, float, bool, type(None))):
        return obj
    elif isinstance(obj, (date, datetime, time)):
        return {"__datetime__": obj.isoformat()}
    elif isinstance(obj, BaseModel):
        return {"__model__": type(obj).__qualname__, "data": obj.model_dump(mode="json")}
    elif isinstance(obj, dict):
        return {str(k): _normalize(v) for k, v in sorted(obj.items(), key=lambda kv: str(kv[0]))}
    elif isinstance(obj, (list, tuple)):
        return [_normalize(item) for item in obj]
    elif isinstance(obj, (set, frozenset)):
        return {"__set__": sorted((_normalize(item) for item in obj), key=repr)}
    else:
        return {"__object__": f"{type(obj).__qualname__}:{obj}"}
