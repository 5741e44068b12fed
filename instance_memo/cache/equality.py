"""Default structural equality predicate for deep-equality members.

Any ``(a, b) -> bool`` callable can replace it through ``memoize(equality=...)``.
"""

from __future__ import annotations

import dataclasses
import functools
import math
import types
from typing import Any

from pydantic import BaseModel

_IDENTITY_TYPES = (
    types.FunctionType,
    types.BuiltinFunctionType,
    types.ModuleType,
    functools.partial,
    type,
)


def deep_equal(a: Any, b: Any) -> bool:
    """Return True if ``a`` and ``b`` have the same structure and values.

    Containers are compared recursively: mappings by keys and values,
    sequences element by element, sets by membership. Values of different
    types are never equal, except that ``int`` and ``float`` compare
    numerically. ``NaN`` equals ``NaN``. Dataclasses, pydantic models and
    plain objects with a ``__dict__`` compare field by field. Functions, modules
    and classes are only equal to themselves.
    """
    if a is b:
        return True

    if _is_number(a) and _is_number(b):
        if isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b):
            return True
        return a == b

    if type(a) is not type(b):
        return False

    if isinstance(a, _IDENTITY_TYPES):
        return False

    if isinstance(a, dict):
        if len(a) != len(b):
            return False
        for key, value in a.items():
            if key not in b or not deep_equal(value, b[key]):
                return False
        return True

    if isinstance(a, (list, tuple)):
        if len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))

    if isinstance(a, (set, frozenset)):
        return a == b

    if isinstance(a, BaseModel):
        return deep_equal(a.model_dump(), b.model_dump())

    if dataclasses.is_dataclass(a):
        return all(
            deep_equal(getattr(a, f.name), getattr(b, f.name))
            for f in dataclasses.fields(a)
        )

    if isinstance(a, (str, bytes, bytearray)):
        return a == b

    if hasattr(a, "__dict__") and type(a).__eq__ is object.__eq__:
        return deep_equal(vars(a), vars(b))

    return a == b


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
