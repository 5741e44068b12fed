"""
Test configuration for the memoization package.

Provides a fake millisecond clock, a private tag registry, and resets the
process-wide registry so tag counts never leak between tests.
"""

import pytest

from instance_memo.cache import TagRegistry, get_tag_registry
from instance_memo.settings import get_settings


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class CallCounter:
    """Records the arguments of every real invocation."""

    def __init__(self):
        self.calls = []

    def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))

    @property
    def count(self) -> int:
        return len(self.calls)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry():
    return TagRegistry()


@pytest.fixture
def counter():
    return CallCounter()


@pytest.fixture(autouse=True)
def _fresh_global_state():
    """Forget global tag registrations and cached settings around each test."""
    get_tag_registry().reset()
    get_settings.cache_clear()
    yield
    get_tag_registry().reset()
    get_settings.cache_clear()
