"""
Tests for the tag registry and tag-based invalidation.
"""

import gc

from instance_memo import clear_all, clear_tags, get_tag_registry, memoize
from instance_memo.cache import ShallowCacheStore, TagRegistry


class TestTagRegistry:
    """Test TagRegistry directly."""

    def test_register_is_idempotent(self, registry):
        store = ShallowCacheStore()
        registry.register("users", store)
        registry.register("users", store)
        assert registry.stores_for("users") == [store]

    def test_clear_counts_distinct_stores(self, registry):
        shared, users_only, other = ShallowCacheStore(), ShallowCacheStore(), ShallowCacheStore()
        for store in (shared, users_only, other):
            store.store("k", "v")
        registry.register("users", shared)
        registry.register("profiles", shared)
        registry.register("users", users_only)
        registry.register("billing", other)

        assert registry.clear(["users", "profiles"]) == 2
        assert len(shared) == 0
        assert len(users_only) == 0
        assert len(other) == 1

    def test_clear_unknown_and_empty(self, registry):
        assert registry.clear(["unknown"]) == 0
        assert registry.clear([]) == 0

    def test_clear_accepts_single_tag_string(self, registry):
        store = ShallowCacheStore()
        store.store("k", "v")
        registry.register("users", store)
        assert registry.clear("users") == 1
        assert len(store) == 0

    def test_clear_all(self, registry):
        a, b = ShallowCacheStore(), ShallowCacheStore()
        registry.register("x", a)
        registry.register("y", b)
        registry.register("y", a)
        assert registry.clear_all() == 2
        assert registry.tags() == ["x", "y"]

    def test_stores_are_held_weakly(self, registry):
        store = ShallowCacheStore()
        registry.register("users", store)
        del store
        gc.collect()
        assert registry.stores_for("users") == []

    def test_reset_forgets_registrations(self, registry):
        registry.register("users", ShallowCacheStore())
        registry.reset()
        assert registry.tags() == []

    def test_global_registry_is_a_singleton(self):
        assert get_tag_registry() is get_tag_registry()


class Catalog:
    def __init__(self):
        self.calls = []

    @memoize(tags=["catalog", "pricing"])
    def price(self, sku):
        self.calls.append(("price", sku))
        return len(self.calls)

    @memoize(tags=["catalog"], deep_equality=False)
    def title(self, sku):
        self.calls.append(("title", sku))
        return sku.title()

    @memoize(tags=["inventory"])
    def stock(self, sku):
        self.calls.append(("stock", sku))
        return 3

    @memoize()
    def untagged(self):
        self.calls.append(("untagged",))
        return 0


class TestClearTags:
    """Test clear_tags() against memoized members."""

    def test_clears_only_matching_tags(self):
        c = Catalog()
        c.price("a")
        c.title("a")
        c.stock("a")

        assert clear_tags(["pricing"]) == 1
        c.price("a")
        c.title("a")
        c.stock("a")
        assert c.calls.count(("price", "a")) == 2
        assert c.calls.count(("title", "a")) == 1
        assert c.calls.count(("stock", "a")) == 1

    def test_store_under_two_tags_counted_once(self):
        c = Catalog()
        c.price("a")
        c.title("a")
        assert clear_tags(["catalog", "pricing"]) == 2

    def test_clears_every_instance(self):
        first, second = Catalog(), Catalog()
        first.price("a")
        second.price("a")
        assert clear_tags(["pricing"]) == 2
        first.price("a")
        second.price("a")
        assert first.calls == [("price", "a"), ("price", "a")]
        assert second.calls == [("price", "a"), ("price", "a")]

    def test_store_registered_once_per_instance(self):
        c = Catalog()
        for sku in ("a", "b", "c", "a"):
            c.price(sku)
        assert len(get_tag_registry().stores_for("pricing")) == 1

    def test_repeated_clear_is_harmless(self):
        c = Catalog()
        c.price("a")
        assert clear_tags(["catalog"]) == 1  # title has no store yet
        assert clear_tags(["pricing"]) == 1
        c.price("a")
        assert c.calls == [("price", "a"), ("price", "a")]

    def test_unknown_tags(self):
        assert clear_tags(["unknown"]) == 0
        assert clear_tags([]) == 0

    def test_untagged_members_are_untouched(self):
        c = Catalog()
        c.untagged()
        c.price("a")
        assert clear_all() == 1
        c.untagged()
        assert c.calls.count(("untagged",)) == 1

    def test_private_registry(self):
        registry = TagRegistry()
        calls = []

        class Local:
            @memoize(tags=["local"], registry=registry)
            def load(self):
                calls.append(1)
                return len(calls)

        item = Local()
        item.load()
        assert clear_tags(["local"]) == 0
        assert clear_tags(["local"], registry=registry) == 1
        assert item.load() == 2
