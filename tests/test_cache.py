"""Tests for ormweave.cache: the identity map keyed by model class and primary key."""

from ormweave.cache import Cache


class _A:
    def __init__(self, name):
        self.name = name


class _B:
    pass


class TestCacheKeys:

    def test_scalar_and_single_element_keys_match(self):
        assert Cache.key(5) == "5"
        assert Cache.key((5,)) == "5"
        assert Cache.key([5]) == "5"

    def test_composite_keys_are_joined(self):
        assert Cache.key((1, "a")) == "1|a"


class TestCache:

    def test_set_get_has_unset(self):
        cache = Cache()
        a = _A("x")
        cache.set(_A, 1, a)
        assert cache.get(_A, 1) is a
        assert cache.get(_A, "1") is a
        assert cache.has(_A, (1,))
        assert (_A, 1) in cache
        cache.unset(_A, 1)
        assert cache.get(_A, 1) is None
        assert (_A, 1) not in cache

    def test_models_do_not_share_keys(self):
        cache = Cache()
        cache.set(_A, 1, _A("x"))
        assert cache.get(_B, 1) is None

    def test_find_and_instances(self):
        cache = Cache()
        first, second = _A("x"), _A("y")
        cache.set(_A, 1, first)
        cache.set(_A, 2, second)
        assert cache.find(_A, lambda item: item.name == "y") is second
        assert cache.find(_A, lambda item: item.name == "z") is None
        assert cache.instances(_A) == [first, second]
        assert cache.keys(_A) == ["1", "2"]
        assert len(cache) == 2

    def test_flush_one_model_or_everything(self):
        cache = Cache()
        cache.set(_A, 1, _A("x"))
        cache.set(_B, 1, _B())
        cache.flush(_A)
        assert cache.get(_A, 1) is None
        assert cache.get(_B, 1) is not None
        cache.flush()
        assert len(cache) == 0
