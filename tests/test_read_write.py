"""Tests for single and batch reads and writes."""

import threading

import pytest

from nscache import CacheAdapter
from nscache import CacheRuntimeError
from nscache import CachetoolsStore
from nscache import ExtensionNotLoadedError
from nscache import shared_store


class Point:
    def __init__(self, x, y):
        self.x = x
        self.y = y

    def __eq__(self, other):
        return isinstance(other, Point) and (self.x, self.y) == (other.x, other.y)


@pytest.mark.parametrize(
    "value",
    [None, True, False, 0, -7, 3.25, "", "text", [1, "two", [3]], {"a": {"b": 1}}, Point(1, 2)],
)
def test_round_trip(cache, value) -> None:
    assert cache.set("k", value)
    assert cache.get("k") == (value, True)


def test_missing_key(cache) -> None:
    assert cache.get("missing") == (None, False)
    assert not cache.has("missing")


def test_namespace_isolation(store) -> None:
    a = CacheAdapter({"namespace": "a"}, store=store)
    b = CacheAdapter({"namespace": "b"}, store=store)
    a.set("k", "from a")
    assert b.get("k") == (None, False)
    assert not b.has("k")
    assert b.get_many(["k"]) == {}
    b.set("k", "from b")
    assert a.get("k") == ("from a", True)


def test_namespace_is_a_key_prefix(cache, bare) -> None:
    cache.set("k", 1)
    assert bare.get("ns:k") == (1, True)


def test_get_many(cache) -> None:
    cache.set("a", 1)
    cache.set("b", 2)
    assert cache.get_many(["a", "b", "c"]) == {"a": 1, "b": 2}
    assert cache.get_many([]) == {}


def test_get_many_without_namespace(bare) -> None:
    bare.set("a", 1)
    assert bare.get_many(["a", "b"]) == {"a": 1}


def test_has_many(cache, bare) -> None:
    cache.set("a", 1)
    bare.set("b", 2)
    assert cache.has_many(["a", "b"]) == {"a"}
    assert bare.has_many(["b", "ns:a", "a"]) == {"b", "ns:a"}
    assert cache.has_many([]) == set()


def test_set_overwrites(cache) -> None:
    cache.set("k", 1)
    cache.set("k", 2)
    assert cache.get("k") == (2, True)


def test_set_failure_reports_type_not_content(cache) -> None:
    with pytest.raises(CacheRuntimeError) as exc_info:
        cache.set("lock", threading.Lock())
    message = str(exc_info.value)
    assert "'ns:lock'" in message
    assert "lock>" in message


def test_set_failure_does_not_leak_value(clock) -> None:
    cache = CacheAdapter(store=CachetoolsStore(memory_bytes=256, clock=clock))
    with pytest.raises(CacheRuntimeError) as exc_info:
        cache.set("big", "secret" * 100)
    assert str(exc_info.value) == "store('big', <str>, 0) failed"


def test_ttl_is_rounded_up(cache, options, clock) -> None:
    options.ttl = 1.2
    cache.set("k", "v")
    assert cache.get_metadata("k").ttl == 2
    clock.advance(1.5)
    assert cache.has("k")
    clock.advance(0.5)
    assert not cache.has("k")


def test_set_many_partial_failure(cache) -> None:
    failed = cache.set_many({"a": 1, "b": threading.Lock(), "c": "x"})
    assert failed == ["b"]
    assert cache.get("a") == (1, True)
    assert cache.get("c") == ("x", True)
    assert cache.get("b") == (None, False)


def test_set_many_without_namespace(bare) -> None:
    assert bare.set_many({"a": 1, "b": threading.Lock()}) == ["b"]
    assert bare.get("a") == (1, True)
    assert bare.set_many({}) == []


def test_add(cache) -> None:
    assert cache.add("k", 1)
    assert not cache.add("k", 2)
    assert cache.get("k") == (1, True)


def test_add_failure_raises(cache) -> None:
    with pytest.raises(CacheRuntimeError, match=r"^add\('ns:lock'"):
        cache.add("lock", threading.Lock())


def test_add_many_does_not_classify_failures(cache) -> None:
    cache.set("a", 1)
    failed = cache.add_many({"a": 2, "b": 3, "lock": threading.Lock()})
    assert sorted(failed) == ["a", "lock"]
    assert cache.get("a") == (1, True)
    assert cache.get("b") == (3, True)


def test_add_many_without_namespace(bare) -> None:
    bare.set("a", 1)
    assert bare.add_many({"a": 2, "b": 3}) == ["a"]


def test_replace(cache) -> None:
    assert not cache.replace("k", 1)
    assert not cache.has("k")
    cache.set("k", 1)
    assert cache.replace("k", 2)
    assert cache.get("k") == (2, True)


def test_replace_failure_raises(cache) -> None:
    cache.set("k", 1)
    with pytest.raises(CacheRuntimeError):
        cache.replace("k", threading.Lock())


def test_check_and_set_integers(cache) -> None:
    cache.set("k", 10)
    assert cache.check_and_set(10, "k", 11)
    assert cache.get("k") == (11, True)
    assert not cache.check_and_set(10, "k", 12)
    assert cache.get("k") == (11, True)


def test_check_and_set_integers_respects_namespace(cache, bare) -> None:
    bare.set("k", 10)
    cache.set("k", 20)
    assert not cache.check_and_set(10, "k", 11)
    assert cache.check_and_set(20, "k", 21)
    assert bare.get("k") == (10, True)


def test_check_and_set_generic(cache) -> None:
    cache.set("k", {"v": 1})
    token, _ = cache.get("k")
    assert cache.check_and_set(token, "k", {"v": 2})
    assert not cache.check_and_set(token, "k", {"v": 3})
    assert cache.get("k") == ({"v": 2}, True)
    assert not cache.check_and_set("anything", "missing", "x")
    assert not cache.has("missing")


def test_delete(cache) -> None:
    cache.set("k", 1)
    assert cache.delete("k")
    assert not cache.delete("k")


def test_delete_many(cache, bare) -> None:
    cache.set_many({"a": 1, "b": 2})
    assert cache.delete_many(["a", "b", "c"]) == ["c"]
    assert cache.has_many(["a", "b"]) == set()
    bare.set("x", 1)
    assert bare.delete_many(["x", "y"]) == ["y"]
    assert cache.delete_many([]) == []


def test_disabled_store() -> None:
    with pytest.raises(ExtensionNotLoadedError):
        CacheAdapter(store=CachetoolsStore(enabled=False))


def test_default_store_is_shared() -> None:
    assert CacheAdapter().store is shared_store()
    assert CacheAdapter().store is CacheAdapter().store


def test_space(clock) -> None:
    cache = CacheAdapter(store=CachetoolsStore(memory_bytes=4096, clock=clock))
    assert cache.total_space == 4096
    assert cache.available_space == 4096
    cache.set("k", "value")
    assert cache.available_space < 4096
    assert cache.total_space == 4096
