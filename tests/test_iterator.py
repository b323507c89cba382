import pytest

from nscache import CacheIterator
from nscache import IteratorMode
from nscache import Metadata


@pytest.fixture
def filled(cache, bare):
    cache.set_many({"a": 1, "b": 2})
    bare.set("outside", 3)
    return cache


def test_iterates_logical_keys(filled) -> None:
    assert sorted(filled) == ["a", "b"]


def test_without_namespace_iterates_everything(filled, bare) -> None:
    assert sorted(bare) == ["ns:a", "ns:b", "outside"]


def test_value_mode(filled) -> None:
    it = filled.get_iterator().set_mode(IteratorMode.VALUE)
    assert sorted(it) == [1, 2]


def test_metadata_mode(filled) -> None:
    it = filled.get_iterator()
    it.mode = IteratorMode.METADATA
    items = list(it)
    assert all(isinstance(item, Metadata) for item in items)
    assert sorted(item.internal_key for item in items) == ["ns:a", "ns:b"]


def test_self_mode(filled) -> None:
    it = filled.get_iterator().set_mode(IteratorMode.SELF)
    keys = []
    for item in it:
        assert item is it
        keys.append(it.key())
    assert sorted(keys) == ["a", "b"]


def test_mode_accepts_ints(filled) -> None:
    it = filled.get_iterator()
    it.mode = 2
    assert it.mode is IteratorMode.VALUE
    with pytest.raises(ValueError):
        it.mode = 42


def test_iterator_state(filled) -> None:
    it = filled.get_iterator()
    assert isinstance(it, CacheIterator)
    assert it.storage is filled
    assert it.mode is IteratorMode.KEY
    assert it.key() is None
    first = next(it)
    assert it.key() == first
    assert it.current() == first


def test_rewind(filled) -> None:
    it = filled.get_iterator()
    assert len(list(it)) == 2
    assert list(it) == []
    it.rewind()
    assert sorted(it) == ["a", "b"]


def test_prefix_fixed_at_creation(filled, options) -> None:
    it = filled.get_iterator()
    options.namespace = "elsewhere"
    assert sorted(it) == ["a", "b"]


def test_deleted_entries_are_skipped(filled) -> None:
    it = filled.get_iterator()
    filled.delete("a")
    filled.delete("b")
    assert list(it) == []
