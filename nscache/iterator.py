from __future__ import annotations

import enum
import typing as t

from nscache.cache import PatternIterator

if t.TYPE_CHECKING:
    from nscache.adapter import CacheAdapter


class IteratorMode(enum.IntEnum):
    """What a :class:`CacheIterator` yields for every entry."""

    SELF = 0
    KEY = 1
    VALUE = 2
    METADATA = 3


class CacheIterator:
    """Lazy iterator over the logical keys of an adapter's namespace.

    Wraps the store's pattern iterator and strips the namespace prefix that
    was in effect when the iterator was created. Depending on ``mode`` every
    step yields the key, its current value, its current metadata, or the
    iterator itself; values and metadata are re-read from the adapter at the
    time they are yielded.

    The pass is forward-only. :meth:`rewind` restarts it as far as the store's
    iterator allows; no snapshot isolation is added on top of the store.

    Example:
        ```python
        it = adapter.get_iterator().set_mode(IteratorMode.VALUE)
        for value in it:
            print(value)
        ```
    """

    def __init__(self, storage: CacheAdapter, base: PatternIterator, prefix: str):
        self._storage = storage
        self._base = base
        self._prefix_length = len(prefix)
        self._mode = IteratorMode.KEY
        self._key: str | None = None

    @property
    def storage(self) -> CacheAdapter:
        return self._storage

    @property
    def mode(self) -> IteratorMode:
        return self._mode

    @mode.setter
    def mode(self, mode: IteratorMode | int) -> None:
        self._mode = IteratorMode(mode)

    def set_mode(self, mode: IteratorMode | int) -> t.Self:
        self.mode = mode
        return self

    def key(self) -> str | None:
        """Logical key of the entry yielded last, None before the first step."""
        return self._key

    def current(self) -> t.Any:
        """Render the entry yielded last according to the current mode."""
        if self._mode is IteratorMode.SELF:
            return self
        key = self._key
        if key is None:
            return None
        if self._mode is IteratorMode.VALUE:
            value, _ = self._storage.get(key)
            return value
        if self._mode is IteratorMode.METADATA:
            return self._storage.get_metadata(key)
        return key

    def rewind(self) -> None:
        self._key = None
        self._base.rewind()

    def __iter__(self) -> CacheIterator:
        return self

    def __next__(self) -> t.Any:
        store_key, _ = next(self._base)
        self._key = store_key[self._prefix_length:]
        return self.current()
