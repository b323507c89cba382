from __future__ import annotations

import collections
import dataclasses
import logging
import pickle
import re
import threading
import time
import typing as t

from cachetools import Cache
from cachetools import LRUCache

from nscache.cache import IterField
from nscache.cache import NativeRecord
from nscache.cache import SpaceInfo
from nscache.utils import type_name

logger = logging.getLogger("nscache.cache.cachetools")

_INT_SIZE = 8


@dataclasses.dataclass
class _Entry:
    value: t.Any
    """Raw ``int`` or pickled payload."""

    raw: bool
    ttl: int
    creation_time: float
    mtime: float
    access_time: float
    mem_size: int
    num_hits: int = 0

    def is_expired(self, now: float) -> bool:
        return self.ttl > 0 and now >= self.creation_time + self.ttl

    def load(self) -> t.Any:
        if self.raw:
            return self.value
        return pickle.loads(self.value)


def _is_int(value: t.Any) -> bool:
    return type(value) is int


class CachetoolsStore:
    """A process-local shared store based on cachetools.LRUCache.

    The LRU cache is sized in bytes: every entry weighs the length of its key
    plus the length of its serialized payload, so the least recently used
    entries are evicted once ``memory_bytes`` is exhausted. Values are pickled
    on write and unpickled on read; plain integers are kept raw so counters
    and compare-and-swap can work on them in place.

    All operations take a single reentrant lock, which makes every single-key
    primitive atomic. Batch operations are plain loops over the single-key
    primitives and are not atomic across keys.

    Args:
        memory_bytes: Byte budget of the store
        enabled: Whether the store is usable in this runtime
        use_request_time: Whether the runtime freezes the clock per request
        clock: Callable returning the current time in seconds
    """

    def __init__(
        self,
        memory_bytes: int = 32 * 1024 * 1024,
        *,
        enabled: bool = True,
        use_request_time: bool = False,
        clock: t.Callable[[], float] = time.time,
    ):
        self.enabled = enabled
        self.use_request_time = use_request_time
        self._memory_bytes = memory_bytes
        self._clock = clock
        self._cache = LRUCache(maxsize=memory_bytes, getsizeof=self._sizeof)  # type: LRUCache[str, _Entry]
        self._lock = threading.RLock()

    @staticmethod
    def _sizeof(entry: _Entry) -> int:
        return entry.mem_size

    def _now(self) -> float:
        return self._clock()

    def _active(self, key: str, now: float) -> _Entry | None:
        entry = self._cache.get(key)
        if entry is None:
            return None
        if entry.is_expired(now):
            del self._cache[key]
            return None
        return entry

    def _peek(self, key: str) -> _Entry | None:
        # Cache.__getitem__ skips the LRU bookkeeping, so scans leave recency alone.
        try:
            return Cache.__getitem__(self._cache, key)
        except KeyError:
            return None

    def _write(self, key: str, value: t.Any, ttl: int, now: float, created: float | None = None) -> bool:
        if _is_int(value):
            payload, raw, size = value, True, _INT_SIZE
        else:
            try:
                payload = pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
            except (pickle.PicklingError, TypeError, AttributeError) as e:
                logger.warning("Refused to store %r: <%s> is not serializable (%s)", key, type_name(value), e)
                return False
            raw, size = False, len(payload)
        entry = _Entry(
            value=payload,
            raw=raw,
            ttl=max(0, int(ttl)),
            creation_time=now if created is None else created,
            mtime=now,
            access_time=now,
            mem_size=len(key.encode("utf-8")) + size,
        )
        try:
            self._cache[key] = entry
        except ValueError:
            logger.warning("Refused to store %r: %s bytes exceed the store size", key, entry.mem_size)
            return False
        return True

    # reading

    def fetch(self, key: str, /) -> tuple[t.Any, bool]:
        with self._lock:
            now = self._now()
            entry = self._active(key, now)
            if entry is None:
                return None, False
            entry.num_hits += 1
            entry.access_time = now
            return entry.load(), True

    def fetch_many(self, keys: t.Iterable[str], /) -> dict[str, t.Any]:
        result = {}
        with self._lock:
            for key in keys:
                value, found = self.fetch(key)
                if found:
                    result[key] = value
        return result

    def exists(self, key: str, /) -> bool:
        with self._lock:
            return self._active(key, self._now()) is not None

    def exists_many(self, keys: t.Iterable[str], /) -> dict[str, bool]:
        with self._lock:
            return {key: self.exists(key) for key in keys}

    # writing

    def store(self, key: str, value: t.Any, /, ttl: int = 0) -> bool:
        with self._lock:
            return self._write(key, value, ttl, self._now())

    def store_many(self, pairs: t.Mapping[str, t.Any], /, ttl: int = 0) -> dict[str, t.Any]:
        with self._lock:
            return {key: value for key, value in pairs.items() if not self.store(key, value, ttl)}

    def add(self, key: str, value: t.Any, /, ttl: int = 0) -> bool:
        with self._lock:
            now = self._now()
            if self._active(key, now) is not None:
                return False
            return self._write(key, value, ttl, now)

    def add_many(self, pairs: t.Mapping[str, t.Any], /, ttl: int = 0) -> dict[str, t.Any]:
        with self._lock:
            return {key: value for key, value in pairs.items() if not self.add(key, value, ttl)}

    def compare_and_swap(self, key: str, old: int, new: int, /) -> bool:
        with self._lock:
            now = self._now()
            entry = self._active(key, now)
            if entry is None or not entry.raw or entry.value != old:
                return False
            return self._write(key, int(new), entry.ttl, now, created=entry.creation_time)

    def increment(self, key: str, /, step: int = 1) -> int | None:
        with self._lock:
            now = self._now()
            entry = self._active(key, now)
            if entry is None or not entry.raw:
                return None
            value = entry.value + int(step)
            if not self._write(key, value, entry.ttl, now, created=entry.creation_time):
                return None
            return value

    def decrement(self, key: str, /, step: int = 1) -> int | None:
        return self.increment(key, -int(step))

    def delete(self, key: str, /) -> bool:
        with self._lock:
            if self._active(key, self._now()) is None:
                return False
            del self._cache[key]
            return True

    def delete_many(self, keys: t.Iterable[str], /) -> list[str]:
        with self._lock:
            return [key for key in keys if not self.delete(key)]

    def clear(self) -> bool:
        with self._lock:
            self._cache.clear()
        return True

    # enumeration

    def iterate(
        self,
        pattern: str | None = None,
        /,
        fields: IterField = IterField.ALL,
        chunk_size: int = 100,
        active_only: bool = True,
    ) -> CachetoolsIterator:
        return CachetoolsIterator(self, pattern, fields, chunk_size, active_only)

    def _scan(self, regex: re.Pattern[str] | None, active_only: bool) -> list[str]:
        with self._lock:
            now = self._now()
            return [
                key
                for key in list(self._cache)
                if (regex is None or regex.search(key))
                and not (active_only and self._peek(key).is_expired(now))
            ]

    def _describe(self, keys: t.Sequence[str], fields: IterField, active_only: bool) -> list[tuple[str, NativeRecord]]:
        described = []
        with self._lock:
            now = self._now()
            for key in keys:
                entry = self._peek(key)
                if entry is None or (active_only and entry.is_expired(now)):
                    continue
                described.append((key, self._record(key, entry, fields)))
        return described

    @staticmethod
    def _record(key: str, entry: _Entry, fields: IterField) -> NativeRecord:
        record = NativeRecord()
        if fields & IterField.TYPE:
            record["type"] = "user"
        if fields & IterField.KEY:
            record["key"] = key
        if fields & IterField.VALUE:
            record["value"] = entry.load()
        if fields & IterField.NUM_HITS:
            record["num_hits"] = entry.num_hits
        if fields & IterField.MTIME:
            record["mtime"] = int(entry.mtime)
        if fields & IterField.CREATION_TIME:
            record["creation_time"] = int(entry.creation_time)
        if fields & IterField.DELETION_TIME:
            record["deletion_time"] = 0
        if fields & IterField.ACCESS_TIME:
            record["access_time"] = int(entry.access_time)
        if fields & IterField.REF_COUNT:
            record["ref_count"] = 0
        if fields & IterField.MEM_SIZE:
            record["mem_size"] = entry.mem_size
        if fields & IterField.TTL:
            record["ttl"] = entry.ttl
        return record

    # status

    def space_info(self) -> SpaceInfo:
        with self._lock:
            available = self._memory_bytes - int(self._cache.currsize)
        return SpaceInfo(segments=1, segment_size=self._memory_bytes, available_bytes=available)

    def __len__(self) -> int:
        with self._lock:
            return len(self._scan(None, True))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(memory_bytes={self._memory_bytes}, items={len(self)})"


class CachetoolsIterator:
    """Pattern iterator over a CachetoolsStore.

    Matching keys are snapshotted when the pass starts; entry details are read
    ``chunk_size`` keys at a time as the pass advances. Entries removed after
    the snapshot are skipped, entries added after it are only seen after
    ``rewind``.
    """

    def __init__(
        self,
        store: CachetoolsStore,
        pattern: str | None,
        fields: IterField,
        chunk_size: int,
        active_only: bool,
    ):
        self._store = store
        self._regex = re.compile(pattern) if pattern is not None else None
        self._fields = IterField(fields)
        self._chunk_size = max(1, int(chunk_size))
        self._active_only = active_only
        self._keys = []  # type: list[str]
        self._position = 0
        self._buffer = collections.deque()  # type: collections.deque[tuple[str, NativeRecord]]
        self.rewind()

    def rewind(self) -> None:
        self._keys = self._store._scan(self._regex, self._active_only)
        self._position = 0
        self._buffer.clear()

    def __iter__(self) -> CachetoolsIterator:
        return self

    def __next__(self) -> tuple[str, NativeRecord]:
        while not self._buffer:
            if self._position >= len(self._keys):
                raise StopIteration
            chunk = self._keys[self._position:self._position + self._chunk_size]
            self._position += len(chunk)
            self._buffer.extend(self._store._describe(chunk, self._fields, self._active_only))
        return self._buffer.popleft()

    @property
    def total_count(self) -> int:
        """Number of keys matched when the pass started."""
        return len(self._keys)
