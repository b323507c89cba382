from __future__ import annotations

import enum
import re
import typing as t

import typing_extensions as te

from nscache.utils import singleton

if t.TYPE_CHECKING:
    from nscache.options import AdapterOptions


class KeyBuilder:
    """Translate logical keys to store keys through a namespace prefix.

    The store key is ``namespace + separator + key`` when a namespace is set
    and the logical key unchanged otherwise. For a fixed namespace and
    separator the mapping is injective, so two logical keys never collide.

    Attributes:
        namespace (str): Namespace of the keys, empty for none.
        separator (str): Character(s) placed between namespace and key.
    """

    def __init__(self, namespace: str = "", separator: str = ":") -> None:
        self.namespace = namespace
        self.separator = separator

    @classmethod
    def from_options(cls, options: AdapterOptions) -> KeyBuilder:
        """Snapshot the namespace and separator currently configured."""
        return cls(options.namespace, options.namespace_separator)

    @property
    def prefix(self) -> str:
        """The literal prefix of every store key, empty without namespace."""
        if not self.namespace:
            return ""
        return self.namespace + self.separator

    def build(self, key: str) -> str:
        """Build the store key for a logical key.

        Args:
            key (str): Logical key as seen by the caller.

        Returns:
            str: The store key.
        """
        return self.prefix + key

    def build_many(self, keys: t.Iterable[str]) -> list[str]:
        prefix = self.prefix
        return [prefix + key for key in keys]

    @staticmethod
    def strip(store_key: str, prefix_length: int) -> str:
        """Drop the first ``prefix_length`` characters of a store key."""
        return store_key[prefix_length:]

    def namespace_pattern(self) -> str | None:
        """Pattern matching every key of the namespace, ``None`` for all keys."""
        if not self.namespace:
            return None
        return "^" + re.escape(self.prefix)

    def prefix_pattern(self, prefix: str) -> str:
        """Pattern matching logical keys starting with ``prefix`` in the namespace."""
        return "^" + re.escape(self.build(prefix))

    def exact_pattern(self, key: str) -> str:
        return "^" + re.escape(self.build(key)) + r"\Z"

    def alternation_pattern(self, keys: t.Iterable[str]) -> str:
        """Pattern matching exactly the given logical keys in the namespace.

        Every key is escaped before being joined, so metacharacters in caller
        supplied text never widen the match.
        """
        alternatives = "|".join(re.escape(key) for key in keys)
        return "^" + re.escape(self.prefix) + "(" + alternatives + r")\Z"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(namespace={self.namespace!r}, separator={self.separator!r})"


class IterField(enum.IntFlag):
    """Fields a pattern iterator can report for every matched entry."""

    NONE = 0
    TYPE = 1
    KEY = 2
    VALUE = 4
    NUM_HITS = 8
    MTIME = 16
    CREATION_TIME = 32
    DELETION_TIME = 64
    ACCESS_TIME = 128
    REF_COUNT = 256
    MEM_SIZE = 512
    TTL = 1024
    ALL = 2047


METADATA_FIELDS = IterField.ALL ^ IterField.VALUE ^ IterField.TYPE ^ IterField.REF_COUNT
"""Fields needed to build a metadata record, without the value payload."""


class NativeRecord(te.TypedDict, total=False):
    """Entry description as produced by the store's pattern iterator."""

    key: str
    type: str
    value: t.Any
    num_hits: int
    mtime: int
    creation_time: int
    deletion_time: int
    access_time: int
    ref_count: int
    mem_size: int
    ttl: int


class SpaceInfo(t.NamedTuple):
    """Aggregate space accounting of a store.

    Attributes:
        segments: Number of memory segments.
        segment_size: Size of each segment in bytes.
        available_bytes: Bytes currently free across all segments.
    """

    segments: int
    segment_size: int
    available_bytes: int


@t.runtime_checkable
class PatternIterator(t.Protocol):
    """Forward iterator over ``(store_key, record)`` pairs matching a regex.

    Consistency is store-defined: entries written during a pass may or may
    not be observed. ``rewind`` restarts the pass as far as the store allows.
    """

    def __iter__(self) -> t.Iterator[tuple[str, NativeRecord]]:
        """Return the iterator itself."""

    def __next__(self) -> tuple[str, NativeRecord]:
        """Return the next matched entry.

        Raises:
            StopIteration: When the pass is exhausted
        """

    def rewind(self) -> None:
        """Restart the pass from the first matching entry."""


@t.runtime_checkable
class SharedStore(t.Protocol):
    """Protocol for a process-local store offering primitive atomic operations.

    Every single-key operation is atomic. Batch operations are not atomic
    across keys and report per-key failures instead of raising.

    Failure behavior:
    - fetch returns ``(None, False)`` when the key is absent or expired
    - store/add return False when the value could not be written
    - add returns False when the key already exists
    - increment/decrement return None when the key is absent or not an integer
    - batch writes return the pairs that were not written
    """

    enabled: bool
    use_request_time: bool

    def fetch(self, key: str, /) -> tuple[t.Any, bool]:
        """Fetch a value, returning ``(value, found)``."""

    def fetch_many(self, keys: t.Iterable[str], /) -> dict[str, t.Any]:
        """Fetch several values. Absent keys are left out of the result."""

    def exists(self, key: str, /) -> bool:
        """Check whether an active entry exists for a key."""

    def exists_many(self, keys: t.Iterable[str], /) -> dict[str, bool]:
        """Check several keys at once."""

    def store(self, key: str, value: t.Any, /, ttl: int = 0) -> bool:
        """Write a value, overwriting any existing entry."""

    def store_many(self, pairs: t.Mapping[str, t.Any], /, ttl: int = 0) -> dict[str, t.Any]:
        """Write several values and return the pairs that failed."""

    def add(self, key: str, value: t.Any, /, ttl: int = 0) -> bool:
        """Write a value only if no active entry exists for the key."""

    def add_many(self, pairs: t.Mapping[str, t.Any], /, ttl: int = 0) -> dict[str, t.Any]:
        """Add several values and return the pairs that were not added."""

    def compare_and_swap(self, key: str, old: int, new: int, /) -> bool:
        """Replace an integer value only if it currently equals ``old``."""

    def increment(self, key: str, /, step: int = 1) -> int | None:
        """Atomically add ``step`` to an integer entry.

        Returns:
            The new value, or None if the entry is absent or not an integer
        """

    def decrement(self, key: str, /, step: int = 1) -> int | None:
        """Atomically subtract ``step`` from an integer entry.

        Returns:
            The new value, or None if the entry is absent or not an integer
        """

    def delete(self, key: str, /) -> bool:
        """Delete an entry, returning False if it did not exist."""

    def delete_many(self, keys: t.Iterable[str], /) -> list[str]:
        """Delete several entries and return the keys that were not deleted."""

    def clear(self) -> bool:
        """Drop every entry of the store."""

    def iterate(
        self,
        pattern: str | None = None,
        /,
        fields: IterField = IterField.ALL,
        chunk_size: int = 100,
        active_only: bool = True,
    ) -> PatternIterator:
        """Iterate over entries whose key matches ``pattern`` (all if None)."""

    def space_info(self) -> SpaceInfo:
        """Report the space accounting of the store."""


@singleton
def shared_store() -> SharedStore:
    """Return the store shared by every adapter of this process."""
    from nscache.cache.cachetools import CachetoolsStore

    return CachetoolsStore()
