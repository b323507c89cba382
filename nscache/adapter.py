from __future__ import annotations

import logging
import math
import typing as t

from nscache.cache import KeyBuilder
from nscache.cache import METADATA_FIELDS
from nscache.cache import IterField
from nscache.cache import SharedStore
from nscache.cache import shared_store
from nscache.capabilities import Capabilities
from nscache.exceptions import CacheRuntimeError
from nscache.exceptions import ExtensionNotLoadedError
from nscache.exceptions import InvalidArgumentError
from nscache.iterator import CacheIterator
from nscache.metadata import SUPPORTED_METADATA
from nscache.metadata import Metadata
from nscache.metadata import normalize_metadata
from nscache.options import AdapterOptions
from nscache.types import Pairs
from nscache.utils import type_name

logger = logging.getLogger("nscache.adapter")

MAX_KEY_LENGTH: t.Final = 5182


class CacheAdapter:
    """Namespaced cache on top of a process-local shared store.

    Logical keys are mapped to store keys through the configured namespace
    and separator (see :class:`~nscache.cache.KeyBuilder`). Options are read
    again on every call, so a namespace or separator change applies to the
    next operation. Batch results and enumerations are always reported with
    logical keys.

    Failure model:
    - Absent keys are never errors: ``(None, False)``, ``None`` or omission
      from a batch result.
    - Batch writes report the logical keys that failed instead of raising.
    - A store refusing a single write raises
      :class:`~nscache.exceptions.CacheRuntimeError`.

    Args:
        options: Adapter options, or a mapping to build them from.
        store: Store to use. Defaults to the store shared by the process.

    Raises:
        ExtensionNotLoadedError: If the store is not usable.

    Example:
        ```python
        cache = CacheAdapter({"namespace": "app", "ttl": 60})
        cache.set("user:1", {"name": "Alice"})
        cache.get("user:1")  # ({'name': 'Alice'}, True)
        cache.increment("hits", 1)  # 1
        ```
    """

    def __init__(
        self,
        options: AdapterOptions | t.Mapping[str, t.Any] | None = None,
        *,
        store: SharedStore | None = None,
    ):
        self._store = store if store is not None else shared_store()
        if not self._store.enabled:
            raise ExtensionNotLoadedError(f"{type(self._store).__name__} is disabled in this runtime")

        self._options: AdapterOptions | None = None
        self._capabilities: Capabilities | None = None
        self._capability_marker: object | None = None
        self._total_space: int | None = None
        self.options = options if options is not None else AdapterOptions()

    # options

    @property
    def options(self) -> AdapterOptions:
        assert self._options is not None
        return self._options

    @options.setter
    def options(self, options: AdapterOptions | t.Mapping[str, t.Any]) -> None:
        if not isinstance(options, AdapterOptions):
            options = AdapterOptions.model_validate(options)
        if self._options is not None:
            self._options.unsubscribe(self._on_option_change)
        self._options = options
        options.subscribe(self._on_option_change)
        if self._capabilities is not None:
            self._capabilities.set_namespace_separator(self._capability_marker, options.namespace_separator)

    def _on_option_change(self, name: str, value: t.Any) -> None:
        if name == "namespace_separator" and self._capabilities is not None:
            self._capabilities.set_namespace_separator(self._capability_marker, value)

    @property
    def store(self) -> SharedStore:
        return self._store

    def _keys(self) -> KeyBuilder:
        return KeyBuilder.from_options(self.options)

    def _ttl(self) -> int:
        return int(math.ceil(self.options.ttl))

    # reading

    def get(self, key: str) -> tuple[t.Any, bool]:
        """Fetch a value.

        The returned value doubles as the token for :meth:`check_and_set`.

        Returns:
            ``(value, True)`` when found, ``(None, False)`` otherwise.
        """
        return self._store.fetch(self._keys().build(key))

    def get_many(self, keys: t.Iterable[str]) -> dict[str, t.Any]:
        """Fetch several values. Keys not found are left out of the result."""
        keys = list(keys)
        if not keys:
            return {}
        builder = self._keys()
        if not builder.namespace:
            return self._store.fetch_many(keys)

        prefix_length = len(builder.prefix)
        fetched = self._store.fetch_many(builder.build_many(keys))
        return {builder.strip(store_key, prefix_length): value for store_key, value in fetched.items()}

    def has(self, key: str) -> bool:
        return self._store.exists(self._keys().build(key))

    def has_many(self, keys: t.Iterable[str]) -> set[str]:
        """Return the subset of ``keys`` that currently exist."""
        keys = list(keys)
        if not keys:
            return set()
        builder = self._keys()
        if not builder.namespace:
            return {key for key, found in self._store.exists_many(keys).items() if found}

        prefix_length = len(builder.prefix)
        exists = self._store.exists_many(builder.build_many(keys))
        return {builder.strip(store_key, prefix_length) for store_key, found in exists.items() if found}

    # writing

    def set(self, key: str, value: t.Any) -> bool:
        """Store a value, overwriting any existing one.

        Raises:
            CacheRuntimeError: If the store refuses the value.
        """
        store_key = self._keys().build(key)
        ttl = self._ttl()
        if not self._store.store(store_key, value, ttl):
            raise self._failure("store", store_key, f"<{type_name(value)}>", ttl)
        return True

    def set_many(self, pairs: Pairs) -> list[str]:
        """Store several values.

        The store may accept some pairs and refuse others; nothing is raised
        in that case.

        Returns:
            The logical keys that were not stored.
        """
        return self._write_many(self._store.store_many, "set_many", pairs)

    def add(self, key: str, value: t.Any) -> bool:
        """Store a value only if the key does not exist yet.

        When the store refuses the write, an existence probe tells "already
        there" (False) from a real failure (raised). The probe only classifies
        the failure; the decision was made atomically by the store.

        Raises:
            CacheRuntimeError: If the store refuses the value for another reason.
        """
        store_key = self._keys().build(key)
        ttl = self._ttl()
        if not self._store.add(store_key, value, ttl):
            if self._store.exists(store_key):
                return False
            raise self._failure("add", store_key, f"<{type_name(value)}>", ttl)
        return True

    def add_many(self, pairs: Pairs) -> list[str]:
        """Add several values.

        Failed keys are reported without telling existing keys from refused
        values.

        Returns:
            The logical keys that were not added.
        """
        return self._write_many(self._store.add_many, "add_many", pairs)

    def replace(self, key: str, value: t.Any) -> bool:
        """Overwrite a value only if the key already exists.

        Raises:
            CacheRuntimeError: If the store refuses the value.
        """
        store_key = self._keys().build(key)
        ttl = self._ttl()
        if not self._store.exists(store_key):
            return False
        if not self._store.store(store_key, value, ttl):
            raise self._failure("store", store_key, f"<{type_name(value)}>", ttl)
        return True

    def check_and_set(self, token: t.Any, key: str, value: t.Any) -> bool:
        """Store ``value`` only if the current value still equals ``token``.

        Integer token and value use the store's atomic compare-and-swap.
        Other types compare and write in two steps, which is not atomic.
        """
        if type(token) is int and type(value) is int:
            return self._store.compare_and_swap(self._keys().build(key), token, value)

        current, found = self.get(key)
        if not found or current != token:
            return False
        return self.set(key, value)

    def delete(self, key: str) -> bool:
        """Delete a value. Returns False if the key did not exist."""
        return self._store.delete(self._keys().build(key))

    def delete_many(self, keys: t.Iterable[str]) -> list[str]:
        """Delete several values and return the logical keys not deleted."""
        keys = list(keys)
        if not keys:
            return []
        builder = self._keys()
        if not builder.namespace:
            return self._store.delete_many(keys)

        prefix_length = len(builder.prefix)
        failed = self._store.delete_many(builder.build_many(keys))
        return [builder.strip(store_key, prefix_length) for store_key in failed]

    def _write_many(
        self,
        write: t.Callable[[Pairs, int], t.Mapping[str, t.Any]],
        operation: str,
        pairs: Pairs,
    ) -> list[str]:
        if not pairs:
            return []
        builder = self._keys()
        ttl = self._ttl()
        if not builder.namespace:
            failed = list(write(pairs, ttl))
        else:
            prefix_length = len(builder.prefix)
            store_pairs = {builder.build(key): value for key, value in pairs.items()}
            failed = [builder.strip(store_key, prefix_length) for store_key in write(store_pairs, ttl)]
        if failed:
            logger.warning("%s: %s of %s keys not stored: %s", operation, len(failed), len(pairs), failed)
        return failed

    # counters

    def increment(self, key: str, delta: int = 1) -> int:
        """Increment a counter, creating it with ``delta`` if it is absent.

        Note:
            Creation is not atomic. Between the failed increment and the
            fallback add another writer may create the key; the add then
            fails instead of overwriting it and this call raises.

        Raises:
            CacheRuntimeError: If the counter could not be created.
        """
        return self._count(key, int(delta), self._store.increment, 1)

    def decrement(self, key: str, delta: int = 1) -> int:
        """Decrement a counter, creating it with ``-delta`` if it is absent.

        Same race as :meth:`increment`.

        Raises:
            CacheRuntimeError: If the counter could not be created.
        """
        return self._count(key, int(delta), self._store.decrement, -1)

    def _count(self, key: str, delta: int, step: t.Callable[[str, int], int | None], sign: int) -> int:
        store_key = self._keys().build(key)
        new_value = step(store_key, delta)
        if new_value is None:
            ttl = self._ttl()
            new_value = sign * delta
            logger.debug("Counter %r missing, creating it with %s", store_key, new_value)
            if not self._store.add(store_key, new_value, ttl):
                raise self._failure("add", store_key, str(new_value), ttl)
        return new_value

    # clearing

    def flush(self) -> bool:
        """Remove every entry of the store, across all namespaces and adapters."""
        return self._store.clear()

    def clear_by_namespace(self, namespace: str) -> bool:
        """Remove every active entry of ``namespace``.

        Raises:
            InvalidArgumentError: If ``namespace`` is empty.
        """
        namespace = str(namespace)
        if namespace == "":
            raise InvalidArgumentError("No namespace given")
        builder = KeyBuilder(namespace, self.options.namespace_separator)
        return self._delete_matching(builder.namespace_pattern())

    def clear_by_prefix(self, prefix: str) -> bool:
        """Remove every active entry whose logical key starts with ``prefix``.

        The prefix is relative to the adapter's own namespace.

        Raises:
            InvalidArgumentError: If ``prefix`` is empty.
        """
        prefix = str(prefix)
        if prefix == "":
            raise InvalidArgumentError("No prefix given")
        return self._delete_matching(self._keys().prefix_pattern(prefix))

    def _delete_matching(self, pattern: str | None) -> bool:
        logger.debug("Deleting entries matching %r", pattern)
        matches = self._store.iterate(pattern, fields=IterField.NONE, chunk_size=1, active_only=True)
        failed = self._store.delete_many(store_key for store_key, _ in matches)
        return not failed

    # metadata

    def get_metadata(self, key: str) -> Metadata | None:
        """Read the metadata of an entry, or None if it does not exist."""
        pattern = self._keys().exact_pattern(key)
        matches = self._store.iterate(pattern, fields=METADATA_FIELDS, chunk_size=100, active_only=True)
        native = next(iter(matches), None)
        if native is None:
            return None
        _, record = native
        if not record:
            return None
        return normalize_metadata(record)

    def get_many_metadata(self, keys: t.Iterable[str]) -> dict[str, Metadata]:
        """Read the metadata of several entries. Missing keys are left out."""
        keys = list(keys)
        if not keys:
            return {}
        builder = self._keys()
        prefix_length = len(builder.prefix)
        pattern = builder.alternation_pattern(keys)
        matches = self._store.iterate(pattern, fields=METADATA_FIELDS, chunk_size=100, active_only=True)
        return {builder.strip(store_key, prefix_length): normalize_metadata(record) for store_key, record in matches}

    # enumeration

    def get_iterator(self) -> CacheIterator:
        """Iterate over the logical keys of the current namespace.

        Without a namespace every key of the store is enumerated.
        """
        builder = self._keys()
        logger.debug("Iterating over %r", builder.namespace_pattern())
        base = self._store.iterate(builder.namespace_pattern(), fields=IterField.NONE, chunk_size=1, active_only=True)
        return CacheIterator(self, base, builder.prefix)

    def __iter__(self) -> CacheIterator:
        return self.get_iterator()

    # status

    @property
    def capabilities(self) -> Capabilities:
        """Capabilities of this adapter, built once.

        The same instance is returned on every access; its namespace separator
        follows later option changes.
        """
        if self._capabilities is None:
            marker = object()
            self._capabilities = Capabilities(
                self,
                marker,
                supported_datatypes={
                    "null": True,
                    "boolean": True,
                    "integer": True,
                    "double": True,
                    "string": True,
                    "array": True,
                    "object": "object",
                    "resource": False,
                },
                supported_metadata=SUPPORTED_METADATA,
                min_ttl=1,
                max_ttl=0,
                static_ttl=True,
                ttl_precision=1,
                use_request_time=bool(self._store.use_request_time),
                max_key_length=MAX_KEY_LENGTH,
                namespace_is_prefix=True,
                namespace_separator=self.options.namespace_separator,
            )
            self._capability_marker = marker
        return self._capabilities

    @property
    def total_space(self) -> int:
        """Total size of the store in bytes, read once."""
        if self._total_space is None:
            info = self._store.space_info()
            self._total_space = info.segments * info.segment_size
        return self._total_space

    @property
    def available_space(self) -> int:
        return self._store.space_info().available_bytes

    def _failure(self, operation: str, store_key: str, value: str, ttl: int) -> CacheRuntimeError:
        message = f"{operation}({store_key!r}, {value}, {ttl}) failed"
        logger.error(message)
        return CacheRuntimeError(message)

    def __repr__(self) -> str:
        options = self.options
        return (
            f"{self.__class__.__name__}(namespace={options.namespace!r}, "
            f"namespace_separator={options.namespace_separator!r}, ttl={options.ttl})"
        )
