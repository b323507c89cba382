from __future__ import annotations

import types
import typing as t

from nscache.exceptions import InvalidArgumentError

if t.TYPE_CHECKING:
    from nscache.adapter import CacheAdapter


class Capabilities:
    """Description of what an adapter and its store support.

    Every attribute is fixed at construction except ``namespace_separator``,
    which follows the adapter's configuration. Only the holder of ``marker``
    may change it, so subscribers comparing descriptors by identity keep
    seeing the same instance.

    Args:
        storage: The adapter described.
        marker: Identity token authorizing separator updates.
        supported_datatypes: Datatype name mapped to True (native), False
            (unsupported) or the name of the type it is converted to.
        supported_metadata: Names of the public metadata fields.
        min_ttl: Smallest TTL in seconds.
        max_ttl: Largest TTL in seconds, 0 for unbounded.
        static_ttl: Whether the TTL is fixed once a value is written.
        ttl_precision: Granularity of the TTL in seconds.
        use_request_time: Whether the store freezes time per request.
        max_key_length: Longest supported store key.
        namespace_is_prefix: Whether the namespace is a literal key prefix.
        namespace_separator: Current namespace separator.
    """

    def __init__(
        self,
        storage: CacheAdapter,
        marker: object,
        *,
        supported_datatypes: t.Mapping[str, bool | str],
        supported_metadata: t.Sequence[str],
        min_ttl: int,
        max_ttl: int,
        static_ttl: bool,
        ttl_precision: float,
        use_request_time: bool,
        max_key_length: int,
        namespace_is_prefix: bool,
        namespace_separator: str,
    ):
        self._storage = storage
        self._marker = marker
        self._supported_datatypes = types.MappingProxyType(dict(supported_datatypes))
        self._supported_metadata = tuple(supported_metadata)
        self._min_ttl = min_ttl
        self._max_ttl = max_ttl
        self._static_ttl = static_ttl
        self._ttl_precision = ttl_precision
        self._use_request_time = use_request_time
        self._max_key_length = max_key_length
        self._namespace_is_prefix = namespace_is_prefix
        self._namespace_separator = namespace_separator

    @property
    def storage(self) -> CacheAdapter:
        return self._storage

    @property
    def supported_datatypes(self) -> t.Mapping[str, bool | str]:
        return self._supported_datatypes

    @property
    def supported_metadata(self) -> tuple[str, ...]:
        return self._supported_metadata

    @property
    def min_ttl(self) -> int:
        return self._min_ttl

    @property
    def max_ttl(self) -> int:
        return self._max_ttl

    @property
    def static_ttl(self) -> bool:
        return self._static_ttl

    @property
    def ttl_precision(self) -> float:
        return self._ttl_precision

    @property
    def use_request_time(self) -> bool:
        return self._use_request_time

    @property
    def max_key_length(self) -> int:
        return self._max_key_length

    @property
    def namespace_is_prefix(self) -> bool:
        return self._namespace_is_prefix

    @property
    def namespace_separator(self) -> str:
        return self._namespace_separator

    def set_namespace_separator(self, marker: object, separator: str) -> None:
        """Update the separator in place.

        Raises:
            InvalidArgumentError: If ``marker`` is not the owner's marker.
        """
        if marker is not self._marker:
            raise InvalidArgumentError("Invalid marker")
        self._namespace_separator = separator

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(namespace_separator={self._namespace_separator!r}, "
            f"max_key_length={self._max_key_length})"
        )
