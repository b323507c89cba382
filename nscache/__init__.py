"""nscache: namespaced cache semantics over a process-local shared store."""

from __future__ import annotations

__title__ = "nscache"
__version__ = "0.1.0"

from nscache.adapter import CacheAdapter  # noqa: E402
from nscache.cache import KeyBuilder  # noqa: E402
from nscache.cache import SharedStore  # noqa: E402
from nscache.cache import shared_store  # noqa: E402
from nscache.cache.cachetools import CachetoolsStore  # noqa: E402
from nscache.capabilities import Capabilities  # noqa: E402
from nscache.exceptions import CacheRuntimeError  # noqa: E402
from nscache.exceptions import ExtensionNotLoadedError  # noqa: E402
from nscache.exceptions import InvalidArgumentError  # noqa: E402
from nscache.exceptions import NSCacheError  # noqa: E402
from nscache.iterator import CacheIterator  # noqa: E402
from nscache.iterator import IteratorMode  # noqa: E402
from nscache.metadata import Metadata  # noqa: E402
from nscache.options import AdapterOptions  # noqa: E402

__all__ = [
    "AdapterOptions",
    "CacheAdapter",
    "CacheIterator",
    "CacheRuntimeError",
    "CachetoolsStore",
    "Capabilities",
    "ExtensionNotLoadedError",
    "InvalidArgumentError",
    "IteratorMode",
    "KeyBuilder",
    "Metadata",
    "NSCacheError",
    "SharedStore",
    "shared_store",
]
