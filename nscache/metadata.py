from __future__ import annotations

import typing as t

import pydantic as pyd

from nscache.cache import NativeRecord
from nscache.types import BaseModel

SUPPORTED_METADATA: t.Final = (
    "internalKey",
    "accessTime",
    "creationTime",
    "modifyTime",
    "deletionTime",
    "sizeBytes",
    "hitCount",
    "ttl",
)


class Metadata(BaseModel):
    """Public metadata of a single entry.

    Recomputed from the store on every query and never cached. Serialized
    with the camelCase field names listed in ``SUPPORTED_METADATA``.
    """

    internal_key: str = pyd.Field(..., alias="internalKey", description="Store key of the entry")

    access_time: int = pyd.Field(..., alias="accessTime", description="Last access, unix seconds")

    creation_time: int = pyd.Field(..., alias="creationTime", description="Creation, unix seconds")

    modify_time: int = pyd.Field(..., alias="modifyTime", description="Last write, unix seconds")

    deletion_time: int = pyd.Field(..., alias="deletionTime", description="Deletion, 0 while alive")

    size_bytes: int = pyd.Field(..., alias="sizeBytes", description="Memory used by the entry")

    hit_count: int = pyd.Field(..., alias="hitCount", description="Number of successful fetches")

    ttl: int = pyd.Field(..., description="Time to live in seconds, 0 for none")


def normalize_metadata(native: NativeRecord, /) -> Metadata:
    """Rename the store's native metadata fields to the public schema.

    The store is expected to supply every native field.
    """
    return Metadata(
        internal_key=native["key"],
        access_time=native["access_time"],
        creation_time=native["creation_time"],
        modify_time=native["mtime"],
        deletion_time=native["deletion_time"],
        size_bytes=native["mem_size"],
        hit_count=native["num_hits"],
        ttl=native["ttl"],
    )
