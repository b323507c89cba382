import pydantic
import pytest

from nscache.metadata import SUPPORTED_METADATA
from nscache.metadata import Metadata
from nscache.metadata import normalize_metadata

NATIVE = {
    "key": "ns:k",
    "access_time": 1700000003,
    "creation_time": 1700000000,
    "mtime": 1700000001,
    "deletion_time": 0,
    "mem_size": 42,
    "num_hits": 7,
    "ttl": 60,
}


def test_fields_are_renamed() -> None:
    metadata = normalize_metadata(NATIVE)
    assert metadata.model_dump(by_alias=True) == {
        "internalKey": "ns:k",
        "accessTime": 1700000003,
        "creationTime": 1700000000,
        "modifyTime": 1700000001,
        "deletionTime": 0,
        "sizeBytes": 42,
        "hitCount": 7,
        "ttl": 60,
    }


def test_supported_metadata_matches_schema() -> None:
    assert tuple(normalize_metadata(NATIVE).model_dump(by_alias=True)) == SUPPORTED_METADATA


def test_metadata_is_immutable() -> None:
    metadata = normalize_metadata(NATIVE)
    with pytest.raises(pydantic.ValidationError):
        metadata.ttl = 1


def test_metadata_accepts_aliases() -> None:
    metadata = Metadata.model_validate(normalize_metadata(NATIVE).model_dump(by_alias=True))
    assert metadata == normalize_metadata(NATIVE)
