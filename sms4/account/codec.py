"""
Versioned Codec: binding entities to storage-engine records.

The storage engine stores each record as (version, dimension keys, payload).
The version lives in the engine's record metadata, never inside the
payload, and ``decode`` dispatches on it. The payload never stores its own
partition key either: it is read back from the engine's dimension key.

Only version 1 exists. A record with any other version means the
deployment and the stored data disagree about the schema; that is raised as
UnsupportedSchemaVersion and must not be handled by attempting a partial
decode.

Version 1 payload: the entity's core model as compact UTF-8 JSON.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import ClassVar, TypeVar

from pydantic import BaseModel, ValidationError

from sms4.account.errors import RecordDecodeError, UnsupportedSchemaVersion

D = TypeVar("D", bound="Data")
M = TypeVar("M", bound=BaseModel)


class Data(ABC):
    """A value the storage engine can partition, encode and decode."""

    DIMS: ClassVar[int] = 1
    VERSION: ClassVar[int] = 1

    @abstractmethod
    def dim(self, index: int) -> int:
        """Partition key along dimension ``index``."""

    @abstractmethod
    def encode(self) -> bytes:
        """Serialize the payload for the current VERSION."""

    @classmethod
    @abstractmethod
    def decode(cls: type[D], version: int, dims: Sequence[int], buf: bytes) -> D:
        """Rebuild an entity from a stored record."""


def encode(entity: Data) -> bytes:
    return entity.encode()


def decode(cls: type[D], version: int, dims: Sequence[int], buf: bytes) -> D:
    return cls.decode(version, dims, buf)


def encode_model(model: BaseModel) -> bytes:
    return model.model_dump_json().encode("utf-8")


def decode_model(model_cls: type[M], entity: str, version: int, buf: bytes) -> M:
    """
    Deserialize a payload model, dispatching on the record version.

    Raises:
        UnsupportedSchemaVersion: For any version other than 1.
        RecordDecodeError: If the payload does not match the schema.
    """
    if version == 1:
        try:
            return model_cls.model_validate_json(buf)
        except ValidationError as exc:
            raise RecordDecodeError(f"malformed {entity} record: {exc}") from exc
    raise UnsupportedSchemaVersion(version, entity)


def check_dims(dims: Sequence[int], expected: int, entity: str) -> None:
    if len(dims) != expected:
        raise RecordDecodeError(f"{entity} record expects {expected} dims, got {len(dims)}")
