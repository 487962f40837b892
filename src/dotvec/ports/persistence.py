from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from dotvec.domain.models import StoredVector


class VectorCollection(Protocol):
    """
    A durable collection of vectors keyed by id.

    Every call is atomic from the caller's point of view and either completes
    or raises PersistenceFailure. Batch calls are all-or-nothing.
    """

    async def get_all(self) -> list[StoredVector]:
        ...

    async def insert_one(self, record: StoredVector) -> None:
        ...

    async def insert_many(self, records: Sequence[StoredVector]) -> None:
        ...

    async def delete_one(self, id: str) -> None:
        ...

    async def delete_many(self, ids: Sequence[str]) -> None:
        ...


@dataclass(frozen=True, slots=True)
class OpenedCollection:
    collection: VectorCollection
    created: bool


class PersistentStore(Protocol):
    """
    Opens (creating if absent) named vector collections.
    """

    async def open(self, name: str) -> OpenedCollection:
        ...


def check_store_name(name: str) -> str:
    """
    Store names become file or directory names, so path separators are rejected.
    """
    if not name or name in {".", ".."} or "/" in name or "\\" in name:
        raise ValueError(f"Invalid store name: {name!r}")
    return name
