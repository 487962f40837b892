from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from dotvec.domain.errors import PersistenceFailure
from dotvec.domain.models import StoredVector
from dotvec.ports import OpenedCollection


@dataclass(slots=True)
class InMemoryCollection:
    """
    Dict-backed collection. Batch calls check every row before touching the dict.
    """
    name: str
    _rows: dict[str, StoredVector] = field(default_factory=dict)

    async def get_all(self) -> list[StoredVector]:
        return list(self._rows.values())

    async def insert_one(self, record: StoredVector) -> None:
        if record.id in self._rows:
            raise PersistenceFailure(f"Duplicate id {record.id!r} in {self.name!r}")
        self._rows[record.id] = record

    async def insert_many(self, records: Sequence[StoredVector]) -> None:
        ids = [r.id for r in records]
        if len(set(ids)) != len(ids) or any(i in self._rows for i in ids):
            raise PersistenceFailure(f"Duplicate id in batch insert into {self.name!r}")
        for record in records:
            self._rows[record.id] = record

    async def delete_one(self, id: str) -> None:
        self._rows.pop(id, None)

    async def delete_many(self, ids: Sequence[str]) -> None:
        for i in ids:
            self._rows.pop(i, None)


@dataclass(slots=True)
class InMemoryStore:
    """
    Keeps named collections for the lifetime of this object. Two engines
    sharing one InMemoryStore see the same data, which is enough to exercise
    reconnects without touching disk.
    """
    _collections: dict[str, InMemoryCollection] = field(default_factory=dict)

    async def open(self, name: str) -> OpenedCollection:
        created = name not in self._collections
        if created:
            self._collections[name] = InMemoryCollection(name=name)
        return OpenedCollection(collection=self._collections[name], created=created)
