"""Shared fixtures: in-memory and on-disk stores, a connected engine, failure injection."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

import pytest
import pytest_asyncio

from dotvec.adapters.persistence.memory_store import InMemoryStore
from dotvec.adapters.persistence.sqlite_store import SqliteStore
from dotvec.domain.models import StoredVector
from dotvec.engine import VectorEngine
from dotvec.ports import OpenedCollection, VectorCollection


@dataclass
class FlakyCollection:
    """Wraps a collection; raises on writes while `fail_writes` is set and counts calls."""

    inner: VectorCollection
    fail_writes: bool = False
    calls: list[str] = field(default_factory=list)

    def _maybe_fail(self, op: str) -> None:
        self.calls.append(op)
        if self.fail_writes:
            raise RuntimeError(f"disk full during {op}")

    async def get_all(self) -> list[StoredVector]:
        self.calls.append("get_all")
        return await self.inner.get_all()

    async def insert_one(self, record: StoredVector) -> None:
        self._maybe_fail("insert_one")
        await self.inner.insert_one(record)

    async def insert_many(self, records: Sequence[StoredVector]) -> None:
        self._maybe_fail("insert_many")
        await self.inner.insert_many(records)

    async def delete_one(self, id: str) -> None:
        self._maybe_fail("delete_one")
        await self.inner.delete_one(id)

    async def delete_many(self, ids: Sequence[str]) -> None:
        self._maybe_fail("delete_many")
        await self.inner.delete_many(ids)


@dataclass
class FlakyStore:
    inner: InMemoryStore = field(default_factory=InMemoryStore)
    collections: dict[str, FlakyCollection] = field(default_factory=dict)

    async def open(self, name: str) -> OpenedCollection:
        opened = await self.inner.open(name)
        wrapped = self.collections.setdefault(name, FlakyCollection(inner=opened.collection))
        return OpenedCollection(collection=wrapped, created=opened.created)


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def sqlite_store(tmp_path: Path) -> SqliteStore:
    return SqliteStore(data_dir=tmp_path / "stores")


@pytest.fixture
def flaky_store() -> FlakyStore:
    return FlakyStore()


@pytest_asyncio.fixture
async def engine(memory_store: InMemoryStore) -> VectorEngine:
    """Connected 3-d engine over a fresh in-memory store."""
    e = VectorEngine(3, memory_store)
    await e.connect("test-vectors")
    return e


@pytest_asyncio.fixture
async def colors(engine: VectorEngine) -> dict[str, str]:
    """Inserts red/green/reddish and returns text -> id."""
    ids = {}
    for values, text in (([1, 0, 0], "red"), ([0, 1, 0], "green"), ([0.9, 0.1, 0], "reddish")):
        ids[text] = await engine.insert(values, {"text": text, "category": "color"})
    return ids
