from __future__ import annotations

import asyncio
import json
import sqlite3
from contextlib import closing
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Sequence, TypeVar

from dotvec.domain.errors import PersistenceFailure
from dotvec.domain.models import StoredVector
from dotvec.ports import OpenedCollection, check_store_name
from dotvec.utils.serialization import dumps_metadata, loads_metadata, row_from_dict, row_to_dict

T = TypeVar("T")

_CREATE_TABLE = """
    CREATE TABLE vectors (
      id TEXT PRIMARY KEY,
      vector_json TEXT NOT NULL,
      metadata_json TEXT
    )
"""


def _to_params(record: StoredVector) -> tuple[str, str, str | None]:
    row = row_to_dict(record)
    return row["id"], json.dumps(row["values"]), dumps_metadata(row["metadata"])


@dataclass(frozen=True, slots=True)
class SqliteCollection:
    """
    One SQLite file per store; rows live in the `vectors` table.

    Every call opens its own connection and runs in a worker thread. Batch
    writes run in a single transaction, so they either all land or none do.
    """
    db_path: Path

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path))

    async def _run(self, action: str, fn: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.to_thread(fn, *args)
        except (sqlite3.Error, ValueError, TypeError) as e:
            raise PersistenceFailure(f"SQLite {action} on {self.db_path} failed: {e}", cause=e) from e

    def _select_all(self) -> list[StoredVector]:
        with closing(self._connect()) as conn:
            cur = conn.execute("SELECT id, vector_json, metadata_json FROM vectors ORDER BY rowid")
            return [
                row_from_dict({"id": vid, "values": json.loads(vjson), "metadata": loads_metadata(mjson)})
                for vid, vjson, mjson in cur.fetchall()
            ]

    def _write(self, sql: str, rows: Sequence[tuple[Any, ...]]) -> None:
        with closing(self._connect()) as conn:
            with conn:
                conn.executemany(sql, rows)

    async def get_all(self) -> list[StoredVector]:
        return await self._run("get_all", self._select_all)

    async def insert_one(self, record: StoredVector) -> None:
        await self.insert_many([record])

    async def insert_many(self, records: Sequence[StoredVector]) -> None:
        rows = [_to_params(r) for r in records]
        await self._run(
            "insert",
            self._write,
            "INSERT INTO vectors(id, vector_json, metadata_json) VALUES (?, ?, ?)",
            rows,
        )

    async def delete_one(self, id: str) -> None:
        await self.delete_many([id])

    async def delete_many(self, ids: Sequence[str]) -> None:
        await self._run("delete", self._write, "DELETE FROM vectors WHERE id = ?", [(i,) for i in ids])


@dataclass(frozen=True, slots=True)
class SqliteStore:
    """
    Stores each named collection as `<data_dir>/<name>.sqlite3`.
    """
    data_dir: Path

    def db_path(self, name: str) -> Path:
        return Path(self.data_dir) / f"{check_store_name(name)}.sqlite3"

    @staticmethod
    def _init_db(path: Path) -> bool:
        path.parent.mkdir(parents=True, exist_ok=True)
        with closing(sqlite3.connect(str(path))) as conn:
            with conn:
                found = conn.execute(
                    "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'vectors'"
                ).fetchone()
                if found is None:
                    conn.execute(_CREATE_TABLE)
        return found is None

    async def open(self, name: str) -> OpenedCollection:
        path = self.db_path(name)
        try:
            created = await asyncio.to_thread(self._init_db, path)
        except (sqlite3.Error, OSError) as e:
            raise PersistenceFailure(f"Cannot open SQLite store {path}: {e}", cause=e) from e
        return OpenedCollection(collection=SqliteCollection(db_path=path), created=created)
