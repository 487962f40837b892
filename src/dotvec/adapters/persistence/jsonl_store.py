from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from dotvec.domain.errors import PersistenceFailure
from dotvec.domain.models import StoredVector
from dotvec.ports import OpenedCollection, check_store_name
from dotvec.utils.serialization import row_from_dict, row_to_dict


def _read_rows(data_file: Path) -> dict[str, StoredVector]:
    rows: dict[str, StoredVector] = {}
    for i, line in enumerate(data_file.read_text(encoding="utf-8").splitlines()):
        if not line.strip():
            continue
        try:
            row = row_from_dict(json.loads(line))
        except (json.JSONDecodeError, ValueError) as e:
            snippet = line[:200]
            raise PersistenceFailure(
                f"Invalid row on {data_file} line {i}: {e}\nSnippet: {snippet}",
                cause=e,
            ) from e
        if row.id in rows:
            raise PersistenceFailure(f"Duplicate id {row.id!r} on {data_file} line {i}")
        rows[row.id] = row
    return rows


def _write_rows(data_file: Path, rows: Sequence[StoredVector]) -> None:
    """
    Write to a temp file first, then atomically replace, so a crash never
    leaves a truncated file behind.
    """
    tmp_file = data_file.with_suffix(".jsonl.tmp")
    try:
        with tmp_file.open("w", encoding="utf-8") as f:
            for record in rows:
                f.write(json.dumps(row_to_dict(record), ensure_ascii=False))
                f.write("\n")
            f.flush()
        tmp_file.replace(data_file)
    except Exception:
        tmp_file.unlink(missing_ok=True)
        raise


@dataclass(slots=True)
class JsonlCollection:
    """
    Disk-persisted collection: `vectors.jsonl`, one row per vector.

    The whole file is rewritten on every mutation. The cached rows only
    change after the rewrite succeeds.
    """
    data_file: Path
    _rows: dict[str, StoredVector] = field(default_factory=dict)

    async def _commit(self, rows: dict[str, StoredVector]) -> None:
        try:
            await asyncio.to_thread(_write_rows, self.data_file, list(rows.values()))
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceFailure(f"Cannot write {self.data_file}: {e}", cause=e) from e
        self._rows = rows

    async def get_all(self) -> list[StoredVector]:
        return list(self._rows.values())

    async def insert_one(self, record: StoredVector) -> None:
        await self.insert_many([record])

    async def insert_many(self, records: Sequence[StoredVector]) -> None:
        rows = dict(self._rows)
        for record in records:
            if record.id in rows:
                raise PersistenceFailure(f"Duplicate id {record.id!r} in {self.data_file}")
            rows[record.id] = record
        await self._commit(rows)

    async def delete_one(self, id: str) -> None:
        await self.delete_many([id])

    async def delete_many(self, ids: Sequence[str]) -> None:
        drop = set(ids)
        rows = {k: v for k, v in self._rows.items() if k not in drop}
        if len(rows) == len(self._rows):
            return
        await self._commit(rows)


@dataclass(frozen=True, slots=True)
class JsonlStore:
    """
    Stores each named collection as `<data_dir>/<name>/vectors.jsonl`.
    """
    data_dir: Path

    def data_file(self, name: str) -> Path:
        return Path(self.data_dir) / check_store_name(name) / "vectors.jsonl"

    async def open(self, name: str) -> OpenedCollection:
        data_file = self.data_file(name)
        created = not data_file.exists()
        try:
            if created:
                data_file.parent.mkdir(parents=True, exist_ok=True)
                await asyncio.to_thread(_write_rows, data_file, [])
                rows: dict[str, StoredVector] = {}
            else:
                rows = await asyncio.to_thread(_read_rows, data_file)
        except OSError as e:
            raise PersistenceFailure(f"Cannot open {data_file}: {e}", cause=e) from e

        return OpenedCollection(collection=JsonlCollection(data_file=data_file, _rows=rows), created=created)
