from __future__ import annotations

import asyncio
import logging
import math
import uuid
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, Sequence, TypeVar, Union

from dotvec.domain.errors import DimensionMismatch, InvalidDimension, NotConnected, PersistenceFailure
from dotvec.domain.models import ConnectResult, InsertArgs, SearchResult, Vector, VectorRecord, dot, magnitude
from dotvec.ports import PersistentStore, VectorCollection

logger = logging.getLogger(__name__)

T = TypeVar("T")

InsertItem = Union[InsertArgs, Mapping[str, Any]]


def _cosine(query: Sequence[float], query_magnitude: float, record: VectorRecord) -> float:
    denominator = query_magnitude * record.magnitude
    if denominator == 0:
        return math.nan
    return dot(query, record.values) / denominator


def _rank_key(item: tuple[VectorRecord, float]) -> tuple[int, float]:
    # Non-finite scores go last; ties keep scan order (list.sort is stable).
    score = item[1]
    if not math.isfinite(score):
        return (1, 0.0)
    return (0, -score)


def _as_insert_args(item: InsertItem) -> InsertArgs:
    if isinstance(item, InsertArgs):
        return item
    if isinstance(item, Mapping):
        return InsertArgs(values=item["values"], metadata=item.get("metadata"))
    raise TypeError(f"expected InsertArgs or a mapping with 'values', got {type(item).__name__}")


class VectorEngine:
    """
    Cosine-similarity vector store with a durable backing collection.

    The durable collection is the source of truth. `connect` rebuilds the
    in-memory map from it, and every mutation is written through to it before
    the map changes. Search is a linear scan over the map.

    Mutations on one instance are serialized by a lock; separate instances
    (or processes) writing the same store are not coordinated.
    """

    def __init__(self, dimension: int, store: PersistentStore) -> None:
        if isinstance(dimension, bool) or not isinstance(dimension, int) or dimension <= 0:
            raise InvalidDimension(f"Dimension must be a positive integer, got {dimension!r}")

        self.dimension = dimension
        self._store = store
        self._name: Optional[str] = None
        self._collection: Optional[VectorCollection] = None
        self._vectors: dict[str, VectorRecord] = {}
        self._write_lock = asyncio.Lock()

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def is_connected(self) -> bool:
        return self._collection is not None

    def count(self) -> int:
        return len(self._vectors)

    # -------------------------
    # Lifecycle
    # -------------------------

    async def connect(self, name: str) -> ConnectResult:
        """
        Open (or create) the named store and load every record into memory.

        Raises DimensionMismatch if any persisted vector has a different
        length than this engine's dimension. On any failure the engine stays
        unconnected and nothing is loaded.
        """
        opened = await self._persist(f"open {name!r}", self._store.open, name)
        rows = await self._persist(f"load {name!r}", opened.collection.get_all)

        vectors: dict[str, VectorRecord] = {}
        for row in rows:
            if len(row.values) != self.dimension:
                logger.warning(
                    "Refusing to connect to %r: stored dimension %d, engine dimension %d",
                    name,
                    len(row.values),
                    self.dimension,
                )
                raise DimensionMismatch(
                    f"Store vector dimension mismatch. {name!r} holds dimension {len(row.values)}, "
                    f"engine is configured for {self.dimension}.",
                    expected=self.dimension,
                    actual=len(row.values),
                )
            vectors[row.id] = VectorRecord.from_stored(row)

        self._name = name
        self._collection = opened.collection
        self._vectors = vectors

        logger.info("Connected to %r (new=%s, vectors=%d)", name, opened.created, len(vectors))
        return ConnectResult(name=name, is_new=opened.created, count=len(vectors))

    # -------------------------
    # Mutations (write-through)
    # -------------------------

    async def insert(self, values: Sequence[float], metadata: Optional[Mapping[str, Any]] = None) -> str:
        collection = self._require_collection()
        self._check_dimension(values, "Vector")

        record = VectorRecord.build(str(uuid.uuid4()), values, metadata)
        async with self._write_lock:
            await self._persist("insert", collection.insert_one, record.to_stored())
            self._vectors[record.id] = record

        logger.debug("Inserted %s", record.id)
        return record.id

    async def insert_many(self, items: Iterable[InsertItem]) -> list[str]:
        """
        Insert a batch in one durable call. Every item is validated before
        anything is written; returns the new ids in input order.
        """
        collection = self._require_collection()

        records: list[VectorRecord] = []
        for item in items:
            args = _as_insert_args(item)
            self._check_dimension(args.values, "Vector")
            records.append(VectorRecord.build(str(uuid.uuid4()), args.values, args.metadata))

        if not records:
            return []

        async with self._write_lock:
            await self._persist("insert_many", collection.insert_many, [r.to_stored() for r in records])
            for record in records:
                self._vectors[record.id] = record

        logger.debug("Inserted %d vectors", len(records))
        return [r.id for r in records]

    async def delete(self, id: str) -> None:
        collection = self._require_collection()

        async with self._write_lock:
            await self._persist("delete", collection.delete_one, id)
            self._vectors.pop(id, None)

        logger.debug("Deleted %s", id)

    async def delete_many(self, ids: Iterable[str]) -> None:
        collection = self._require_collection()

        ids = list(ids)
        if not ids:
            return

        async with self._write_lock:
            await self._persist("delete_many", collection.delete_many, ids)
            for vector_id in ids:
                self._vectors.pop(vector_id, None)

        logger.debug("Deleted %d vectors", len(ids))

    # -------------------------
    # Reads (in-memory only)
    # -------------------------

    def search(self, query: Sequence[float], top_k: int) -> list[SearchResult]:
        """
        Rank every stored vector by cosine similarity to `query` and return
        the best `min(top_k, count)`.

        A zero-magnitude query or stored vector yields a NaN score; NaN
        scores rank after all finite ones. Equal scores keep scan order.
        """
        self._require_collection()
        self._check_dimension(query, "Query vector")
        if isinstance(top_k, bool) or not isinstance(top_k, int) or top_k < 0:
            raise ValueError(f"top_k must be a non-negative integer, got {top_k!r}")

        q = tuple(float(v) for v in query)
        q_magnitude = magnitude(q)

        # O(N) scan, no pruning
        scored = [(record, _cosine(q, q_magnitude, record)) for record in self._vectors.values()]
        scored.sort(key=_rank_key)

        return [SearchResult(vector=record.to_vector(), score=score) for record, score in scored[:top_k]]

    def get_all(self) -> list[Vector]:
        self._require_collection()
        return [record.to_vector() for record in self._vectors.values()]

    # -------------------------
    # Helpers
    # -------------------------

    def _require_collection(self) -> VectorCollection:
        if self._collection is None:
            raise NotConnected("Store not connected; call connect() first")
        return self._collection

    def _check_dimension(self, values: Sequence[float], label: str) -> None:
        if len(values) != self.dimension:
            raise DimensionMismatch(
                f"{label} dimension mismatch. Expected {self.dimension}, got {len(values)}",
                expected=self.dimension,
                actual=len(values),
            )

    async def _persist(self, action: str, op: Callable[..., Awaitable[T]], *args: Any) -> T:
        try:
            return await op(*args)
        except PersistenceFailure as e:
            logger.warning("Persistent store %s failed: %s", action, e)
            raise
        except Exception as e:
            logger.warning("Persistent store %s failed: %s", action, e)
            raise PersistenceFailure(f"{action} failed: {e}", cause=e) from e
