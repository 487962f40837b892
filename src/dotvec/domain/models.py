from __future__ import annotations

import copy
from dataclasses import dataclass
from math import sqrt
from typing import Any, Mapping, Optional, Sequence


def dot(a: Sequence[float], b: Sequence[float]) -> float:
    if len(a) != len(b):
        raise ValueError("vectors must have the same length")
    return sum(x * y for x, y in zip(a, b))


def magnitude(a: Sequence[float]) -> float:
    return sqrt(dot(a, a))


_JSON_SCALARS = (str, int, float, bool, type(None))


def check_metadata(metadata: Optional[Mapping[str, Any]]) -> None:
    """
    Metadata must survive a JSON round trip unchanged: string keys, and values
    that are None, str, int, float, bool, lists or dicts of the same.
    Raises TypeError naming the first offending path.
    """
    if metadata is None:
        return
    if not isinstance(metadata, Mapping):
        raise TypeError(f"metadata must be a mapping, got {type(metadata).__name__}")
    _check_json_value(dict(metadata), "metadata")


def _check_json_value(value: Any, path: str) -> None:
    if isinstance(value, _JSON_SCALARS):
        return
    if isinstance(value, list):
        for i, v in enumerate(value):
            _check_json_value(v, f"{path}[{i}]")
        return
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError(f"{path} has a non-string key {k!r}")
            _check_json_value(v, f"{path}[{k!r}]")
        return
    raise TypeError(f"{path} is not JSON data: {type(value).__name__}")


def _copy_metadata(metadata: Optional[Mapping[str, Any]]) -> Optional[dict[str, Any]]:
    if metadata is None:
        return None
    return copy.deepcopy(dict(metadata))


# -------------------------
# Public objects
# -------------------------

@dataclass(frozen=True, slots=True)
class InsertArgs:
    """
    One vector to insert. The engine assigns the id.
    """
    values: Sequence[float]
    metadata: Optional[Mapping[str, Any]] = None


@dataclass(slots=True)
class Vector:
    """
    A stored vector as handed to callers. Always a fresh copy; mutating it
    never reaches the engine's own record.
    """
    id: str
    values: list[float]
    metadata: Optional[dict[str, Any]] = None


@dataclass(frozen=True, slots=True)
class SearchResult:
    """
    score: cosine similarity in [-1, 1], or NaN when either vector has zero magnitude.
    """
    vector: Vector
    score: float


@dataclass(frozen=True, slots=True)
class ConnectResult:
    name: str
    is_new: bool
    count: int = 0


# -------------------------
# Persistence / engine internals
# -------------------------

@dataclass(frozen=True, slots=True)
class StoredVector:
    """
    The durable row: id, values, metadata. Magnitude is derived and never persisted.
    """
    id: str
    values: tuple[float, ...]
    metadata: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True, slots=True)
class VectorRecord:
    """
    Engine-private record. `magnitude` is the Euclidean norm of `values`,
    computed once when the record is built.
    """
    id: str
    values: tuple[float, ...]
    magnitude: float
    metadata: Optional[Mapping[str, Any]] = None

    @classmethod
    def build(
        cls,
        id: str,
        values: Sequence[float],
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> VectorRecord:
        check_metadata(metadata)
        vals = tuple(float(v) for v in values)
        return cls(id=id, values=vals, magnitude=magnitude(vals), metadata=_copy_metadata(metadata))

    @classmethod
    def from_stored(cls, row: StoredVector) -> VectorRecord:
        return cls.build(row.id, row.values, row.metadata)

    def to_stored(self) -> StoredVector:
        return StoredVector(id=self.id, values=self.values, metadata=_copy_metadata(self.metadata))

    def to_vector(self) -> Vector:
        return Vector(id=self.id, values=list(self.values), metadata=_copy_metadata(self.metadata))
