from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from dotvec.domain.models import StoredVector


class PersistedRow(BaseModel):
    """
    Shape of one durable row. Rows read back from disk are validated against it.
    """
    model_config = ConfigDict(extra="ignore")

    id: str
    values: list[float]
    metadata: Optional[dict[str, Any]] = None


def row_to_dict(record: StoredVector) -> dict[str, Any]:
    return {
        "id": record.id,
        "values": list(record.values),
        "metadata": dict(record.metadata) if record.metadata is not None else None,
    }


def row_from_dict(d: Mapping[str, Any]) -> StoredVector:
    try:
        row = PersistedRow.model_validate(d)
    except ValidationError as e:
        raise ValueError(f"Invalid vector row: {e}") from e
    return StoredVector(id=row.id, values=tuple(row.values), metadata=row.metadata)


def dumps_metadata(metadata: Optional[Mapping[str, Any]]) -> Optional[str]:
    if metadata is None:
        return None
    return json.dumps(dict(metadata), ensure_ascii=False)


def loads_metadata(raw: Optional[str]) -> Optional[dict[str, Any]]:
    if raw is None:
        return None
    return json.loads(raw)
