from __future__ import annotations

from dataclasses import dataclass
from hashlib import sha256
from typing import Mapping, Optional, Sequence

Vector = list[float]


@dataclass(frozen=True, slots=True)
class DummyEmbedder:
    """
    Deterministic fake embeddings for wiring tests and offline demos.
    Not semantically meaningful, but stable across runs: equal texts map to
    equal vectors, so exact-match queries still score 1.0.
    """
    dim: int = 384
    model: str = "dummy-embedder-v2"

    @property
    def model_name(self) -> str:
        return self.model

    def _embed_one(self, text: str) -> Vector:
        vector: Vector = []
        block = 0
        while len(vector) < self.dim:
            digest = sha256(f"{block}|{text}".encode("utf-8")).digest()
            vector.extend((b / 127.5) - 1.0 for b in digest)  # byte -> [-1, 1]
            block += 1
        return vector[: self.dim]

    def embed_texts(
        self,
        texts: Sequence[str],
        *,
        metadata: Optional[Mapping[str, object]] = None,
    ) -> list[Vector]:
        return [self._embed_one(text) for text in texts]
