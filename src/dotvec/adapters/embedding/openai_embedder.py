from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

# Requires: pip install openai, and set OPENAI_API_KEY in env
from openai import OpenAI, OpenAIError

from dotvec.domain.errors import EmbeddingError

Vector = list[float]


@dataclass(frozen=True, slots=True)
class OpenAIEmbedder:
    """
    OpenAI embeddings adapter.

    `dimensions` is passed through for models that support shortening
    (text-embedding-3-*), so the output matches the store's dimension.
    """
    api_key: str
    model: str = "text-embedding-3-small"
    dimensions: Optional[int] = None

    @property
    def model_name(self) -> str:
        return self.model

    def embed_texts(
        self,
        texts: Sequence[str],
        *,
        metadata: Optional[Mapping[str, object]] = None,
    ) -> list[Vector]:
        if not texts:
            return []

        kwargs: dict[str, object] = {"model": self.model, "input": list(texts)}
        if self.dimensions is not None:
            kwargs["dimensions"] = self.dimensions

        try:
            client = OpenAI(api_key=self.api_key)
            resp = client.embeddings.create(**kwargs)
        except OpenAIError as e:
            raise EmbeddingError(f"OpenAI embedding request failed: {e}") from e

        # resp.data is in input order
        return [list(item.embedding) for item in resp.data]
