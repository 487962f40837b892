from __future__ import annotations

import re
from typing import Mapping, Optional

from dotvec.domain.errors import EmbeddingError
from dotvec.domain.models import InsertArgs, SearchResult
from dotvec.engine import VectorEngine
from dotvec.ports import Embedder

_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")


def split_paragraphs(text: str) -> list[str]:
    """Split on blank lines; drop empty paragraphs."""
    return [p.strip() for p in _PARAGRAPH_SPLIT_RE.split(text or "") if p.strip()]


async def index_text(
    text: str,
    *,
    engine: VectorEngine,
    embedder: Embedder,
    metadata: Optional[Mapping[str, object]] = None,
) -> list[str]:
    """
    Embed each paragraph of `text` and insert them in one batch.
    Each vector carries {"text": paragraph} plus any extra metadata.
    """
    paragraphs = split_paragraphs(text)
    if not paragraphs:
        return []

    vectors = embedder.embed_texts(paragraphs, metadata=metadata)
    if len(vectors) != len(paragraphs):
        raise EmbeddingError(f"Embedder returned {len(vectors)} vectors for {len(paragraphs)} paragraphs")

    items = [
        InsertArgs(values=vec, metadata={**(dict(metadata) if metadata else {}), "text": paragraph})
        for paragraph, vec in zip(paragraphs, vectors)
    ]
    return await engine.insert_many(items)


def search_text(
    query: str,
    *,
    engine: VectorEngine,
    embedder: Embedder,
    top_k: int = 5,
    query_prefix: str = "",
) -> list[SearchResult]:
    q_vec = embedder.embed_texts([query_prefix + query])[0]
    return engine.search(q_vec, top_k)
