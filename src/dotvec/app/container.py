from __future__ import annotations

from dataclasses import dataclass

from dotvec.adapters.embedding.dummy_embedder import DummyEmbedder
from dotvec.adapters.persistence.jsonl_store import JsonlStore
from dotvec.adapters.persistence.memory_store import InMemoryStore
from dotvec.adapters.persistence.sqlite_store import SqliteStore
from dotvec.engine import VectorEngine
from dotvec.ports import Embedder, PersistentStore
from dotvec.settings import Settings


@dataclass(frozen=True, slots=True)
class Container:
    """
    Lightweight dependency container.
    Holds the configured engine plus the adapters it was built from.
    """
    settings: Settings
    store: PersistentStore
    engine: VectorEngine
    embedder: Embedder


def build_store(settings: Settings) -> PersistentStore:
    backend = settings.store.backend
    if backend == "sqlite":
        return SqliteStore(data_dir=settings.store.data_dir)
    if backend == "jsonl":
        return JsonlStore(data_dir=settings.store.data_dir)
    if backend == "memory":
        return InMemoryStore()
    raise ValueError(f"Unknown store backend: {backend!r}")


def build_embedder(settings: Settings) -> Embedder:
    provider = settings.embeddings.provider
    if provider == "dummy":
        return DummyEmbedder(dim=settings.embeddings.dimension)
    if provider == "openai":
        # Imported lazily so the openai client is only loaded when selected
        from dotvec.adapters.embedding.openai_embedder import OpenAIEmbedder

        return OpenAIEmbedder(
            api_key=settings.openai_api_key,
            model=settings.embeddings.model,
            dimensions=settings.embeddings.dimension,
        )
    raise ValueError(f"Unknown embeddings provider: {provider!r}")


def build_container(settings: Settings) -> Container:
    store = build_store(settings)
    return Container(
        settings=settings,
        store=store,
        engine=VectorEngine(settings.embeddings.dimension, store),
        embedder=build_embedder(settings),
    )
