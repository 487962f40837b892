from .embedder import Embedder
from .persistence import OpenedCollection, PersistentStore, VectorCollection, check_store_name

__all__ = [
    "Embedder",
    "OpenedCollection",
    "PersistentStore",
    "VectorCollection",
    "check_store_name",
]
