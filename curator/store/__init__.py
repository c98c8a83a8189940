"""Document store layer: Firestore in production, in-memory for tests."""

from curator.store.base import (
    DELETE_FIELD,
    SERVER_TIMESTAMP,
    Document,
    DocumentNotFound,
    DocumentStore,
    FieldFilter,
    Increment,
    OrderBy,
    Query,
)
from curator.store.memory import MemoryStore

__all__ = [
    "DELETE_FIELD",
    "SERVER_TIMESTAMP",
    "Document",
    "DocumentNotFound",
    "DocumentStore",
    "FieldFilter",
    "Increment",
    "MemoryStore",
    "OrderBy",
    "Query",
]


def create_store(settings) -> DocumentStore:
    """Build the store selected by ``settings.store_backend``."""
    if settings.store_backend == "memory":
        return MemoryStore()
    from curator.store.firestore import FirestoreStore

    return FirestoreStore.from_settings(settings)
