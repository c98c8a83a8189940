"""Document-store interface used by every service in the backend.

The shape follows Firestore: named collections (slash paths address
subcollections, e.g. ``generationHistory/<uid>/items``), equality and range
filters on dotted field paths, ordered queries with ``start_after`` keyset
cursors, and write sentinels for server timestamps, field deletion and
numeric increments.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


class _Sentinel:
    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return self._name


DELETE_FIELD = _Sentinel("DELETE_FIELD")
SERVER_TIMESTAMP = _Sentinel("SERVER_TIMESTAMP")


@dataclass(frozen=True)
class Increment:
    """Write sentinel adding ``amount`` to a numeric field (missing = 0)."""

    amount: float


class DocumentNotFound(LookupError):
    """Raised by ``update`` when the target document does not exist."""

    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(f"{collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


@dataclass
class Document:
    """A document snapshot: its id, its data, and the backend's raw handle."""

    id: str
    data: dict[str, Any]
    raw: Any = None


@dataclass(frozen=True)
class FieldFilter:
    field: str
    op: str  # "==" | "in" | ">=" | "<=" | ">" | "<"
    value: Any


@dataclass(frozen=True)
class OrderBy:
    field: str
    descending: bool = False


@dataclass
class Query:
    """An ordered range query against one collection."""

    collection: str
    filters: list[FieldFilter] = field(default_factory=list)
    order_by: list[OrderBy] = field(default_factory=list)
    limit: Optional[int] = None
    start_after: Optional[Document] = None
    select: Optional[list[str]] = None

    def where(self, field_path: str, op: str, value: Any) -> "Query":
        self.filters.append(FieldFilter(field_path, op, value))
        return self

    def order(self, field_path: str, descending: bool = False) -> "Query":
        self.order_by.append(OrderBy(field_path, descending))
        return self


class DocumentStore(ABC):
    """Async document store.

    Implementations: ``MemoryStore`` (tests, local development) and
    ``FirestoreStore`` (production).
    """

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        """Return the document or ``None`` when it does not exist."""

    @abstractmethod
    async def get_many(self, collection: str, doc_ids: list[str]) -> list[Document]:
        """Return the existing documents among ``doc_ids``."""

    @abstractmethod
    async def query(self, query: Query) -> list[Document]:
        """Run an ordered query and return the matching documents."""

    @abstractmethod
    async def add(self, collection: str, data: dict[str, Any]) -> str:
        """Create a document with a store-assigned id and return the id."""

    @abstractmethod
    async def set(self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False) -> None:
        """Create or overwrite (or merge into) a document."""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Update fields of an existing document; raises ``DocumentNotFound``."""

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document; deleting a missing document is not an error."""

    async def close(self) -> None:
        return None
