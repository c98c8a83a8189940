"""In-process document store with Firestore query semantics.

Used by the test suite and for local development (``CURATOR_STORE=memory``).
Ordering follows Firestore: documents missing an ``order_by`` field are
excluded, values of different types order by type rank, and ties break on
the document id in the direction of the last order clause.
"""

from __future__ import annotations

import copy
import functools
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from curator.store.base import (
    DELETE_FIELD,
    SERVER_TIMESTAMP,
    Document,
    DocumentNotFound,
    DocumentStore,
    FieldFilter,
    Increment,
    Query,
)

_MISSING = object()


def get_path(data: dict[str, Any], path: str) -> Any:
    """Resolve a dotted field path, returning ``_MISSING`` when absent."""
    node: Any = data
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            return _MISSING
        node = node[part]
    return node


def _type_rank(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        return 1
    if isinstance(value, (int, float)):
        return 2
    if isinstance(value, datetime):
        return 3
    if isinstance(value, str):
        return 4
    if isinstance(value, bytes):
        return 5
    if isinstance(value, list):
        return 8
    return 9


def _comparable(value: Any) -> Any:
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    if isinstance(value, (list, dict)):
        return repr(value)
    return value


def _compare_values(a: Any, b: Any) -> int:
    ra, rb = _type_rank(a), _type_rank(b)
    if ra != rb:
        return -1 if ra < rb else 1
    if ra == 0:
        return 0
    ca, cb = _comparable(a), _comparable(b)
    if ca < cb:
        return -1
    if ca > cb:
        return 1
    return 0


def _values_equal(a: Any, b: Any) -> bool:
    return _type_rank(a) == _type_rank(b) and _compare_values(a, b) == 0


def _matches(data: dict[str, Any], flt: FieldFilter) -> bool:
    value = get_path(data, flt.field)
    if value is _MISSING:
        return False
    if flt.op == "==":
        return _values_equal(value, flt.value)
    if flt.op == "in":
        return any(_values_equal(value, v) for v in flt.value)
    if _type_rank(value) != _type_rank(flt.value):
        return False
    cmp = _compare_values(value, flt.value)
    if flt.op == ">=":
        return cmp >= 0
    if flt.op == "<=":
        return cmp <= 0
    if flt.op == ">":
        return cmp > 0
    if flt.op == "<":
        return cmp < 0
    raise ValueError(f"Unsupported filter operator: {flt.op}")


class MemoryStore(DocumentStore):
    """Dict-backed store. All reads and writes deep-copy document data."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _coll(self, collection: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(collection.strip("/"), {})

    @staticmethod
    def _new_id() -> str:
        return uuid.uuid4().hex[:20]

    @staticmethod
    def _resolve(value: Any, current: Any) -> Any:
        if value is SERVER_TIMESTAMP:
            return datetime.now(timezone.utc)
        if isinstance(value, Increment):
            base = current if isinstance(current, (int, float)) and not isinstance(current, bool) else 0
            return base + value.amount
        return copy.deepcopy(value)

    def _apply(self, target: dict[str, Any], updates: dict[str, Any], dotted: bool) -> None:
        for key, value in updates.items():
            parts = key.split(".") if dotted else [key]
            node = target
            for part in parts[:-1]:
                child = node.get(part)
                if not isinstance(child, dict):
                    child = {}
                    node[part] = child
                node = child
            leaf = parts[-1]
            if value is DELETE_FIELD:
                node.pop(leaf, None)
            else:
                node[leaf] = self._resolve(value, node.get(leaf))

    @staticmethod
    def _ordering(query: Query):
        def cmp(a: Document, b: Document) -> int:
            for ob in query.order_by:
                c = _compare_values(get_path(a.data, ob.field), get_path(b.data, ob.field))
                if c:
                    return -c if ob.descending else c
            last_desc = query.order_by[-1].descending if query.order_by else False
            c = (a.id > b.id) - (a.id < b.id)
            return -c if last_desc else c

        return cmp

    # ------------------------------------------------------------------
    # DocumentStore API
    # ------------------------------------------------------------------

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        data = self._coll(collection).get(doc_id)
        if data is None:
            return None
        return Document(id=doc_id, data=copy.deepcopy(data))

    async def get_many(self, collection: str, doc_ids: list[str]) -> list[Document]:
        docs = []
        for doc_id in doc_ids:
            doc = await self.get(collection, doc_id)
            if doc is not None:
                docs.append(doc)
        return docs

    async def query(self, query: Query) -> list[Document]:
        docs = [
            Document(id=doc_id, data=data)
            for doc_id, data in self._coll(query.collection).items()
            if all(_matches(data, f) for f in query.filters)
        ]
        # Firestore drops documents lacking any ordered field
        docs = [
            d for d in docs
            if all(get_path(d.data, ob.field) is not _MISSING for ob in query.order_by)
        ]
        cmp = self._ordering(query)
        docs.sort(key=functools.cmp_to_key(cmp))

        if query.start_after is not None:
            anchor = query.start_after
            docs = [d for d in docs if cmp(d, anchor) > 0]

        if query.limit is not None:
            docs = docs[: max(0, query.limit)]

        out = []
        for d in docs:
            data = copy.deepcopy(d.data)
            if query.select is not None:
                data = {k: data[k] for k in query.select if k in data}
            out.append(Document(id=d.id, data=data))
        return out

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = self._new_id()
        await self.set(collection, doc_id, data)
        return doc_id

    async def set(self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False) -> None:
        coll = self._coll(collection)
        target = coll.get(doc_id, {}) if merge else {}
        self._apply(target, data, dotted=False)
        coll[doc_id] = target

    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        coll = self._coll(collection)
        if doc_id not in coll:
            raise DocumentNotFound(collection, doc_id)
        self._apply(coll[doc_id], data, dotted=True)

    async def delete(self, collection: str, doc_id: str) -> None:
        self._coll(collection).pop(doc_id, None)
