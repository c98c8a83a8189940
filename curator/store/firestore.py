"""Firestore-backed document store (firebase-admin async client)."""

from __future__ import annotations

import inspect
import json
import logging
import os
from typing import Any, Optional

import firebase_admin
from firebase_admin import credentials, firestore_async
from google.api_core import exceptions as gexc
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter as FsFieldFilter

from curator.config import Settings
from curator.store.base import (
    DELETE_FIELD,
    SERVER_TIMESTAMP,
    Document,
    DocumentNotFound,
    DocumentStore,
    Increment,
    Query,
)

logger = logging.getLogger(__name__)


def init_firebase_app(settings: Settings) -> firebase_admin.App:
    """Initialise (once) and return the default firebase-admin app."""
    if firebase_admin._apps:
        return firebase_admin.get_app()

    options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
    if settings.firebase_service_account_json:
        cred = credentials.Certificate(json.loads(settings.firebase_service_account_json))
        app = firebase_admin.initialize_app(cred, options)
    elif settings.firebase_service_account_path and os.path.isfile(settings.firebase_service_account_path):
        cred = credentials.Certificate(settings.firebase_service_account_path)
        app = firebase_admin.initialize_app(cred, options)
    else:
        app = firebase_admin.initialize_app(options=options)
    logger.info("Firebase Admin initialized (project=%s)", settings.firebase_project_id or "default")
    return app


def _to_firestore(value: Any) -> Any:
    if value is DELETE_FIELD:
        return firestore.DELETE_FIELD
    if value is SERVER_TIMESTAMP:
        return firestore.SERVER_TIMESTAMP
    if isinstance(value, Increment):
        return firestore.Increment(value.amount)
    return value


def _payload(data: dict[str, Any]) -> dict[str, Any]:
    return {k: _to_firestore(v) for k, v in data.items()}


class FirestoreStore(DocumentStore):
    """``DocumentStore`` over ``google.cloud.firestore.AsyncClient``."""

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "FirestoreStore":
        app = init_firebase_app(settings)
        return cls(firestore_async.client(app))

    def _doc_ref(self, collection: str, doc_id: str):
        return self._client.collection(collection).document(doc_id)

    @staticmethod
    def _wrap(snapshot) -> Document:
        return Document(id=snapshot.id, data=snapshot.to_dict() or {}, raw=snapshot)

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        snapshot = await self._doc_ref(collection, doc_id).get()
        if not snapshot.exists:
            return None
        return self._wrap(snapshot)

    async def get_many(self, collection: str, doc_ids: list[str]) -> list[Document]:
        if not doc_ids:
            return []
        refs = [self._doc_ref(collection, doc_id) for doc_id in doc_ids]
        docs = []
        async for snapshot in self._client.get_all(refs):
            if snapshot.exists:
                docs.append(self._wrap(snapshot))
        return docs

    async def query(self, query: Query) -> list[Document]:
        q = self._client.collection(query.collection)
        for flt in query.filters:
            q = q.where(filter=FsFieldFilter(flt.field, flt.op, flt.value))
        for ob in query.order_by:
            direction = firestore.Query.DESCENDING if ob.descending else firestore.Query.ASCENDING
            q = q.order_by(ob.field, direction=direction)
        if query.select is not None:
            q = q.select(query.select)
        if query.start_after is not None:
            anchor = query.start_after
            if anchor.raw is None:
                anchor_snapshot = await self._doc_ref(query.collection, anchor.id).get()
            else:
                anchor_snapshot = anchor.raw
            q = q.start_after(anchor_snapshot)
        if query.limit is not None:
            q = q.limit(query.limit)
        snapshots = await q.get()
        return [self._wrap(s) for s in snapshots]

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        _, ref = await self._client.collection(collection).add(_payload(data))
        return ref.id

    async def set(self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False) -> None:
        await self._doc_ref(collection, doc_id).set(_payload(data), merge=merge)

    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        try:
            await self._doc_ref(collection, doc_id).update(_payload(data))
        except gexc.NotFound as exc:
            raise DocumentNotFound(collection, doc_id) from exc

    async def delete(self, collection: str, doc_id: str) -> None:
        await self._doc_ref(collection, doc_id).delete()

    async def close(self) -> None:
        closer = getattr(self._client, "close", None)
        if closer is None:
            return
        result = closer()
        if inspect.isawaitable(result):
            await result
