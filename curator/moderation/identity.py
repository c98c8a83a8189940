"""Account-level actions against the identity provider (Firebase Auth)."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from firebase_admin import auth

from curator.moderation.models import UserNotFound

logger = logging.getLogger(__name__)


class IdentityProvider(ABC):
    @abstractmethod
    async def revoke_sessions(self, uid: str) -> None:
        """Invalidate every refresh token of ``uid``."""

    @abstractmethod
    async def set_disabled(self, uid: str, disabled: bool) -> None:
        ...

    @abstractmethod
    async def mark_email_verified(self, uid: str) -> None:
        ...


class FirebaseIdentityProvider(IdentityProvider):
    """firebase-admin ``auth`` calls, run off the event loop."""

    def __init__(self, app: Optional[Any] = None) -> None:
        self._app = app

    async def _call(self, func, uid: str, **kwargs: Any) -> None:
        try:
            await asyncio.to_thread(func, uid, app=self._app, **kwargs)
        except auth.UserNotFoundError:
            raise UserNotFound(uid) from None

    async def revoke_sessions(self, uid: str) -> None:
        await self._call(auth.revoke_refresh_tokens, uid)
        logger.info("Revoked refresh tokens for %s", uid)

    async def set_disabled(self, uid: str, disabled: bool) -> None:
        await self._call(auth.update_user, uid, disabled=disabled)

    async def mark_email_verified(self, uid: str) -> None:
        await self._call(auth.update_user, uid, email_verified=True)


class MemoryIdentityProvider(IdentityProvider):
    """Records account actions in memory; used with the memory store."""

    def __init__(self, known_uids: Optional[set[str]] = None) -> None:
        # None means every uid is accepted
        self.known_uids = known_uids
        self.revoked: list[str] = []
        self.disabled: dict[str, bool] = {}
        self.verified: set[str] = set()

    def _check(self, uid: str) -> None:
        if self.known_uids is not None and uid not in self.known_uids:
            raise UserNotFound(uid)

    async def revoke_sessions(self, uid: str) -> None:
        self._check(uid)
        self.revoked.append(uid)

    async def set_disabled(self, uid: str, disabled: bool) -> None:
        self._check(uid)
        self.disabled[uid] = disabled

    async def mark_email_verified(self, uid: str) -> None:
        self._check(uid)
        self.verified.add(uid)
