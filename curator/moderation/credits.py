"""Manual credit adjustments and the credit-history ledger."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Optional

from curator.audit import AuditLogger
from curator.generations.normalizer import jsonable
from curator.moderation.models import CreditAdjustment, UserNotFound
from curator.moderation.moderator import USERS_COLLECTION
from curator.store import DocumentStore, Query

CREDIT_HISTORY_COLLECTION = "creditHistory"
HISTORY_LIMIT = 100

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_amount(value: Any) -> int:
    """Integer part of ``value``; ``"12.7"`` and ``12.7`` both give 12."""
    if value is None or value == "":
        raise ValueError("amount is required")
    if isinstance(value, bool):
        raise ValueError("amount must be a number")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            raise ValueError("amount must be a number")
        return int(value)
    match = _LEADING_INT.match(str(value))
    if not match:
        raise ValueError("amount must be a number")
    return int(match.group(1))


class CreditLedger:
    def __init__(self, store: DocumentStore, audit: AuditLogger) -> None:
        self._store = store
        self._audit = audit

    async def adjust(self, uid: str, amount: Any, reason: Optional[str], admin_email: str) -> CreditAdjustment:
        """Add (or, when negative, deduct) credits. Balances never go below zero."""
        change = parse_amount(amount)
        if not reason or not reason.strip():
            raise ValueError("Reason is required")

        doc = await self._store.get(USERS_COLLECTION, uid)
        if doc is None:
            raise UserNotFound(uid)
        current = doc.data.get("creditBalance")
        if isinstance(current, bool) or not isinstance(current, (int, float)):
            current = 0
        current = int(current)
        new_balance = max(0, current + change)

        await self._store.update(USERS_COLLECTION, uid, {"creditBalance": new_balance})
        await self._store.add(
            CREDIT_HISTORY_COLLECTION,
            {
                "uid": uid,
                "amount": change,
                "reason": reason,
                "previousBalance": current,
                "newBalance": new_balance,
                "adjustedAt": datetime.now(timezone.utc).isoformat(),
                "adjustedBy": admin_email or "admin",
            },
        )
        await self._audit.log_action(
            admin_email,
            "ADD_CREDITS" if change >= 0 else "DEDUCT_CREDITS",
            target_uid=uid,
            details={"amount": change, "reason": reason, "previousBalance": current, "newBalance": new_balance},
        )
        return CreditAdjustment(previous_balance=current, new_balance=new_balance, change=change)

    async def history(self, uid: str, limit: int = HISTORY_LIMIT) -> list[dict[str, Any]]:
        docs = await self._store.query(
            Query(CREDIT_HISTORY_COLLECTION, limit=limit)
            .where("uid", "==", uid)
            .order("adjustedAt", descending=True)
        )
        return [{"id": d.id, **jsonable(d.data)} for d in docs]
