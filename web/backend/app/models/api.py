"""Pydantic models for API request bodies.

Bodies use the camelCase keys the admin frontend sends; unknown keys are
rejected. Range checks that depend on configuration (score band, roles,
target groups) happen in the services and surface as 400s.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RequestModel(BaseModel):
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(RequestModel):
    email: str = ""
    password: str = ""


# ---------------------------------------------------------------------------
# Generations / ArtStation
# ---------------------------------------------------------------------------


class ScoreRequest(RequestModel):
    # validated against the configured band, not by pydantic
    score: Any = None


class BulkIdsRequest(RequestModel):
    """``ids`` and the legacy ``bulk`` key are both accepted."""

    ids: Optional[list[str]] = None
    bulk: Optional[list[str]] = None

    def id_list(self) -> list[str]:
        """Submitted ids in first-seen order, each once."""
        ids = [i for i in (self.ids or []) + (self.bulk or []) if i]
        if not ids:
            raise ValueError("Bulk array of generation IDs is required")
        return list(dict.fromkeys(ids))


class BulkScoreRequest(BulkIdsRequest):
    score: Any = None


# ---------------------------------------------------------------------------
# User moderation
# ---------------------------------------------------------------------------


class SuspendRequest(RequestModel):
    reason: Optional[str] = None
    suspended_until: Optional[str] = None


class BanRequest(RequestModel):
    reason: Optional[str] = None


class RoleRequest(RequestModel):
    role: Optional[str] = None


class AdjustCreditsRequest(RequestModel):
    amount: Any = None
    reason: Optional[str] = None


class WarningRequest(RequestModel):
    reason: Optional[str] = None


# ---------------------------------------------------------------------------
# Flags, blocklists, broadcast
# ---------------------------------------------------------------------------


class FlagRequest(RequestModel):
    enabled: Any = None


class BlockIPRequest(RequestModel):
    ip: Optional[str] = None
    reason: Optional[str] = None
    target_uid: Optional[str] = None


class BlockDeviceRequest(RequestModel):
    device_id: Optional[str] = None
    reason: Optional[str] = None
    target_uid: Optional[str] = None


class EmailRequest(RequestModel):
    uid: Optional[str] = None
    subject: Optional[str] = None
    body: Optional[str] = None


class AnnouncementRequest(RequestModel):
    title: Optional[str] = None
    body: Optional[str] = None
    target_group: str = "all"
    expires_at: Optional[str] = None
