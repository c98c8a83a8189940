"""Shared FastAPI dependencies and response helpers."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Optional, TypeVar

from fastapi import HTTPException, Request, status

from curator.blocklist import AlreadyBlocked
from curator.broadcast import AnnouncementNotFound
from curator.moderation import UserNotFound
from curator.services import Services

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_services(request: Request) -> Services:
    """The services built by the application factory."""
    return request.app.state.services


def ok(data: Optional[dict[str, Any]] = None, message: Optional[str] = None) -> dict[str, Any]:
    """The ``{"success": true, ...}`` envelope every route returns."""
    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def bad_request(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def not_found(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def server_error(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


async def call_service(awaitable: Awaitable[T], failure: str) -> T:
    """Await a service call, mapping domain errors onto HTTP errors.

    Unexpected errors are logged with their traceback and reported as a
    500 carrying only ``failure``.
    """
    try:
        return await awaitable
    except UserNotFound:
        raise not_found("User not found") from None
    except AnnouncementNotFound:
        raise not_found("Announcement not found") from None
    except AlreadyBlocked as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from None
    except ValueError as exc:
        raise bad_request(exc) from None
    except Exception:
        logger.exception(failure)
        raise server_error(failure) from None
