"""ArtStation router -- the curated feed and removal from it."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from curator.auth import AdminIdentity
from curator.services import Services
from web.backend.app.dependencies import bad_request, get_services, not_found, ok, server_error
from web.backend.app.middleware.auth import require_admin
from web.backend.app.models.api import BulkIdsRequest
from web.backend.app.routers.generations import ListingParams, listing_params

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/artstation", tags=["artstation"])


@router.get("")
async def list_feed(
    params: ListingParams = Depends(listing_params),
    services: Services = Depends(get_services),
    _: AdminIdentity = Depends(require_admin),
):
    """Scored generations at or above the feed threshold, best first."""
    try:
        page = await services.generations.list_feed(params.filters, params.limit, params.cursor, owner=params.owner)
    except Exception:
        logger.exception("Error fetching ArtStation items")
        raise server_error("Failed to fetch ArtStation items") from None
    return ok(page.to_dict())


@router.post("/bulk-remove")
async def bulk_remove(
    body: BulkIdsRequest,
    services: Services = Depends(get_services),
    admin: AdminIdentity = Depends(require_admin),
):
    """Remove every listed generation from the feed. Repeated ids count once."""
    try:
        ids = body.id_list()
    except ValueError as exc:
        raise bad_request(exc) from None
    try:
        result = await services.scores.bulk_remove(ids, admin.email)
    except Exception:
        logger.exception("Error in bulk remove from ArtStation")
        raise server_error("Failed to remove from ArtStation") from None
    return ok(result.to_dict())


@router.delete("/{generation_id}")
async def remove_from_feed(
    generation_id: str,
    services: Services = Depends(get_services),
    admin: AdminIdentity = Depends(require_admin),
):
    try:
        change = await services.scores.remove_score(generation_id, admin.email)
    except Exception:
        logger.exception("Error removing %s from ArtStation", generation_id)
        raise server_error("Failed to remove from ArtStation") from None
    if change is None:
        raise not_found("Generation not found")
    return ok({"generationId": generation_id}, message="Item removed from ArtStation successfully")
