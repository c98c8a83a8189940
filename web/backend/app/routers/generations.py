"""Generations router -- scoring queue, filter options, single-record reads and score writes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import APIRouter, Depends, Query

from curator.auth import AdminIdentity
from curator.generations.filters import GenerationFilters
from curator.generations.service import clamp_limit
from curator.services import Services
from web.backend.app.dependencies import bad_request, get_services, not_found, ok, server_error
from web.backend.app.middleware.auth import require_admin
from web.backend.app.models.api import BulkScoreRequest, ScoreRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/generations", tags=["generations"])


# ---------------------------------------------------------------------------
# Listing parameters (shared with the ArtStation router)
# ---------------------------------------------------------------------------


@dataclass
class ListingParams:
    filters: GenerationFilters
    limit: int
    cursor: Optional[str]
    owner: Optional[str]


def _split(values: Optional[list[str]]) -> list[str]:
    out: list[str] = []
    for value in values or []:
        out.extend(part.strip() for part in value.split(",") if part.strip())
    return out


def listing_params(
    limit: Optional[int] = Query(None),
    cursor: Optional[str] = Query(None),
    generation_type: Optional[list[str]] = Query(None, alias="generationType"),
    mode: Optional[str] = Query(None),
    model: Optional[str] = Query(None),
    created_by: Optional[str] = Query(None, alias="createdBy"),
    owner: Optional[str] = Query(None),
    date_start: Optional[str] = Query(None, alias="dateStart"),
    date_end: Optional[str] = Query(None, alias="dateEnd"),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    min_score: Optional[float] = Query(None, alias="minScore"),
    max_score: Optional[float] = Query(None, alias="maxScore"),
    unscored_only: bool = Query(False, alias="unscoredOnly"),
) -> ListingParams:
    try:
        filters = GenerationFilters.from_params(
            generation_types=_split(generation_type),
            mode=mode,
            model=model,
            owner_uid=created_by,
            status=status,
            date_start=date_start,
            date_end=date_end,
            min_score=min_score,
            max_score=max_score,
            unscored_only=unscored_only,
            search=search,
        )
    except ValueError as exc:
        raise bad_request(exc) from None
    return ListingParams(filters=filters, limit=clamp_limit(limit), cursor=cursor or None, owner=owner)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("")
async def list_generations(
    params: ListingParams = Depends(listing_params),
    services: Services = Depends(get_services),
    _: AdminIdentity = Depends(require_admin),
):
    """Public generations with media, newest first, for the scoring queue."""
    try:
        page = await services.generations.list_for_scoring(
            params.filters, params.limit, params.cursor, owner=params.owner
        )
    except Exception:
        logger.exception("Error fetching generations")
        raise server_error("Failed to fetch generations") from None
    return ok(page.to_dict())


@router.get("/filter-options")
async def filter_options(services: Services = Depends(get_services), _: AdminIdentity = Depends(require_admin)):
    try:
        options = await services.generations.filter_options()
    except Exception:
        logger.exception("Error fetching filter options")
        raise server_error("Failed to fetch filter options") from None
    return ok(options.to_dict())


@router.get("/{generation_id}")
async def get_generation(
    generation_id: str,
    services: Services = Depends(get_services),
    _: AdminIdentity = Depends(require_admin),
):
    try:
        record = await services.generations.get(generation_id)
    except Exception:
        logger.exception("Error fetching generation %s", generation_id)
        raise server_error("Failed to fetch generation") from None
    if record is None:
        raise not_found("Generation not found")
    return ok({"generation": record.to_dict()})


@router.put("/{generation_id}/score")
async def update_score(
    generation_id: str,
    body: ScoreRequest,
    services: Services = Depends(get_services),
    admin: AdminIdentity = Depends(require_admin),
):
    try:
        change = await services.scores.set_score(generation_id, body.score, admin.email)
    except ValueError as exc:
        raise bad_request(exc) from None
    except Exception:
        logger.exception("Error updating aesthetic score for %s", generation_id)
        raise server_error("Failed to update aesthetic score") from None
    if change is None:
        raise not_found("Generation not found")
    return ok(
        {
            "generationId": generation_id,
            "aestheticScore": change.new_score,
            "previousScore": change.old_score,
        },
        message="Aesthetic score updated successfully",
    )


@router.post("/bulk-score")
async def bulk_score(
    body: BulkScoreRequest,
    services: Services = Depends(get_services),
    admin: AdminIdentity = Depends(require_admin),
):
    """Score every listed generation. Repeated ids are scored once and reported once."""
    try:
        ids = body.id_list()
        score = services.scores.band.validate(body.score)
    except ValueError as exc:
        raise bad_request(exc) from None
    try:
        result = await services.scores.bulk_set_score(ids, score, admin.email)
    except Exception:
        logger.exception("Error in bulk update aesthetic score")
        raise server_error("Failed to bulk update aesthetic scores") from None
    return ok({**result.to_dict(), "score": score})
