"""Collapse duplicate media attachments on a generation.

The media pipeline backfills derived formats by appending a second entry for
the same image (``foo.jpg`` and later ``foo_optimized.avif`` with a
thumbnail), so a record can list one logical image several times. For each
logical image the most enriched entry survives.
"""

from __future__ import annotations

import json
import re
from typing import Any

_DERIVED_SUFFIX = re.compile(r"[._](optimized|avif|jpeg|jpg|png|webp|thumb)$", re.IGNORECASE)

# Weight of each populated derived-asset field
_ENRICHMENT_WEIGHTS: tuple[tuple[str, int], ...] = (
    ("avifUrl", 3),
    ("thumbnailUrl", 2),
    ("thumbUrl", 1),
    ("blurDataUrl", 1),
)


def base_url(url: str) -> str:
    """Strip the query string and every derived-format suffix from ``url``."""
    base = url.split("?", 1)[0]
    while True:
        stripped = _DERIVED_SUFFIX.sub("", base)
        if stripped == base:
            return base
        base = stripped


def image_key(image: dict[str, Any]) -> str:
    """Identity of a logical image, or ``""`` when none can be derived."""
    if image.get("id"):
        return f"id:{image['id']}"
    url = image.get("url") or image.get("avifUrl") or image.get("thumbnailUrl") or image.get("thumbUrl") or ""
    if not url:
        return ""
    return f"url:{base_url(str(url))}"


def enrichment_score(image: dict[str, Any]) -> int:
    score = sum(weight for name, weight in _ENRICHMENT_WEIGHTS if image.get(name))
    if image.get("optimized") is True:
        score += 1
    return score


def _rank(image: dict[str, Any]) -> tuple[int, bool, bool, str]:
    # Canonical JSON last so equal-looking entries still resolve the same way
    # regardless of input order
    return (
        enrichment_score(image),
        bool(image.get("avifUrl")),
        bool(image.get("thumbnailUrl") or image.get("thumbUrl")),
        json.dumps(image, sort_keys=True, default=str),
    )


def dedupe_images(images: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """One entry per logical image; order follows each key's first occurrence."""
    best: dict[str, dict[str, Any]] = {}
    for image in images:
        if not isinstance(image, dict):
            continue
        key = image_key(image)
        if not key:
            continue
        current = best.get(key)
        if current is None or _rank(image) > _rank(current):
            best[key] = image
    return list(best.values())


def video_key(video: dict[str, Any]) -> str:
    return str(video.get("id") or video.get("url") or video.get("thumbUrl") or video.get("thumbnailUrl") or "")


def dedupe_videos(videos: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """First occurrence wins; entries with no identity are dropped."""
    seen: dict[str, dict[str, Any]] = {}
    for video in videos:
        if not isinstance(video, dict):
            continue
        key = video_key(video)
        if key and key not in seen:
            seen[key] = video
    return list(seen.values())


def dedupe_media(record):
    """Deduplicate a ``GenerationRecord``'s images and videos in place."""
    record.images = dedupe_images(record.images)
    record.videos = dedupe_videos(record.videos)
    return record
