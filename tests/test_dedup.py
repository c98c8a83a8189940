"""Tests for media attachment deduplication."""

import itertools
import json

from curator.generations.dedup import base_url, dedupe_images, dedupe_videos, image_key


def canon(items):
    return sorted(json.dumps(i, sort_keys=True) for i in items)


def test_base_url_strips_query_and_derived_suffixes():
    assert base_url("https://cdn/foo_optimized.avif?v=2") == "https://cdn/foo"
    assert base_url("https://cdn/foo.jpg") == "https://cdn/foo"
    assert base_url("https://cdn/foo.thumb.webp") == "https://cdn/foo"
    assert base_url("https://cdn/foo") == "https://cdn/foo"


def test_image_key_prefers_id():
    assert image_key({"id": "img1", "url": "https://cdn/a.jpg"}) == "id:img1"
    assert image_key({"thumbUrl": "https://cdn/a_thumb.jpg"}) == "url:https://cdn/a"
    assert image_key({"blurDataUrl": "data:..."}) == ""


def test_most_enriched_variant_survives():
    plain = {"url": "https://cdn/foo.jpg"}
    enriched = {
        "url": "https://cdn/foo_optimized.avif",
        "avifUrl": "https://cdn/foo.avif",
        "thumbnailUrl": "https://cdn/foo_thumb.jpg",
        "optimized": True,
    }
    other = {"url": "https://cdn/bar.png"}
    assert dedupe_images([plain, other, enriched]) == [enriched, other]


def test_keyless_images_are_dropped():
    assert dedupe_images([{"blurDataUrl": "x"}, {"url": "https://cdn/a.jpg"}]) == [{"url": "https://cdn/a.jpg"}]


def test_dedup_is_order_independent():
    images = [
        {"url": "https://cdn/a.jpg"},
        {"url": "https://cdn/a.png", "blurDataUrl": "b1"},
        {"url": "https://cdn/a_optimized.webp", "thumbUrl": "t1"},
        {"url": "https://cdn/b.jpg", "id": "B"},
        {"url": "https://cdn/c.jpg", "id": "B", "avifUrl": "c.avif"},
        {"url": "https://cdn/d.jpg"},
    ]
    expected = canon(dedupe_images(images))
    for perm in itertools.permutations(images):
        assert canon(dedupe_images(list(perm))) == expected


def test_videos_first_seen_wins():
    first = {"url": "https://cdn/v.mp4", "duration": 5}
    again = {"url": "https://cdn/v.mp4", "duration": 6}
    by_thumb = {"thumbUrl": "https://cdn/v2.jpg"}
    assert dedupe_videos([first, again, by_thumb, {}]) == [first, by_thumb]
