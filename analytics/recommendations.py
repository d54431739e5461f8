"""Pick unsolved problems in the user's focus topics, at or slightly above their current rating."""
import asyncio

from db.collections import candidate
from integrations.leetcode import LeetCodeAPIError
from utils.logging import get_logger

logger = get_logger(__name__)

POOL_PER_TAG = 100
WINDOW_BELOW = 50
WINDOW_ABOVE = 150
SIMILAR_TAGS = 2
SIMILAR_POOL_CAP = 50


def signed_distance(rating: int, target: int) -> int:
    """Distance to target; below-target ratings count double (and negative)."""
    if rating >= target:
        return rating - target
    return (rating - target) * 2


async def _pool(provider, tag: str) -> list[dict]:
    try:
        return await provider.query_by_tag(tag, POOL_PER_TAG)
    except LeetCodeAPIError as e:
        logger.warning("Candidate pool for tag %r failed: %s", tag, e)
        return []


async def recommend_problems(
    catalog,
    provider,
    *,
    solved_set: set[str],
    target_rating: int,
    selected_tags: list[str],
    cap: int = 12,
) -> list[dict]:
    """Return up to cap {slug, title, rating} candidates ranked by signed distance to target_rating."""
    if not selected_tags or cap <= 0 or not catalog.loaded:
        return []
    pools = await asyncio.gather(*(_pool(provider, t) for t in selected_tags))
    slugs = dict.fromkeys(row["slug"] for pool in pools for row in pool)

    low, high = target_rating - WINDOW_BELOW, target_rating + WINDOW_ABOVE
    matches = []
    for slug in slugs:
        rec = catalog.get(slug)
        if rec is None or not low <= rec["rating"] <= high:
            continue
        if rec["slug"] in solved_set:
            continue
        matches.append(rec)
    matches.sort(key=lambda p: signed_distance(p["rating"], target_rating))
    logger.debug("%d candidates in window for %s around %d", len(matches), selected_tags, target_rating)
    return [candidate(p["slug"], p.get("title"), p["rating"]) for p in matches[:cap]]


async def similar_problems(
    catalog,
    provider,
    *,
    base_slug: str,
    base_rating: int | None,
    base_tags: list[str] | None,
    solved_set: set[str],
    cap: int = 10,
) -> list[dict]:
    """Problems sharing the base problem's first two tags, closest in rating either way."""
    tags = (base_tags or [])[:SIMILAR_TAGS]
    if not tags or not base_rating:
        return []
    recs = await recommend_problems(
        catalog,
        provider,
        solved_set=solved_set,
        target_rating=base_rating,
        selected_tags=tags,
        cap=SIMILAR_POOL_CAP,
    )
    recs = [p for p in recs if p["slug"] != base_slug]
    recs.sort(key=lambda p: abs(p["rating"] - base_rating))
    return recs[:cap]
