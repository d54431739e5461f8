"""Profile and problem page analytics: what the dashboard renders for a user or a single problem."""
import asyncio
from typing import Any

from analytics.focus import all_tags, median_rating, rating_buckets, resolve_focus_tags, tag_counts, top_tags
from analytics.history import fetch_solved, hydrate_tags
from analytics.ratings import RatingCatalog
from analytics.recommendations import recommend_problems, similar_problems
from config import settings
from db.collections import SOLVED_KEY
from db.store import KeyValueStore
from integrations.leetcode import LeetCodeAPI, LeetCodeAPIError
from utils.logging import get_logger, log_extra

logger = get_logger(__name__)


def _empty_profile(username: str) -> dict[str, Any]:
    return {
        "username": username,
        "ratings_available": False,
        "mode": None,
        "note": "Community ratings unavailable. Try again later.",
        "solved_count": 0,
        "ratings": [],
        "rating_buckets": [],
        "tag_counts": {},
        "top_tags": [],
        "all_tags": [],
        "focus_tags": [],
        "target_rating": 0,
        "recommendations": [],
    }


def stored_solved_set(store: KeyValueStore) -> set[str]:
    stored = store.get([SOLVED_KEY]).get(SOLVED_KEY)
    return set(stored) if isinstance(stored, list) else set()


async def profile_insights(
    username: str,
    *,
    api: LeetCodeAPI,
    catalog: RatingCatalog,
    store: KeyValueStore,
    tag_index,
) -> dict[str, Any]:
    username = (username or "").lower()
    if not await catalog.ensure_loaded():
        return _empty_profile(username)

    solved, mode, note = await fetch_solved(api, username)
    solved_set = {p["slug"] for p in solved}
    await asyncio.to_thread(store.set, {SOLVED_KEY: sorted(solved_set)})

    ratings = [r for r in (catalog.rating(p["slug"]) for p in solved) if r is not None]

    solved = await hydrate_tags(solved, tag_index)
    counts = tag_counts(solved)
    focus = await asyncio.to_thread(resolve_focus_tags, store, solved)
    target = median_rating(ratings)

    recs = await recommend_problems(
        catalog,
        api,
        solved_set=solved_set,
        target_rating=target,
        selected_tags=focus,
        cap=settings.RECOMMENDATION_CAP,
    )
    log_extra(logger, "Profile insights", user=username, mode=mode, solved=len(solved), rated=len(ratings), recs=len(recs))
    return {
        "username": username,
        "ratings_available": True,
        "mode": mode,
        "note": note,
        "solved_count": len(solved),
        "ratings": ratings,
        "rating_buckets": rating_buckets(ratings),
        "tag_counts": counts,
        "top_tags": top_tags(counts),
        "all_tags": all_tags(solved),
        "focus_tags": focus,
        "target_rating": target,
        "recommendations": recs,
    }


async def problem_insights(
    slug: str,
    *,
    api: LeetCodeAPI,
    catalog: RatingCatalog,
    store: KeyValueStore,
) -> dict[str, Any]:
    """Rating for one problem plus similarly rated unsolved problems in its first two tags.

    The solved set comes from the last profile visit and may be stale.
    """
    slug = (slug or "").lower()
    out: dict[str, Any] = {
        "slug": slug,
        "found": False,
        "rating": None,
        "title": None,
        "difficulty": None,
        "tags": [],
        "similar": [],
    }
    if not slug or not await catalog.ensure_loaded():
        return out

    entry = catalog.get(slug)
    try:
        detail = await api.question_detail(slug)
    except LeetCodeAPIError as e:
        logger.warning("Question detail for %s failed: %s", slug, e)
        detail = None

    if entry:
        out.update(found=True, rating=entry["rating"], title=entry["title"])
    if detail:
        out.update(difficulty=detail["difficulty"], tags=detail["tags"], title=out["title"] or detail["title"])

    out["similar"] = await similar_problems(
        catalog,
        api,
        base_slug=slug,
        base_rating=out["rating"],
        base_tags=out["tags"],
        solved_set=await asyncio.to_thread(stored_solved_set, store),
        cap=settings.SIMILAR_CAP,
    )
    return out


async def recommend_for_tags(
    tags: list[str],
    *,
    target_rating: int,
    api: LeetCodeAPI,
    catalog: RatingCatalog,
    store: KeyValueStore,
    cap: int | None = None,
) -> list[dict]:
    """Recommendations for an explicit tag selection, excluding the last stored solved set."""
    if not await catalog.ensure_loaded():
        return []
    return await recommend_problems(
        catalog,
        api,
        solved_set=await asyncio.to_thread(stored_solved_set, store),
        target_rating=target_rating,
        selected_tags=tags,
        cap=settings.RECOMMENDATION_CAP if cap is None else cap,
    )
