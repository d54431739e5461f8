"""Solved-problem history: fetch it from LeetCode and fill in missing topic tags from the tag index."""
from integrations.leetcode import LeetCodeAPI, LeetCodeAPIError
from utils.logging import get_logger

logger = get_logger(__name__)

COVERAGE_THRESHOLD = 0.6
DETAIL_BACKFILL_LIMIT = 100

NOTE_OWNER = "Owner mode (full solved set)."
NOTE_PUBLIC = "Public mode (recent ACs only). Sign in on LeetCode for full analytics."
NOTE_FAILED = "Failed to fetch solved set."


def tag_coverage(solved: list[dict]) -> float:
    with_tags = sum(1 for p in solved if p.get("tags"))
    return with_tags / max(len(solved), 1)


async def hydrate_tags(solved: list[dict], tag_index) -> list[dict]:
    """Fill empty tag lists in place from the tag index.

    Skipped entirely, index build included, when at least 60% of records already carry tags.
    """
    coverage = tag_coverage(solved)
    if coverage >= COVERAGE_THRESHOLD:
        return solved
    index = await tag_index.build()
    filled = 0
    for p in solved:
        if p.get("tags"):
            continue
        tags = index.get((p.get("slug") or "").lower())
        if tags:
            p["tags"] = list(tags)
            filled += 1
    logger.info("Hydrated tags for %d of %d solved problems (coverage was %.2f)", filled, len(solved), coverage)
    return solved


async def _backfill_details(api: LeetCodeAPI, recent: list[dict]) -> None:
    for p in recent[:DETAIL_BACKFILL_LIMIT]:
        detail = await api.question_detail(p["slug"])
        if not detail:
            continue
        p["tags"] = detail["tags"]
        p["difficulty"] = detail["difficulty"]
        p["title"] = detail["title"] or p["title"]


async def fetch_solved(api: LeetCodeAPI, page_user: str) -> tuple[list[dict], str, str]:
    """Return (solved, mode, note). mode is "owner" when the signed-in user is viewing their own page."""
    page_user = (page_user or "").lower()
    signed_in = ((await api.signed_in_username()) or "").lower()
    mode = "owner" if signed_in and page_user and signed_in == page_user else "public"
    try:
        if mode == "owner":
            solved = await api.solved_by_owner()
            if not solved:
                solved = await api.solved_by_rest()
            return solved, mode, NOTE_OWNER
        recent = await api.recent_ac(page_user)
        await _backfill_details(api, recent)
        return recent, mode, NOTE_PUBLIC
    except LeetCodeAPIError as e:
        logger.warning("Solved history for %s failed: %s", page_user, e)
        return [], mode, NOTE_FAILED
