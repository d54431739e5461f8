"""Cache keys and record shape helpers. Records are plain dicts so they go to JSON, MongoDB and the API unchanged."""
from pymongo.collection import Collection

from config import settings
from db.client import get_db

# --- Cache keys ---
RATINGS_KEY = "lc_ratings_cache_v1"
RATINGS_TS_KEY = "lc_ratings_cache_ts_v1"
FOCUS_KEY = "lc_focus_tags_v1"
SOLVED_KEY = "lc_solved_set_v1"
TAG_MAP_KEY = "lc_tag_map_v1"
AUTH_COOKIES_KEY = "lc_auth_cookies_v1"

DIFFICULTIES = ("Easy", "Medium", "Hard")


def kv_cache_collection() -> Collection:
    return get_db()[settings.MONGODB_CACHE_COLLECTION]


# --- Record helpers (for consistent keys) ---
def rating_record(slug: str, rating: int, title: str) -> dict:
    return {"slug": slug, "rating": rating, "title": title}


def solved_record(
    slug: str,
    title: str | None = None,
    difficulty: str | None = None,
    tags: list[str] | None = None,
) -> dict:
    if difficulty not in DIFFICULTIES:
        difficulty = None
    return {
        "slug": (slug or "").lower(),
        "title": title or slug,
        "difficulty": difficulty,
        "tags": list(tags or []),
    }


def candidate(slug: str, title: str | None, rating: int) -> dict:
    return {"slug": slug, "title": title or slug, "rating": rating}
