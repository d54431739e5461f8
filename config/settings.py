"""Load settings from environment. Auth cookies imported through the API take precedence over the env values."""
import os
from pathlib import Path

from dotenv import load_dotenv

_ROOT = Path(__file__).resolve().parents[1]

load_dotenv(_ROOT / ".env")


def _str(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _int(key: str, default: int = 0) -> int:
    try:
        return int(os.environ.get(key, str(default)))
    except ValueError:
        return default


def _bool(key: str, default: bool = False) -> bool:
    return _str(key, "true" if default else "false").lower() in ("true", "1", "yes")


def _list(key: str, default: list[str]) -> list[str]:
    raw = _str(key, "")
    if not raw:
        return list(default)
    return [part.strip() for part in raw.split(",") if part.strip()]


DEFAULT_RATING_SOURCES = [
    "https://raw.githubusercontent.com/zerotrac/leetcode_problem_rating/main/ratings.txt",
    "https://cdn.jsdelivr.net/gh/zerotrac/leetcode_problem_rating/ratings.txt",
]


class Settings:
    # Logging
    LOG_LEVEL: str = _str("LOG_LEVEL", "INFO")

    # Community rating dataset, tried in order until one answers
    RATING_SOURCES: list[str] = _list("RATING_SOURCES", DEFAULT_RATING_SOURCES)
    RATINGS_TTL_SECONDS: int = _int("RATINGS_TTL_SECONDS", 7 * 24 * 3600)

    # LeetCode
    LEETCODE_BASE: str = _str("LEETCODE_BASE", "https://leetcode.com").rstrip("/")
    LEETCODE_CSRFTOKEN: str = _str("LEETCODE_CSRFTOKEN", "")
    LEETCODE_SESSION: str = _str("LEETCODE_SESSION", "")
    HTTP_TIMEOUT: int = _int("HTTP_TIMEOUT", 20)

    # Persistent cache: file (default), mongo or memory
    CACHE_BACKEND: str = _str("CACHE_BACKEND", "file").lower()
    CACHE_PATH: str = _str("CACHE_PATH", os.path.join(os.path.expanduser("~"), ".leetboost-cache", "cache.json"))
    MONGODB_URI: str = _str("MONGODB_URI", "mongodb://localhost:27017")
    MONGODB_DB: str = _str("MONGODB_DB", "leetboost")
    MONGODB_CACHE_COLLECTION: str = _str("MONGODB_CACHE_COLLECTION", "kv_cache")

    # Bundled slug -> tags seed
    SEED_TAGS_PATH: str = _str("SEED_TAGS_PATH", str(_ROOT / "data" / "seed_tags.json"))

    # Recommendation list sizes
    RECOMMENDATION_CAP: int = _int("RECOMMENDATION_CAP", 12)
    SIMILAR_CAP: int = _int("SIMILAR_CAP", 10)

    # Set on single-purpose deployments where run_scheduler.py runs separately
    DISABLE_SCHEDULER: bool = _bool("DISABLE_SCHEDULER", False)


settings = Settings()
