"""Community difficulty ratings: parse the dataset and keep a weekly-refreshed catalog in memory and in the cache."""
import asyncio
import math
import re
import time
from typing import Awaitable, Callable

from config import settings
from db.collections import RATINGS_KEY, RATINGS_TS_KEY, rating_record
from db.store import KeyValueStore
from integrations.ratings_source import fetch_ratings_text
from utils.logging import get_logger

logger = get_logger(__name__)

_HEADER_SLUG = re.compile(r"title\s*slug", re.IGNORECASE)
_HEADER_RATING = re.compile(r"^rating$", re.IGNORECASE)
_LEGACY_LINE = re.compile(r"^(\S+)\s+([\d.]+)\s+(.+)$")


def _round_rating(raw: str) -> int | None:
    """Round half up; None when the value is not a finite number."""
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return int(math.floor(value + 0.5))


def _parse_tsv(lines: list[str]) -> dict[str, dict]:
    # Columns: Rating, ID, Title, Title ZH, Title Slug, ...
    out: dict[str, dict] = {}
    for line in lines:
        parts = line.split("\t")
        if len(parts) < 5 or _HEADER_RATING.match(parts[0]):
            continue
        rating = _round_rating(parts[0])
        slug = parts[4].strip().lower()
        if not slug or rating is None:
            continue
        title = parts[2].strip() or slug
        out[slug] = rating_record(slug, rating, title)
    return out


def _parse_legacy(lines: list[str]) -> dict[str, dict]:
    # "<slug> <rating> <title...>", '#' comments allowed
    out: dict[str, dict] = {}
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        m = _LEGACY_LINE.match(line)
        if not m:
            continue
        rating = _round_rating(m.group(2))
        if rating is None:
            continue
        slug = m.group(1).lower()
        out[slug] = rating_record(slug, rating, m.group(3).strip())
    return out


def parse_ratings_text(text: str | None) -> dict[str, dict]:
    """Parse ratings.txt into {slug: {slug, rating, title}}.

    The tab-separated format with a "Title Slug" header is tried first. Only when it
    yields nothing is the legacy whitespace format used. Later rows win on duplicate slugs.
    """
    if not text:
        return {}
    lines = [line for line in re.split(r"\r?\n", text) if line]
    if not lines:
        return {}
    first = lines[0]
    if "\t" in first and _HEADER_SLUG.search(first):
        parsed = _parse_tsv(lines)
        if parsed:
            return parsed
    parsed = _parse_legacy(lines)
    logger.debug("Legacy rating grammar parsed %d of %d lines", len(parsed), len(lines))
    return parsed


def _now_ms() -> int:
    return int(time.time() * 1000)


class RatingCatalog:
    """In-memory slug -> rating record map backed by the persistent cache.

    ensure_loaded() is idempotent once it succeeds; invalidate() resets it.
    """

    def __init__(
        self,
        store: KeyValueStore,
        fetcher: Callable[[], Awaitable[str | None]] = fetch_ratings_text,
        ttl_seconds: int | None = None,
        clock: Callable[[], int] = _now_ms,
    ):
        self.store = store
        self.fetcher = fetcher
        self.ttl_ms = (settings.RATINGS_TTL_SECONDS if ttl_seconds is None else ttl_seconds) * 1000
        self.clock = clock
        self._records: dict[str, dict] | None = None

    @property
    def loaded(self) -> bool:
        return self._records is not None

    def __len__(self) -> int:
        return len(self._records or {})

    def __contains__(self, slug: str) -> bool:
        return self.get(slug) is not None

    def get(self, slug: str | None) -> dict | None:
        if not self._records or not slug:
            return None
        return self._records.get(slug.lower())

    def rating(self, slug: str | None) -> int | None:
        rec = self.get(slug)
        return rec["rating"] if rec else None

    def _cached(self) -> dict[str, dict] | None:
        data = self.store.get([RATINGS_KEY, RATINGS_TS_KEY])
        entries, ts = data.get(RATINGS_KEY), data.get(RATINGS_TS_KEY)
        if not entries or not ts:
            return None
        if self.clock() - ts >= self.ttl_ms:
            return None
        return {slug: rec for slug, rec in entries}

    async def _download(self) -> dict[str, dict] | None:
        text = await self.fetcher()
        if not text:
            logger.warning("No rating source answered")
            return None
        parsed = parse_ratings_text(text)
        if not parsed:
            logger.warning("Rating dataset parsed to zero records")
            return None
        return parsed

    async def _adopt(self, records: dict[str, dict]) -> None:
        self._records = records
        entries = [[slug, rec] for slug, rec in records.items()]
        await asyncio.to_thread(self.store.set, {RATINGS_KEY: entries, RATINGS_TS_KEY: self.clock()})
        logger.info("Rating catalog loaded: %d problems", len(records))

    async def ensure_loaded(self) -> bool:
        if self._records is not None:
            return True
        cached = await asyncio.to_thread(self._cached)
        if cached:
            self._records = cached
            logger.info("Rating catalog from cache: %d problems", len(cached))
            return True
        parsed = await self._download()
        if parsed is None:
            return False
        await self._adopt(parsed)
        return True

    async def refresh(self) -> bool:
        """Re-download regardless of cache age. The current catalog is kept if the download fails."""
        parsed = await self._download()
        if parsed is None:
            return False
        await self._adopt(parsed)
        return True

    def invalidate(self, persistent: bool = False) -> None:
        self._records = None
        if persistent:
            self.store.delete([RATINGS_KEY, RATINGS_TS_KEY])


_catalog: RatingCatalog | None = None


def get_catalog() -> RatingCatalog:
    global _catalog
    if _catalog is None:
        from db.store import get_store
        _catalog = RatingCatalog(get_store())
    return _catalog
