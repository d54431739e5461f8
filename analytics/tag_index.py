"""Build the slug -> topic tags index: bundled seed first, then LeetCode's own tag lists on top."""
import asyncio
import json
import re
from pathlib import Path
from typing import Any

from config import settings
from db.collections import TAG_MAP_KEY
from db.store import KeyValueStore
from integrations.leetcode import PAGE_SIZE, LeetCodeAPIError
from utils.logging import get_logger

logger = get_logger(__name__)

OVERLAY_LIMIT = 5000
FALLBACK_CATEGORY = "all-code-essentials"

_PROBLEM_URL = re.compile(r"leetcode\.com/problems/([^/?#]+)", re.IGNORECASE)
_COUNT_MARKER = re.compile(r"(?<!\w)\d+\+(?!\w)")


class NoSlugMatch(ValueError):
    """The URL does not point at a LeetCode problem."""


def extract_slug(url: str | None) -> str:
    """Return the lowercase problem slug in a leetcode.com/problems/<slug> URL."""
    m = _PROBLEM_URL.search(url or "")
    if not m:
        raise NoSlugMatch(url)
    return m.group(1).lower()


def parse_topic_tags(raw: str | None) -> list[str]:
    """Split a free-text tag cell ("dynamic programming, Array; 2+ Math") into tag names."""
    if not raw:
        return []
    tags = []
    for token in re.split(r"[;,]", raw):
        token = _COUNT_MARKER.sub("", token).strip()
        if not token:
            continue
        token = re.sub(r"\s+", " ", token)
        tags.append(token[0].upper() + token[1:])
    return tags


def _as_tags(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(t) for t in value if t]
    if isinstance(value, str):
        return parse_topic_tags(value)
    return []


def _row_slug(row: dict) -> str | None:
    try:
        return extract_slug(row.get("Question_Link"))
    except NoSlugMatch:
        slug = row.get("Slug")
        return slug.lower() if isinstance(slug, str) and slug else None


def normalize_seed(data: Any) -> dict[str, list[str]]:
    """Accept either {slug: tags} or [{Question_Link|Slug, Topic_tags}, ...] and return {slug: tags}."""
    index: dict[str, list[str]] = {}
    if isinstance(data, dict):
        for slug, tags in data.items():
            tags = _as_tags(tags)
            if slug and tags:
                index[slug.lower()] = tags
        return index
    if isinstance(data, list):
        for row in data:
            if not isinstance(row, dict):
                continue
            slug = _row_slug(row)
            tags = _as_tags(row.get("Topic_tags"))
            if slug and tags:
                index[slug] = tags
        return index
    logger.warning("Seed tag data has unsupported shape %s", type(data).__name__)
    return index


def load_seed(path: str | Path | None = None) -> dict[str, list[str]]:
    path = Path(path or settings.SEED_TAGS_PATH)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Seed tags %s unavailable: %s", path, e)
        return {}
    index = normalize_seed(data)
    logger.info("Seed tag index: %d problems from %s", len(index), path.name)
    return index


class TagIndexBuilder:
    """Cache-first builder. The cached index has no TTL; clear() is the only invalidation."""

    def __init__(self, store: KeyValueStore, api, seed_path: str | Path | None = None):
        self.store = store
        self.api = api
        self.seed_path = seed_path

    async def _overlay(self, index: dict[str, list[str]], fetch_page) -> int:
        """Apply pages from fetch_page(skip) onto index; return how many records carried tags."""
        applied = 0
        for skip in range(0, OVERLAY_LIMIT, PAGE_SIZE):
            try:
                rows = await fetch_page(skip)
            except LeetCodeAPIError as e:
                logger.warning("Tag overlay page at skip=%d failed: %s", skip, e)
                break
            if not rows:
                break
            for row in rows:
                if row["slug"] and row["tags"]:
                    index[row["slug"]] = row["tags"]
                    applied += 1
            if len(rows) < PAGE_SIZE:
                break
        return applied

    async def build(self) -> dict[str, list[str]]:
        cached = (await asyncio.to_thread(self.store.get, [TAG_MAP_KEY])).get(TAG_MAP_KEY)
        if isinstance(cached, list) and cached:
            return {slug: tags for slug, tags in cached}

        index = await asyncio.to_thread(load_seed, self.seed_path)
        applied = await self._overlay(index, lambda skip: self.api.question_list_page(skip, PAGE_SIZE))
        if not applied:
            logger.info("questionList overlay empty, trying problemsetQuestionList")
            applied = await self._overlay(
                index, lambda skip: self.api.problemset_page(FALLBACK_CATEGORY, skip, PAGE_SIZE)
            )
        logger.info("Tag index built: %d problems (%d from LeetCode)", len(index), applied)

        if index:
            entries = [[slug, tags] for slug, tags in index.items()]
            await asyncio.to_thread(self.store.set, {TAG_MAP_KEY: entries})
        return index

    def clear(self) -> None:
        self.store.delete([TAG_MAP_KEY])
