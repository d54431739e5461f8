"""Shared fixtures. Environment is pinned before any project module reads settings."""
import asyncio
import os

os.environ["CACHE_BACKEND"] = "memory"
os.environ["DISABLE_SCHEDULER"] = "true"
os.environ["LEETCODE_CSRFTOKEN"] = ""
os.environ["LEETCODE_SESSION"] = ""

import pytest

from analytics.ratings import RatingCatalog
from db.collections import rating_record
from db.store import MemoryStore
from integrations.leetcode import LeetCodeAPIError


class FakeLeetCode:
    """Scripted stand-in for LeetCodeAPI. Pools, pages and details are plain dicts."""

    def __init__(
        self,
        pools: dict[str, list[dict]] | None = None,
        list_pages: list[list[dict]] | None = None,
        problemset_pages: list[list[dict]] | None = None,
        details: dict[str, dict] | None = None,
        signed_in: str | None = None,
        owner_solved: list[dict] | None = None,
        rest_solved: list[dict] | None = None,
        recent: list[dict] | None = None,
        failing_tags: set[str] | None = None,
    ):
        self.pools = pools or {}
        self.list_pages = list_pages or []
        self.problemset_pages = problemset_pages or []
        self.details = details or {}
        self.signed_in = signed_in
        self.owner_solved = owner_solved or []
        self.rest_solved = rest_solved or []
        self.recent = recent or []
        self.failing_tags = failing_tags or set()
        self.calls: list[tuple] = []

    async def query_by_tag(self, tag, limit=100):
        self.calls.append(("query_by_tag", tag, limit))
        if tag in self.failing_tags:
            raise LeetCodeAPIError("boom")
        return list(self.pools.get(tag, []))

    async def question_list_page(self, skip, limit=50):
        self.calls.append(("question_list_page", skip))
        i = skip // 50
        return self.list_pages[i] if i < len(self.list_pages) else []

    async def problemset_page(self, category_slug, skip, limit=50):
        self.calls.append(("problemset_page", category_slug, skip))
        i = skip // 50
        return self.problemset_pages[i] if i < len(self.problemset_pages) else []

    async def question_detail(self, slug):
        self.calls.append(("question_detail", slug))
        return self.details.get(slug)

    async def signed_in_username(self):
        return self.signed_in

    async def solved_by_owner(self):
        return [dict(p) for p in self.owner_solved]

    async def solved_by_rest(self):
        return [dict(p) for p in self.rest_solved]

    async def recent_ac(self, username):
        return [dict(p) for p in self.recent]


class FakeTagIndex:
    def __init__(self, index: dict[str, list[str]]):
        self.index = index
        self.builds = 0

    async def build(self):
        self.builds += 1
        return self.index


def pool(*slugs: str) -> list[dict]:
    return [{"slug": s, "title": s.replace("-", " ").title(), "tags": []} for s in slugs]


def loaded_catalog(store, ratings: dict[str, int]) -> RatingCatalog:
    """A catalog whose cache already holds the given ratings (fresh timestamp)."""
    now = 10_000_000_000
    store.set({
        "lc_ratings_cache_v1": [[s, rating_record(s, r, s.replace("-", " ").title())] for s, r in ratings.items()],
        "lc_ratings_cache_ts_v1": now,
    })

    async def no_fetch():
        raise AssertionError("catalog should load from cache")

    catalog = RatingCatalog(store, fetcher=no_fetch, clock=lambda: now)
    assert asyncio.run(catalog.ensure_loaded())
    return catalog


@pytest.fixture
def store():
    return MemoryStore()
