import asyncio

import httpx

from analytics.ratings import RatingCatalog, parse_ratings_text
from db.store import MemoryStore
from integrations.ratings_source import fetch_ratings_text

TSV = (
    "Rating\tID\tTitle\tTitle ZH\tTitle Slug\tContest Slug\tProblem Index\n"
    "3018.4940165727\t1719\tNumber Of Ways To Reconstruct A Tree\t重构一棵树的方案数\tnumber-of-ways-to-reconstruct-a-tree\tbiweekly-contest-44\tQ4\n"
    "1500.5\t1\t\t两数之和\tTwo-Sum\tweekly-contest-1\tQ1\n"
    "not-a-number\t2\tBroken\t坏\tbroken-row\tweekly-contest-1\tQ2\n"
    "1200\t3\tShort Row\n"
    "1400\t4\tNo Slug\t无\t \tweekly-contest-1\tQ3\n"
)

LEGACY = (
    "# slug rating title\n"
    "two-sum 1234.4 Two Sum\n"
    "\n"
    "Add-Two-Numbers 1500.5   Add Two Numbers  \n"
    "garbage-line-without-rating\n"
    "bad-rating 1.2.3 Bad\n"
)


def test_tsv_grammar_parses_rows_and_rounds():
    parsed = parse_ratings_text(TSV)
    assert set(parsed) == {"number-of-ways-to-reconstruct-a-tree", "two-sum"}
    assert parsed["number-of-ways-to-reconstruct-a-tree"] == {
        "slug": "number-of-ways-to-reconstruct-a-tree",
        "rating": 3018,
        "title": "Number Of Ways To Reconstruct A Tree",
    }


def test_tsv_title_falls_back_to_slug_and_half_rounds_up():
    rec = parse_ratings_text(TSV)["two-sum"]
    assert rec["title"] == "two-sum"
    assert rec["rating"] == 1501


def test_legacy_grammar_used_when_no_tsv_header():
    parsed = parse_ratings_text(LEGACY)
    assert parsed == {
        "two-sum": {"slug": "two-sum", "rating": 1234, "title": "Two Sum"},
        "add-two-numbers": {"slug": "add-two-numbers", "rating": 1501, "title": "Add Two Numbers"},
    }


def test_legacy_grammar_tried_when_tsv_header_yields_nothing():
    text = "Rating\tID\tTitle\tTitle ZH\tTitle Slug\nsome-slug 1800 Some Title\n"
    assert parse_ratings_text(text) == {"some-slug": {"slug": "some-slug", "rating": 1800, "title": "Some Title"}}


def test_duplicate_slug_last_row_wins():
    text = "two-sum 1000 Old\nTWO-SUM 1100 New\n"
    assert parse_ratings_text(text)["two-sum"]["rating"] == 1100


def test_crlf_and_empty_input():
    assert parse_ratings_text("") == {}
    assert parse_ratings_text(None) == {}
    assert parse_ratings_text("a 1 A\r\nb 2 B\r\n") == {
        "a": {"slug": "a", "rating": 1, "title": "A"},
        "b": {"slug": "b", "rating": 2, "title": "B"},
    }


def test_reparsing_is_idempotent():
    for text in (TSV, LEGACY):
        assert parse_ratings_text(text) == parse_ratings_text(text)


WEEK_MS = 7 * 24 * 3600 * 1000
NOW = 1_700_000_000_000


def _catalog(store, text="two-sum 1500 Two Sum\n"):
    fetches = []

    async def fetcher():
        fetches.append(1)
        return text

    return RatingCatalog(store, fetcher=fetcher, clock=lambda: NOW), fetches


def _seed_cache(store, ts):
    store.set({
        "lc_ratings_cache_v1": [["cached", {"slug": "cached", "rating": 1900, "title": "Cached"}]],
        "lc_ratings_cache_ts_v1": ts,
    })


def test_cache_exactly_one_week_old_is_stale():
    store = MemoryStore()
    _seed_cache(store, NOW - WEEK_MS)
    catalog, fetches = _catalog(store)
    assert asyncio.run(catalog.ensure_loaded())
    assert fetches == [1]
    assert catalog.get("two-sum")["rating"] == 1500
    assert catalog.get("cached") is None


def test_cache_one_millisecond_newer_is_fresh():
    store = MemoryStore()
    _seed_cache(store, NOW - WEEK_MS + 1)
    catalog, fetches = _catalog(store)
    assert asyncio.run(catalog.ensure_loaded())
    assert fetches == []
    assert catalog.rating("cached") == 1900


def test_download_is_persisted_with_timestamp_and_reused_in_memory():
    store = MemoryStore()
    catalog, fetches = _catalog(store)
    assert asyncio.run(catalog.ensure_loaded())
    assert asyncio.run(catalog.ensure_loaded())
    assert fetches == [1]
    data = store.get(["lc_ratings_cache_v1", "lc_ratings_cache_ts_v1"])
    assert data["lc_ratings_cache_ts_v1"] == NOW
    assert data["lc_ratings_cache_v1"] == [["two-sum", {"slug": "two-sum", "rating": 1500, "title": "Two Sum"}]]


def test_no_data_or_unparseable_data_fails_softly():
    for text in (None, "nothing to see here"):
        catalog, _ = _catalog(MemoryStore(), text=text)
        assert asyncio.run(catalog.ensure_loaded()) is False
        assert not catalog.loaded


def test_refresh_keeps_existing_catalog_on_failure():
    store = MemoryStore()
    catalog, _ = _catalog(store)
    asyncio.run(catalog.ensure_loaded())

    async def failing():
        return None

    catalog.fetcher = failing
    assert asyncio.run(catalog.refresh()) is False
    assert catalog.rating("two-sum") == 1500


def test_invalidate_persistent_drops_cache():
    store = MemoryStore()
    catalog, fetches = _catalog(store)
    asyncio.run(catalog.ensure_loaded())
    catalog.invalidate(persistent=True)
    assert not catalog.loaded
    assert store.get(["lc_ratings_cache_v1"]) == {}
    asyncio.run(catalog.ensure_loaded())
    assert fetches == [1, 1]


def test_sources_tried_in_order_until_first_success():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        if request.url.host == "primary.example":
            return httpx.Response(503)
        if request.url.host == "flaky.example":
            raise httpx.ConnectError("down", request=request)
        return httpx.Response(200, text="two-sum 1500 Two Sum\n")

    sources = [
        "https://primary.example/ratings.txt",
        "https://flaky.example/ratings.txt",
        "https://mirror.example/ratings.txt",
        "https://never.example/ratings.txt",
    ]
    text = asyncio.run(fetch_ratings_text(sources, transport=httpx.MockTransport(handler)))
    assert text == "two-sum 1500 Two Sum\n"
    assert seen == sources[:3]


def test_all_sources_failing_returns_none():
    transport = httpx.MockTransport(lambda request: httpx.Response(404))
    assert asyncio.run(fetch_ratings_text(["https://a.example/r", "https://b.example/r"], transport=transport)) is None
