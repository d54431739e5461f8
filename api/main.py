"""FastAPI app: profile analytics, problem insights and recommendations as JSON."""
from contextlib import asynccontextmanager

from fastapi import Body, FastAPI, Query
from fastapi.responses import Response

from analytics.focus import get_focus_tags, set_focus_tags, toggle_focus_tag
from analytics.insights import problem_insights, profile_insights, recommend_for_tags
from analytics.ratings import RatingCatalog, get_catalog
from analytics.tag_index import TagIndexBuilder
from config import settings
from db.collections import AUTH_COOKIES_KEY
from db.store import KeyValueStore, get_store
from integrations.leetcode import LeetCodeAPI
from utils.logging import setup_logging, get_logger

setup_logging()
logger = get_logger(__name__)


def _store() -> KeyValueStore:
    return get_store()


def _catalog() -> RatingCatalog:
    return get_catalog()


def _api() -> LeetCodeAPI:
    return LeetCodeAPI.from_settings(_store())


def _start_background_scheduler():
    """Run the weekly rating refresh inside the web process (single-process deployments)."""
    if settings.DISABLE_SCHEDULER:
        logger.info("Background scheduler disabled via DISABLE_SCHEDULER env var")
        return None
    try:
        from apscheduler.schedulers.background import BackgroundScheduler
        from apscheduler.triggers.interval import IntervalTrigger
        from jobs.ratings_refresh import REFRESH_INTERVAL_DAYS, run_ratings_refresh

        def _safe():
            try:
                run_ratings_refresh()
            except Exception as e:
                logger.exception("Scheduled ratings refresh failed: %s", e)

        scheduler = BackgroundScheduler()
        scheduler.add_job(_safe, IntervalTrigger(days=REFRESH_INTERVAL_DAYS), id="ratings_refresh")
        scheduler.start()
        logger.info("Background scheduler started: ratings refresh every %d days", REFRESH_INTERVAL_DAYS)
        return scheduler
    except Exception as e:
        logger.warning("Background scheduler failed to start: %s", e)
        return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = _start_background_scheduler()
    try:
        if not await _catalog().ensure_loaded():
            logger.warning("Rating catalog not loaded at startup; will retry on first request")
    except Exception as e:
        logger.warning("Rating catalog warm-up failed: %s", e)
    yield
    if scheduler is not None:
        scheduler.shutdown(wait=False)


app = FastAPI(title="LeetBoost Insights", lifespan=lifespan)


@app.get("/api/health")
def api_health():
    return {"status": "ok"}


@app.get("/favicon.ico", include_in_schema=False)
def favicon():
    return Response(status_code=204)


@app.get("/api/profile/{username}")
async def api_profile(username: str):
    """Charts input, focus topics and recommendations for a profile page."""
    store = _store()
    api = _api()
    return await profile_insights(
        username,
        api=api,
        catalog=_catalog(),
        store=store,
        tag_index=TagIndexBuilder(store, api),
    )


@app.get("/api/problems/{slug}")
async def api_problem(slug: str):
    return await problem_insights(slug, api=_api(), catalog=_catalog(), store=_store())


@app.get("/api/ratings/{slug}")
async def api_rating(slug: str):
    catalog = _catalog()
    if not await catalog.ensure_loaded():
        return {"slug": slug.lower(), "found": False}
    rec = catalog.get(slug)
    if not rec:
        return {"slug": slug.lower(), "found": False}
    return {"found": True, **rec}


@app.get("/api/recommendations")
async def api_recommendations(
    tags: list[str] = Query(default=[]),
    target_rating: int = 1500,
    cap: int | None = Query(default=None, ge=0),
):
    """Recommendations for an explicit tag selection (chip toggles)."""
    return await recommend_for_tags(
        tags,
        target_rating=target_rating,
        api=_api(),
        catalog=_catalog(),
        store=_store(),
        cap=cap,
    )


@app.get("/api/focus")
def api_focus():
    return {"tags": get_focus_tags(_store()) or []}


@app.put("/api/focus")
def api_focus_set(payload: dict = Body(default=None)):
    """Override the focus topics. Body: {"tags": ["Graph", ...]}"""
    tags = (payload or {}).get("tags") or []
    if not isinstance(tags, list):
        return {"success": False, "message": "tags must be a list"}
    return {"success": True, "tags": set_focus_tags(_store(), [str(t) for t in tags])}


@app.post("/api/focus/toggle")
def api_focus_toggle(payload: dict = Body(default=None)):
    tag = str((payload or {}).get("tag") or "").strip()
    if not tag:
        return {"success": False, "message": "tag is required"}
    return {"success": True, "tags": toggle_focus_tag(_store(), tag)}


@app.post("/api/cache/clear")
def api_cache_clear(ratings: bool = False):
    """Drop the cached tag index (and, with ?ratings=true, the rating catalog)."""
    store = _store()
    TagIndexBuilder(store, None).clear()
    if ratings:
        _catalog().invalidate(persistent=True)
    logger.info("Cache cleared (ratings=%s)", ratings)
    return {"status": "ok", "ratings": ratings}


@app.get("/api/session/status")
def api_session_status():
    api = _api()
    return {"csrftoken": bool(api.csrftoken), "session": bool(api.session)}


@app.post("/api/session/import")
def api_session_import(payload: dict = Body(default=None)):
    """
    Import LeetCode cookies pasted from the user's browser.
    Body: { "cookies": "paste here" } (Cookie header, JSON array or Netscape format)
    """
    from utils.cookies import parse_leetcode_cookies

    paste = ((payload or {}).get("cookies") or "").strip()
    if not paste:
        return {"success": False, "message": "Paste your cookies in the text area"}
    parsed = parse_leetcode_cookies(paste)
    if not parsed:
        return {"success": False, "message": "No csrftoken or LEETCODE_SESSION cookie for leetcode.com found."}
    _store().set({AUTH_COOKIES_KEY: parsed})
    return {"success": True, "message": f"Saved {', '.join(sorted(parsed))} for leetcode.com."}
