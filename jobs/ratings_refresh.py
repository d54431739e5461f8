"""Weekly refresh of the community rating catalog."""
import asyncio

from analytics.ratings import RatingCatalog, get_catalog
from utils.logging import get_logger

logger = get_logger(__name__)

REFRESH_INTERVAL_DAYS = 7


async def refresh_ratings(catalog: RatingCatalog | None = None) -> bool:
    catalog = catalog or get_catalog()
    ok = await catalog.refresh()
    if ok:
        logger.info("Rating refresh done: %d problems", len(catalog))
    else:
        logger.warning("Rating refresh failed; keeping the previous catalog")
    return ok


def run_ratings_refresh() -> None:
    """Scheduler entry point (runs in a worker thread, so it owns its event loop)."""
    asyncio.run(refresh_ratings())
