"""Download the community rating dataset (zerotrac ratings.txt or a mirror)."""
import httpx

from config import settings
from utils.logging import get_logger

logger = get_logger(__name__)


async def fetch_ratings_text(
    sources: list[str] | None = None,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str | None:
    """Try each source in order; return the first successful body, or None if every source fails."""
    sources = settings.RATING_SOURCES if sources is None else sources
    timeout = settings.HTTP_TIMEOUT if timeout is None else timeout
    async with httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=True) as client:
        for url in sources:
            try:
                r = await client.get(url, headers={"Cache-Control": "no-cache"})
            except httpx.HTTPError as e:
                logger.warning("Rating source %s failed: %s", url, e)
                continue
            if r.is_success:
                logger.info("Fetched rating dataset from %s (%d bytes)", url, len(r.content))
                return r.text
            logger.warning("Rating source %s returned HTTP %s", url, r.status_code)
    return None
