"""MongoDB connection for the mongo cache backend."""
import certifi
from pymongo import MongoClient
from pymongo.database import Database

from config import settings
from utils.logging import get_logger

logger = get_logger(__name__)

_client: MongoClient | None = None


def get_client() -> MongoClient:
    global _client
    if _client is None:
        kwargs = {"serverSelectionTimeoutMS": 10000}
        uri = settings.MONGODB_URI or ""
        if "mongodb+srv://" in uri:
            kwargs["tlsCAFile"] = certifi.where()
        _client = MongoClient(uri, **kwargs)
        logger.info("MongoDB client connected to %s", uri)
    return _client


def get_db() -> Database:
    return get_client()[settings.MONGODB_DB]


def ensure_indexes() -> None:
    """Create the cache index. Run once at startup when CACHE_BACKEND=mongo."""
    get_db()[settings.MONGODB_CACHE_COLLECTION].create_index("key", unique=True)
    logger.info("MongoDB indexes ensured")
