from db.collections import (
    AUTH_COOKIES_KEY,
    FOCUS_KEY,
    RATINGS_KEY,
    RATINGS_TS_KEY,
    SOLVED_KEY,
    TAG_MAP_KEY,
)
from db.store import JsonFileStore, KeyValueStore, MemoryStore, MongoStore, get_store

__all__ = [
    "get_store",
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "MongoStore",
    "RATINGS_KEY",
    "RATINGS_TS_KEY",
    "FOCUS_KEY",
    "SOLVED_KEY",
    "TAG_MAP_KEY",
    "AUTH_COOKIES_KEY",
]
