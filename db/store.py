"""Persistent key-value cache. Values are whole JSON-serializable objects; there is no partial update."""
import json
import os
from pathlib import Path
from typing import Any, Iterable, Protocol

from pymongo.collection import Collection

from config import settings
from utils.logging import get_logger

logger = get_logger(__name__)


class KeyValueStore(Protocol):
    def get(self, keys: Iterable[str]) -> dict[str, Any]: ...

    def set(self, mapping: dict[str, Any]) -> None: ...

    def delete(self, keys: Iterable[str]) -> None: ...


class MemoryStore:
    """Dict-backed store. Lives for the process only."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, keys: Iterable[str]) -> dict[str, Any]:
        return {k: self._data[k] for k in keys if k in self._data}

    def set(self, mapping: dict[str, Any]) -> None:
        self._data.update(mapping)

    def delete(self, keys: Iterable[str]) -> None:
        for k in keys:
            self._data.pop(k, None)


class JsonFileStore:
    """All keys in one JSON document on disk. A missing or unreadable file reads as empty."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Cache file %s unreadable, starting empty: %s", self.path, e)
            return {}

    def _dump(self, data: dict[str, Any]) -> None:
        os.makedirs(self.path.parent, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f)
        os.replace(tmp, self.path)

    def get(self, keys: Iterable[str]) -> dict[str, Any]:
        data = self._load()
        return {k: data[k] for k in keys if k in data}

    def set(self, mapping: dict[str, Any]) -> None:
        data = self._load()
        data.update(mapping)
        self._dump(data)

    def delete(self, keys: Iterable[str]) -> None:
        data = self._load()
        for k in keys:
            data.pop(k, None)
        self._dump(data)


class MongoStore:
    """One document per key: {key, value}."""

    def __init__(self, collection: Collection):
        self.collection = collection

    def get(self, keys: Iterable[str]) -> dict[str, Any]:
        keys = list(keys)
        return {doc["key"]: doc.get("value") for doc in self.collection.find({"key": {"$in": keys}})}

    def set(self, mapping: dict[str, Any]) -> None:
        for k, v in mapping.items():
            self.collection.update_one({"key": k}, {"$set": {"key": k, "value": v}}, upsert=True)

    def delete(self, keys: Iterable[str]) -> None:
        self.collection.delete_many({"key": {"$in": list(keys)}})


_store: KeyValueStore | None = None


def get_store() -> KeyValueStore:
    """Return the process-wide store selected by CACHE_BACKEND.

    Store methods block (file I/O or a Mongo round trip). Async callers run them
    through asyncio.to_thread so the event loop keeps serving requests.
    """
    global _store
    if _store is None:
        backend = settings.CACHE_BACKEND
        if backend == "mongo":
            from db.client import ensure_indexes
            from db.collections import kv_cache_collection
            ensure_indexes()
            _store = MongoStore(kv_cache_collection())
        elif backend == "memory":
            _store = MemoryStore()
        else:
            _store = JsonFileStore(settings.CACHE_PATH)
        logger.info("Cache backend: %s", type(_store).__name__)
    return _store
