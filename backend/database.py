from __future__ import annotations
import json
import logging
import os
from typing import Any, Optional, Protocol
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pydantic_settings import BaseSettings
from datetime import datetime

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    DATABASE_URL: str = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
    DATABASE_NAME: str = os.getenv("DATABASE_NAME", "loja_online")
    STORE_BACKEND: str = "memory"
    ADMIN_EMAIL: str = "admin@loja.local"
    ADMIN_PASSWORD: str = "admin"
    LOG_LEVEL: str = "INFO"
    PORT: int = 8000

settings = Settings()

_client: Optional[AsyncIOMotorClient] = None
_db: Optional[AsyncIOMotorDatabase] = None

async def get_db() -> AsyncIOMotorDatabase:
    global _client, _db
    if _db is None:
        _client = AsyncIOMotorClient(settings.DATABASE_URL)
        _db = _client[settings.DATABASE_NAME]
    return _db


class KeyValueStore(Protocol):
    """Key -> JSON text storage, the shape of the browser's local/session storage."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class MemoryStore:
    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class MongoStore:
    """One document per key in the `storage` collection."""

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "storage") -> None:
        self._collection = db[collection_name]

    async def get(self, key: str) -> Optional[str]:
        doc = await self._collection.find_one({"_id": key})
        if not doc:
            return None
        return doc.get("value")

    async def set(self, key: str, value: str) -> None:
        now = datetime.utcnow()
        await self._collection.update_one(
            {"_id": key},
            {"$set": {"value": value, "updated_at": now}},
            upsert=True,
        )

    async def delete(self, key: str) -> None:
        await self._collection.delete_one({"_id": key})


_local_store: Optional[KeyValueStore] = None
_session_store: Optional[KeyValueStore] = None

async def get_local_store() -> KeyValueStore:
    global _local_store
    if _local_store is None:
        if settings.STORE_BACKEND == "mongo":
            _local_store = MongoStore(await get_db())
        else:
            _local_store = MemoryStore()
        logger.info("Local store backend: %s", settings.STORE_BACKEND)
    return _local_store

async def get_session_store() -> KeyValueStore:
    global _session_store
    if _session_store is None:
        _session_store = MemoryStore()
    return _session_store

async def read_json(store: KeyValueStore, key: str, default: Any = None) -> Any:
    raw = await store.get(key)
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except ValueError as e:
        logger.warning("Corrupt value under %r, using default: %s", key, e)
        return default

async def write_json(store: KeyValueStore, key: str, value: Any) -> None:
    await store.set(key, json.dumps(value, ensure_ascii=False))
