from typing import Optional

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from media_catalog.config import Settings, load_settings

_client: Optional[MongoClient] = None


def get_client(settings: Optional[Settings] = None) -> MongoClient:
    """Return the process-wide MongoClient, creating it on first use.

    MongoClient connects lazily, so this doesn't block on an unreachable server;
    the first real operation will raise instead.
    """
    global _client
    settings = settings or load_settings()
    if _client is None:
        try:
            _client = MongoClient(settings.mongo_uri, serverSelectionTimeoutMS=5000)
        except PyMongoError as exc:
            raise RuntimeError(
                f"Failed to create MongoDB client for URI '{settings.mongo_uri}'. "
                f"Check MONGO_URI and that the database is reachable.\nError: {exc}"
            ) from exc
    return _client


def get_collection(settings: Optional[Settings] = None):
    settings = settings or load_settings()
    client = get_client(settings)
    return client[settings.mongo_db][settings.mongo_collection]


def close_client() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None
