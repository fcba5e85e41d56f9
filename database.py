"""
MongoDB access.

A single `MongoClient` is created lazily per process from `DATABASE_URL` /
`DATABASE_NAME`. Collections used by the site:

- works  -> gallery entries
- admin  -> singleton contact/banner document (`type: "admin"`)
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId as BsonInvalidId
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from config import get_settings
from errors import InvalidId, UpstreamError

logger = logging.getLogger(__name__)

_client: Optional[MongoClient] = None


def get_client() -> Optional[MongoClient]:
    global _client
    settings = get_settings()
    if _client is None and settings.database_url:
        _client = MongoClient(settings.database_url, tz_aware=True)
        logger.info("Connected MongoDB client for database %s", settings.database_name)
    return _client


def get_db() -> Database:
    """FastAPI dependency returning the configured database."""
    client = get_client()
    name = get_settings().database_name
    if client is None or not name:
        raise UpstreamError("Database not available")
    return client[name]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(value: str) -> ObjectId:
    """Parse a hex id before it reaches the driver."""
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise InvalidId(f"Invalid id: {value!r}")
    try:
        return ObjectId(value)
    except (BsonInvalidId, TypeError):
        raise InvalidId(f"Invalid id: {value!r}")


def create_document(db: Database, collection_name: str, data: dict) -> dict:
    """Insert a document stamped with `createdAt` and return it with its `_id`."""
    doc = dict(data)
    doc["createdAt"] = utcnow()
    try:
        result = db[collection_name].insert_one(doc)
    except PyMongoError as exc:
        raise UpstreamError(f"Failed to insert into {collection_name}") from exc
    if not result.acknowledged:
        raise UpstreamError(f"Insert into {collection_name} was not acknowledged")
    doc["_id"] = result.inserted_id
    return doc


def normalize_id(doc: dict) -> dict:
    """Replace Mongo's `_id` with a string `id`."""
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return doc
