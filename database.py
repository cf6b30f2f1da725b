"""
Database helpers

MongoDB connection and thin CRUD helpers shared by the content store and the
progress tracker. The connection is configured from the environment (or a
.env file):

- DATABASE_URL: MongoDB connection string
- DATABASE_NAME: database to use
- DATABASE_TIMEOUT_MS: server selection timeout, so calls fail fast

When either DATABASE_URL or DATABASE_NAME is missing, ``db`` stays None and
every helper raises StorageError.
"""

import logging
import os
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from errors import StorageError

load_dotenv()

logger = logging.getLogger(__name__)

_client: Optional[MongoClient] = None
db = None

database_url = os.getenv("DATABASE_URL")
database_name = os.getenv("DATABASE_NAME")

if database_url and database_name:
    _client = MongoClient(
        database_url,
        serverSelectionTimeoutMS=int(os.getenv("DATABASE_TIMEOUT_MS", 5000)),
    )
    db = _client[database_name]
else:
    logger.warning("DATABASE_URL or DATABASE_NAME not set, database not available")


@contextmanager
def storage_errors(action: str):
    """Re-raise driver failures as StorageError, without retrying."""
    try:
        yield
    except PyMongoError as e:
        logger.exception("Database error while trying to %s", action)
        raise StorageError(str(e)) from e


def collection(name: str) -> Collection:
    if db is None:
        raise StorageError("Database not available")
    return db[name]


def with_utc(value):
    """Mark the naive UTC datetimes pymongo returns as UTC, nested values included."""
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    if isinstance(value, dict):
        return {k: with_utc(v) for k, v in value.items()}
    if isinstance(value, list):
        return [with_utc(v) for v in value]
    return value


def to_str_id(doc: Optional[dict]):
    """
    Copy of a stored document with ObjectId `_id` exposed as string `id`
    and timestamps as aware UTC datetimes, so JSON carries the zone.
    """
    if doc is None:
        return doc
    d = with_utc(dict(doc))
    if "_id" in d:
        d["id"] = str(d.pop("_id"))
    return d


def create_document(collection_name: str, data: Union[BaseModel, dict]) -> dict:
    """Insert one document and return it as stored, with `id` set."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump(by_alias=True, exclude={"id"})
    else:
        data_dict = dict(data)
    with storage_errors(f"insert into {collection_name}"):
        result = collection(collection_name).insert_one(data_dict)
    data_dict["_id"] = result.inserted_id
    return to_str_id(data_dict)


def get_documents(collection_name: str, filter_dict: Optional[dict] = None,
                  limit: Optional[int] = None, sort: Optional[list] = None) -> list:
    with storage_errors(f"read {collection_name}"):
        cursor = collection(collection_name).find(filter_dict or {})
        if sort:
            cursor = cursor.sort(sort)
        if limit:
            cursor = cursor.limit(limit)
        return [to_str_id(d) for d in cursor]


def ensure_indexes():
    """Create the indexes the queries rely on. Safe to call repeatedly."""
    with storage_errors("create indexes"):
        collection("chapter").create_index([("isActive", ASCENDING), ("releaseDate", ASCENDING)])
        collection("test").create_index([("isActive", ASCENDING), ("createdAt", ASCENDING)])
        collection("userprogress").create_index("userId", unique=True)
