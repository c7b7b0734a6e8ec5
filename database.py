"""
MongoDB access helpers.

The client is created lazily from settings and shared by the whole process;
pymongo pools connections internally.
"""

from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.database import Database

from settings import get_settings


@lru_cache()
def get_client() -> MongoClient:
    settings = get_settings()
    return MongoClient(settings.database_url, tz_aware=False)


def get_database() -> Database:
    return get_client()[get_settings().database_name]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(value: str) -> Optional[ObjectId]:
    """Parse an id string; malformed ids are just ids that match nothing."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def create_document(db: Database, collection_name: str, data: Union[BaseModel, dict]) -> str:
    """Insert a document with created_at/updated_at stamps and return its id."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = dict(data)

    now = utcnow()
    data_dict["created_at"] = now
    data_dict["updated_at"] = now

    result = db[collection_name].insert_one(data_dict)
    return str(result.inserted_id)
