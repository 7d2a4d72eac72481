"""
MongoDB access for users and blogs.

pymongo is synchronous; callers in async code run these methods through
starlette's threadpool. Uniqueness of email, username and blog_id is enforced
by unique indexes, never by a read-then-write check.
"""

import logging
from typing import Any, Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from errors import PersistenceError, UniquenessConflict
from settings import Settings

log = logging.getLogger(__name__)


def connect(settings: Settings) -> Optional[Database]:
    if not settings.database_url:
        log.warning("DATABASE_URL is not set, running without a database")
        return None
    client = MongoClient(settings.database_url)
    return client[settings.database_name]


def _object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _conflicting_field(err: DuplicateKeyError) -> str:
    pattern = (err.details or {}).get("keyPattern") or {}
    return next(iter(pattern), "key")


class UserRepository:
    def __init__(self, db: Database):
        self.collection = db["users"]

    def ensure_indexes(self) -> None:
        self.collection.create_index("personal_info.email", unique=True)
        self.collection.create_index("personal_info.username", unique=True)

    def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        try:
            return self.collection.find_one({"personal_info.email": email})
        except PyMongoError as err:
            raise PersistenceError(str(err)) from err

    def username_exists(self, username: str) -> bool:
        try:
            doc = self.collection.find_one({"personal_info.username": username}, {"_id": 1})
        except PyMongoError as err:
            raise PersistenceError(str(err)) from err
        return doc is not None

    def insert(self, doc: Dict[str, Any]) -> str:
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError as err:
            raise UniquenessConflict(_conflicting_field(err)) from err
        except PyMongoError as err:
            raise PersistenceError(str(err)) from err
        return str(result.inserted_id)

    def record_publication(self, user_id: str, blog_ref: Any, increment: int) -> bool:
        """Bump total_posts and append the blog in one update. False if no user matched."""
        oid = _object_id(user_id)
        if oid is None:
            return False
        try:
            result = self.collection.update_one(
                {"_id": oid},
                {"$inc": {"account_info.total_posts": increment}, "$push": {"blogs": blog_ref}},
            )
        except PyMongoError as err:
            raise PersistenceError(str(err)) from err
        return result.matched_count == 1


class BlogRepository:
    def __init__(self, db: Database):
        self.collection = db["blogs"]

    def ensure_indexes(self) -> None:
        self.collection.create_index("blog_id", unique=True)

    def insert(self, doc: Dict[str, Any]) -> Any:
        author = _object_id(doc.get("author"))
        if author is not None:
            doc = {**doc, "author": author}
        try:
            result = self.collection.insert_one(doc)
        except PyMongoError as err:
            raise PersistenceError(str(err)) from err
        return result.inserted_id
