"""MongoDB access.

Collections:
- "users": registered accounts, unique on username
- "blogs": blog posts, each optionally owned by a user

Handlers receive the database through the ``get_db`` dependency so tests can
swap in an in-memory store.
"""
import threading
from typing import Optional

from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

import config
from observability import get_logger

logger = get_logger(__name__)

USERS = "users"
BLOGS = "blogs"

_client: Optional[MongoClient] = None
_db: Optional[Database] = None
_lock = threading.Lock()


def ensure_indexes(db: Database) -> None:
    db[USERS].create_index([("username", ASCENDING)], unique=True)
    db[BLOGS].create_index([("user", ASCENDING)])


def init_db(uri: str, name: str) -> Database:
    global _client, _db
    _client = MongoClient(uri)
    _db = _client[name]
    ensure_indexes(_db)
    logger.info("connected to MongoDB", database=name)
    return _db


def close_db() -> None:
    global _client, _db
    with _lock:
        if _client is not None:
            _client.close()
            logger.info("MongoDB connection closed")
        _client = None
        _db = None


def get_db() -> Database:
    if _db is None:
        # sync handlers run in a threadpool; only one of them may connect
        with _lock:
            if _db is None:
                return init_db(config.mongodb_uri(), config.DATABASE_NAME)
    return _db
