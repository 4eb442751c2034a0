# ticketing/db.py
"""
MongoDB access.

Collections are module-level globals so handlers always see the currently
bound database; `bind()` swaps them (tests bind a mongomock database).
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.client_session import ClientSession
from pymongo.database import Database

from . import config

logger = logging.getLogger("ticketing.db")

client = MongoClient(
    config.MONGO_URI,
    serverSelectionTimeoutMS=3000,
    connectTimeoutMS=3000,
    socketTimeoutMS=5000,
    retryWrites=True,
    connect=False,
)
db: Database = client[config.DB_NAME]

users_col = db["users"]
events_col = db["events"]
tickets_col = db["tickets"]


def bind(database) -> None:
    """Point every collection global at `database`."""
    global client, db, users_col, events_col, tickets_col
    client = database.client
    db = database
    users_col = database["users"]
    events_col = database["events"]
    tickets_col = database["tickets"]


def ensure_indexes() -> None:
    tickets_col.create_index([("eventId", ASCENDING), ("purchasedDate", ASCENDING)])
    tickets_col.create_index([("userId", ASCENDING)])
    users_col.create_index([("email", ASCENDING)], unique=True, sparse=True)
    events_col.create_index([("createdAt", DESCENDING)])


def init_db() -> None:
    """Verify connectivity and create indexes. Raises RuntimeError if Mongo is unreachable."""
    try:
        client.admin.command("ping")
    except Exception as e:
        logger.exception("MongoDB connection failed")
        raise RuntimeError(f"MongoDB connection failed: {e}") from e
    ensure_indexes()
    logger.info("Connected to MongoDB database %s", db.name)


@contextmanager
def write_session() -> Iterator[Optional[ClientSession]]:
    """Yield a session inside a transaction, or None when transactions are disabled.

    Every write in the block must pass `session=` so it joins the transaction.
    """
    if not config.MONGO_TRANSACTIONS:
        yield None
        return
    with client.start_session() as session:
        with session.start_transaction():
            yield session
