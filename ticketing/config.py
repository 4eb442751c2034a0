# ticketing/config.py
"""
Configuration & logging.

Everything is read from the environment once, at import time.
"""
from __future__ import annotations

import logging
import os

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

MONGO_URI = os.environ.get("MONGO_URI", "mongodb://localhost:27017")
DB_NAME = os.environ.get("MONGO_DB", "event_ticketing")

# Multi-document transactions need a replica set; off by default for a standalone mongod.
MONGO_TRANSACTIONS = os.environ.get("MONGO_TRANSACTIONS", "0") == "1"

HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "5000"))
DEBUG = os.environ.get("FLASK_DEBUG", "0") == "1"

# Upper bound for list endpoints
MAX_LIST = 200
