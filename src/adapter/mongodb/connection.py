"""Process-wide MongoDB client.

The client is created on first use and cached. A cached client that stops
answering pings is replaced; a missing MONGO_URL or a failed first connection
disables further attempts until reset_client() is called.
"""

import os
import logging
from pymongo import MongoClient
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

logging.getLogger('pymongo').setLevel(logging.WARNING)

MONGO_URL = os.getenv('MONGO_URL')
DATABASE_NAME = os.getenv('MONGODB_DATABASE', 'property_admin')
USERS_COLLECTION_NAME = 'users'

# Bounded timeouts so a stalled server fails requests instead of hanging them
CLIENT_OPTIONS = {
    'serverSelectionTimeoutMS': 5000,
    'connectTimeoutMS': 5000,
    'socketTimeoutMS': 10000,
    'waitQueueTimeoutMS': 10000,
    'maxPoolSize': 20,
    'minPoolSize': 0,
    'maxIdleTimeMS': 30000,
    'retryWrites': True,
    'retryReads': True,
    'tz_aware': True,
}

_client_cache: MongoClient | None = None
_ever_connected = False
_disabled = False


def reset_client():
    global _client_cache, _ever_connected, _disabled
    _client_cache = None
    _ever_connected = False
    _disabled = False


def _is_alive(client: MongoClient) -> bool:
    try:
        client.admin.command('ping')
        return True
    except PyMongoError:
        return False


def get_mongodb_client() -> MongoClient | None:
    """Return a connected client, or None when MongoDB is unreachable or unconfigured."""
    global _client_cache, _ever_connected, _disabled

    if _client_cache is not None:
        if _is_alive(_client_cache):
            return _client_cache
        logger.debug("[MONGODB] Cached client failed ping, reconnecting")
        _client_cache = None

    if _disabled:
        return None

    if not MONGO_URL:
        logger.error("[MONGODB] MONGO_URL not configured.")
        _disabled = True
        return None

    try:
        client = MongoClient(MONGO_URL, **CLIENT_OPTIONS)
        client.admin.command('ping')
    except PyMongoError as e:
        if not _ever_connected:
            logger.error("[MONGODB] Initial connection failed", extra={"error": str(e)[:200]})
            _disabled = True
        return None

    if not _ever_connected:
        logger.info("[MONGODB] Connected", extra={"database": DATABASE_NAME})
    _ever_connected = True
    _client_cache = client
    return client
