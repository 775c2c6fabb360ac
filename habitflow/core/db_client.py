"""SQLite key-value blob store client.

Goals and tasks are persisted as opaque JSON blobs keyed by collection name.
"""

import asyncio
import logging
import re
import threading
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite

from habitflow.core.config import settings


logger = logging.getLogger(__name__)


class DatabaseError(RuntimeError):
    """Raised when a blob store operation fails."""


_CREATE_BLOBS_TABLE = """
CREATE TABLE IF NOT EXISTS blobs (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""


def _validate_key(key: str) -> None:
    """Validate that a blob key contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", key):
        msg = f"Invalid blob key: {key}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


_db_connections: dict[tuple[int, int, str], aiosqlite.Connection] = {}
_db_lock = asyncio.Lock()


async def get_connection(*, db_path: str | None = None) -> aiosqlite.Connection:
    """Get or create a cached connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop = asyncio.get_running_loop()
    loop_id = id(loop)
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key in _db_connections:
        return _db_connections[cache_key]

    # Create new connection with async lock to prevent races
    async with _db_lock:
        # Double-check after acquiring lock
        if cache_key in _db_connections:
            return _db_connections[cache_key]

        path.parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(str(path))
        await conn.execute("PRAGMA journal_mode = WAL")

        _db_connections[cache_key] = conn

        logger.info(
            "Created new SQLite connection",
            extra={"db_path": str(path), "thread_id": thread_id, "loop_id": loop_id},
        )
        return conn


async def close_connection(*, db_path: str | None = None) -> None:
    """Close the cached SQLite connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop_id = id(asyncio.get_running_loop())
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key not in _db_connections:
        return

    try:
        async with _db_lock:
            conn = _db_connections.pop(cache_key, None)
            if conn is not None:
                await conn.close()
                logger.info(
                    "Closed SQLite connection",
                    extra={"thread_id": thread_id, "loop_id": loop_id, "db_path": str(path)},
                )
    except Exception as e:
        logger.warning(
            "Error closing SQLite connection",
            extra={"error": str(e), "thread_id": thread_id, "loop_id": loop_id},
        )


async def init_db(*, db_path: str | None = None) -> None:
    """Create the blob table if it does not exist."""
    try:
        conn = await get_connection(db_path=db_path)
        await conn.execute(_CREATE_BLOBS_TABLE)
        await conn.commit()
        logger.info("Initialized blob store", extra={"db_path": str(get_db_path(db_path))})
    except Exception as e:
        logger.error("init_db_failed", extra={"error": str(e)})
        msg = f"Failed to initialize blob store: {e}"
        raise DatabaseError(msg) from e


async def get_blob(*, key: str, db_path: str | None = None) -> str | None:
    """Return the stored blob for a key, or None if it was never written."""
    _validate_key(key)
    try:
        conn = await get_connection(db_path=db_path)
        cursor = await conn.execute("SELECT value FROM blobs WHERE key = ?", (key,))
        row = await cursor.fetchone()
    except Exception as e:
        logger.error("get_blob_failed", extra={"key": key, "error": str(e)})
        msg = f"Failed to read blob {key}: {e}"
        raise DatabaseError(msg) from e

    if row is None:
        logger.debug("Blob not found", extra={"key": key})
        return None

    logger.debug("Retrieved blob", extra={"key": key, "size": len(row[0])})
    return row[0]


async def set_blob(*, key: str, value: str, db_path: str | None = None) -> None:
    """Insert or replace the blob stored under a key."""
    _validate_key(key)
    try:
        conn = await get_connection(db_path=db_path)
        await conn.execute(
            "INSERT INTO blobs (key, value, updated_at) VALUES (?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
            (key, value, datetime.now(UTC).isoformat()),
        )
        await conn.commit()
    except Exception as e:
        if isinstance(e, aiosqlite.OperationalError) and "no such table" in str(e):
            logger.error("Blob table not found", extra={"key": key})
            msg = "Blob table does not exist. Call init_db() first."
            raise DatabaseError(msg) from e
        logger.error("set_blob_failed", extra={"key": key, "error": str(e)})
        msg = f"Failed to write blob {key}: {e}"
        raise DatabaseError(msg) from e

    logger.info("Stored blob", extra={"key": key, "size": len(value)})
