"""
SQLite connection management for the document store.

Documents are stored as JSON bodies, one table per collection. Lookups use
SQLite's JSON functions, with an expression index on the path field.

Database location: DATABASE_URL, collection table: COLLECTION.
"""

import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from evidence_hook.errors import ConfigError

COLLECTION_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def check_collection(collection: str) -> str:
    """Return collection if it is usable as a table name, raise ConfigError otherwise."""
    if not COLLECTION_NAME.match(collection):
        raise ConfigError(f"invalid COLLECTION name: {collection!r}")
    return collection


def init_database(database_url: str, collection: str) -> None:
    """
    Initialize the collection table and its path index.

    Creates the data directory if it doesn't exist. Uses IF NOT EXISTS
    so this is safe to call on every startup.
    """
    check_collection(collection)
    db_path = Path(database_url)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_connection(database_url) as conn:
        conn.execute(f"""
            CREATE TABLE IF NOT EXISTS "{collection}" (
                id TEXT PRIMARY KEY,
                body TEXT NOT NULL DEFAULT '{{}}'
            )
        """)
        conn.execute(f"""
            CREATE INDEX IF NOT EXISTS "{collection}_path"
            ON "{collection}" (json_extract(body, '$.path'))
        """)


@contextmanager
def get_connection(database_url: str) -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.

    Usage:
        with get_connection(settings.database_url) as conn:
            conn.execute(...)

    Automatically commits on success and rolls back on exception.
    """
    conn = sqlite3.connect(str(database_url))
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
