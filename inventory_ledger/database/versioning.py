import logging
import sqlite3

from ..constants import TABLE_SCHEMA_VERSION

_log = logging.getLogger(__name__)


def _ensure_table(conn: sqlite3.Connection) -> None:
    # single-row table: id is pinned to 1
    conn.execute(
        f"CREATE TABLE IF NOT EXISTS {TABLE_SCHEMA_VERSION}("
        "id INTEGER PRIMARY KEY CHECK (id = 1), version TEXT NOT NULL);"
    )


def get_current_version(conn: sqlite3.Connection) -> str | None:
    _ensure_table(conn)
    row = conn.execute(f"SELECT version FROM {TABLE_SCHEMA_VERSION} WHERE id = 1;").fetchone()
    return None if row is None else row[0]


def stamp_version(conn: sqlite3.Connection, version: str) -> str | None:
    """
    Record `version` as the schema version and return the previous stamp
    (None for a fresh database). Does not commit.
    """
    previous = get_current_version(conn)
    if previous != version:
        conn.execute(
            f"INSERT INTO {TABLE_SCHEMA_VERSION}(id, version) VALUES (1, ?) "
            "ON CONFLICT(id) DO UPDATE SET version = excluded.version;",
            (version,),
        )
        _log.info("schema version %s -> %s", previous, version)
    return previous
