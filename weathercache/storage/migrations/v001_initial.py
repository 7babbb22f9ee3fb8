"""Initial schema: key/value blob table backing the favorites store."""

import sqlite3

DDL = [
    """
    CREATE TABLE IF NOT EXISTS blobs (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
]


def up(conn: sqlite3.Connection) -> None:
    for statement in DDL:
        conn.execute(statement)
    conn.commit()
