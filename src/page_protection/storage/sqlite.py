"""SQLite-backed page store.

Keeps page revisions and page properties in one SQLite database, in a
layout modelled on a wiki's ``page_props`` table::

    revision   (rev_id, rev_page, rev_text)
    page_props (pp_page, pp_propname, pp_value)

A save writes the revision row and replaces the page's properties inside a
single ``BEGIN IMMEDIATE`` transaction, so a rule is never visible without
the revision that declared it.

Blocking ``sqlite3`` calls run in a worker thread via
:func:`asyncio.to_thread`; one connection is shared and serialised by a
lock.
"""
from __future__ import annotations

import asyncio
import logging
import sqlite3
import threading
from pathlib import Path

from page_protection.core.types import PageId

logger = logging.getLogger(__name__)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS revision (
        rev_id INTEGER PRIMARY KEY AUTOINCREMENT,
        rev_page INTEGER NOT NULL,
        rev_text TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_revision_page ON revision(rev_page)",
    """
    CREATE TABLE IF NOT EXISTS page_props (
        pp_page INTEGER NOT NULL,
        pp_propname TEXT NOT NULL,
        pp_value TEXT NOT NULL,
        PRIMARY KEY (pp_page, pp_propname)
    )
    """,
)


def initialize_schema(conn: sqlite3.Connection) -> None:
    """Create the tables if they do not exist yet."""
    try:
        for statement in SCHEMA:
            conn.execute(statement)
        conn.commit()
    except sqlite3.Error as e:
        logger.error("Failed to initialize page store schema: %s", e)
        raise


class SqlitePageStore:
    """Page store persisted in an SQLite database.

    Parameters
    ----------
    db_path:
        Database file, or ``":memory:"`` for a private in-memory database.
    """

    def __init__(self, db_path: Path | str = ":memory:") -> None:
        self.db_path = db_path
        if isinstance(db_path, Path):
            db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(
            str(db_path),
            timeout=60.0,
            check_same_thread=False,
            isolation_level=None,
        )
        self._conn.execute("PRAGMA busy_timeout = 30000")
        initialize_schema(self._conn)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # -- blocking helpers ---------------------------------------------------

    def _select_properties(self, page_id: int, name: str) -> list[str]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT pp_value FROM page_props WHERE pp_page = ? AND pp_propname = ?",
                (page_id, name),
            ).fetchall()
        return [row[0] for row in rows]

    def _write_revision(self, page_id: int, text: str, properties: dict[str, str]) -> int:
        with self._lock:
            cursor = self._conn.cursor()
            cursor.execute("BEGIN IMMEDIATE")
            try:
                cursor.execute(
                    "INSERT INTO revision (rev_page, rev_text) VALUES (?, ?)",
                    (page_id, text),
                )
                revision_id = cursor.lastrowid
                cursor.execute("DELETE FROM page_props WHERE pp_page = ?", (page_id,))
                cursor.executemany(
                    "INSERT INTO page_props (pp_page, pp_propname, pp_value) VALUES (?, ?, ?)",
                    [(page_id, name, value) for name, value in properties.items()],
                )
                cursor.execute("COMMIT")
            except sqlite3.Error:
                cursor.execute("ROLLBACK")
                raise
        logger.debug("Stored revision %s of page %s", revision_id, page_id)
        return int(revision_id)

    def _select_text(self, page_id: int) -> str | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT rev_text FROM revision WHERE rev_page = ? "
                "ORDER BY rev_id DESC LIMIT 1",
                (page_id,),
            ).fetchone()
        return None if row is None else row[0]

    # -- PageStore ----------------------------------------------------------

    async def get_properties(self, page_id: PageId, name: str) -> list[str]:
        return await asyncio.to_thread(self._select_properties, int(page_id), name)

    async def get_property(self, page_id: PageId, name: str) -> str | None:
        values = await self.get_properties(page_id, name)
        return values[0] if values else None

    async def save_revision(
        self, page_id: PageId, text: str, properties: dict[str, str]
    ) -> int:
        return await asyncio.to_thread(
            self._write_revision, int(page_id), text, dict(properties)
        )

    async def get_text(self, page_id: PageId) -> str | None:
        return await asyncio.to_thread(self._select_text, int(page_id))
