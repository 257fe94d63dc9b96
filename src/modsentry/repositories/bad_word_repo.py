"""
Persistent storage for banned words (the ``bad_words`` table).

Implements the WordStore interface the word-list cache reads through. A
NULL ``guild_id`` marks a global word. Any SQLite failure, including a
connection that was never opened, surfaces as StoreUnavailable.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List, Optional

import aiosqlite

from modsentry.database.db_connection import ConnectionManager
from modsentry.datatypes.moderation_datatypes import BadWordEntry, Severity, WordCategory
from modsentry.moderation.exceptions import StoreUnavailable, ValidationError
from modsentry.util.logger import get_logger

logger = get_logger("bad_word_repo")


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Translate SQLite and connection errors into StoreUnavailable."""
    try:
        yield
    except (aiosqlite.Error, RuntimeError) as exc:
        logger.error("[STORE] %s failed: %s", operation, exc)
        raise StoreUnavailable(f"{operation} failed: {exc}") from exc


def _scope_clause(scope: Optional[str]) -> tuple[str, tuple]:
    if scope is None:
        return "guild_id IS NULL", ()
    return "guild_id = ?", (str(scope),)


def _row_to_entry(row) -> BadWordEntry:
    try:
        category = WordCategory.parse(row["category"])
    except ValidationError:
        category = WordCategory.CUSTOM
    try:
        severity = Severity.parse(row["severity"])
    except ValidationError:
        logger.warning("[BAD WORD REPO] Unknown severity %r for word %r, using medium", row["severity"], row["word"])
        severity = Severity.MEDIUM
    return BadWordEntry(
        word=row["word"],
        category=category,
        severity=severity,
        scope=row["guild_id"],
        added_by=row["added_by"],
    )


class BadWordRepository:
    """CRUD for the bad_words table."""

    def __init__(self, db: ConnectionManager):
        self._db = db

    async def find_active_custom_words(self, scope: Optional[str]) -> List[BadWordEntry]:
        """Active ``custom`` words for one guild, or the global list when ``scope`` is None."""
        clause, params = _scope_clause(scope)
        with store_errors("find_active_custom_words"):
            async with self._db.read() as conn:
                async with conn.execute(
                    f"""
                    SELECT word, category, severity, guild_id, added_by
                    FROM bad_words
                    WHERE category = ? AND is_active = 1 AND {clause}
                    ORDER BY id
                    """,
                    (WordCategory.CUSTOM.value, *params),
                ) as cursor:
                    rows = await cursor.fetchall()
        return [_row_to_entry(row) for row in rows]

    async def create_word(
        self,
        word: str,
        severity: Severity,
        scope: Optional[str],
        added_by: Optional[str],
    ) -> BadWordEntry:
        """Insert one active custom word and return it."""
        entry = BadWordEntry(
            word=word,
            category=WordCategory.CUSTOM,
            severity=Severity.parse(severity),
            scope=None if scope is None else str(scope),
            added_by=added_by,
        )
        with store_errors("create_word"):
            async with self._db.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO bad_words (word, category, severity, guild_id, added_by, is_active)
                    VALUES (?, ?, ?, ?, ?, 1)
                    """,
                    (entry.word, entry.category.value, entry.severity.value, entry.scope, entry.added_by),
                )
        return entry

    async def delete_words(self, word: str, scope: Optional[str]) -> int:
        """Delete every row for ``word`` in ``scope``; returns the number of rows removed."""
        clause, params = _scope_clause(scope)
        with store_errors("delete_words"):
            async with self._db.transaction() as conn:
                cursor = await conn.execute(
                    f"DELETE FROM bad_words WHERE word = ? AND {clause}",
                    (word, *params),
                )
                removed = cursor.rowcount
        return max(removed, 0)
