"""
Audit log of content violations (the ``content_violations`` table).

One row per flagged message: who, where, which words, and what the bot did
about it. Detected words are stored as a JSON list.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from modsentry.database.db_connection import ConnectionManager
from modsentry.repositories.bad_word_repo import store_errors
from modsentry.util.logger import get_logger

logger = get_logger("violation_log_repo")

MAX_CONTENT_LENGTH = 2000


@dataclass
class ContentViolationRecord:
    """A single row from the ``content_violations`` table."""
    guild_id: str
    channel_id: str
    user_id: str
    severity: str
    action: str
    confidence: float = 0.0
    detected_words: List[str] = field(default_factory=list)
    content: str = ""
    message_id: Optional[str] = None
    timestamp: Optional[str] = None


class ViolationLogRepository:
    """Writes and queries content violation records."""

    def __init__(self, db: ConnectionManager):
        self._db = db

    async def log_violation(
        self,
        guild_id,
        channel_id,
        user_id,
        *,
        detected_words: Sequence[str],
        severity: str,
        confidence: float,
        action: str,
        content: str = "",
        message_id=None,
    ) -> None:
        """Insert one violation row. Content is truncated to a Discord message's length."""
        with store_errors("log_violation"):
            async with self._db.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO content_violations (
                        guild_id, channel_id, user_id, message_id, content,
                        detected_words, severity, confidence, action
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        str(guild_id),
                        str(channel_id),
                        str(user_id),
                        None if message_id is None else str(message_id),
                        (content or "")[:MAX_CONTENT_LENGTH],
                        json.dumps(list(detected_words)),
                        str(severity),
                        float(confidence),
                        str(action),
                    ),
                )
        logger.debug("[VIOLATION LOG] Logged %s violation for user %s in guild %s", severity, user_id, guild_id)

    async def recent_for_guild(self, guild_id, limit: int = 20) -> List[ContentViolationRecord]:
        """Most recent violations for a guild, newest first."""
        with store_errors("recent_for_guild"):
            async with self._db.read() as conn:
                async with conn.execute(
                    """
                    SELECT guild_id, channel_id, user_id, message_id, content,
                           detected_words, severity, confidence, action, timestamp
                    FROM content_violations
                    WHERE guild_id = ?
                    ORDER BY timestamp DESC, id DESC
                    LIMIT ?
                    """,
                    (str(guild_id), int(limit)),
                ) as cursor:
                    rows = await cursor.fetchall()

        records = []
        for row in rows:
            try:
                words = json.loads(row["detected_words"] or "[]")
            except json.JSONDecodeError:
                words = []
            records.append(ContentViolationRecord(
                guild_id=row["guild_id"],
                channel_id=row["channel_id"],
                user_id=row["user_id"],
                message_id=row["message_id"],
                content=row["content"],
                detected_words=words if isinstance(words, list) else [],
                severity=row["severity"],
                confidence=row["confidence"],
                action=row["action"],
                timestamp=row["timestamp"],
            ))
        return records
