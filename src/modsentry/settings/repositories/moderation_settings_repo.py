"""
Repository for the content_moderation_settings table.

List-valued settings (custom words, monitored channels, excluded roles) are
stored as JSON text columns. Rows are loaded leniently: a column that does
not parse, or an unknown enum value, falls back to its default with a
warning instead of failing the whole load.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

from modsentry.database.db_connection import ConnectionManager
from modsentry.datatypes.discord_datatypes import GuildID
from modsentry.datatypes.moderation_settings import GuildModerationSettings
from modsentry.repositories.bad_word_repo import store_errors
from modsentry.util.logger import get_logger

logger = get_logger("moderation_settings_repo")

_JSON_COLUMNS = ("custom_words", "monitored_channel_ids", "excluded_role_ids")


def _load_json_list(guild_id: str, column: str, raw: Any) -> List[Any]:
    if raw in (None, ""):
        return []
    try:
        value = json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        logger.warning("[MODERATION SETTINGS REPO] Unparsable %s for guild %s, using default", column, guild_id)
        return []
    if not isinstance(value, list):
        logger.warning("[MODERATION SETTINGS REPO] Non-list %s for guild %s, using default", column, guild_id)
        return []
    return value


class ModerationSettingsRepository:
    """CRUD for the content_moderation_settings table."""

    def __init__(self, db: ConnectionManager):
        self._db = db

    async def get_all(self) -> Dict[GuildID, GuildModerationSettings]:
        """Load every guild's settings keyed by GuildID."""
        with store_errors("load moderation settings"):
            async with self._db.read() as conn:
                async with conn.execute(
                    """
                    SELECT guild_id, enabled, enable_script_transliteration, action_type,
                           sensitivity, custom_words, monitored_channel_ids,
                           excluded_role_ids, log_channel_id
                    FROM content_moderation_settings
                    """
                ) as cursor:
                    rows = await cursor.fetchall()

        result: Dict[GuildID, GuildModerationSettings] = {}
        for row in rows:
            try:
                guild_id = GuildID(row["guild_id"])
            except ValueError:
                logger.warning("[MODERATION SETTINGS REPO] Skipping row with invalid guild id %r", row["guild_id"])
                continue

            data: Dict[str, Any] = {
                "enabled": bool(row["enabled"]),
                "enable_script_transliteration": bool(row["enable_script_transliteration"]),
                "action_type": row["action_type"],
                "sensitivity": row["sensitivity"],
                "log_channel_id": row["log_channel_id"],
            }
            for column in _JSON_COLUMNS:
                data[column] = _load_json_list(str(guild_id), column, row[column])

            result[guild_id] = GuildModerationSettings.from_mapping(guild_id, data, strict=False)

        logger.info("[MODERATION SETTINGS REPO] Loaded %d guild settings", len(result))
        return result

    async def upsert(self, settings: GuildModerationSettings) -> None:
        """Insert or replace one guild's settings row."""
        data = settings.to_dict()
        with store_errors("save moderation settings"):
            async with self._db.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO content_moderation_settings (
                        guild_id, enabled, enable_script_transliteration, action_type,
                        sensitivity, custom_words, monitored_channel_ids,
                        excluded_role_ids, log_channel_id
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(guild_id) DO UPDATE SET
                        enabled                       = excluded.enabled,
                        enable_script_transliteration = excluded.enable_script_transliteration,
                        action_type                   = excluded.action_type,
                        sensitivity                   = excluded.sensitivity,
                        custom_words                  = excluded.custom_words,
                        monitored_channel_ids         = excluded.monitored_channel_ids,
                        excluded_role_ids             = excluded.excluded_role_ids,
                        log_channel_id                = excluded.log_channel_id
                    """,
                    (
                        data["guild_id"],
                        1 if settings.enabled else 0,
                        1 if settings.enable_script_transliteration else 0,
                        data["action_type"],
                        data["sensitivity"],
                        json.dumps(data["custom_words"]),
                        json.dumps(data["monitored_channel_ids"]),
                        json.dumps(data["excluded_role_ids"]),
                        data["log_channel_id"],
                    ),
                )
        logger.debug("[MODERATION SETTINGS REPO] Saved settings for guild %s", settings.guild_id)

    async def delete(self, guild_id: GuildID) -> bool:
        """Delete a guild's row; returns whether one existed."""
        with store_errors("delete moderation settings"):
            async with self._db.transaction() as conn:
                cursor = await conn.execute(
                    "DELETE FROM content_moderation_settings WHERE guild_id = ?",
                    (str(guild_id),),
                )
                removed = cursor.rowcount
        return removed > 0
