"""
In-process store of per-guild content moderation settings.

Provides:
- get(guild_id) -> GuildModerationSettings (defaults when never saved)
- save(guild_id, settings): replace wholesale, persist in the background
- delete(guild_id): drop from memory and the database
- should_monitor_channel / is_user_excluded helpers used by the listener

Persistence is optional: without a repository the manager is a plain
in-memory map, which is what the engine uses in tests.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Iterable, Mapping, Optional, Set, Union

from modsentry.datatypes.discord_datatypes import ChannelID, GuildID, RoleID
from modsentry.datatypes.moderation_datatypes import Sensitivity
from modsentry.datatypes.moderation_settings import GuildModerationSettings
from modsentry.moderation.exceptions import ValidationError
from modsentry.util.logger import get_logger

logger = get_logger("moderation_settings_manager")


def _parse_guild_id(guild_id: Union[GuildID, int, str]) -> GuildID:
    try:
        return GuildID(guild_id)
    except ValueError as exc:
        raise ValidationError(f"Invalid guild ID {guild_id!r}") from exc


class ModerationSettingsManager:
    """
    Manager for per-guild content moderation settings.

    Args:
        repository: Optional ModerationSettingsRepository used to load all
            settings at startup and to persist every save.
        default_sensitivity: Sensitivity reported for guilds that were never
            saved.
    """

    def __init__(self, repository=None, default_sensitivity: Sensitivity = Sensitivity.MEDIUM):
        self._repository = repository
        self._default_sensitivity = default_sensitivity
        self._guilds: Dict[GuildID, GuildModerationSettings] = {}
        self._active_persists: Set[asyncio.Task] = set()
        self._loaded = False

        logger.info("[MODERATION SETTINGS MANAGER] Initialized")

    async def async_init(self) -> None:
        """Load every persisted guild's settings into memory (once)."""
        if self._loaded or self._repository is None:
            return
        loaded = await self._repository.get_all()
        self._guilds.update(loaded)
        self._loaded = True
        logger.info("[MODERATION SETTINGS MANAGER] Loaded settings for %d guild(s)", len(loaded))

    # ========== Core API ==========

    def get(self, guild_id: Union[GuildID, int, str]) -> GuildModerationSettings:
        """
        Return the settings for a guild.

        Unknown guilds get a fresh defaults object that is not stored, so a
        read never creates state.

        Raises:
            ValidationError: If ``guild_id`` is not a snowflake.
        """
        guild_id = _parse_guild_id(guild_id)
        settings = self._guilds.get(guild_id)
        if settings is None:
            return GuildModerationSettings(guild_id=guild_id, sensitivity=self._default_sensitivity)
        return settings

    def save(
        self,
        guild_id: Union[GuildID, int, str],
        settings: Union[GuildModerationSettings, Mapping[str, Any]],
    ) -> GuildModerationSettings:
        """
        Replace a guild's settings wholesale; last write wins.

        A mapping is validated through ``GuildModerationSettings.from_mapping``
        (strict), so a bad enum value or guild ID raises ValidationError and
        nothing is stored.

        Returns:
            GuildModerationSettings: The stored settings object.
        """
        guild_id = _parse_guild_id(guild_id)
        if isinstance(settings, GuildModerationSettings):
            if settings.guild_id != guild_id:
                settings = GuildModerationSettings.from_mapping(guild_id, settings.to_dict())
        else:
            settings = GuildModerationSettings.from_mapping(guild_id, settings, strict=True)

        self._guilds[guild_id] = settings
        self._schedule_persist(guild_id, settings)
        return settings

    async def delete(self, guild_id: Union[GuildID, int, str]) -> bool:
        """Forget a guild's settings in memory and in the database."""
        guild_id = _parse_guild_id(guild_id)
        removed = self._guilds.pop(guild_id, None) is not None
        if removed:
            logger.debug("[MODERATION SETTINGS MANAGER] Removed guild %s from memory", guild_id)

        if self._repository is None:
            return removed
        return await self._repository.delete(guild_id)

    def should_monitor_channel(self, guild_id, channel_id) -> bool:
        """
        True when the guild monitors every channel or lists this one.

        IDs that are not snowflakes cannot belong to a Discord channel, so
        they are never monitored.
        """
        try:
            settings = self.get(guild_id)
            channel_id = ChannelID(channel_id)
        except ValueError:
            logger.debug(
                "[MODERATION SETTINGS MANAGER] Not monitoring non-snowflake guild/channel %r/%r",
                guild_id, channel_id,
            )
            return False
        monitored = settings.monitored_channel_ids
        return not monitored or channel_id in monitored

    def is_user_excluded(self, guild_id, role_ids: Iterable[Any]) -> bool:
        """True when any of the member's roles is on the guild's excluded list."""
        try:
            excluded = self.get(guild_id).excluded_role_ids
        except ValidationError:
            return False
        if not excluded:
            return False
        for role_id in role_ids:
            try:
                if RoleID(role_id) in excluded:
                    return True
            except ValueError:
                continue
        return False

    # ========== Lifecycle ==========

    async def shutdown(self) -> None:
        """Await any pending persistence tasks during shutdown."""
        await asyncio.gather(*self._active_persists, return_exceptions=True)
        self._active_persists.clear()
        logger.info("[MODERATION SETTINGS MANAGER] Shutdown complete")

    # ========== Private Methods ==========

    def _schedule_persist(self, guild_id: GuildID, settings: GuildModerationSettings) -> None:
        if self._repository is None:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                "[MODERATION SETTINGS MANAGER] Cannot persist guild %s: no running event loop",
                guild_id,
            )
            return

        task = loop.create_task(self._repository.upsert(settings))
        self._active_persists.add(task)

        def _cleanup(completed: asyncio.Task) -> None:
            self._active_persists.discard(completed)
            if completed.cancelled():
                return
            exc = completed.exception()
            if exc is not None:
                logger.error(
                    "[MODERATION SETTINGS MANAGER] Failed to persist guild %s: %s",
                    guild_id, exc,
                )

        task.add_done_callback(_cleanup)
