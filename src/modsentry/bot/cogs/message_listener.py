"""Message listener Cog for ModSentry.

Runs the content moderation engine on every guild message and, when a message
is flagged, records the violation, applies the guild's configured action and
posts a summary to the guild's log channel.
"""

from typing import Optional

import discord
from discord.ext import commands

from modsentry.datatypes.moderation_datatypes import ActionType, AnalysisOptions, AnalysisResult
from modsentry.datatypes.moderation_settings import GuildModerationSettings
from modsentry.moderation.action_executor import (
    ActionPolicy,
    apply_content_action,
    build_violation_embed,
    post_violation_log,
)
from modsentry.moderation.exceptions import StoreUnavailable
from modsentry.moderation.moderation_engine import ContentModerationEngine
from modsentry.repositories.violation_log_repo import ViolationLogRepository
from modsentry.util.logger import get_logger

logger = get_logger("message_listener_cog")


def is_ignored_author(author) -> bool:
    """Bots and non-members (DMs, webhooks) are never moderated."""
    return author.bot or not isinstance(author, discord.Member)


class MessageListenerCog(commands.Cog):
    """Cog that screens new guild messages with the content filter."""

    def __init__(
        self,
        discord_bot_instance,
        engine: ContentModerationEngine,
        violation_log: Optional[ViolationLogRepository] = None,
        policy: Optional[ActionPolicy] = None,
    ):
        self.bot = discord_bot_instance
        self.engine = engine
        self.violation_log = violation_log
        self.policy = policy or ActionPolicy()
        logger.info("[MESSAGE LISTENER] Message listener cog loaded")

    def _should_screen(self, message: discord.Message, settings: GuildModerationSettings) -> bool:
        if not settings.enabled:
            return False
        guild_id = message.guild.id
        if not self.engine.should_monitor_channel(guild_id, message.channel.id):
            return False
        role_ids = [role.id for role in getattr(message.author, "roles", [])]
        return not self.engine.is_user_excluded(guild_id, role_ids)

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message):
        """
        Screen a new message.

        Skips bots, DMs and empty messages; guilds with the filter disabled;
        channels outside the guild's monitored list; and members holding an
        excluded role.
        """
        if message.guild is None or is_ignored_author(message.author):
            return
        if not (message.content or "").strip():
            return

        settings = self.engine.get_guild_settings(message.guild.id)
        if not self._should_screen(message, settings):
            return

        options = AnalysisOptions(
            sensitivity=settings.sensitivity,
            enable_script_transliteration=settings.enable_script_transliteration,
            guild_id=str(message.guild.id),
        )
        analysis = await self.engine.analyze_content(message.content, options)
        if analysis.is_clean:
            return

        logger.info(
            "[MESSAGE LISTENER] Flagged message %s from %s in guild %s: %s",
            message.id, message.author.id, message.guild.id, ", ".join(analysis.detected_words),
        )
        try:
            await self._handle_violation(message, settings, analysis)
        except Exception as exc:
            logger.error("[MESSAGE LISTENER] Error taking moderation action on message %s: %s", message.id, exc)

    async def _handle_violation(
        self,
        message: discord.Message,
        settings: GuildModerationSettings,
        analysis: AnalysisResult,
    ) -> ActionType:
        applied = await apply_content_action(message, analysis, settings.action_type, self.policy)

        if self.violation_log is not None:
            try:
                await self.violation_log.log_violation(
                    message.guild.id,
                    message.channel.id,
                    message.author.id,
                    detected_words=analysis.detected_words,
                    severity=analysis.severity.value,
                    confidence=analysis.confidence,
                    action=applied.value,
                    content=message.content,
                    message_id=message.id,
                )
            except StoreUnavailable as exc:
                logger.warning("[MESSAGE LISTENER] Could not record violation for message %s: %s", message.id, exc)

        if settings.log_channel_id is not None:
            embed = build_violation_embed(message, analysis, applied)
            await post_violation_log(message.guild, settings.log_channel_id, embed)

        return applied


def setup(discord_bot_instance, engine, violation_log=None, policy=None):
    """Register the MessageListenerCog with the bot."""
    discord_bot_instance.add_cog(MessageListenerCog(discord_bot_instance, engine, violation_log, policy))
