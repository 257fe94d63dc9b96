"""
Apply a guild's configured content-filter action to a flagged message.

Actions, each followed by a short self-deleting notice in the channel:

- warn: notice only
- delete: delete the message
- timeout: time the author out (length by severity) and delete the message;
  falls back to delete when the bot cannot time the member out
- kick: only for high severity and kickable members; otherwise falls back to
  timeout, then to delete

Everything here talks to Discord and suppresses recoverable API errors so a
failed action never takes the message listener down.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Dict, Optional

import discord

from modsentry.configuration.app_configuration import (
    DEFAULT_NOTICE_DELETE_AFTER,
    DEFAULT_TIMEOUT_MINUTES,
    AppConfig,
)
from modsentry.datatypes.moderation_datatypes import ActionType, AnalysisResult, Severity
from modsentry.util.logger import get_logger

logger = get_logger("action_executor")

VIOLATION_EMBED_COLOR = discord.Color.from_rgb(0xFF, 0x6B, 0x6B)


@dataclass(slots=True)
class ActionPolicy:
    """Notice lifetimes (seconds, by action name) and timeout lengths (minutes, by severity)."""

    notice_delete_after: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_NOTICE_DELETE_AFTER))
    timeout_minutes: Dict[Severity, int] = field(default_factory=lambda: dict(DEFAULT_TIMEOUT_MINUTES))

    @classmethod
    def from_config(cls, config: AppConfig) -> "ActionPolicy":
        return cls(
            notice_delete_after=config.notice_delete_after_seconds,
            timeout_minutes=config.timeout_minutes,
        )

    def notice_lifetime(self, action: ActionType) -> float:
        return self.notice_delete_after.get(action.value, DEFAULT_NOTICE_DELETE_AFTER[action.value])

    def timeout_for(self, severity: Severity) -> int:
        return self.timeout_minutes.get(severity, DEFAULT_TIMEOUT_MINUTES[severity])


# ==========================================
# Permission helpers
# ==========================================

def _bot_outranks(member: discord.Member) -> bool:
    """True when the bot's top role is above the member's and the member is not the owner."""
    guild = getattr(member, "guild", None)
    me = getattr(guild, "me", None)
    if guild is None or me is None or member.id == guild.owner_id:
        return False
    return me.top_role > member.top_role


def can_timeout(member: Optional[discord.Member]) -> bool:
    """Whether the bot is able to time ``member`` out."""
    if member is None or not _bot_outranks(member):
        return False
    if member.guild_permissions.administrator:
        return False
    return bool(member.guild.me.guild_permissions.moderate_members)


def can_kick(member: Optional[discord.Member]) -> bool:
    """Whether the bot is able to kick ``member``."""
    if member is None or not _bot_outranks(member):
        return False
    return bool(member.guild.me.guild_permissions.kick_members)


# ==========================================
# Low-level Discord helpers
# ==========================================

async def safe_delete_message(message: discord.Message) -> bool:
    """
    Attempt to delete a Discord message, suppressing recoverable errors.

    Returns:
        bool: True if deletion succeeded, False otherwise.
    """
    try:
        await message.delete()
        return True
    except discord.NotFound:
        return False
    except discord.Forbidden:
        logger.warning("[ACTION EXECUTOR] No permission to delete message %s", message.id)
    except discord.HTTPException as exc:
        logger.error("[ACTION EXECUTOR] Error deleting message %s: %s", message.id, exc)
    return False


async def send_notice(channel, content: str, delete_after: Optional[float] = None) -> bool:
    """Post a channel notice that deletes itself after ``delete_after`` seconds."""
    try:
        await channel.send(content, delete_after=delete_after)
        return True
    except discord.HTTPException as exc:
        logger.warning("[ACTION EXECUTOR] Failed to send notice to channel %s: %s", getattr(channel, "id", "?"), exc)
        return False


def _violation_reason(analysis: AnalysisResult) -> str:
    return f"Content violation: {', '.join(analysis.detected_words)}"


# ==========================================
# Action branches
# ==========================================

async def _delete_with_notice(message: discord.Message, policy: ActionPolicy) -> ActionType:
    author = message.author
    if await safe_delete_message(message):
        await send_notice(
            message.channel,
            f"{author.mention}, your message was removed for violating server guidelines.",
            policy.notice_lifetime(ActionType.DELETE),
        )
    else:
        await send_notice(
            message.channel,
            f"⚠️ {author.mention}, your message violates server guidelines but could not be deleted.",
        )
    return ActionType.DELETE


async def _timeout_or_delete(message: discord.Message, analysis: AnalysisResult, policy: ActionPolicy) -> ActionType:
    member = message.author if isinstance(message.author, discord.Member) else None
    if not can_timeout(member):
        logger.debug("[ACTION EXECUTOR] Cannot time out %s, deleting instead", message.author.id)
        return await _delete_with_notice(message, policy)

    minutes = policy.timeout_for(analysis.severity)
    until = discord.utils.utcnow() + datetime.timedelta(minutes=minutes)
    try:
        await member.timeout(until, reason=_violation_reason(analysis))
    except discord.HTTPException as exc:
        logger.error("[ACTION EXECUTOR] Failed to time out user %s: %s", member.id, exc)
        await safe_delete_message(message)
        return ActionType.DELETE

    await safe_delete_message(message)
    await send_notice(
        message.channel,
        f"{member.mention} has been timed out for {minutes} minutes for inappropriate content.",
        policy.notice_lifetime(ActionType.TIMEOUT),
    )
    return ActionType.TIMEOUT


async def _kick_or_fallback(message: discord.Message, analysis: AnalysisResult, policy: ActionPolicy) -> ActionType:
    member = message.author if isinstance(message.author, discord.Member) else None
    if analysis.severity is not Severity.HIGH or not can_kick(member):
        return await _timeout_or_delete(message, analysis, policy)

    await safe_delete_message(message)
    try:
        await member.kick(reason=f"Severe {_violation_reason(analysis).lower()}")
    except discord.HTTPException as exc:
        logger.error("[ACTION EXECUTOR] Failed to kick user %s: %s", member.id, exc)
        return ActionType.DELETE

    await send_notice(
        message.channel,
        f"{member} has been kicked for severe content violations.",
        policy.notice_lifetime(ActionType.KICK),
    )
    return ActionType.KICK


async def apply_content_action(
    message: discord.Message,
    analysis: AnalysisResult,
    action: ActionType,
    policy: Optional[ActionPolicy] = None,
) -> ActionType:
    """
    Execute ``action`` for a flagged message.

    Args:
        message: The offending message.
        analysis: The engine's verdict for the message.
        action: The guild's configured action.
        policy: Notice and timeout lengths; defaults when omitted.

    Returns:
        ActionType: The action actually applied after any fallback.
    """
    policy = policy or ActionPolicy()
    logger.debug(
        "[ACTION EXECUTOR] Applying %s to user %s for %s",
        action, message.author.id, ", ".join(analysis.detected_words),
    )

    match action:
        case ActionType.WARN:
            await send_notice(
                message.channel,
                f"⚠️ {message.author.mention}, please watch your language. "
                "Your message contains inappropriate content.",
                policy.notice_lifetime(ActionType.WARN),
            )
            return ActionType.WARN
        case ActionType.DELETE:
            return await _delete_with_notice(message, policy)
        case ActionType.TIMEOUT:
            return await _timeout_or_delete(message, analysis, policy)
        case ActionType.KICK:
            return await _kick_or_fallback(message, analysis, policy)
        case _:
            logger.warning("[ACTION EXECUTOR] Unsupported action %r", action)
            return ActionType.WARN


# ==========================================
# Violation log embed
# ==========================================

def build_violation_embed(message: discord.Message, analysis: AnalysisResult, action: ActionType) -> discord.Embed:
    """Embed summarizing a content violation for the guild's log channel."""
    embed = discord.Embed(
        title="🚨 Content Violation Detected",
        color=VIOLATION_EMBED_COLOR,
        timestamp=datetime.datetime.now(datetime.timezone.utc),
    )
    embed.add_field(name="User", value=f"{message.author} ({message.author.id})", inline=True)
    embed.add_field(name="Channel", value=f"#{getattr(message.channel, 'name', message.channel.id)}", inline=True)
    embed.add_field(name="Action", value=action.value.upper(), inline=True)
    embed.add_field(name="Detected Words", value=", ".join(analysis.detected_words) or "-", inline=False)
    embed.add_field(name="Severity", value=analysis.severity.value.upper(), inline=True)
    embed.add_field(name="Confidence", value=f"{round(analysis.confidence * 100)}%", inline=True)
    return embed


async def post_violation_log(guild: discord.Guild, channel_id, embed: discord.Embed) -> bool:
    """Send ``embed`` to the guild's log channel if it exists and accepts messages."""
    channel = guild.get_channel(int(channel_id))
    if channel is None:
        logger.debug("[ACTION EXECUTOR] Log channel %s not found in guild %s", channel_id, guild.id)
        return False
    try:
        await channel.send(embed=embed)
        return True
    except discord.HTTPException as exc:
        logger.warning("[ACTION EXECUTOR] Failed to post violation log in guild %s: %s", guild.id, exc)
        return False
