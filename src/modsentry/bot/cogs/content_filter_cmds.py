"""
Content filter cog: slash commands for the per-guild word filter.

All commands live under the ``/filter`` group:
- /filter test: run the engine on a piece of text and show the verdict
- /filter add, /filter remove, /filter list: manage the guild's banned words
- /filter settings: show the current configuration
- /filter configure: change enabled state, sensitivity, action, transliteration
- /filter monitor-channel, /filter exclude-role: toggle list entries
- /filter log-channel: set or clear the violation log channel

All commands require the Manage Server permission. Responses are ephemeral
to avoid leaking the word list in public channels.
"""

import discord
from discord import Option
from discord.ext import commands

from modsentry.datatypes.moderation_datatypes import (
    ActionType,
    AnalysisOptions,
    AnalysisResult,
    Sensitivity,
    Severity,
    WordCategory,
)
from modsentry.datatypes.moderation_settings import GuildModerationSettings
from modsentry.moderation.exceptions import StoreUnavailable, ValidationError
from modsentry.moderation.moderation_engine import ContentModerationEngine
from modsentry.util.logger import get_logger

logger = get_logger("content_filter_cog")

SENSITIVITY_CHOICES = [s.value for s in Sensitivity]
SEVERITY_CHOICES = [s.value for s in Severity]
ACTION_CHOICES = [a.value for a in ActionType]

MAX_LISTED_WORDS = 50


def build_analysis_embed(text: str, result: AnalysisResult) -> discord.Embed:
    """Embed describing an analysis result for /filter test."""
    color = discord.Color.green() if result.is_clean else discord.Color.red()
    title = "✅ Clean" if result.is_clean else "🚨 Would be flagged"
    embed = discord.Embed(title=title, color=color)
    embed.add_field(name="Text", value=text[:1000] or "-", inline=False)
    embed.add_field(name="Severity", value=result.severity.value, inline=True)
    embed.add_field(name="Confidence", value=f"{round(result.confidence * 100)}%", inline=True)
    embed.add_field(name="Recommended Action", value=result.recommended_action.value, inline=True)
    if result.detected_details:
        lines = [
            f"`{d.word}` ({d.severity.value}) {d.method.value} {d.confidence:.2f}"
            for d in result.detected_details
        ]
        embed.add_field(name="Detections", value="\n".join(lines)[:1024], inline=False)
    return embed


def build_settings_embed(settings: GuildModerationSettings) -> discord.Embed:
    """Embed summarizing a guild's content filter settings."""
    embed = discord.Embed(title="Content Filter Settings", color=discord.Color.blue())
    embed.add_field(name="Enabled", value="Yes" if settings.enabled else "No", inline=True)
    embed.add_field(name="Sensitivity", value=settings.sensitivity.value, inline=True)
    embed.add_field(name="Action", value=settings.action_type.value, inline=True)
    embed.add_field(
        name="Georgian Transliteration",
        value="On" if settings.enable_script_transliteration else "Off",
        inline=True,
    )
    channels = [f"<#{cid}>" for cid in settings.monitored_channel_ids]
    roles = [f"<@&{rid}>" for rid in settings.excluded_role_ids]
    embed.add_field(name="Monitored Channels", value=", ".join(channels) or "All channels", inline=False)
    embed.add_field(name="Excluded Roles", value=", ".join(roles) or "None", inline=False)
    log_channel = f"<#{settings.log_channel_id}>" if settings.log_channel_id is not None else "Not set"
    embed.add_field(name="Log Channel", value=log_channel, inline=False)
    return embed


class ContentFilterCog(commands.Cog):
    """Guild-level management of the content filter."""

    content_filter = discord.SlashCommandGroup("filter", "Manage the content filter for this server")

    def __init__(self, discord_bot_instance, engine: ContentModerationEngine):
        self.discord_bot_instance = discord_bot_instance
        self.engine = engine
        logger.info("[CONTENT FILTER CMDS] Content filter cog loaded")

    async def _ensure_guild_context(self, ctx: discord.ApplicationContext) -> bool:
        """Ensure the command is used in a guild context."""
        if not ctx.guild_id:
            await ctx.respond("This command can only be used in a server.", ephemeral=True)
            return False
        return True

    def _has_manage_permission(self, ctx: discord.ApplicationContext) -> bool:
        """Check if the user has Manage Server permission."""
        permissions = getattr(ctx.user, "guild_permissions", None)
        return bool(permissions and permissions.manage_guild)

    async def _check_permissions(self, ctx: discord.ApplicationContext) -> bool:
        """Check both guild context and manage permissions. Returns True if all checks pass."""
        if not await self._ensure_guild_context(ctx):
            return False
        if not self._has_manage_permission(ctx):
            await ctx.respond("You need Manage Server permission.", ephemeral=True)
            return False
        return True

    def _save(self, ctx: discord.ApplicationContext, **changes) -> GuildModerationSettings:
        """Copy the current settings, apply ``changes`` and save the result wholesale."""
        data = self.engine.get_guild_settings(ctx.guild_id).to_dict()
        data.update(changes)
        return self.engine.save_guild_settings(ctx.guild_id, data)

    @content_filter.command(name="test", description="Check how the filter would judge a piece of text")
    async def test_text(
        self,
        ctx: discord.ApplicationContext,
        text: Option(str, "Text to analyze."),  # type: ignore
        sensitivity: Option(str, "Override the server's sensitivity.", choices=SENSITIVITY_CHOICES, required=False, default=None),  # type: ignore
    ):
        if not await self._check_permissions(ctx):
            return

        settings = self.engine.get_guild_settings(ctx.guild_id)
        options = AnalysisOptions(
            sensitivity=Sensitivity.parse(sensitivity) if sensitivity else settings.sensitivity,
            enable_script_transliteration=settings.enable_script_transliteration,
            guild_id=str(ctx.guild_id),
        )
        result = await self.engine.analyze_content(text, options)
        await ctx.respond(embed=build_analysis_embed(text, result), ephemeral=True)

    @content_filter.command(name="add", description="Add a banned word for this server")
    async def add_word(
        self,
        ctx: discord.ApplicationContext,
        word: Option(str, "Word or phrase to ban."),  # type: ignore
        severity: Option(str, "How serious a match is.", choices=SEVERITY_CHOICES, default=Severity.MEDIUM.value),  # type: ignore
    ):
        if not await self._check_permissions(ctx):
            return

        try:
            entry = await self.engine.add_bad_word(
                word, WordCategory.CUSTOM, severity, guild_id=ctx.guild_id, added_by=str(ctx.user),
            )
        except ValidationError as exc:
            await ctx.respond(f"❌ {exc}", ephemeral=True)
            return
        except StoreUnavailable:
            await ctx.respond("❌ The word list is unavailable right now. Try again later.", ephemeral=True)
            return

        await ctx.respond(f"✅ Added `{entry.word}` ({entry.severity.value}) to the filter.", ephemeral=True)

    @content_filter.command(name="remove", description="Remove a banned word from this server")
    async def remove_word(
        self,
        ctx: discord.ApplicationContext,
        word: Option(str, "Word or phrase to remove."),  # type: ignore
    ):
        if not await self._check_permissions(ctx):
            return

        try:
            removed = await self.engine.remove_bad_word(word, guild_id=ctx.guild_id)
        except ValidationError as exc:
            await ctx.respond(f"❌ {exc}", ephemeral=True)
            return
        except StoreUnavailable:
            await ctx.respond("❌ The word list is unavailable right now. Try again later.", ephemeral=True)
            return

        if removed:
            await ctx.respond(f"✅ Removed `{word.strip().lower()}` from the filter.", ephemeral=True)
        else:
            await ctx.respond(f"`{word.strip().lower()}` is not in this server's filter.", ephemeral=True)

    @content_filter.command(name="list", description="List this server's banned words")
    async def list_words(self, ctx: discord.ApplicationContext):
        if not await self._check_permissions(ctx):
            return

        words = (await self.engine.get_bad_words_for_guild(ctx.guild_id))["custom"]
        embed = discord.Embed(title="Banned Words", color=discord.Color.blue())
        if not words:
            embed.description = "No words configured. Use /filter add to add one."
        else:
            for severity in reversed(SEVERITY_CHOICES):
                listed = [f"`{w['word']}`" for w in words if w["severity"] == severity]
                if listed:
                    shown = ", ".join(listed[:MAX_LISTED_WORDS])
                    if len(listed) > MAX_LISTED_WORDS:
                        shown += f" (+{len(listed) - MAX_LISTED_WORDS} more)"
                    embed.add_field(name=severity.capitalize(), value=shown[:1024], inline=False)
        await ctx.respond(embed=embed, ephemeral=True)

    @content_filter.command(name="settings", description="Show the content filter settings")
    async def show_settings(self, ctx: discord.ApplicationContext):
        if not await self._check_permissions(ctx):
            return
        settings = self.engine.get_guild_settings(ctx.guild_id)
        await ctx.respond(embed=build_settings_embed(settings), ephemeral=True)

    @content_filter.command(name="configure", description="Change the content filter settings")
    async def configure(
        self,
        ctx: discord.ApplicationContext,
        enabled: Option(bool, "Turn the filter on or off.", required=False, default=None),  # type: ignore
        sensitivity: Option(str, "How strict matching is.", choices=SENSITIVITY_CHOICES, required=False, default=None),  # type: ignore
        action: Option(str, "What to do with flagged messages.", choices=ACTION_CHOICES, required=False, default=None),  # type: ignore
        transliteration: Option(bool, "Also match Georgian typed on a Latin keyboard.", required=False, default=None),  # type: ignore
    ):
        if not await self._check_permissions(ctx):
            return

        changes = {}
        if enabled is not None:
            changes["enabled"] = enabled
        if sensitivity is not None:
            changes["sensitivity"] = sensitivity
        if action is not None:
            changes["action_type"] = action
        if transliteration is not None:
            changes["enable_script_transliteration"] = transliteration

        if not changes:
            await ctx.respond("Nothing to change.", ephemeral=True)
            return

        try:
            settings = self._save(ctx, **changes)
        except ValidationError as exc:
            await ctx.respond(f"❌ {exc}", ephemeral=True)
            return

        await ctx.respond("✅ Settings updated.", embed=build_settings_embed(settings), ephemeral=True)

    @content_filter.command(name="monitor-channel", description="Toggle whether a channel is monitored")
    async def monitor_channel(self, ctx: discord.ApplicationContext, channel: discord.TextChannel):
        if not await self._check_permissions(ctx):
            return

        current = [str(cid) for cid in self.engine.get_guild_settings(ctx.guild_id).monitored_channel_ids]
        if str(channel.id) in current:
            current.remove(str(channel.id))
            message = f"✅ {channel.mention} is no longer monitored."
        else:
            current.append(str(channel.id))
            message = f"✅ {channel.mention} is now monitored."
        self._save(ctx, monitored_channel_ids=current)
        if not current:
            message += " No channels listed, so every channel is monitored."
        await ctx.respond(message, ephemeral=True)

    @content_filter.command(name="exclude-role", description="Toggle whether a role is exempt from the filter")
    async def exclude_role(self, ctx: discord.ApplicationContext, role: discord.Role):
        if not await self._check_permissions(ctx):
            return

        current = [str(rid) for rid in self.engine.get_guild_settings(ctx.guild_id).excluded_role_ids]
        if str(role.id) in current:
            current.remove(str(role.id))
            message = f"✅ {role.mention} is no longer exempt."
        else:
            current.append(str(role.id))
            message = f"✅ {role.mention} is now exempt from the filter."
        self._save(ctx, excluded_role_ids=current)
        await ctx.respond(message, ephemeral=True)

    @content_filter.command(name="log-channel", description="Set or clear the channel that receives violation reports")
    async def log_channel(
        self,
        ctx: discord.ApplicationContext,
        channel: Option(discord.TextChannel, "Channel for reports; leave empty to clear.", required=False, default=None),  # type: ignore
    ):
        if not await self._check_permissions(ctx):
            return

        self._save(ctx, log_channel_id=str(channel.id) if channel else None)
        if channel:
            await ctx.respond(f"✅ Violation reports will be posted in {channel.mention}.", ephemeral=True)
        else:
            await ctx.respond("✅ Violation reports disabled.", ephemeral=True)


def setup(discord_bot_instance, engine):
    """Add the content filter cog to the supplied Discord bot instance."""
    discord_bot_instance.add_cog(ContentFilterCog(discord_bot_instance, engine))
