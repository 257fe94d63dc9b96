import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock

from modsentry.bot.cogs import content_filter_cmds
from modsentry.bot.cogs.content_filter_cmds import ContentFilterCog
from modsentry.datatypes.discord_datatypes import ChannelID, RoleID
from modsentry.datatypes.moderation_datatypes import ActionType, Sensitivity, Severity
from modsentry.moderation.moderation_engine import ContentModerationEngine


class Ctx:
    def __init__(self, guild_id=10, manage_guild=True):
        self.guild_id = guild_id
        self.user = SimpleNamespace(guild_permissions=SimpleNamespace(manage_guild=manage_guild))
        self.respond = AsyncMock()


@pytest.fixture
def engine(word_store, fake_clock):
    return ContentModerationEngine(word_store, clock=fake_clock)


@pytest.fixture
def cog(engine):
    return ContentFilterCog(SimpleNamespace(), engine)


def _embed(ctx):
    return ctx.respond.call_args.kwargs["embed"]


def test_setup_adds_cog():
    captured = {}

    def fake_add_cog(cog):
        captured["cog"] = cog

    fake_bot = SimpleNamespace(add_cog=fake_add_cog)
    content_filter_cmds.setup(fake_bot, SimpleNamespace())
    assert isinstance(captured["cog"], ContentFilterCog)


@pytest.mark.asyncio
async def test_commands_require_guild_context(cog):
    ctx = Ctx(guild_id=None)
    await ContentFilterCog.show_settings.callback(cog, ctx)
    ctx.respond.assert_awaited_once_with("This command can only be used in a server.", ephemeral=True)


@pytest.mark.asyncio
async def test_commands_require_manage_guild(cog, word_store):
    ctx = Ctx(manage_guild=False)
    await ContentFilterCog.add_word.callback(cog, ctx, "jerk", "high")
    ctx.respond.assert_awaited_once_with("You need Manage Server permission.", ephemeral=True)
    assert word_store.create_calls == []


@pytest.mark.asyncio
async def test_add_word(cog, word_store):
    ctx = Ctx()

    await ContentFilterCog.add_word.callback(cog, ctx, "  Jerk ", "high")

    ctx.respond.assert_awaited_once_with("✅ Added `jerk` (high) to the filter.", ephemeral=True)
    word, severity, scope, _added_by = word_store.create_calls[0]
    assert (word, severity, scope) == ("jerk", Severity.HIGH, "10")


@pytest.mark.asyncio
async def test_add_word_rejects_empty(cog):
    ctx = Ctx()
    await ContentFilterCog.add_word.callback(cog, ctx, "   ", "medium")
    message = ctx.respond.call_args.args[0]
    assert message.startswith("❌ ")


@pytest.mark.asyncio
async def test_add_word_store_unavailable(cog, word_store):
    word_store.fail_writes = True
    ctx = Ctx()
    await ContentFilterCog.add_word.callback(cog, ctx, "jerk", "medium")
    ctx.respond.assert_awaited_once_with(
        "❌ The word list is unavailable right now. Try again later.", ephemeral=True,
    )


@pytest.mark.asyncio
async def test_remove_word(cog, word_store):
    word_store.add("jerk", scope="10")

    ctx = Ctx()
    await ContentFilterCog.remove_word.callback(cog, ctx, "JERK")
    ctx.respond.assert_awaited_once_with("✅ Removed `jerk` from the filter.", ephemeral=True)

    ctx = Ctx()
    await ContentFilterCog.remove_word.callback(cog, ctx, "jerk")
    ctx.respond.assert_awaited_once_with("`jerk` is not in this server's filter.", ephemeral=True)


@pytest.mark.asyncio
async def test_list_words_empty(cog):
    ctx = Ctx()
    await ContentFilterCog.list_words.callback(cog, ctx)
    assert "No words configured" in _embed(ctx).description


@pytest.mark.asyncio
async def test_list_words_grouped_by_severity(cog, word_store):
    word_store.add("jerk", Severity.HIGH, scope="10")
    word_store.add("darn", Severity.LOW, scope="10")
    word_store.add("other", Severity.HIGH, scope="11")

    ctx = Ctx()
    await ContentFilterCog.list_words.callback(cog, ctx)

    fields = {field.name: field.value for field in _embed(ctx).fields}
    assert fields == {"High": "`jerk`", "Low": "`darn`"}


@pytest.mark.asyncio
async def test_test_text_reports_verdict(cog, word_store):
    word_store.add("badword", Severity.HIGH)

    ctx = Ctx()
    await ContentFilterCog.test_text.callback(cog, ctx, "this is a b4dw0rd", None)

    embed = _embed(ctx)
    assert embed.title == "🚨 Would be flagged"
    fields = {field.name: field.value for field in embed.fields}
    assert fields["Severity"] == "high"
    assert "`badword`" in fields["Detections"]


@pytest.mark.asyncio
async def test_test_text_sensitivity_override(cog, word_store):
    word_store.add("darn", Severity.LOW)

    ctx = Ctx()
    await ContentFilterCog.test_text.callback(cog, ctx, "darn", None)
    assert _embed(ctx).title == "✅ Clean"

    ctx = Ctx()
    await ContentFilterCog.test_text.callback(cog, ctx, "darn", "high")
    assert _embed(ctx).title == "🚨 Would be flagged"


@pytest.mark.asyncio
async def test_show_settings(cog, engine):
    engine.save_guild_settings(10, {"sensitivity": "low", "monitored_channel_ids": ["5"]})
    ctx = Ctx()

    await ContentFilterCog.show_settings.callback(cog, ctx)

    fields = {field.name: field.value for field in _embed(ctx).fields}
    assert fields["Sensitivity"] == "low"
    assert fields["Monitored Channels"] == "<#5>"
    assert fields["Excluded Roles"] == "None"
    assert fields["Log Channel"] == "Not set"


@pytest.mark.asyncio
async def test_configure_nothing_to_change(cog):
    ctx = Ctx()
    await ContentFilterCog.configure.callback(cog, ctx, None, None, None, None)
    ctx.respond.assert_awaited_once_with("Nothing to change.", ephemeral=True)


@pytest.mark.asyncio
async def test_configure_updates_only_given_fields(cog, engine):
    engine.save_guild_settings(10, {"monitored_channel_ids": ["5"]})
    ctx = Ctx()

    await ContentFilterCog.configure.callback(cog, ctx, False, "high", "kick", None)

    settings = engine.get_guild_settings(10)
    assert settings.enabled is False
    assert settings.sensitivity is Sensitivity.HIGH
    assert settings.action_type is ActionType.KICK
    assert settings.enable_script_transliteration is True
    assert settings.monitored_channel_ids == [ChannelID(5)]
    assert ctx.respond.call_args.args[0] == "✅ Settings updated."


@pytest.mark.asyncio
async def test_monitor_channel_toggles(cog, engine):
    channel = SimpleNamespace(id=123, mention="<#123>")

    ctx = Ctx()
    await ContentFilterCog.monitor_channel.callback(cog, ctx, channel)
    assert engine.get_guild_settings(10).monitored_channel_ids == [ChannelID(123)]
    ctx.respond.assert_awaited_once_with("✅ <#123> is now monitored.", ephemeral=True)

    ctx = Ctx()
    await ContentFilterCog.monitor_channel.callback(cog, ctx, channel)
    assert engine.get_guild_settings(10).monitored_channel_ids == []
    assert "every channel is monitored" in ctx.respond.call_args.args[0]


@pytest.mark.asyncio
async def test_exclude_role_toggles(cog, engine):
    role = SimpleNamespace(id=77, mention="<@&77>")

    await ContentFilterCog.exclude_role.callback(cog, Ctx(), role)
    assert engine.get_guild_settings(10).excluded_role_ids == [RoleID(77)]

    await ContentFilterCog.exclude_role.callback(cog, Ctx(), role)
    assert engine.get_guild_settings(10).excluded_role_ids == []


@pytest.mark.asyncio
async def test_log_channel_set_and_clear(cog, engine):
    channel = SimpleNamespace(id=300, mention="<#300>")

    ctx = Ctx()
    await ContentFilterCog.log_channel.callback(cog, ctx, channel)
    assert engine.get_guild_settings(10).log_channel_id == ChannelID(300)
    ctx.respond.assert_awaited_once_with("✅ Violation reports will be posted in <#300>.", ephemeral=True)

    ctx = Ctx()
    await ContentFilterCog.log_channel.callback(cog, ctx, None)
    assert engine.get_guild_settings(10).log_channel_id is None
    ctx.respond.assert_awaited_once_with("✅ Violation reports disabled.", ephemeral=True)
