import asyncio

import pytest

from modsentry.datatypes.discord_datatypes import GuildID
from modsentry.datatypes.moderation_datatypes import ActionType, Sensitivity
from modsentry.datatypes.moderation_settings import GuildModerationSettings
from modsentry.moderation.exceptions import StoreUnavailable, ValidationError
from modsentry.settings.moderation_settings_manager import ModerationSettingsManager


class FakeSettingsRepository:
    def __init__(self, rows=None):
        self.rows = dict(rows or {})
        self.upserts = []
        self.deleted = []
        self.get_all_calls = 0
        self.fail_upsert = False

    async def get_all(self):
        self.get_all_calls += 1
        return dict(self.rows)

    async def upsert(self, settings):
        await asyncio.sleep(0)
        if self.fail_upsert:
            raise StoreUnavailable("down")
        self.upserts.append(settings.to_dict())
        self.rows[settings.guild_id] = settings

    async def delete(self, guild_id):
        self.deleted.append(guild_id)
        return self.rows.pop(guild_id, None) is not None


def test_get_unknown_guild_returns_defaults_without_storing():
    manager = ModerationSettingsManager(default_sensitivity=Sensitivity.HIGH)

    first = manager.get(1)
    second = manager.get("1")

    assert first.sensitivity is Sensitivity.HIGH
    assert first is not second
    assert manager.should_monitor_channel(1, 99) is True


def test_save_replaces_wholesale_without_repository():
    manager = ModerationSettingsManager()

    manager.save(1, {"action_type": "delete", "custom_words": ["a1"]})
    replaced = manager.save(1, {"sensitivity": "low"})

    assert manager.get(1) is replaced
    assert replaced.action_type is ActionType.WARN
    assert replaced.custom_words == []
    assert replaced.sensitivity is Sensitivity.LOW


def test_save_with_settings_for_another_guild_rebinds_id():
    manager = ModerationSettingsManager()
    other = GuildModerationSettings(guild_id=GuildID(2), action_type=ActionType.KICK)

    saved = manager.save(1, other)

    assert saved.guild_id == GuildID(1)
    assert saved.action_type is ActionType.KICK


def test_save_rejects_invalid_mapping():
    manager = ModerationSettingsManager()
    with pytest.raises(ValidationError):
        manager.save(1, {"action_type": "ban"})
    assert manager.get(1).action_type is ActionType.WARN


@pytest.mark.asyncio
async def test_async_init_loads_once():
    repo = FakeSettingsRepository({
        GuildID(3): GuildModerationSettings(guild_id=GuildID(3), sensitivity=Sensitivity.LOW),
    })
    manager = ModerationSettingsManager(repo)

    await manager.async_init()
    await manager.async_init()

    assert repo.get_all_calls == 1
    assert manager.get(3).sensitivity is Sensitivity.LOW


@pytest.mark.asyncio
async def test_save_persists_in_background_and_shutdown_waits():
    repo = FakeSettingsRepository()
    manager = ModerationSettingsManager(repo)

    manager.save(1, {"sensitivity": "high"})
    manager.save(1, {"sensitivity": "low"})
    await manager.shutdown()

    assert [row["sensitivity"] for row in repo.upserts] == ["high", "low"]
    assert manager._active_persists == set()


@pytest.mark.asyncio
async def test_failed_persist_keeps_in_memory_settings():
    repo = FakeSettingsRepository()
    repo.fail_upsert = True
    manager = ModerationSettingsManager(repo)

    manager.save(1, {"action_type": "timeout"})
    await manager.shutdown()

    assert repo.upserts == []
    assert manager.get(1).action_type is ActionType.TIMEOUT


def test_save_without_event_loop_keeps_in_memory():
    repo = FakeSettingsRepository()
    manager = ModerationSettingsManager(repo)

    saved = manager.save(1, {"enabled": False})

    assert manager.get(1) is saved
    assert manager._active_persists == set()


@pytest.mark.asyncio
async def test_delete_removes_from_memory_and_repository():
    repo = FakeSettingsRepository()
    manager = ModerationSettingsManager(repo)
    manager.save(1, {"action_type": "kick"})
    await manager.shutdown()

    assert await manager.delete(1) is True
    assert repo.deleted == [GuildID(1)]
    assert manager.get(1).action_type is ActionType.WARN
    assert await manager.delete(1) is False


@pytest.mark.asyncio
async def test_delete_without_repository():
    manager = ModerationSettingsManager()
    manager.save(1, {})
    assert await manager.delete(1) is True
    assert await manager.delete(1) is False


def test_channel_and_role_filters():
    manager = ModerationSettingsManager()
    manager.save(1, {"monitored_channel_ids": [10, 11], "excluded_role_ids": [20]})

    assert manager.should_monitor_channel(1, 10) is True
    assert manager.should_monitor_channel(1, "11") is True
    assert manager.should_monitor_channel(1, 12) is False
    assert manager.is_user_excluded(1, [5, 20]) is True
    assert manager.is_user_excluded(1, []) is False
    assert manager.is_user_excluded(2, [20]) is False


def test_non_snowflake_guild_ids_are_rejected_on_save_and_get():
    manager = ModerationSettingsManager()

    with pytest.raises(ValidationError):
        manager.save("guildA", {"sensitivity": "high"})
    with pytest.raises(ValidationError):
        manager.get("guildA")


def test_policy_lookups_answer_false_for_non_snowflake_ids():
    manager = ModerationSettingsManager()
    manager.save(1, {"monitored_channel_ids": ["5"], "excluded_role_ids": ["7"]})

    assert manager.should_monitor_channel("guildA", "chan1") is False
    assert manager.should_monitor_channel(1, "chan1") is False
    assert manager.should_monitor_channel(1, 5) is True
    assert manager.is_user_excluded("guildA", [7]) is False
    assert manager.is_user_excluded(1, ["role-x", 7]) is True
    assert manager.is_user_excluded(1, ["role-x"]) is False
