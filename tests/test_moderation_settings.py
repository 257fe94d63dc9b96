import pytest

from modsentry.datatypes.discord_datatypes import ChannelID, GuildID, RoleID
from modsentry.datatypes.moderation_datatypes import ActionType, Sensitivity
from modsentry.datatypes.moderation_settings import GuildModerationSettings
from modsentry.moderation.exceptions import ValidationError


def test_defaults():
    settings = GuildModerationSettings.from_mapping(1, None)
    assert settings.guild_id == GuildID(1)
    assert settings.enabled is True
    assert settings.enable_script_transliteration is True
    assert settings.action_type is ActionType.WARN
    assert settings.sensitivity is Sensitivity.MEDIUM
    assert settings.custom_words == []
    assert settings.monitored_channel_ids == []
    assert settings.excluded_role_ids == []
    assert settings.log_channel_id is None


def test_from_mapping_parses_values():
    settings = GuildModerationSettings.from_mapping(
        "1",
        {
            "enabled": "off",
            "enable_script_transliteration": 0,
            "action_type": "KICK",
            "sensitivity": "high",
            "custom_words": ["  Foo ", "", 3, "bar"],
            "monitored_channel_ids": [10, "11"],
            "excluded_role_ids": ["20"],
            "log_channel_id": "30",
        },
    )
    assert settings.enabled is False
    assert settings.enable_script_transliteration is False
    assert settings.action_type is ActionType.KICK
    assert settings.sensitivity is Sensitivity.HIGH
    assert settings.custom_words == ["foo", "bar"]
    assert settings.monitored_channel_ids == [ChannelID(10), ChannelID(11)]
    assert settings.excluded_role_ids == [RoleID(20)]
    assert settings.log_channel_id == ChannelID(30)


@pytest.mark.parametrize(
    "data",
    [
        {"action_type": "ban"},
        {"sensitivity": "extreme"},
        {"monitored_channel_ids": "10"},
        {"excluded_role_ids": ["abc"]},
        {"log_channel_id": "general"},
    ],
)
def test_strict_mapping_rejects_bad_values(data):
    with pytest.raises(ValidationError):
        GuildModerationSettings.from_mapping(1, data)


def test_lenient_mapping_falls_back_to_defaults():
    settings = GuildModerationSettings.from_mapping(
        1,
        {
            "action_type": "ban",
            "sensitivity": "extreme",
            "monitored_channel_ids": ["10", "x"],
            "excluded_role_ids": "20",
            "log_channel_id": "general",
        },
        strict=False,
    )
    assert settings.action_type is ActionType.WARN
    assert settings.sensitivity is Sensitivity.MEDIUM
    assert settings.monitored_channel_ids == [ChannelID(10)]
    assert settings.excluded_role_ids == []
    assert settings.log_channel_id is None


def test_to_dict_round_trips_through_from_mapping():
    original = GuildModerationSettings.from_mapping(
        7,
        {"sensitivity": "low", "monitored_channel_ids": ["5"], "log_channel_id": 6},
    )
    data = original.to_dict()

    assert data["guild_id"] == "7"
    assert data["monitored_channel_ids"] == ["5"]
    assert data["log_channel_id"] == "6"
    assert GuildModerationSettings.from_mapping(7, data) == original
