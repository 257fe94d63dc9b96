"""
Per-guild content moderation configuration.

Database schema:
- content_moderation_settings table with columns: guild_id, enabled,
  enable_script_transliteration, action_type, sensitivity, and JSON list
  columns custom_words, monitored_channel_ids, excluded_role_ids, plus
  log_channel_id
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from modsentry.datatypes.discord_datatypes import ChannelID, GuildID, RoleID
from modsentry.datatypes.moderation_datatypes import ActionType, ParsableEnum, Sensitivity
from modsentry.moderation.exceptions import ValidationError
from modsentry.util.logger import get_logger

logger = get_logger("moderation_settings")

_TRUE_STRINGS = {"1", "true", "yes", "on", "enabled"}
_FALSE_STRINGS = {"0", "false", "no", "off", "disabled"}


def _coerce_bool(value: Any, default: bool) -> bool:
    """Interpret bools, ints and common yes/no strings; anything else yields ``default``."""
    if value is None:
        return default
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        return default
    return bool(value)


@dataclass(slots=True)
class GuildModerationSettings:
    """Content moderation configuration for one guild."""

    guild_id: GuildID
    enabled: bool = True
    enable_script_transliteration: bool = True
    action_type: ActionType = ActionType.WARN
    sensitivity: Sensitivity = Sensitivity.MEDIUM
    custom_words: List[str] = field(default_factory=list)
    monitored_channel_ids: List[ChannelID] = field(default_factory=list)
    excluded_role_ids: List[RoleID] = field(default_factory=list)
    log_channel_id: Optional[ChannelID] = None

    @classmethod
    def from_mapping(
        cls,
        guild_id: GuildID,
        data: Optional[Mapping[str, Any]],
        *,
        strict: bool = True,
    ) -> "GuildModerationSettings":
        """
        Build settings from a loose mapping, applying defaults for missing keys.

        Args:
            guild_id: Guild the settings belong to.
            data: Mapping of field name to raw value. ``None`` yields defaults.
            strict: Raise ValidationError on bad values when True; when False
                (persisted data) log a warning and use the default instead.
        """
        settings = cls(guild_id=GuildID(guild_id))
        if not data:
            return settings

        def pick_enum(enum_cls: type[ParsableEnum], key: str, default):
            if data.get(key) is None:
                return default
            try:
                return enum_cls.parse(data[key])
            except ValidationError:
                if strict:
                    raise
                logger.warning(
                    "[MODERATION SETTINGS] Invalid %s %r for guild %s; using %s",
                    key, data[key], settings.guild_id, default,
                )
                return default

        def pick_ids(id_cls, key: str) -> list:
            raw = data.get(key)
            if raw is None:
                return []
            if isinstance(raw, (str, bytes)) or not isinstance(raw, Iterable):
                if strict:
                    raise ValidationError(f"{key} must be a list of IDs")
                logger.warning("[MODERATION SETTINGS] Ignoring non-list %s for guild %s", key, settings.guild_id)
                return []
            ids = []
            for value in raw:
                try:
                    ids.append(id_cls(value))
                except ValueError:
                    if strict:
                        raise ValidationError(f"Invalid ID {value!r} in {key}")
                    logger.warning("[MODERATION SETTINGS] Dropping invalid ID %r in %s", value, key)
            return ids

        settings.enabled = _coerce_bool(data.get("enabled"), True)
        settings.enable_script_transliteration = _coerce_bool(data.get("enable_script_transliteration"), True)
        settings.action_type = pick_enum(ActionType, "action_type", ActionType.WARN)
        settings.sensitivity = pick_enum(Sensitivity, "sensitivity", Sensitivity.MEDIUM)

        words = data.get("custom_words") or []
        if isinstance(words, str):
            words = [words]
        settings.custom_words = [w.strip().lower() for w in words if isinstance(w, str) and w.strip()]

        settings.monitored_channel_ids = pick_ids(ChannelID, "monitored_channel_ids")
        settings.excluded_role_ids = pick_ids(RoleID, "excluded_role_ids")

        log_channel = data.get("log_channel_id")
        if log_channel is not None:
            try:
                settings.log_channel_id = ChannelID(log_channel)
            except ValueError:
                if strict:
                    raise ValidationError(f"Invalid log channel ID {log_channel!r}")
                logger.warning("[MODERATION SETTINGS] Dropping invalid log channel %r", log_channel)

        return settings

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "guild_id": str(self.guild_id),
            "enabled": self.enabled,
            "enable_script_transliteration": self.enable_script_transliteration,
            "action_type": self.action_type.value,
            "sensitivity": self.sensitivity.value,
            "custom_words": list(self.custom_words),
            "monitored_channel_ids": [str(c) for c in self.monitored_channel_ids],
            "excluded_role_ids": [str(r) for r in self.excluded_role_ids],
            "log_channel_id": str(self.log_channel_id) if self.log_channel_id is not None else None,
        }
