from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from modsentry.datatypes.moderation_datatypes import Sensitivity, Severity
from modsentry.moderation.exceptions import ValidationError
from modsentry.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_DATABASE_PATH = "./data/modsentry.db"
DEFAULT_WORD_CACHE_TTL_SECONDS = 300.0
DEFAULT_NOTICE_DELETE_AFTER = {"warn": 10.0, "delete": 5.0, "timeout": 10.0, "kick": 10.0}
DEFAULT_TIMEOUT_MINUTES = {Severity.LOW: 5, Severity.MEDIUM: 5, Severity.HIGH: 10}


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches contents of ``./config/app_config.yml`` and exposes
    dictionary-like access helpers plus typed properties for the content
    moderation knobs. Uses fcntl file locks for safe concurrent access across
    processes. A missing or malformed file behaves like an empty one.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = Path(config_path)
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                # Acquire a shared lock for reading
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
            return {}
        return data

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._data.get(name, {})
        return section if isinstance(section, dict) else {}

    def _number(self, section: str, key: str, default: float) -> float:
        value = self._section(section).get(key, default)
        try:
            number = float(value)
        except (TypeError, ValueError):
            logger.warning("[APP CONFIGURATION] %s.%s=%r is not a number; using %s", section, key, value, default)
            return default
        if number < 0:
            logger.warning("[APP CONFIGURATION] %s.%s=%r is negative; using %s", section, key, value, default)
            return default
        return number

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping.

        Callers should not mutate it; use get(...) or the typed properties.
        """
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def database_path(self) -> Path:
        """SQLite file path; relative paths resolve against the config file's parent directory."""
        raw = self._section("database").get("path") or DEFAULT_DATABASE_PATH
        path = Path(str(raw)).expanduser()
        if not path.is_absolute():
            path = self.config_path.parent.parent / path
        return path.resolve()

    @property
    def word_cache_ttl_seconds(self) -> float:
        """How long a loaded word list is reused before it is fetched again. Default 300."""
        return self._number("content_moderation", "word_cache_ttl_seconds", DEFAULT_WORD_CACHE_TTL_SECONDS)

    @property
    def default_sensitivity(self) -> Sensitivity:
        """Sensitivity for guilds that never configured one. Default medium."""
        value = self._section("content_moderation").get("default_sensitivity", Sensitivity.MEDIUM.value)
        try:
            return Sensitivity.parse(value)
        except ValidationError:
            logger.warning("[APP CONFIGURATION] Unknown default_sensitivity %r; using medium", value)
            return Sensitivity.MEDIUM

    @property
    def notice_delete_after_seconds(self) -> Dict[str, float]:
        """Lifetime of the channel notices posted after each action, keyed by action name."""
        configured = self._section("content_moderation").get("notice_delete_after_seconds", {})
        if not isinstance(configured, dict):
            configured = {}
        result = dict(DEFAULT_NOTICE_DELETE_AFTER)
        for action, default in DEFAULT_NOTICE_DELETE_AFTER.items():
            value = configured.get(action, default)
            try:
                result[action] = max(float(value), 0.0)
            except (TypeError, ValueError):
                logger.warning("[APP CONFIGURATION] Bad notice lifetime %r for %s; using %s", value, action, default)
        return result

    @property
    def timeout_minutes(self) -> Dict[Severity, int]:
        """Timeout length per detected severity. Defaults: 10 minutes for high, 5 otherwise."""
        configured = self._section("content_moderation").get("timeout_minutes", {})
        if not isinstance(configured, dict):
            configured = {}
        result = dict(DEFAULT_TIMEOUT_MINUTES)
        for severity, default in DEFAULT_TIMEOUT_MINUTES.items():
            value = configured.get(severity.value, default)
            try:
                minutes = int(value)
            except (TypeError, ValueError):
                logger.warning("[APP CONFIGURATION] Bad timeout %r for %s; using %s", value, severity, default)
                continue
            result[severity] = minutes if minutes > 0 else default
        return result


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
