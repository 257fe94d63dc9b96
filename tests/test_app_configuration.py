from pathlib import Path

import pytest
import yaml

from modsentry.configuration.app_configuration import (
    DEFAULT_NOTICE_DELETE_AFTER,
    DEFAULT_TIMEOUT_MINUTES,
    AppConfig,
)
from modsentry.datatypes.moderation_datatypes import Sensitivity, Severity


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir / "app_config.yml"


def _write(path: Path, payload) -> None:
    path.write_text(yaml.safe_dump(payload), encoding="utf-8")


def test_app_config_reload_parses_yaml(config_path: Path) -> None:
    _write(config_path, {
        "database": {"path": "./db/test.db"},
        "content_moderation": {
            "word_cache_ttl_seconds": 60,
            "default_sensitivity": "high",
            "notice_delete_after_seconds": {"warn": 3, "kick": 0},
            "timeout_minutes": {"high": 30, "low": 1},
        },
    })

    config = AppConfig(config_path)

    assert config.get("database") == {"path": "./db/test.db"}
    assert config.database_path == (config_path.parent.parent / "db" / "test.db").resolve()
    assert config.word_cache_ttl_seconds == pytest.approx(60.0)
    assert config.default_sensitivity is Sensitivity.HIGH
    assert config.notice_delete_after_seconds == {"warn": 3.0, "delete": 5.0, "timeout": 10.0, "kick": 0.0}
    assert config.timeout_minutes == {Severity.LOW: 1, Severity.MEDIUM: 5, Severity.HIGH: 30}


def test_app_config_missing_file_returns_defaults(tmp_path: Path) -> None:
    config = AppConfig(tmp_path / "config" / "does_not_exist.yml")

    assert config.data == {}
    assert config.get("anything", "fallback") == "fallback"
    assert config.database_path == (tmp_path / "data" / "modsentry.db").resolve()
    assert config.word_cache_ttl_seconds == 300.0
    assert config.default_sensitivity is Sensitivity.MEDIUM
    assert config.notice_delete_after_seconds == DEFAULT_NOTICE_DELETE_AFTER
    assert config.timeout_minutes == DEFAULT_TIMEOUT_MINUTES


def test_app_config_absolute_database_path(config_path: Path, tmp_path: Path) -> None:
    target = tmp_path / "elsewhere" / "bot.db"
    _write(config_path, {"database": {"path": str(target)}})

    assert AppConfig(config_path).database_path == target.resolve()


def test_app_config_non_mapping_is_ignored(config_path: Path) -> None:
    config_path.write_text("- just\n- a list\n", encoding="utf-8")
    assert AppConfig(config_path).data == {}


def test_app_config_malformed_yaml_is_ignored(config_path: Path) -> None:
    config_path.write_text("content_moderation: [unclosed\n", encoding="utf-8")
    assert AppConfig(config_path).data == {}


def test_app_config_bad_values_fall_back(config_path: Path) -> None:
    _write(config_path, {
        "content_moderation": {
            "word_cache_ttl_seconds": -5,
            "default_sensitivity": "paranoid",
            "notice_delete_after_seconds": {"warn": "soon"},
            "timeout_minutes": {"medium": "long", "high": 0},
        },
    })

    config = AppConfig(config_path)

    assert config.word_cache_ttl_seconds == 300.0
    assert config.default_sensitivity is Sensitivity.MEDIUM
    assert config.notice_delete_after_seconds["warn"] == 10.0
    assert config.timeout_minutes == DEFAULT_TIMEOUT_MINUTES


def test_app_config_reload_picks_up_changes(config_path: Path) -> None:
    _write(config_path, {"content_moderation": {"word_cache_ttl_seconds": 10}})
    config = AppConfig(config_path)
    assert config.word_cache_ttl_seconds == 10.0

    _write(config_path, {"content_moderation": {"word_cache_ttl_seconds": 20}})
    reloaded = config.reload()

    assert reloaded["content_moderation"]["word_cache_ttl_seconds"] == 20
    assert config.word_cache_ttl_seconds == 20.0
