"""Tests for the config module."""
import json
from pathlib import Path

import pytest

from murim_quest import config, db, narrator
from murim_quest.config import (
    DEFAULT_MODEL,
    Settings,
    load_config,
    load_settings,
    save_config,
    set_config_value,
)
from murim_quest.pets import StageRule


class TestLoadSettingsFile:
    def test_corrupt_file_uses_defaults(self, tmp_path, caplog):
        path = tmp_path / "config.json"
        path.write_text("{pet_stage_rule: highest", encoding="utf-8")
        settings = load_settings(path)
        assert settings.pet_stage_rule is StageRule.EXACT
        assert "Ignoring unreadable config" in caplog.text

    def test_list_document_uses_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('[{"log_format": "json"}]', encoding="utf-8")
        assert load_settings(path).log_format == "text"

    def test_config_in_nested_directory(self, tmp_path):
        path = tmp_path / "profile" / "murim" / "config.json"
        set_config_value("log_format", "json", path)
        assert load_settings(path).log_format == "json"


class TestSetConfigValue:
    def test_preserves_other_keys(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({"log_level": "INFO"}, path)
        set_config_value("pet_stage_rule", "highest", path)
        assert load_config(path) == {"log_level": "INFO", "pet_stage_rule": "highest"}

    def test_overwrites_previous_value(self, tmp_path):
        path = tmp_path / "config.json"
        set_config_value("potion_poll_seconds", 5, path)
        set_config_value("potion_poll_seconds", 1.5, path)
        assert json.loads(path.read_text())["potion_poll_seconds"] == 1.5
        assert load_settings(path).potion_poll_seconds == 1.5

    def test_unknown_key_rejected(self, tmp_path):
        path = tmp_path / "config.json"
        with pytest.raises(KeyError):
            set_config_value("api_key", "secret", path)
        assert not path.exists()


class TestLoadSettings:
    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        settings = load_settings(tmp_path / "missing.json")
        assert settings.pet_stage_rule is StageRule.EXACT
        assert settings.potion_poll_seconds == 10.0
        assert settings.log_level == "WARNING"
        assert settings.log_format == "text"
        assert settings.gemini_model == DEFAULT_MODEL
        assert settings.api_key is None

    def test_values_from_file(self, tmp_path):
        path = tmp_path / "config.json"
        save_config(
            {
                "db_path": str(tmp_path / "quest.db"),
                "pet_stage_rule": "highest",
                "potion_poll_seconds": 2,
                "log_level": "debug",
                "log_format": "json",
                "gemini_model": "gemini-1.5-pro",
            },
            path,
        )
        settings = load_settings(path)
        assert settings.db_path == Path(tmp_path / "quest.db")
        assert settings.pet_stage_rule is StageRule.HIGHEST
        assert settings.potion_poll_seconds == 2.0
        assert settings.log_level == "DEBUG"
        assert settings.log_format == "json"
        assert settings.gemini_model == "gemini-1.5-pro"

    def test_invalid_values_ignored(self, tmp_path):
        path = tmp_path / "config.json"
        save_config(
            {"pet_stage_rule": "sideways", "potion_poll_seconds": -5, "log_format": "xml"},
            path,
        )
        settings = load_settings(path)
        assert settings.pet_stage_rule is StageRule.EXACT
        assert settings.potion_poll_seconds == 10.0
        assert settings.log_format == "text"

    def test_api_key_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "secret")
        assert load_settings(tmp_path / "missing.json").api_key == "secret"


class TestSharedDefaults:
    def test_db_path_matches_database_default(self):
        assert Settings().db_path == db.DEFAULT_DB_PATH

    def test_narrator_uses_configured_model_default(self):
        assert narrator.DEFAULT_MODEL is config.DEFAULT_MODEL
        assert Settings().gemini_model == narrator.DEFAULT_MODEL
