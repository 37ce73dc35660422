"""Unit tests for process settings."""

import os

import pytest

from src.sweetiebot.config import settings as settings_module
from src.sweetiebot.config.settings import (
    Settings,
    get_default_settings,
    get_settings,
    initialize_settings,
    validate_setting,
)


@pytest.fixture
def missing_env(tmp_path):
    return tmp_path / "missing.env"


class TestValidation:
    def test_defaults_are_valid(self):
        for key, value in get_default_settings().items():
            assert validate_setting(key, value) == (True, None)

    def test_type_mismatch(self):
        ok, error = validate_setting("bot.max_message_length", "2000")
        assert not ok
        assert "Expected type int" in error

    def test_bool_is_not_an_int(self):
        ok, _ = validate_setting("bot.max_message_length", True)
        assert not ok

    def test_range(self):
        ok, error = validate_setting("bot.max_message_length", 50)
        assert not ok
        assert "below minimum 100" in error

    def test_custom_validator(self):
        ok, error = validate_setting("logging.level", "LOUD")
        assert not ok
        assert "Custom validation failed" in error

    def test_unknown_key(self):
        ok, error = validate_setting("bot.nope", 1)
        assert not ok
        assert "not found" in error


class TestLoading:
    def test_defaults_when_no_files(self, tmp_path, missing_env):
        values = Settings(tmp_path / "missing.toml", missing_env).load()
        assert values["database.path"] == "data/sweetiebot.db"
        assert values["migrations.strict"] is False

    def test_toml_overrides_defaults(self, tmp_path, missing_env):
        config = tmp_path / "config.toml"
        config.write_text('[bot]\napp_name = "Pinkie Bot"\n\n[migrations]\nstrict = true\n')
        settings = Settings(config, missing_env)
        settings.load()
        assert settings.get("bot.app_name") == "Pinkie Bot"
        assert settings.get("migrations.strict") is True

    def test_invalid_toml_value(self, tmp_path, missing_env):
        config = tmp_path / "config.toml"
        config.write_text("[bot]\nmax_message_length = 50\n")
        with pytest.raises(ValueError, match="Settings validation failed for 'bot.max_message_length'"):
            Settings(config, missing_env).load()

    def test_env_overrides_toml(self, tmp_path, missing_env, monkeypatch):
        config = tmp_path / "config.toml"
        config.write_text('[database]\npath = "from-toml.db"\n')
        monkeypatch.setenv("SWEETIEBOT_DATABASE_PATH", "from-env.db")
        monkeypatch.setenv("SWEETIEBOT_LOGGING_JSON_OUTPUT", "yes")
        settings = Settings(config, missing_env)
        settings.load()
        assert settings.get("database.path") == "from-env.db"
        assert settings.get("logging.json_output") is True

    def test_invalid_env_value(self, tmp_path, missing_env, monkeypatch):
        monkeypatch.setenv("SWEETIEBOT_MIGRATIONS_STRICT", "maybe")
        with pytest.raises(ValueError, match="SWEETIEBOT_MIGRATIONS_STRICT"):
            Settings(tmp_path / "missing.toml", missing_env).load()

    def test_dotenv_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("SWEETIEBOT_BOT_MAX_MESSAGE_LENGTH=1500\n")
        try:
            settings = Settings(tmp_path / "missing.toml", env_file)
            settings.load()
            assert settings.get("bot.max_message_length") == 1500
        finally:
            os.environ.pop("SWEETIEBOT_BOT_MAX_MESSAGE_LENGTH", None)

    def test_repo_default_toml_loads(self, missing_env):
        settings = Settings(env_file=missing_env)
        settings.load()
        assert settings.get("bot.app_name") == "Sweetie Bot"


def test_global_settings(tmp_path, missing_env, monkeypatch):
    monkeypatch.setattr(settings_module, "_settings", None)
    with pytest.raises(RuntimeError, match="not initialized"):
        get_settings()
    loaded = initialize_settings(tmp_path / "missing.toml", missing_env)
    assert get_settings() is loaded
