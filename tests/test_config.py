"""Unit tests for settings and API-key resolution."""
import stat

import pytest

from pyrouter.config import (
    DEFAULT_IMAGE_MODEL,
    DEFAULT_MODEL,
    AppSettings,
    ConfigError,
    config_path,
    load_settings,
    prompt_for_api_key,
    resolve_api_key,
    save_settings,
    sessions_dir,
)


class TestSettingsFile:
    """Tests for reading and writing config.json."""

    def test_paths_follow_override(self, config_dir):
        assert config_path() == config_dir / "config.json"
        assert sessions_dir() == config_dir / "sessions"

    def test_defaults_when_missing(self, config_dir):
        settings = load_settings()

        assert settings.api_key == ""
        assert settings.default_model == DEFAULT_MODEL
        assert settings.default_image_model == DEFAULT_IMAGE_MODEL

    def test_save_and_load(self, config_dir):
        save_settings(AppSettings(api_key="sk-test", default_model="a/b"))

        settings = load_settings()

        assert settings.api_key == "sk-test"
        assert settings.default_model == "a/b"
        assert stat.S_IMODE(config_path().stat().st_mode) == 0o600

    def test_empty_models_fall_back_to_defaults(self, config_dir):
        config_dir.mkdir(parents=True)
        config_path().write_text('{"api_key": "k", "default_model": "", "default_image_model": ""}')

        settings = load_settings()

        assert settings.default_model == DEFAULT_MODEL
        assert settings.default_image_model == DEFAULT_IMAGE_MODEL

    def test_corrupt_file(self, config_dir):
        config_dir.mkdir(parents=True)
        config_path().write_text("{broken")

        with pytest.raises(ConfigError):
            load_settings()


class TestResolveApiKey:
    """Tests for API-key lookup order."""

    def test_environment_wins(self, config_dir, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "from-env")

        assert resolve_api_key(AppSettings(api_key="from-file")) == "from-env"

    def test_settings_file(self, config_dir):
        save_settings(AppSettings(api_key="from-file"))

        assert resolve_api_key() == "from-file"

    def test_prompt_saves_key(self, config_dir):
        key = resolve_api_key(prompt=lambda: "typed-key")

        assert key == "typed-key"
        assert load_settings().api_key == "typed-key"

    def test_no_prompt_raises(self, config_dir):
        with pytest.raises(ConfigError):
            resolve_api_key(prompt=None)

    def test_unsaved_key_still_returned(self, config_dir, monkeypatch):
        def fail(settings):
            raise ConfigError("read-only")

        monkeypatch.setattr("pyrouter.config.settings.save_settings", fail)

        assert resolve_api_key(prompt=lambda: "typed-key") == "typed-key"

    def test_prompt_rejects_empty_key(self, monkeypatch):
        monkeypatch.setattr("typer.prompt", lambda *args, **kwargs: "   ")

        with pytest.raises(ConfigError):
            prompt_for_api_key()

    def test_prompt_strips_key(self, monkeypatch):
        monkeypatch.setattr("typer.prompt", lambda *args, **kwargs: " sk-or-1 \n")

        assert prompt_for_api_key() == "sk-or-1"
