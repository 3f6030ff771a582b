"""
Tests for settings persistence.
"""

import yaml

from pomotrack.domain.models import PomodoroSettings
from pomotrack.infra import config
from pomotrack.infra.config import Settings, get_settings


def test_defaults(settings):
    assert settings.pomodoro == PomodoroSettings()
    assert settings.tick_interval_ms == 1000
    assert settings.config_dir.exists()
    assert settings.data_dir.exists()


def test_saved_settings_are_loaded_again(settings):
    settings.save_settings(PomodoroSettings(work_duration=50, auto_start_breaks=True))

    reloaded = Settings(config_dir=settings.config_dir, data_dir=settings.data_dir)

    assert reloaded.load_settings().work_duration == 50
    assert reloaded.load_settings().auto_start_breaks
    assert reloaded.language == "en"


def test_invalid_values_in_file_are_clamped(settings):
    settings.config_file.write_text(yaml.dump({"pomodoro": {"short_break_duration": 0}}))

    reloaded = Settings(config_dir=settings.config_dir, data_dir=settings.data_dir)

    assert reloaded.pomodoro.short_break_duration == 1
    assert reloaded.pomodoro.work_duration == 25


def test_default_database_lives_in_data_dir(settings):
    assert settings.get_db_url() == f"sqlite+aiosqlite:///{settings.data_dir / 'pomotrack.db'}"


def test_explicit_database_url(tmp_path):
    settings = Settings(config_dir=tmp_path, data_dir=tmp_path, database_url="sqlite+aiosqlite://")
    assert settings.get_db_url() == "sqlite+aiosqlite://"


def test_get_settings_is_shared(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "_settings", None)
    monkeypatch.setenv("POMOTRACK_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("POMOTRACK_DATA_DIR", str(tmp_path / "data"))

    first = get_settings()

    assert get_settings() is first
    assert first.config_dir == tmp_path / "config"
