"""
Configuration management using Pydantic Settings.

Architecture Decision: Why pydantic-settings?
- Type-safe configuration with validation (durations are clamped on load)
- Supports multiple sources (YAML, env vars, defaults)
- Easy to test with different configurations

The Settings object doubles as the Pomodoro settings store.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pomotrack.domain.models import PomodoroSettings
from pomotrack.services.stores import SettingsStore

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings with multiple sources:
    1. Default values (hardcoded)
    2. YAML config file
    3. Environment variables (highest priority for the scalar fields)
    """
    model_config = SettingsConfigDict(
        env_prefix='POMOTRACK_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    # Application paths
    app_name: str = "Pomotrack"
    config_dir: Optional[Path] = None
    data_dir: Optional[Path] = None

    # Database
    database_url: Optional[str] = None

    # UI language: 'en', 'de' or 'auto'
    language: str = "auto"

    # Milliseconds between two timer ticks
    tick_interval_ms: int = 1000

    # Timer configuration
    pomodoro: PomodoroSettings = Field(default_factory=PomodoroSettings)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._init_paths()
        self._load_yaml_config()

    def _init_paths(self):
        """Initialize default paths based on OS"""
        if self.config_dir is None:
            if os.name == 'nt':  # Windows
                base = Path(os.getenv('APPDATA'))
            else:  # Linux/Mac
                base = Path.home() / '.config'
            self.config_dir = base / self.app_name.lower()

        if self.data_dir is None:
            if os.name == 'nt':  # Windows
                base = Path(os.getenv('APPDATA'))
            else:  # Linux/Mac
                base = Path.home() / '.local' / 'share'
            self.data_dir = base / self.app_name.lower()

        # Create directories if they don't exist
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def config_file(self) -> Path:
        return self.config_dir / "settings.yaml"

    def _load_yaml_config(self):
        """Load Pomodoro settings from YAML file"""
        # First check in workspace config folder
        config_file = Path("config/settings.yaml")
        if not config_file.exists():
            # Then check in user's config directory
            config_file = self.config_file

        if config_file.exists():
            with open(config_file, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)
            if config_data:
                self.pomodoro = PomodoroSettings(**config_data.get("pomodoro", {}))
                if "language" in config_data:
                    self.language = config_data["language"]
                logger.debug(f"Loaded settings from {config_file}")

    def load_settings(self) -> PomodoroSettings:
        """Current Pomodoro settings"""
        return self.pomodoro

    def save_settings(self, settings: PomodoroSettings) -> None:
        """Save Pomodoro settings to the user's YAML file"""
        self.pomodoro = settings
        data = {
            "language": self.language,
            "pomodoro": settings.model_dump(),
        }
        with open(self.config_file, 'w', encoding='utf-8') as f:
            yaml.dump(data, f, default_flow_style=False)
        logger.info(f"Settings saved to {self.config_file}")

    def get_db_url(self) -> str:
        """Get database URL, creating default if not set"""
        if self.database_url:
            return self.database_url

        db_path = self.data_dir / 'pomotrack.db'
        return f"sqlite+aiosqlite:///{db_path}"


SettingsStore.register(Settings)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
