"""
Configuration loading: config.yaml plus environment overrides.
"""

import logging
import os
from datetime import timedelta
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError
from .infra.http import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from .models import PreferenceProfile, Source

logger = logging.getLogger(__name__)


class SourceConfig(BaseModel):
    id: str
    name: str
    scraper: str
    url: str
    interval_hours: float = 24.0
    enabled: bool = True

    def to_source(self) -> Source:
        return Source(
            id=self.id,
            name=self.name,
            scraper=self.scraper,
            url=self.url,
            scrape_interval=timedelta(hours=self.interval_hours),
            enabled=self.enabled,
        )


def _default_sources() -> List[SourceConfig]:
    return [
        SourceConfig(
            id="heavymetal-dk",
            name="HeavyMetal.dk",
            scraper="HeavyMetalDk",
            url="https://heavymetal.dk/koncertkalender",
        )
    ]


class StorageConfig(BaseModel):
    backend: Literal["memory", "json", "sqlite"] = "json"
    path: str = "concert-data"


class NotifierConfig(BaseModel):
    type: Literal["console", "discord", "telegram"] = "console"
    webhook_url: Optional[str] = None
    bot_token: Optional[str] = None
    chat_id: Optional[str] = None


class HttpConfig(BaseModel):
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT


class SchedulerConfig(BaseModel):
    interval_minutes: int = 60
    cron: Optional[str] = None
    timezone: str = "Europe/Copenhagen"


class AppConfig(BaseModel):
    sources: List[SourceConfig] = Field(default_factory=_default_sources)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    notifier: NotifierConfig = Field(default_factory=NotifierConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    preferences: Optional[PreferenceProfile] = None


def _apply_env_overrides(cfg: AppConfig) -> AppConfig:
    if os.getenv("CONCERT_DATA_DIR"):
        cfg.storage.path = os.environ["CONCERT_DATA_DIR"]
    if os.getenv("DISCORD_WEBHOOK_URL"):
        cfg.notifier.webhook_url = os.environ["DISCORD_WEBHOOK_URL"]
    if os.getenv("TELEGRAM_BOT_TOKEN"):
        cfg.notifier.bot_token = os.environ["TELEGRAM_BOT_TOKEN"]
    if os.getenv("TELEGRAM_CHAT_ID"):
        cfg.notifier.chat_id = os.environ["TELEGRAM_CHAT_ID"]
    return cfg


def load_config(path: Optional[str] = None) -> AppConfig:
    """Load configuration from a YAML file; a missing file means defaults."""
    path = path or os.getenv("CONFIG_PATH", "config.yaml")
    config_path = Path(path)

    if not config_path.exists():
        logger.warning(f"Config file not found: {config_path}, using defaults")
        return _apply_env_overrides(AppConfig())

    try:
        with config_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        cfg = AppConfig.model_validate(data)
    except (yaml.YAMLError, ValidationError) as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e

    return _apply_env_overrides(cfg)
