"""Configuration for cdpdriver, read from the environment and an optional .env file."""

import logging
from functools import cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class EnvConfig(BaseSettings):
    """Environment variable configuration using pydantic-settings."""

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra='allow'
    )

    # Logging
    CDPDRIVER_LOGGING_LEVEL: str = Field(default='info')
    CDP_LOGGING_LEVEL: str = Field(default='WARNING')
    CDPDRIVER_DEBUG_LOG_FILE: str | None = Field(default=None)
    CDPDRIVER_INFO_LOG_FILE: str | None = Field(default=None)

    # Browser discovery and launch
    CHROME_PATH: str | None = Field(default=None)
    CDPDRIVER_HEADLESS: bool = Field(default=True)
    CDPDRIVER_LAUNCH_TIMEOUT: float = Field(default=30.0, gt=0)

    # Protocol and driver timeouts, in seconds
    CDPDRIVER_HANDSHAKE_TIMEOUT: float = Field(default=10.0, gt=0)
    CDPDRIVER_COMMAND_TIMEOUT: float = Field(default=120.0, gt=0)
    CDPDRIVER_DEFAULT_TIMEOUT: float = Field(default=10.0, ge=0)
    CDPDRIVER_PAGE_LOAD_TIMEOUT: float = Field(default=30.0, ge=0)
    CDPDRIVER_POLLING_INTERVAL: float = Field(default=0.05, gt=0)

    # Natural-language locator resolver
    OLLAMA_HOST: str = Field(default='http://localhost:11434')
    OLLAMA_MODEL: str = Field(default='qwen2.5-coder:7b')
    OLLAMA_TIMEOUT: float = Field(default=120.0, gt=0)


@cache
def get_config() -> EnvConfig:
    """Return the process-wide configuration, loaded once."""
    config = EnvConfig()
    logger.debug(f'Loaded configuration: headless={config.CDPDRIVER_HEADLESS}, chrome_path={config.CHROME_PATH}')
    return config


CONFIG = get_config()
