"""
Settings
Configuration management for the Pattern Hub API and MCP server.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


# Production URL
PROD_URL = "https://api.patternhub.dev"


def get_api_url() -> str:
    """
    Get the base URL of the Pattern Hub REST API.

    Priority:
    1. PATTERN_HUB_API_URL env var (explicit override)
    2. Auto-detect: production vs localhost based on ENVIRONMENT
    """
    explicit_url = os.getenv("PATTERN_HUB_API_URL")
    if explicit_url:
        return explicit_url.rstrip("/")

    env = os.getenv("ENVIRONMENT", "development")
    if env == "production":
        return PROD_URL

    port = int(os.getenv("HTTP_PORT", "8000"))
    return f"http://localhost:{port}"


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


@dataclass
class Config:
    """Server configuration."""
    environment: str = "development"
    log_level: str = "DEBUG"
    http_port: int = 8000
    api_url: str = ""  # Set in __post_init__
    session_ttl_hours: int = 24
    upload_rate_limit: int = 30     # per hour
    vote_rate_limit: int = 10       # per minute

    def __post_init__(self):
        if not self.api_url:
            self.api_url = get_api_url()

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


class ConfigManager:
    """Configuration manager - loads and provides config."""

    _instance: Optional["ConfigManager"] = None

    def __init__(self):
        self._config: Optional[Config] = None

    @classmethod
    def get_instance(cls) -> "ConfigManager":
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    async def load(self) -> None:
        """Load configuration from environment."""
        self._config = self.load_sync()

    def load_sync(self) -> Config:
        env = os.getenv("ENVIRONMENT", "development")
        self._config = Config(
            environment=env,
            log_level=os.getenv("LOG_LEVEL", "DEBUG" if env != "production" else "INFO"),
            http_port=_int_env("HTTP_PORT", 8000),
            api_url=get_api_url(),
            session_ttl_hours=_int_env("SESSION_TTL_HOURS", 24),
            upload_rate_limit=_int_env("UPLOAD_RATE_LIMIT", 30),
            vote_rate_limit=_int_env("VOTE_RATE_LIMIT", 10),
        )
        return self._config

    def get(self) -> Config:
        """Get current configuration."""
        if self._config is None:
            # Create default config if not loaded
            self._config = Config()
        return self._config
