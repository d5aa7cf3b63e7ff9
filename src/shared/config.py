"""Configuration management for the Knowledge Base service.

Supports YAML configuration files and environment variable overrides.
Configuration is loaded once and cached for performance.
"""

import os
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    """HTTP server configuration."""
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=4567)

    model_config = SettingsConfigDict(
        env_prefix="KB_SERVER_",
        env_file=".env",
        extra="ignore"
    )


class StoreSettings(BaseSettings):
    """Article store configuration."""
    database_path: str = Field(default="data/knowledge_base.db", description="SQLite file or :memory:")
    full_text_search: bool = Field(default=True, description="Match terms through the FTS5 index")

    model_config = SettingsConfigDict(
        env_prefix="KB_STORE_",
        env_file=".env",
        extra="ignore"
    )


class GatewaySettings(BaseSettings):
    """MCP gateway configuration."""
    protocol_version: str = Field(default="2025-06-18")
    server_name: str = Field(default="Knowledge Base MCP Server")
    server_version: str = Field(default="1.0.0")

    # Text output
    preview_length: int = Field(default=100, gt=0, description="Characters kept in descriptions and previews")
    search_page_size: int = Field(default=10, ge=1, le=100)
    max_query_length: int = Field(default=255, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="KB_GATEWAY_",
        env_file=".env",
        extra="ignore"
    )


class Settings(BaseSettings):
    """Main application settings."""
    environment: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Component settings
    server: ServerSettings = Field(default_factory=ServerSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)

    model_config = SettingsConfigDict(
        env_prefix="KB_",
        env_file=".env",
        extra="ignore"
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    config_path = os.environ.get("KB_CONFIG_PATH", "config/settings.yaml")
    return Settings.from_yaml(config_path)
