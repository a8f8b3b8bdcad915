"""Runtime settings using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from deploy_config.constants import DEFAULT_WEBSOCKET_ADDRESS


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_env: Literal["development", "staging", "production"] = "development"

    # Set when running embedded in the deploy server
    app_port: int | None = None

    # Signaling endpoint
    websocket_address: str = Field(default=DEFAULT_WEBSOCKET_ADDRESS)

    # Volume materialization
    volume_tmp_dir: str | None = None
    fetch_timeout: float = 30.0

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["console", "json"] = "console"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_server(self) -> bool:
        """Running inside the deploy server rather than on a user machine."""
        return self.app_port is not None

    @property
    def websocket_address_overridden(self) -> bool:
        return self.websocket_address != DEFAULT_WEBSOCKET_ADDRESS


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
