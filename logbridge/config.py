"""LogBridge configuration management."""

from functools import lru_cache
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LOGBRIDGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "LogBridge"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: Annotated[list[str], NoDecode] = ["http://localhost:4200"]

    @field_validator("cors_origins", "enabled_receivers", mode="before")
    @classmethod
    def parse_comma_separated(cls, v: Any) -> list[str]:
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    # Parsing
    default_logger_name: str = "Unknown"

    # Receivers started with the application (registry identifiers)
    enabled_receivers: Annotated[list[str], NoDecode] = []
    queue_size: int = 10000

    # TCP receiver
    tcp_host: str = "0.0.0.0"
    tcp_port: int = 4505

    # UDP receiver
    udp_host: str = "0.0.0.0"
    udp_port: int = 7071

    # File receiver
    file_path: str = ""
    file_poll_interval: float = 1.0
    file_read_from_start: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
