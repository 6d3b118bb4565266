"""Application configuration using Pydantic settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Filesystem roots
    outputs_dir: str = Field(
        "/var/lib/docviewer/pdf-results", alias="OUTPUTS_DIR",
        description="Root holding one pre-processed folder per catalog document.",
    )
    batch_outputs_dir: str = Field(
        "/var/lib/docviewer/batch_processing", alias="BATCH_OUTPUTS_DIR",
        description="Root holding one folder per batch job id, each with a status.json.",
    )

    # Document and user stores
    documents_config_path: str = Field(
        "config/documents.yaml", alias="DOCUMENTS_CONFIG_PATH",
        description="Path to the YAML document store mapping document ids to the groups allowed to view them.",
    )
    users_config_path: str = Field(
        "config/users.yaml", alias="USERS_CONFIG_PATH",
        description="Path to the YAML user store with bcrypt password hashes and group memberships.",
    )

    # Sessions
    session_ttl: int = Field(
        86400, alias="SESSION_TTL",
        description="Session lifetime in seconds from login. Fixed window, not extended by use.",
    )
    session_maxsize: int = Field(
        10000, alias="SESSION_MAXSIZE",
        description="Max number of live sessions kept in memory. Logins are refused when full.",
    )

    # Server
    frontend_url: str = Field(
        "http://localhost:3000", alias="FRONTEND_URL",
        description="Origin allowed by CORS. Empty = no CORS headers.",
    )
    host: str = Field(
        "0.0.0.0", alias="HOST",
        description="Host address to bind the aiohttp server to.",
    )
    port: int = Field(
        5001, alias="PORT",
        description="Port number for the aiohttp server.",
    )

    # Logging
    log_level: str = Field(
        "INFO", alias="LOG_LEVEL",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL.",
    )
    log_file: str = Field(
        "", alias="LOG_FILE",
        description="Path to log file for file-based logging with rotation. Empty = console only.",
    )
    log_file_max_bytes: int = Field(
        10_485_760, alias="LOG_FILE_MAX_BYTES",
        description="Max size in bytes per log file before rotation. Default: 10 MB.",
    )
    log_file_backup_count: int = Field(
        5, alias="LOG_FILE_BACKUP_COUNT",
        description="Number of rotated backup log files to keep.",
    )


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
