"""
Aseguradora configuration loader.

Configuration comes from two places, applied in order:
- config.yaml: static settings (server, database, cors, logging)
- Environment variables or a .env file: DATABASE_URL, HOST, PORT,
  CORS_ORIGINS, LOG_LEVEL
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./data/aseguradora.db"
DEFAULT_CORS_ORIGINS = ["http://localhost:5173"]


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 4000


@dataclass
class DatabaseConfig:
    url: str = DEFAULT_DATABASE_URL


@dataclass
class CorsConfig:
    allow_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class Config:
    """Application configuration."""
    server: ServerConfig = field(default_factory=ServerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    cors: CorsConfig = field(default_factory=CorsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: str | Path) -> Config:
    """Load configuration from a YAML file."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    config = Config()

    # Server
    if "server" in data:
        server_data = data["server"]
        config.server = ServerConfig(
            host=server_data.get("host", "0.0.0.0"),
            port=server_data.get("port", 4000),
        )

    # Database
    if "database" in data:
        db_data = data["database"]
        config.database = DatabaseConfig(
            url=db_data.get("url", DEFAULT_DATABASE_URL),
        )

    # CORS
    if "cors" in data:
        cors_data = data["cors"]
        config.cors = CorsConfig(
            allow_origins=list(cors_data.get("allow_origins", DEFAULT_CORS_ORIGINS)),
        )

    # Logging
    if "logging" in data:
        logging_data = data["logging"]
        config.logging = LoggingConfig(
            level=logging_data.get("level", "INFO"),
        )

    return config


class EnvSettings(BaseSettings):
    """Overrides read from the process environment and a .env file.

    Process variables take precedence over .env entries. Unset or empty
    variables leave the YAML value untouched.
    """
    database_url: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    # Comma-separated, e.g. "http://localhost:5173,https://seguros.example.com"
    cors_origins: Optional[str] = None
    log_level: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
    )


def apply_env_overrides(config: Config, settings: Optional[EnvSettings] = None) -> Config:
    """Override configuration values from environment settings.

    Recognized variables:
        DATABASE_URL: database connection string
        HOST / PORT: listen address
        CORS_ORIGINS: comma-separated list of allowed origins
        LOG_LEVEL: logging level name

    Raises:
        pydantic.ValidationError: If a variable has an invalid value (e.g. PORT).
    """
    if settings is None:
        settings = EnvSettings()

    if settings.database_url:
        config.database.url = settings.database_url

    if settings.host:
        config.server.host = settings.host

    if settings.port is not None:
        config.server.port = settings.port

    if settings.cors_origins is not None:
        config.cors.allow_origins = [
            origin.strip()
            for origin in settings.cors_origins.split(",")
            if origin.strip()
        ]

    if settings.log_level:
        config.logging.level = settings.log_level.upper()

    return config
