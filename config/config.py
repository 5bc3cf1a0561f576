"""
Application configuration loaded from environment variables.
A .env file in the working directory is honoured through python-dotenv.
"""

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from dotenv import load_dotenv

REQUIRED_VARIABLES = [
    "DATABASE_URL",
    "JWT_SECRET",
    "CLOUDINARY_CLOUD_NAME",
    "CLOUDINARY_API_KEY",
    "CLOUDINARY_API_SECRET",
]

SEVEN_DAYS = 7 * 24 * 60 * 60

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")


class ConfigError(Exception):
    """Raised when the environment cannot produce a usable configuration."""


@dataclass(frozen=True)
class Config:
    DATABASE_URL: str
    JWT_SECRET: str
    CLOUDINARY_CLOUD_NAME: str
    CLOUDINARY_API_KEY: str
    CLOUDINARY_API_SECRET: str
    JWT_EXPIRES_IN: int = SEVEN_DAYS
    CLOUDINARY_FOLDER: str = "gallery"
    ASSET_HOST_TIMEOUT: float = 30.0
    DB_POOL_MIN_SIZE: int = 2
    DB_POOL_MAX_SIZE: int = 10
    DB_COMMAND_TIMEOUT: float = 60.0
    CORS_ORIGINS: List[str] = field(default_factory=lambda: ["http://localhost:5173"])
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/api/v1"


def _number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def get_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    """
    Build the configuration from the environment.

    Args:
        environ: Mapping to read instead of os.environ (the .env file is
            only loaded when this is omitted)

    Returns:
        Config instance

    Raises:
        ConfigError: If a required variable is missing or a value is malformed
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    missing = [name for name in REQUIRED_VARIABLES if not environ.get(name)]
    if missing:
        raise ConfigError(f"Missing environment variables: {', '.join(missing)}")

    log_level = (environ.get("LOG_LEVEL") or "INFO").strip().upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {environ['LOG_LEVEL']!r}")

    origins = environ.get("CORS_ORIGINS", "http://localhost:5173")
    prefix = environ.get("API_PREFIX", "/api/v1").rstrip("/")

    return Config(
        DATABASE_URL=environ["DATABASE_URL"],
        JWT_SECRET=environ["JWT_SECRET"],
        CLOUDINARY_CLOUD_NAME=environ["CLOUDINARY_CLOUD_NAME"],
        CLOUDINARY_API_KEY=environ["CLOUDINARY_API_KEY"],
        CLOUDINARY_API_SECRET=environ["CLOUDINARY_API_SECRET"],
        JWT_EXPIRES_IN=_number(environ, "JWT_EXPIRES_IN", SEVEN_DAYS, int),
        CLOUDINARY_FOLDER=environ.get("CLOUDINARY_FOLDER") or "gallery",
        ASSET_HOST_TIMEOUT=_number(environ, "ASSET_HOST_TIMEOUT", 30.0, float),
        DB_POOL_MIN_SIZE=_number(environ, "DB_POOL_MIN_SIZE", 2, int),
        DB_POOL_MAX_SIZE=_number(environ, "DB_POOL_MAX_SIZE", 10, int),
        DB_COMMAND_TIMEOUT=_number(environ, "DB_COMMAND_TIMEOUT", 60.0, float),
        CORS_ORIGINS=[origin.strip() for origin in origins.split(",") if origin.strip()],
        LOG_LEVEL=log_level,
        API_PREFIX=prefix,
    )
