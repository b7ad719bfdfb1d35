"""Configuration handling for vidscribe."""

import os
import tomllib
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def get_default_config_path() -> Path:
    """Get the default config file path following XDG spec."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        base_dir = Path(xdg_config)
    else:
        base_dir = Path.home() / ".config"

    return base_dir / "vidscribe" / "config.toml"


class ApiConfig(BaseModel):
    """Backend API configuration."""

    base_url: str = Field(
        default="http://localhost:3333",
        description="Base URL of the backend serving /videos.",
    )
    request_timeout_s: Optional[float] = Field(
        default=None,
        gt=0,
        description="Optional total timeout for each request in seconds (unset = no timeout).",
    )

    @field_validator("base_url")
    @classmethod
    def check_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("API base URL must start with http:// or https://")
        return v.rstrip("/")


class ConverterConfig(BaseModel):
    """Transcoding engine configuration."""

    ffmpeg_binary: str = Field(
        default="ffmpeg", description="Name or path of the ffmpeg executable."
    )
    work_dir: Optional[Path] = Field(
        default=None,
        description="Optional parent directory for the engine's working files.",
    )

    @field_validator("ffmpeg_binary")
    @classmethod
    def check_binary_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("ffmpeg binary cannot be empty")
        return v


class ClientConfig(BaseModel):
    """Client runtime configuration."""

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).",
    )
    log_file: Optional[Path] = Field(
        default=None, description="Optional custom log file path."
    )

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in allowed_levels:
            raise ValueError(f"Invalid log level. Choose from {allowed_levels}")
        return upper_v


class AppConfig(BaseModel):
    """Root configuration."""

    api: ApiConfig = Field(default_factory=ApiConfig)
    converter: ConverterConfig = Field(default_factory=ConverterConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load and validate configuration.

    If path is not provided, looks for config in the standard location.
    If no config file is found, returns default configuration.

    Args:
        path: Optional path to config file.

    Returns:
        Validated AppConfig instance.

    Raises:
        ValueError: If config file exists but has invalid format/content.
        OSError: If config file exists but can't be read.
    """
    if path is None:
        path = get_default_config_path()

    if not path.exists():
        return AppConfig()  # Use defaults

    try:
        with open(path, "rb") as f:
            config_data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Error decoding TOML file: {path}\n{e}") from e
    except OSError as e:
        raise OSError(f"Error reading file: {path}\n{e}") from e

    try:
        return AppConfig(**config_data)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}") from e
