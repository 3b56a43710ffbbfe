"""
Pydantic model for server configuration.
Provides robust validation for all settings.
"""

import tempfile
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

DEFAULT_PORT = 3000
DEFAULT_SHUTDOWN_TIMEOUT = 30.0
DEFAULT_UPDATE_INTERVAL = 12 * 60 * 60  # 12 hours
UPDATE_CHANNELS = ("stable", "nightly", "master")


def default_download_dir() -> str:
    return str(Path(tempfile.gettempdir()) / "media-roller")


class ServerConfig(BaseModel):
    """A validated configuration model for the server."""

    # Listener
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT

    # Static assets
    static_dir: str = "static"
    static_prefix: str = "/static"

    # Media
    download_dir: str = Field(default_factory=default_download_dir)
    ytdlp_path: str = "yt-dlp"
    fetch_timeout: float = 600.0

    # Background updater
    updater_enabled: bool = True
    update_channel: str = "nightly"
    update_interval: float = DEFAULT_UPDATE_INTERVAL

    # Lifecycle
    shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT

    # Internal fields not loaded from INI file
    config_path: str = Field("", repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Ensures the port is usable. Zero lets the OS pick a free port."""
        if v < 0 or v > 65535:
            raise ValueError("Port must be between 0 and 65535.")
        return v

    @field_validator("static_prefix")
    @classmethod
    def validate_static_prefix(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("Static prefix must start with '/'.")
        return v

    @field_validator("shutdown_timeout", "update_interval", "fetch_timeout")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Ensures durations are strictly positive."""
        if v <= 0:
            raise ValueError("Durations must be greater than zero.")
        return v

    @field_validator("update_channel")
    @classmethod
    def validate_channel(cls, v: str) -> str:
        if v not in UPDATE_CHANNELS:
            raise ValueError(
                f"Update channel must be one of: {', '.join(UPDATE_CHANNELS)}."
            )
        return v

    @field_validator("ytdlp_path", "static_dir", "download_dir")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("Path settings cannot be empty.")
        return v

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path"}
        return {key for key in cls.model_fields if key not in internal_fields}
