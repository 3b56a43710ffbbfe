"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class MediaRollerError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(MediaRollerError):
    """Raised for issues related to configuration loading or validation."""


class InvalidStaticPrefixError(ConfigurationError):
    """Raised when the public static prefix contains URL parameter characters."""


class StaticRootNotFoundError(ConfigurationError):
    """Raised when the static documents directory does not exist."""


class ServerBindError(MediaRollerError):
    """Raised when the HTTP listener cannot bind to the configured address."""


class ShutdownTimeoutError(MediaRollerError):
    """Raised when the graceful shutdown window elapses before the server stops."""


class MediaError(MediaRollerError):
    """Base exception for failures in the media subsystem."""


class InvalidMediaUrlError(MediaError):
    """Raised when a fetch is requested for a URL that is not http(s)."""


class MediaFetchError(MediaError):
    """Raised when yt-dlp fails or produces no files for a URL."""


class MediaNotFoundError(MediaError):
    """Raised when a previously fetched media file cannot be located."""
