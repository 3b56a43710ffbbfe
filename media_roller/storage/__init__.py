"""
Storage Layer.

This package handles configuration persistence. The server keeps no other
state across restarts.
"""

from .config_manager import ConfigManager

__all__ = ["ConfigManager"]
