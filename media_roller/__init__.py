"""
media-roller: a small web front-end for yt-dlp.
"""

__version__ = "1.0.0"
