"""
Human-readable rendering of file sizes and durations.
"""

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")
_DURATION_UNITS = (("d", 86400), ("h", 3600), ("m", 60))


def format_size(num_bytes: int) -> str:
    """Formats a byte count, e.g. 152371200 -> '145.3 MB'."""
    if num_bytes < 1024:
        return f"{max(num_bytes, 0)} B"
    size = float(num_bytes)
    for unit in _SIZE_UNITS[1:]:
        size /= 1024
        if size < 1024 or unit == _SIZE_UNITS[-1]:
            return f"{size:.1f} {unit}"
    return f"{size:.1f} {_SIZE_UNITS[-1]}"


def format_duration(seconds: float) -> str:
    """
    Formats a duration, e.g. 43200 -> '12h', 93784 -> '1d 2h 3m 4s'.

    Durations under a minute keep one decimal place when they are fractional,
    so short grace periods such as 0.5 read as '0.5s' rather than '0s'.
    """
    if seconds < 60:
        seconds = max(seconds, 0)
        if seconds == int(seconds):
            return f"{int(seconds)}s"
        return f"{seconds:.1f}s"

    remaining = int(seconds)
    parts = []
    for suffix, length in _DURATION_UNITS:
        value, remaining = divmod(remaining, length)
        if value:
            parts.append(f"{value}{suffix}")
    if remaining:
        parts.append(f"{remaining}s")
    return " ".join(parts)
