"""
Sicario Loader Formatters

Utility functions for formatting build data for display.
"""

from datetime import datetime, timezone

# =============================================================================
# Size & Duration Formatting
# =============================================================================


def format_bytes(size: int) -> str:
    """
    Format a byte count with a binary suffix.

    Args:
        size: Number of bytes

    Returns:
        Formatted string like "512 B", "1.5 KiB", "12.0 MiB"

    Examples:
        >>> format_bytes(512)
        '512 B'
        >>> format_bytes(1536)
        '1.5 KiB'
        >>> format_bytes(12 * 1024 * 1024)
        '12.0 MiB'
    """
    if size < 1024:
        return f"{size} B"
    value = float(size)
    for suffix in ("KiB", "MiB"):
        value /= 1024
        if value < 1024:
            return f"{value:.1f} {suffix}"
    return f"{value / 1024:.1f} GiB"


def format_duration(seconds: float) -> str:
    """
    Format an elapsed time for log output.

    Args:
        seconds: Elapsed seconds

    Returns:
        Formatted string like "250ms", "3.4s", "2m 05s"
    """
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}m {secs:02d}s"


# =============================================================================
# Timestamps
# =============================================================================


def format_datetime(dt: datetime) -> str:
    """
    Format datetime for display.

    Args:
        dt: datetime object

    Returns:
        ISO format string
    """
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


def get_utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def get_utc_timestamp() -> str:
    """
    Get current UTC timestamp string.

    Returns:
        ISO format timestamp like "2026-01-15T12:30:00Z"
    """
    return format_datetime(get_utc_now())
