"""Utility functions for repo-mirror."""

from datetime import datetime, timezone
from typing import Optional


def humanize_size(size: float) -> str:
    """Convert bytes to human-readable format."""
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024.:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """Format a moment as local wall-clock time for console output.

    Examples:
        2025-08-26T02:51:17.317839+00:00 -> "02:51:17"
    """
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone().strftime("%H:%M:%S")
