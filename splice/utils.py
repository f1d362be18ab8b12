"""
splice.utils - Display formatting shared by the CLI and reports.
"""

from __future__ import annotations


def format_seconds(seconds: float, precision: int = 0) -> str:
    """Format seconds as H:MM:SS or M:SS, with optional decimal places.

    Args:
        seconds: Duration in seconds
        precision: Digits after the decimal point on the seconds field

    Returns:
        Formatted string, e.g. ``2:05`` or ``1:02:05.50``
    """
    scale = 10**precision
    total = round(seconds * scale)
    whole, fraction = divmod(total, scale)
    hours, rest = divmod(whole, 3600)
    minutes, secs = divmod(rest, 60)

    text = f"{hours}:{minutes:02d}:{secs:02d}" if hours else f"{minutes}:{secs:02d}"
    if precision:
        text += f".{fraction:0{precision}d}"
    return text


def format_size(size_bytes: int) -> str:
    """Human-readable byte size, e.g. ``12.3 MB``."""
    size = float(size_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"
