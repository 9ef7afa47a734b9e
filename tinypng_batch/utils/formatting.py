"""Human-readable number formatting."""

from __future__ import annotations

_MB = 1024 * 1024


def format_size(size_bytes: int) -> str:
    """Format a byte count as ``x.xx KB`` below 1 MB and ``x.xx MB`` from there.

    Negative counts (a compression that grew the file) keep their sign.
    """
    if abs(size_bytes) >= _MB:
        return f"{size_bytes / _MB:.2f} MB"
    return f"{size_bytes / 1024:.2f} KB"


def format_percentage(value: float) -> str:
    return f"{value:.2f}%"
