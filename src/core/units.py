# src/core/units.py — v2
"""Human-readable byte sizes for log lines."""

from __future__ import annotations

_PREFIXES = "kMGTPEZY"


def format_size(value: int | None) -> str:
    """Format a byte count in decimal units, e.g. 1536000 -> '1.54MB'.

    Returns an empty string for zero or unknown sizes.
    """
    if not value:
        return ""
    exp = 0
    scaled = float(value)
    while scaled >= 1000 and exp < len(_PREFIXES):
        scaled /= 1000
        exp += 1
    size = round(scaled, 2)
    size_str = f"{size:g}"
    if exp == 0:
        return f"{size_str} byte" + ("" if size == 1 else "s")
    return f"{size_str}{_PREFIXES[exp - 1]}B"
