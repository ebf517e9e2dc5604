"""
Formatting Helpers
Human-readable rendering of traffic rates and durations.
"""

from datetime import timedelta


def format_bps(bps: int) -> str:
    """Format bits per second with a decimal unit prefix."""
    if bps < 1_000:
        return f"{bps} bps"
    if bps < 1_000_000:
        return f"{bps / 1_000:.2f} Kbps"
    if bps < 1_000_000_000:
        return f"{bps / 1_000_000:.2f} Mbps"
    if bps < 1_000_000_000_000:
        return f"{bps / 1_000_000_000:.2f} Gbps"
    return f"{bps / 1_000_000_000_000:.2f} Tbps"


def format_pps(pps: int) -> str:
    """Format packets per second with a decimal unit prefix."""
    if pps < 1_000:
        return f"{pps} pps"
    if pps < 1_000_000:
        return f"{pps / 1_000:.2f} Kpps"
    if pps < 1_000_000_000:
        return f"{pps / 1_000_000:.2f} Mpps"
    return f"{pps / 1_000_000_000:.2f} Gpps"


def percentage_change(old: int, new: int) -> int:
    """Whole-percent change from ``old`` to ``new``; 100 when ``old`` is zero."""
    if old == 0:
        return 100
    return int((new - old) / old * 100)


def format_duration(duration: timedelta) -> str:
    """Render a duration with its two most significant units."""
    total = max(int(duration.total_seconds()), 0)
    if total < 60:
        return f"{total} seconds"
    if total < 3600:
        return f"{total // 60} minutes, {total % 60} seconds"
    if total < 86400:
        return f"{total // 3600} hours, {(total % 3600) // 60} minutes"
    return f"{total // 86400} days, {(total % 86400) // 3600} hours"
