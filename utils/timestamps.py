"""Discord timestamp markup and human-readable durations."""

from datetime import datetime, timedelta


def format_timestamp(moment: datetime, style: str = "f") -> str:
    """Format a datetime for Discord display.

    Styles:
        t - Short time (16:20)
        T - Long time (16:20:30)
        d - Short date (20/04/2021)
        D - Long date (20 April 2021)
        f - Short date/time (20 April 2021 16:20) [default]
        F - Long date/time (Tuesday, 20 April 2021 16:20)
        R - Relative (in 3 hours)
    """
    return f"<t:{int(moment.timestamp())}:{style}>"


def format_relative_time(moment: datetime) -> str:
    """Format a datetime as relative time (e.g., 'in 3 hours')."""
    return format_timestamp(moment, "R")


def format_duration(duration: timedelta) -> str:
    """Format a duration as hours and minutes, e.g. '5h 12m'."""
    total_minutes = max(0, int(duration.total_seconds() // 60))
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h {minutes}m"


def format_seconds(seconds: float) -> str:
    """Format a short wait in whole seconds, rounding up."""
    whole = int(seconds)
    if whole < seconds:
        whole += 1
    return f"{whole}s"
