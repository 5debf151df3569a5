"""Conversions between minutes, hours+minutes and percentage of the day."""


def to_percentage(minutes: int, total_minutes: int) -> float:
    """
    Express a duration as a percentage of the daily total.

    Returns 0 when the daily total is 0.

    Example:
        to_percentage(180, 360) = 50.0
    """
    if total_minutes == 0:
        return 0.0
    return round(minutes / total_minutes * 100, 2)


def to_minutes(percentage: float, total_minutes: int) -> tuple[int, int]:
    """
    Convert a percentage of the daily total back to (hours, minutes).

    The result can differ from the original duration by one minute because
    percentages are rounded to 2 decimals.
    """
    return split_minutes(round(percentage / 100 * total_minutes))


def split_minutes(minutes: int) -> tuple[int, int]:
    """Split a minute count into (hours, minutes)."""
    return minutes // 60, minutes % 60


def join_duration(hours: int, minutes: int) -> int:
    """Total minutes for hours+minutes."""
    return hours * 60 + minutes
