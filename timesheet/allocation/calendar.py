"""Calendar-wide day status rollup."""

import logging
from datetime import date

from timesheet.store.base import RecordStore

from .models import CalendarDay, DateRange, DayStatus

logger = logging.getLogger(__name__)

# Fixed 8h threshold, independent of each day's own target.
COMPLETE_DAY_MINUTES = 480


def classify_day(total_minutes: int) -> DayStatus:
    """
    Classify a day by logged minutes.

    Example:
        classify_day(480) = DayStatus.COMPLETE
        classify_day(120) = DayStatus.PARTIAL
    """
    if total_minutes >= COMPLETE_DAY_MINUTES:
        return DayStatus.COMPLETE
    elif total_minutes > 0:
        return DayStatus.PARTIAL
    else:
        return DayStatus.EMPTY


class CalendarStatusAggregator:
    """Classifies each day of a range as empty, partial or complete."""

    def __init__(self, store: RecordStore):
        """Initialize with record store."""
        self.store = store

    async def totals(self, user_id: str, date_range: DateRange) -> dict[date, int]:
        """Logged minutes per date, from a single range query."""
        totals: dict[date, int] = {}
        for record in await self.store.list_entries(user_id, date_range):
            totals[record.date] = totals.get(record.date, 0) + record.minutes
        return totals

    async def statuses(self, user_id: str, date_range: DateRange) -> list[CalendarDay]:
        """One CalendarDay per date in the range, in date order."""
        totals = await self.totals(user_id, date_range)

        days = []
        for day in date_range.days():
            logged = totals.get(day, 0)
            days.append(
                CalendarDay(date=day, total_minutes=logged, status=classify_day(logged))
            )

        logger.debug(
            f"Calendar {date_range.start} to {date_range.end}: "
            f"{sum(1 for d in days if d.status == DayStatus.COMPLETE)} complete, "
            f"{sum(1 for d in days if d.status == DayStatus.PARTIAL)} partial"
        )
        return days

    async def month(self, user_id: str, year: int, month: int) -> list[CalendarDay]:
        return await self.statuses(user_id, DateRange.month(year, month))
