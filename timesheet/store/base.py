"""Record store contract used by the allocation engine."""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from timesheet.allocation.models import (
    DailyTarget,
    DateRange,
    Project,
    Stage,
    StoredEntry,
    Task,
)


class RecordStore(ABC):
    """
    Persistent store for daily targets, time entries and reference data.

    Every method is a coroutine. Failures raise ``StoreUnavailable``.
    """

    @abstractmethod
    async def get_daily_target(self, user_id: str, day: date) -> Optional[DailyTarget]:
        """Return the day's target, or None when the day has none."""

    @abstractmethod
    async def upsert_daily_target(self, user_id: str, day: date, total_minutes: int):
        """Create the target or update it in place."""

    @abstractmethod
    async def list_entries(
        self, user_id: str, date_range: DateRange
    ) -> list[StoredEntry]:
        """Entries in the range, most recent date first."""

    @abstractmethod
    async def delete_entries(self, user_id: str, day: date):
        pass

    @abstractmethod
    async def insert_entries(self, user_id: str, day: date, entries: list[StoredEntry]):
        pass

    @abstractmethod
    async def list_projects(self, status: str = "open") -> list[Project]:
        pass

    @abstractmethod
    async def list_stages(self, project_ref: str) -> list[Stage]:
        pass

    @abstractmethod
    async def list_tasks(self, stage_ref: str) -> list[Task]:
        pass
