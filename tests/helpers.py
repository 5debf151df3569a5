from __future__ import annotations

from datetime import date
from typing import Optional

from timesheet.allocation.errors import StoreUnavailable
from timesheet.allocation.models import (
    DailyTarget,
    DateRange,
    Project,
    Stage,
    StoredEntry,
    Task,
)
from timesheet.store.base import RecordStore


class InMemoryRecordStore(RecordStore):
    """Record store kept in dicts, with per-method failure injection."""

    def __init__(self) -> None:
        self.targets: dict[tuple[str, date], int] = {}
        self.entries: list[tuple[str, StoredEntry]] = []
        self.projects: list[Project] = []
        self.stages: list[Stage] = []
        self.tasks: list[Task] = []
        self.calls: list[str] = []
        self.fail_on: set[str] = set()

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise StoreUnavailable(f"{name} failed: connection refused")

    def seed_entry(self, user_id: str, day: date, minutes: int, project_ref: Optional[str] = "p1",
                   stage_ref: Optional[str] = None, task_ref: Optional[str] = None) -> None:
        self.entries.append(
            (
                user_id,
                StoredEntry(
                    id=f"seed-{len(self.entries)}",
                    date=day,
                    minutes=minutes,
                    project_ref=project_ref,
                    stage_ref=stage_ref,
                    task_ref=task_ref,
                ),
            )
        )

    def stored_for(self, user_id: str, day: date) -> list[StoredEntry]:
        return [e for u, e in self.entries if u == user_id and e.date == day]

    async def get_daily_target(self, user_id: str, day: date) -> Optional[DailyTarget]:
        self._call("get_daily_target")
        total = self.targets.get((user_id, day))
        return None if total is None else DailyTarget(date=day, total_minutes=total)

    async def upsert_daily_target(self, user_id: str, day: date, total_minutes: int) -> None:
        self._call("upsert_daily_target")
        self.targets[(user_id, day)] = total_minutes

    async def list_entries(self, user_id: str, date_range: DateRange) -> list[StoredEntry]:
        self._call("list_entries")
        found = [e for u, e in self.entries if u == user_id and date_range.contains(e.date)]
        return sorted(found, key=lambda e: e.date, reverse=True)

    async def delete_entries(self, user_id: str, day: date) -> None:
        self._call("delete_entries")
        self.entries = [(u, e) for u, e in self.entries if not (u == user_id and e.date == day)]

    async def insert_entries(self, user_id: str, day: date, entries: list[StoredEntry]) -> None:
        self._call("insert_entries")
        self.entries.extend((user_id, e) for e in entries)

    async def list_projects(self, status: str = "open") -> list[Project]:
        self._call("list_projects")
        return [p for p in self.projects if p.status == status]

    async def list_stages(self, project_ref: str) -> list[Stage]:
        self._call("list_stages")
        return [s for s in self.stages if s.project_ref == project_ref]

    async def list_tasks(self, stage_ref: str) -> list[Task]:
        self._call("list_tasks")
        return [t for t in self.tasks if t.stage_ref == stage_ref]
