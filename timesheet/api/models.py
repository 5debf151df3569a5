"""Request and response bodies for the HTTP API."""

from datetime import date
from typing import Optional

from pydantic import BaseModel

from timesheet.allocation.models import AllocationEntry, CalendarDay
from timesheet.allocation.session import DaySession


class TargetRequest(BaseModel):
    """Daily target as hours+minutes; both omitted means the default target."""

    hours: Optional[int] = None
    minutes: Optional[int] = None
    persist: bool = False  # also store the target right away


class DurationRequest(BaseModel):
    """New duration for an existing entry or draft."""

    hours: Optional[float] = None
    minutes: Optional[float] = None
    percentage: Optional[float] = None


class EntryRequest(BaseModel):
    """New entry or draft. Give hours/minutes or a percentage."""

    project_ref: Optional[str] = None
    stage_ref: Optional[str] = None
    task_ref: Optional[str] = None
    hours: Optional[float] = None
    minutes: Optional[float] = None
    percentage: Optional[float] = None


class EntryResponse(BaseModel):
    id: str
    project_ref: Optional[str] = None
    stage_ref: Optional[str] = None
    task_ref: Optional[str] = None
    hours: int
    minutes: int
    total_minutes: int
    percentage: float

    @classmethod
    def from_entry(cls, entry: AllocationEntry) -> "EntryResponse":
        return cls(
            id=entry.id,
            project_ref=entry.project_ref,
            stage_ref=entry.stage_ref,
            task_ref=entry.task_ref,
            hours=entry.hours,
            minutes=entry.minute_part,
            total_minutes=entry.minutes,
            percentage=entry.percentage,
        )


class SummaryResponse(BaseModel):
    target_minutes: int
    allocated_minutes: int
    remaining_minutes: int
    difference_minutes: int


class SessionResponse(BaseModel):
    """Current editing state of a day."""

    date: date
    state: str
    target_minutes: Optional[int] = None
    entries: list[EntryResponse]
    drafts: list[EntryResponse]
    summary: SummaryResponse

    @classmethod
    def from_session(cls, session: DaySession) -> "SessionResponse":
        summary = session.summary()
        return cls(
            date=session.day,
            state=session.state.value,
            target_minutes=session.daily_target.total_minutes
            if session.daily_target
            else None,
            entries=[EntryResponse.from_entry(e) for e in session.entries],
            drafts=[EntryResponse.from_entry(d) for d in session.drafts],
            summary=SummaryResponse(
                target_minutes=summary.target_minutes,
                allocated_minutes=summary.allocated_minutes,
                remaining_minutes=summary.remaining_minutes,
                difference_minutes=summary.difference_minutes,
            ),
        )


class DayResponse(BaseModel):
    """Stored view of a day."""

    date: date
    target_minutes: Optional[int] = None
    entries: list[EntryResponse]


class CommitResponse(BaseModel):
    committed: int
    discarded: int
    session: SessionResponse


class CalendarDayResponse(BaseModel):
    date: date
    total_minutes: int
    status: str

    @classmethod
    def from_day(cls, day: CalendarDay) -> "CalendarDayResponse":
        return cls(date=day.date, total_minutes=day.total_minutes, status=day.status.value)


class ReferenceItem(BaseModel):
    """Project, stage or task for the entry pickers."""

    id: str
    name: str
