"""Data models for daily targets and time allocations."""

import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Iterator, Optional

from .converter import join_duration, split_minutes, to_minutes, to_percentage
from .errors import ValidationError
from .ids import new_entry_id


class DayStatus(str, Enum):
    EMPTY = "empty"
    PARTIAL = "partial"
    COMPLETE = "complete"


class WorkflowState(str, Enum):
    NO_TARGET = "no_target"
    TARGET_SET = "target_set"
    STAGING = "staging"
    SAVED = "saved"


@dataclass
class DailyTarget:
    """User-declared total work time for a date."""
    date: date
    total_minutes: int


@dataclass
class Project:
    id: str
    name: str
    status: str = "open"


@dataclass
class Stage:
    id: str
    name: str
    project_ref: str


@dataclass
class Task:
    id: str
    name: str
    stage_ref: str


@dataclass
class StoredEntry:
    """An entry as the record store returns it."""
    date: date
    minutes: int
    project_ref: Optional[str] = None
    stage_ref: Optional[str] = None
    task_ref: Optional[str] = None
    id: Optional[str] = None


@dataclass
class DateRange:
    """Inclusive date range; a missing bound is open."""
    start: Optional[date] = None
    end: Optional[date] = None

    @classmethod
    def before(cls, day: date) -> "DateRange":
        """Everything strictly before ``day``; empty for the first representable date."""
        if day == date.min:
            return cls(start=date.max, end=date.min)
        return cls(start=None, end=day - timedelta(days=1))

    @classmethod
    def single(cls, day: date) -> "DateRange":
        return cls(start=day, end=day)

    @classmethod
    def month(cls, year: int, month: int) -> "DateRange":
        last_day = calendar.monthrange(year, month)[1]
        return cls(start=date(year, month, 1), end=date(year, month, last_day))

    def contains(self, day: date) -> bool:
        if self.start and day < self.start:
            return False
        if self.end and day > self.end:
            return False
        return True

    def days(self) -> Iterator[date]:
        """Iterate every date in the range. Both bounds must be set."""
        if self.start is None or self.end is None:
            raise ValueError("Cannot iterate an open date range")
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)


class LabelPath:
    """
    Project -> stage -> task selection for an entry.

    A stage needs a project and a task needs a stage. Changing a ref clears
    every ref below it, so a stale stage or task can never survive a project
    change.
    """

    def __init__(
        self,
        project_ref: Optional[str] = None,
        stage_ref: Optional[str] = None,
        task_ref: Optional[str] = None,
    ):
        self._project_ref: Optional[str] = None
        self._stage_ref: Optional[str] = None
        self._task_ref: Optional[str] = None
        self.project_ref = project_ref
        self.stage_ref = stage_ref
        self.task_ref = task_ref

    @property
    def project_ref(self) -> Optional[str]:
        return self._project_ref

    @project_ref.setter
    def project_ref(self, value: Optional[str]):
        value = value or None
        if value != self._project_ref:
            self._stage_ref = None
            self._task_ref = None
        self._project_ref = value

    @property
    def stage_ref(self) -> Optional[str]:
        return self._stage_ref

    @stage_ref.setter
    def stage_ref(self, value: Optional[str]):
        value = value or None
        if value and not self._project_ref:
            raise ValidationError("A stage requires a project", field="stage_ref")
        if value != self._stage_ref:
            self._task_ref = None
        self._stage_ref = value

    @property
    def task_ref(self) -> Optional[str]:
        return self._task_ref

    @task_ref.setter
    def task_ref(self, value: Optional[str]):
        value = value or None
        if value and not self._stage_ref:
            raise ValidationError("A task requires a stage", field="task_ref")
        self._task_ref = value

    def copy(self) -> "LabelPath":
        return LabelPath(self._project_ref, self._stage_ref, self._task_ref)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LabelPath):
            return NotImplemented
        return (self._project_ref, self._stage_ref, self._task_ref) == (
            other._project_ref,
            other._stage_ref,
            other._task_ref,
        )

    def __repr__(self) -> str:
        return (
            f"LabelPath(project_ref={self._project_ref!r}, "
            f"stage_ref={self._stage_ref!r}, task_ref={self._task_ref!r})"
        )


def _whole_number(value, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field_name} must be a number", field=field_name)
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{field_name} must be a whole number", field=field_name)
    if value < 0:
        raise ValidationError(f"{field_name} cannot be negative", field=field_name)
    return int(value)


def _percentage(value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError("percentage must be a number", field="percentage")
    if not 0 <= value <= 100:
        raise ValidationError(
            "percentage must be between 0 and 100", field="percentage"
        )
    return float(value)


def parse_duration(hours, minutes) -> int:
    """Validate an hours+minutes pair and return total minutes."""
    hours = _whole_number(hours, "hours")
    minutes = _whole_number(minutes, "minutes")
    if minutes > 59:
        raise ValidationError("minutes must be between 0 and 59", field="minutes")
    return join_duration(hours, minutes)


@dataclass
class AllocationEntry:
    """
    A labeled duration for one day.

    ``percentage`` always mirrors ``minutes`` against ``total_minutes`` (the
    day's target) and is recomputed whenever either side changes. Drafts and
    committed entries share this type; which list holds an entry decides what
    it is.
    """
    labels: LabelPath = field(default_factory=LabelPath)
    minutes: int = 0
    total_minutes: int = 0
    id: str = field(default_factory=new_entry_id)
    percentage: float = field(init=False, default=0.0)

    def __post_init__(self):
        self.minutes = _whole_number(self.minutes, "minutes")
        self.total_minutes = _whole_number(self.total_minutes, "total_minutes")
        self._recompute()

    @classmethod
    def from_duration(
        cls,
        hours,
        minutes,
        total_minutes: int,
        project_ref: Optional[str] = None,
        stage_ref: Optional[str] = None,
        task_ref: Optional[str] = None,
    ) -> "AllocationEntry":
        return cls(
            labels=LabelPath(project_ref, stage_ref, task_ref),
            minutes=parse_duration(hours, minutes),
            total_minutes=total_minutes,
        )

    @classmethod
    def from_percentage(
        cls,
        percentage,
        total_minutes: int,
        project_ref: Optional[str] = None,
        stage_ref: Optional[str] = None,
        task_ref: Optional[str] = None,
    ) -> "AllocationEntry":
        entry = cls(
            labels=LabelPath(project_ref, stage_ref, task_ref),
            total_minutes=total_minutes,
        )
        entry.set_percentage(percentage)
        return entry

    @property
    def project_ref(self) -> Optional[str]:
        return self.labels.project_ref

    @property
    def stage_ref(self) -> Optional[str]:
        return self.labels.stage_ref

    @property
    def task_ref(self) -> Optional[str]:
        return self.labels.task_ref

    @property
    def hours(self) -> int:
        return split_minutes(self.minutes)[0]

    @property
    def minute_part(self) -> int:
        return split_minutes(self.minutes)[1]

    def set_duration(self, hours, minutes):
        """Edit hours+minutes; percentage follows."""
        self.minutes = parse_duration(hours, minutes)
        self._recompute()

    def set_percentage(self, percentage):
        """Edit percentage; hours+minutes follow, then percentage is re-derived."""
        hours, minutes = to_minutes(_percentage(percentage), self.total_minutes)
        self.minutes = join_duration(hours, minutes)
        self._recompute()

    def rebase(self, total_minutes: int):
        """Recompute percentage against a different daily total."""
        self.total_minutes = _whole_number(total_minutes, "total_minutes")
        self._recompute()

    def duplicate(self, total_minutes: int) -> "AllocationEntry":
        """Fresh copy with a new id, rebased on ``total_minutes``."""
        return AllocationEntry(
            labels=self.labels.copy(),
            minutes=self.minutes,
            total_minutes=total_minutes,
        )

    def _recompute(self):
        self.percentage = to_percentage(self.minutes, self.total_minutes)


@dataclass
class DayRecord:
    """Persisted view of a day."""
    date: date
    daily_target: Optional[DailyTarget] = None
    entries: list[AllocationEntry] = field(default_factory=list)


@dataclass
class CalendarDay:
    date: date
    total_minutes: int
    status: DayStatus
