"""Editing session for one user's day."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from .errors import EntryNotFound, InvalidTransition, OverCapacity, ValidationError
from .models import AllocationEntry, DailyTarget, WorkflowState, parse_duration
from .staging import CommitResult, DraftStagingArea
from .validation import total_minutes, validate_addition, validate_entry

logger = logging.getLogger(__name__)


@dataclass
class DaySummary:
    """Target vs allocated time for the day."""
    target_minutes: int
    committed_minutes: int
    draft_minutes: int

    @property
    def allocated_minutes(self) -> int:
        return self.committed_minutes + self.draft_minutes

    @property
    def remaining_minutes(self) -> int:
        return max(0, self.target_minutes - self.allocated_minutes)

    @property
    def difference_minutes(self) -> int:
        """Negative while the day is under-allocated."""
        return self.allocated_minutes - self.target_minutes


class DaySession:
    """
    In-memory editing state for a (user, date).

    Workflow: NO_TARGET -> TARGET_SET -> STAGING -> SAVED. Any edit after a
    save moves the day back to STAGING. Every rejected operation leaves the
    session exactly as it was.
    """

    def __init__(
        self,
        day: date,
        target_minutes: Optional[int] = None,
        entries: Optional[list[AllocationEntry]] = None,
        saved: bool = False,
    ):
        """
        Initialize session.

        Args:
            day: Date being edited
            target_minutes: Confirmed daily target, None if the day has none
            entries: Committed entries loaded from the store
            saved: Whether target and entries match what is stored
        """
        self.day = day
        self._target_minutes = target_minutes or 0
        self._entries: list[AllocationEntry] = []
        self._staging = DraftStagingArea(self._entries, lambda: self._target_minutes)
        self._closed = False

        for entry in entries or []:
            entry.rebase(self._target_minutes)
            self._entries.append(entry)

        if target_minutes is None:
            self.state = WorkflowState.NO_TARGET
        elif saved:
            self.state = WorkflowState.SAVED
        else:
            self.state = WorkflowState.TARGET_SET

    @property
    def target_minutes(self) -> int:
        return self._target_minutes

    @property
    def daily_target(self) -> Optional[DailyTarget]:
        if self.state == WorkflowState.NO_TARGET:
            return None
        return DailyTarget(date=self.day, total_minutes=self._target_minutes)

    @property
    def entries(self) -> list[AllocationEntry]:
        return list(self._entries)

    @property
    def drafts(self) -> list[AllocationEntry]:
        return self._staging.drafts

    @property
    def closed(self) -> bool:
        return self._closed

    def summary(self) -> DaySummary:
        return DaySummary(
            target_minutes=self._target_minutes,
            committed_minutes=total_minutes(self._entries),
            draft_minutes=self._staging.total_minutes,
        )

    def check_target(self, total: int) -> int:
        """
        Check a new target without applying it.

        Raises:
            ValidationError: the target is not a whole number of minutes
            OverCapacity: the target is below what is already allocated
        """
        self._require_open()
        if isinstance(total, bool) or not isinstance(total, int) or total < 0:
            raise ValidationError(
                "Daily target must be a non-negative whole number of minutes",
                field="total_minutes",
            )
        allocated = self.summary().allocated_minutes
        if allocated > total:
            raise OverCapacity(allocated, total)
        return total

    def confirm_target(self, total: int):
        """
        Confirm the day's target in minutes.

        Every entry and draft is rebased on the new total.

        Raises:
            OverCapacity: the target is below what is already allocated
        """
        self.check_target(total)

        self._target_minutes = total
        for entry in self._entries + self._staging.drafts:
            entry.rebase(total)

        if self.state == WorkflowState.NO_TARGET:
            self.state = WorkflowState.TARGET_SET
        elif self.state == WorkflowState.SAVED:
            self.state = WorkflowState.STAGING
        logger.info(f"Target for {self.day} set to {total} min")

    def confirm_target_duration(self, hours, minutes):
        self.confirm_target(parse_duration(hours, minutes))

    def build_entry(
        self,
        project_ref: Optional[str] = None,
        stage_ref: Optional[str] = None,
        task_ref: Optional[str] = None,
        hours=None,
        minutes=None,
        percentage=None,
    ) -> AllocationEntry:
        """
        Build an entry against this day's target from either a duration or a percentage.

        A percentage wins when hours and minutes are both absent.
        """
        if hours is None and minutes is None and percentage is not None:
            return AllocationEntry.from_percentage(
                percentage,
                self._target_minutes,
                project_ref=project_ref,
                stage_ref=stage_ref,
                task_ref=task_ref,
            )
        if hours is None and minutes is None:
            raise ValidationError("A duration or a percentage is required")
        return AllocationEntry.from_duration(
            hours if hours is not None else 0,
            minutes if minutes is not None else 0,
            self._target_minutes,
            project_ref=project_ref,
            stage_ref=stage_ref,
            task_ref=task_ref,
        )

    def add_entry(self, entry: AllocationEntry) -> AllocationEntry:
        """Admit an entry straight into the committed list."""
        self._require_target()
        validate_entry(entry)
        validate_addition(
            total_minutes(self._entries),
            self._staging.total_minutes,
            entry.minutes,
            self._target_minutes,
        )
        entry.rebase(self._target_minutes)
        self._entries.append(entry)
        self._touch()
        logger.debug(f"Committed entry {entry.id} ({entry.minutes} min)")
        return entry

    def remove_entry(self, entry_id: str) -> AllocationEntry:
        self._require_open()
        for index, entry in enumerate(self._entries):
            if entry.id == entry_id:
                removed = self._entries.pop(index)
                self._touch()
                return removed
        raise EntryNotFound(entry_id)

    def edit_entry(
        self, entry_id: str, hours=None, minutes=None, percentage=None
    ) -> AllocationEntry:
        """
        Change the duration of a committed entry.

        The entry's current minutes do not count against the cap while the
        new value is checked.

        Raises:
            EntryNotFound: no committed entry has this id
            OverCapacity: the new duration does not fit under the target
        """
        self._require_target()
        entry = self._find_entry(entry_id)
        new_minutes = self._edited_minutes(hours, minutes, percentage)
        validate_addition(
            total_minutes(self._entries) - entry.minutes,
            self._staging.total_minutes,
            new_minutes,
            self._target_minutes,
        )
        self._apply_minutes(entry, new_minutes)
        self._touch()
        return entry

    def edit_draft(
        self, draft_id: str, hours=None, minutes=None, percentage=None
    ) -> AllocationEntry:
        """Change the duration of a staged draft. Same rules as ``edit_entry``."""
        self._require_target()
        draft = self._staging.get(draft_id)
        new_minutes = self._edited_minutes(hours, minutes, percentage)
        validate_addition(
            total_minutes(self._entries),
            self._staging.total_minutes - draft.minutes,
            new_minutes,
            self._target_minutes,
        )
        self._apply_minutes(draft, new_minutes)
        return draft

    def add_draft(self, draft: AllocationEntry) -> AllocationEntry:
        self._require_target()
        self._staging.add(draft)
        draft.rebase(self._target_minutes)
        self._touch()
        return draft

    def stage_drafts(self, drafts: list[AllocationEntry]) -> list[AllocationEntry]:
        """Stage a batch of drafts, all or nothing."""
        self._require_target()
        if not drafts:
            return []
        self._staging.extend(drafts)
        for draft in drafts:
            draft.rebase(self._target_minutes)
        self._touch()
        return drafts

    def remove_draft(self, draft_id: str) -> AllocationEntry:
        self._require_open()
        return self._staging.remove(draft_id)

    def commit_drafts(self) -> CommitResult:
        self._require_target()
        result = self._staging.commit_all()
        if result.committed:
            self._touch()
        return result

    def mark_saved(self):
        """Record that every persistence step succeeded."""
        self._require_target()
        self.state = WorkflowState.SAVED
        logger.info(f"Day {self.day} saved with {len(self._entries)} entries")

    def close(self):
        """Discard drafts and unsaved entries. Never touches the store."""
        discarded = len(self._staging) + len(self._entries)
        self._staging.clear()
        self._entries.clear()
        self._closed = True
        logger.debug(f"Closed session for {self.day}, dropped {discarded} items")

    def _find_entry(self, entry_id: str) -> AllocationEntry:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        raise EntryNotFound(entry_id)

    def _edited_minutes(self, hours, minutes, percentage) -> int:
        # build_entry does the duration/percentage parsing; labels are not needed
        return self.build_entry(hours=hours, minutes=minutes, percentage=percentage).minutes

    @staticmethod
    def _apply_minutes(entry: AllocationEntry, new_minutes: int):
        entry.minutes = new_minutes
        entry.rebase(entry.total_minutes)
        logger.debug(f"Entry {entry.id} now {new_minutes} min")

    def _touch(self):
        if self.state in (WorkflowState.TARGET_SET, WorkflowState.SAVED):
            self.state = WorkflowState.STAGING

    def _require_open(self):
        if self._closed:
            raise InvalidTransition(f"Session for {self.day} is closed")

    def _require_target(self):
        self._require_open()
        if self.state == WorkflowState.NO_TARGET:
            raise InvalidTransition(
                f"Confirm a daily target for {self.day} before adding time"
            )

