"""Draft staging area."""

import logging
from dataclasses import dataclass, field
from typing import Callable

from .errors import EntryNotFound
from .models import AllocationEntry
from .validation import total_minutes, validate_addition, validate_entry

logger = logging.getLogger(__name__)


@dataclass
class CommitResult:
    """Outcome of moving drafts into the committed list."""
    committed: list[AllocationEntry] = field(default_factory=list)
    discarded: list[AllocationEntry] = field(default_factory=list)


def is_committable(draft: AllocationEntry) -> bool:
    return bool(draft.project_ref) and draft.minutes > 0


class DraftStagingArea:
    """
    Holds allocations the user has not confirmed yet.

    The committed list belongs to the caller and is passed in, so capacity
    checks always see both collections.
    """

    def __init__(
        self,
        committed: list[AllocationEntry],
        daily_total: Callable[[], int],
    ):
        """
        Initialize staging area.

        Args:
            committed: The day's committed entries (shared, mutated on commit)
            daily_total: Returns the day's current target in minutes
        """
        self._committed = committed
        self._daily_total = daily_total
        self._drafts: list[AllocationEntry] = []

    @property
    def drafts(self) -> list[AllocationEntry]:
        return list(self._drafts)

    @property
    def total_minutes(self) -> int:
        return total_minutes(self._drafts)

    def __len__(self) -> int:
        return len(self._drafts)

    def add(self, draft: AllocationEntry) -> AllocationEntry:
        """Validate and append one draft."""
        validate_entry(draft)
        validate_addition(
            total_minutes(self._committed),
            self.total_minutes,
            draft.minutes,
            self._daily_total(),
        )
        self._drafts.append(draft)
        logger.debug(f"Staged draft {draft.id} ({draft.minutes} min)")
        return draft

    def extend(self, drafts: list[AllocationEntry]) -> list[AllocationEntry]:
        """Stage several drafts at once; either all of them fit or none is staged."""
        for draft in drafts:
            validate_entry(draft)
        validate_addition(
            total_minutes(self._committed),
            self.total_minutes,
            total_minutes(drafts),
            self._daily_total(),
        )
        self._drafts.extend(drafts)
        logger.debug(f"Staged {len(drafts)} drafts")
        return drafts

    def get(self, draft_id: str) -> AllocationEntry:
        for draft in self._drafts:
            if draft.id == draft_id:
                return draft
        raise EntryNotFound(draft_id)

    def remove(self, draft_id: str) -> AllocationEntry:
        for index, draft in enumerate(self._drafts):
            if draft.id == draft_id:
                return self._drafts.pop(index)
        raise EntryNotFound(draft_id)

    def commit_all(self) -> CommitResult:
        """
        Move every committable draft into the committed list.

        Drafts without a project or with zero minutes are dropped. The
        staging area is empty afterwards.
        """
        result = CommitResult()
        for draft in self._drafts:
            if is_committable(draft):
                result.committed.append(draft)
            else:
                result.discarded.append(draft)

        self._committed.extend(result.committed)
        self._drafts = []

        if result.discarded:
            logger.info(f"Discarded {len(result.discarded)} incomplete drafts")
        logger.info(f"Committed {len(result.committed)} drafts")
        return result

    def clear(self):
        self._drafts = []
