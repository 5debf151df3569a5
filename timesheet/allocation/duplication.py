"""Copy the most recent prior day's allocations into a session as drafts."""

import logging
from datetime import date
from typing import Optional

from timesheet.store.base import RecordStore

from .models import AllocationEntry, DateRange, LabelPath, StoredEntry
from .session import DaySession

logger = logging.getLogger(__name__)


class DuplicationService:
    """Seeds drafts from the last day that has entries."""

    def __init__(self, store: RecordStore):
        """Initialize with record store."""
        self.store = store

    async def find_previous_day(
        self, user_id: str, day: date
    ) -> tuple[Optional[date], list[StoredEntry]]:
        """
        Find the most recent date before ``day`` with at least one entry.

        Returns:
            Tuple of (source_date, entries); (None, []) when there is no history
        """
        history = await self.store.list_entries(user_id, DateRange.before(day))

        by_date: dict[date, list[StoredEntry]] = {}
        for record in history:
            by_date.setdefault(record.date, []).append(record)

        if not by_date:
            return None, []

        source_date = max(by_date)
        return source_date, by_date[source_date]

    async def duplicate_previous(
        self, user_id: str, session: DaySession
    ) -> list[AllocationEntry]:
        """
        Stage the previous day's entries as drafts in ``session``.

        Each draft gets a new id and keeps the source refs and minutes; its
        percentage is computed against the session's own target. Entries
        without a project are skipped. Nothing is staged if the batch does not
        fit under the target.

        Returns:
            The staged drafts (empty when there is no prior history)
        """
        source_date, records = await self.find_previous_day(user_id, session.day)
        if source_date is None:
            logger.info(f"No history before {session.day} to duplicate")
            return []

        drafts = []
        for record in records:
            if not record.project_ref:
                logger.warning(
                    f"Skipping entry {record.id} from {source_date}: no project"
                )
                continue
            drafts.append(
                AllocationEntry(
                    labels=LabelPath(record.project_ref, record.stage_ref, record.task_ref),
                    minutes=record.minutes,
                    total_minutes=session.target_minutes,
                )
            )

        staged = session.stage_drafts(drafts)
        logger.info(
            f"Duplicated {len(staged)} entries from {source_date} into {session.day}"
        )
        return staged
