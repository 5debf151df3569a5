"""Persist a day's target and entries to the record store."""

import logging
from datetime import date

from timesheet.store.base import RecordStore

from .errors import InvalidTransition
from .models import AllocationEntry, DateRange, DayRecord, LabelPath, StoredEntry
from .session import DaySession
from .validation import total_minutes, validate_addition

logger = logging.getLogger(__name__)


class PersistenceOrchestrator:
    """
    Sequences target upsert and entry replacement against the record store.

    A save runs three steps, each only after the previous one succeeded:

    1. upsert the daily target
    2. delete the day's stored entries
    3. insert the new entries

    Nothing is rolled back. If step 3 fails the day is left with the new
    target and no entries; calling ``save`` again repairs it.
    """

    def __init__(self, store: RecordStore):
        """Initialize with record store."""
        self.store = store

    async def save(
        self,
        user_id: str,
        day: date,
        target_minutes: int,
        entries: list[AllocationEntry],
    ):
        """
        Replace everything stored for (user, day).

        Raises:
            OverCapacity: entries exceed the target; the store is not touched
            StoreUnavailable: a store step failed; later steps did not run
        """
        validate_addition(0, 0, total_minutes(entries), target_minutes)

        logger.info(f"Saving {day} for {user_id}: {len(entries)} entries")

        await self.store.upsert_daily_target(user_id, day, target_minutes)
        logger.debug(f"  Step 1/3: target upserted ({target_minutes} min)")

        await self.store.delete_entries(user_id, day)
        logger.debug("  Step 2/3: previous entries deleted")

        await self.store.insert_entries(
            user_id,
            day,
            [
                StoredEntry(
                    id=entry.id,
                    date=day,
                    minutes=entry.minutes,
                    project_ref=entry.project_ref,
                    stage_ref=entry.stage_ref,
                    task_ref=entry.task_ref,
                )
                for entry in entries
            ],
        )
        logger.debug(f"  Step 3/3: {len(entries)} entries inserted")

        logger.info(f"✓ Saved {day} for {user_id}")

    async def save_session(self, user_id: str, session: DaySession):
        """Save a session's target and committed entries, then mark it saved."""
        if session.closed or session.daily_target is None:
            raise InvalidTransition(f"Nothing to save for {session.day}")

        await self.save(user_id, session.day, session.target_minutes, session.entries)
        session.mark_saved()

    async def save_target(self, user_id: str, day: date, target_minutes: int):
        """Store only the daily target, leaving entries untouched."""
        await self.store.upsert_daily_target(user_id, day, target_minutes)
        logger.info(f"Saved target for {day} ({user_id}): {target_minutes} min")

    async def load_day(self, user_id: str, day: date) -> DayRecord:
        """Read the stored target and entries of a day."""
        target = await self.store.get_daily_target(user_id, day)
        records = await self.store.list_entries(user_id, DateRange.single(day))

        target_minutes = target.total_minutes if target else 0
        entries = []
        for record in records:
            entry = AllocationEntry(
                labels=LabelPath(record.project_ref, record.stage_ref, record.task_ref),
                minutes=record.minutes,
                total_minutes=target_minutes,
            )
            if record.id:
                entry.id = record.id
            entries.append(entry)

        return DayRecord(date=day, daily_target=target, entries=entries)

    async def open_session(self, user_id: str, day: date) -> DaySession:
        """
        Start editing a day from what is stored.

        A day without a stored target opens in NO_TARGET, otherwise in SAVED.
        """
        record = await self.load_day(user_id, day)
        if record.daily_target is None:
            return DaySession(day, entries=record.entries)

        return DaySession(
            day,
            target_minutes=record.daily_target.total_minutes,
            entries=record.entries,
            saved=True,
        )
