"""Open editing sessions, one per (user, date)."""

import logging
from datetime import date
from typing import Optional

from timesheet.allocation.session import DaySession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """In-memory registry of open day sessions."""

    def __init__(self):
        self._sessions: dict[tuple[str, date], DaySession] = {}

    def get(self, user_id: str, day: date) -> Optional[DaySession]:
        return self._sessions.get((user_id, day))

    def put(self, user_id: str, session: DaySession) -> DaySession:
        self._sessions[(user_id, session.day)] = session
        logger.debug(f"Opened session {user_id}/{session.day}")
        return session

    def discard(self, user_id: str, day: date) -> bool:
        """Close and forget a session. Returns False if none was open."""
        session = self._sessions.pop((user_id, day), None)
        if session is None:
            return False
        session.close()
        logger.info(f"Discarded session {user_id}/{day}")
        return True

    def release(self, user_id: str, day: date) -> Optional[DaySession]:
        """Forget a session without closing it, e.g. once it has been saved."""
        session = self._sessions.pop((user_id, day), None)
        if session is not None:
            logger.debug(f"Released session {user_id}/{day}")
        return session

    def __len__(self) -> int:
        return len(self._sessions)
