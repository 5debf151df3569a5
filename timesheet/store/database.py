"""SQLite record store."""

import asyncio
import functools
import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from timesheet.allocation.errors import StoreUnavailable
from timesheet.allocation.ids import new_entry_id
from timesheet.allocation.models import (
    DailyTarget,
    DateRange,
    Project,
    Stage,
    StoredEntry,
    Task,
)

from .base import RecordStore

logger = logging.getLogger(__name__)


def _blocking(method):
    """Run a blocking sqlite method in a worker thread and wrap its failures."""

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await asyncio.to_thread(method, self, *args, **kwargs)
        except sqlite3.Error as e:
            logger.error(f"{method.__name__} failed: {e}")
            raise StoreUnavailable(f"{method.__name__} failed: {e}") from e

    return wrapper


class SQLiteRecordStore(RecordStore):
    """Record store backed by a single SQLite file."""

    def __init__(self, db_path: str = "data/timesheet.db"):
        """Initialize database."""
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Create database tables if they don't exist."""
        with sqlite3.connect(self.db_path) as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS daily_targets (
                    user_id TEXT NOT NULL,
                    date TEXT NOT NULL,
                    total_minutes INTEGER NOT NULL,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (user_id, date)
                );
                CREATE TABLE IF NOT EXISTS time_entries (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    date TEXT NOT NULL,
                    minutes INTEGER NOT NULL,
                    project_id TEXT,
                    stage_id TEXT,
                    task_id TEXT,
                    description TEXT,
                    created_at TEXT NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_time_entries_user_date
                    ON time_entries (user_id, date);
                CREATE TABLE IF NOT EXISTS projects (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'open'
                );
                CREATE TABLE IF NOT EXISTS stages (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    project_id TEXT NOT NULL REFERENCES projects (id)
                );
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    stage_id TEXT NOT NULL REFERENCES stages (id)
                );
            """)
            conn.commit()
        logger.info(f"Database initialized at {self.db_path}")

    @_blocking
    def get_daily_target(self, user_id: str, day: date) -> Optional[DailyTarget]:
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            row = conn.execute(
                "SELECT total_minutes FROM daily_targets WHERE user_id = ? AND date = ?",
                (user_id, day.isoformat()),
            ).fetchone()

            if not row:
                return None

            return DailyTarget(date=day, total_minutes=row["total_minutes"])

    @_blocking
    def upsert_daily_target(self, user_id: str, day: date, total_minutes: int):
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO daily_targets (user_id, date, total_minutes, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (user_id, date) DO UPDATE SET
                    total_minutes = excluded.total_minutes,
                    updated_at = excluded.updated_at
                """,
                (user_id, day.isoformat(), total_minutes, datetime.utcnow().isoformat()),
            )
            conn.commit()
        logger.debug(f"Upserted target {user_id}/{day}: {total_minutes} min")

    @_blocking
    def list_entries(self, user_id: str, date_range: DateRange) -> list[StoredEntry]:
        conditions = ["user_id = ?"]
        params: list = [user_id]

        if date_range.start:
            conditions.append("date >= ?")
            params.append(date_range.start.isoformat())

        if date_range.end:
            conditions.append("date <= ?")
            params.append(date_range.end.isoformat())

        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(
                f"""
                SELECT id, date, minutes, project_id, stage_id, task_id
                FROM time_entries
                WHERE {' AND '.join(conditions)}
                ORDER BY date DESC, created_at, rowid
                """,
                params,
            ).fetchall()

        return [
            StoredEntry(
                id=row["id"],
                date=date.fromisoformat(row["date"]),
                minutes=row["minutes"],
                project_ref=row["project_id"],
                stage_ref=row["stage_id"],
                task_ref=row["task_id"],
            )
            for row in rows
        ]

    @_blocking
    def delete_entries(self, user_id: str, day: date):
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM time_entries WHERE user_id = ? AND date = ?",
                (user_id, day.isoformat()),
            )
            conn.commit()
        logger.debug(f"Deleted {cursor.rowcount} entries for {user_id}/{day}")

    @_blocking
    def insert_entries(self, user_id: str, day: date, entries: list[StoredEntry]):
        if not entries:
            return

        created_at = datetime.utcnow().isoformat()
        with sqlite3.connect(self.db_path) as conn:
            conn.executemany(
                """
                INSERT INTO time_entries
                    (id, user_id, date, minutes, project_id, stage_id, task_id,
                     description, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, NULL, ?)
                """,
                [
                    (
                        entry.id or new_entry_id(),
                        user_id,
                        day.isoformat(),
                        entry.minutes,
                        entry.project_ref,
                        entry.stage_ref,
                        entry.task_ref,
                        created_at,
                    )
                    for entry in entries
                ],
            )
            conn.commit()
        logger.debug(f"Inserted {len(entries)} entries for {user_id}/{day}")

    @_blocking
    def list_projects(self, status: str = "open") -> list[Project]:
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(
                "SELECT id, name, status FROM projects WHERE status = ? ORDER BY name",
                (status,),
            ).fetchall()
        return [Project(id=row["id"], name=row["name"], status=row["status"]) for row in rows]

    @_blocking
    def list_stages(self, project_ref: str) -> list[Stage]:
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(
                "SELECT id, name, project_id FROM stages WHERE project_id = ? ORDER BY name",
                (project_ref,),
            ).fetchall()
        return [
            Stage(id=row["id"], name=row["name"], project_ref=row["project_id"])
            for row in rows
        ]

    @_blocking
    def list_tasks(self, stage_ref: str) -> list[Task]:
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(
                "SELECT id, name, stage_id FROM tasks WHERE stage_id = ? ORDER BY name",
                (stage_ref,),
            ).fetchall()
        return [
            Task(id=row["id"], name=row["name"], stage_ref=row["stage_id"])
            for row in rows
        ]

    @_blocking
    def add_project(self, project: Project):
        """Register a project for the entry pickers."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                "INSERT INTO projects (id, name, status) VALUES (?, ?, ?)",
                (project.id, project.name, project.status),
            )
            conn.commit()

    @_blocking
    def add_stage(self, stage: Stage):
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                "INSERT INTO stages (id, name, project_id) VALUES (?, ?, ?)",
                (stage.id, stage.name, stage.project_ref),
            )
            conn.commit()

    @_blocking
    def add_task(self, task: Task):
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                "INSERT INTO tasks (id, name, stage_id) VALUES (?, ?, ?)",
                (task.id, task.name, task.stage_ref),
            )
            conn.commit()
