"""Main FastAPI application."""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from fastapi import FastAPI, Header, HTTPException, Path, Request
from fastapi.responses import JSONResponse

from .allocation.calendar import COMPLETE_DAY_MINUTES, CalendarStatusAggregator
from .allocation.duplication import DuplicationService
from .allocation.errors import (
    AllocationError,
    EntryNotFound,
    InvalidTransition,
    OverCapacity,
    StoreUnavailable,
    ValidationError,
)
from .allocation.persistence import PersistenceOrchestrator
from .allocation.models import parse_duration
from .allocation.session import DaySession
from .api.models import (
    CalendarDayResponse,
    CommitResponse,
    DayResponse,
    DurationRequest,
    EntryRequest,
    EntryResponse,
    ReferenceItem,
    SessionResponse,
    TargetRequest,
)
from .api.sessions import SessionRegistry
from .config import settings
from .store.base import RecordStore
from .store.database import SQLiteRecordStore

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"

_ERROR_STATUS = {
    OverCapacity: 409,
    ValidationError: 422,
    EntryNotFound: 404,
    InvalidTransition: 409,
    StoreUnavailable: 503,
}


@dataclass
class Services:
    """Allocation engine components sharing one record store."""

    store: RecordStore
    orchestrator: PersistenceOrchestrator
    duplication: DuplicationService
    calendar: CalendarStatusAggregator
    sessions: SessionRegistry

    @classmethod
    def build(cls, store: RecordStore) -> "Services":
        return cls(
            store=store,
            orchestrator=PersistenceOrchestrator(store),
            duplication=DuplicationService(store),
            calendar=CalendarStatusAggregator(store),
            sessions=SessionRegistry(),
        )


def create_app(store: Optional[RecordStore] = None) -> FastAPI:
    """
    Build the API.

    Args:
        store: Record store to use; the SQLite store from settings is opened
            on first request when omitted
    """
    app = FastAPI(
        title="Daily Time Allocation",
        description="Daily work targets split across projects, stages and tasks",
        version=VERSION,
    )
    app.state.services = Services.build(store) if store is not None else None

    @app.exception_handler(AllocationError)
    async def allocation_error_handler(request: Request, exc: AllocationError):
        status_code = _ERROR_STATUS.get(type(exc), 400)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        else:
            logger.info(f"{request.method} {request.url.path} rejected: {exc}")

        content = {"error": type(exc).__name__, "detail": str(exc)}
        if isinstance(exc, OverCapacity):
            content["attempted_minutes"] = exc.attempted_minutes
            content["allowed_minutes"] = exc.allowed_minutes
        return JSONResponse(status_code=status_code, content=content)

    _register_routes(app)
    return app


def get_services(request: Request) -> Services:
    """Engine components for this app, opening the default store if needed."""
    if request.app.state.services is None:
        request.app.state.services = Services.build(
            SQLiteRecordStore(settings.database_path)
        )
    return request.app.state.services


def _open_session(services: Services, user_id: str, day: date) -> DaySession:
    session = services.sessions.get(user_id, day)
    if session is None:
        raise HTTPException(status_code=404, detail=f"No open session for {day}")
    return session


def _register_routes(app: FastAPI):
    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "Daily Time Allocation",
            "version": VERSION,
            "endpoints": {
                "day": "/api/days/{date}",
                "session": "/api/days/{date}/session",
                "calendar": "/api/calendar/{year}/{month}",
                "projects": "/api/projects",
                "status": "/status",
            },
        }

    @app.get("/status")
    async def status(request: Request):
        """Server status endpoint."""
        services = get_services(request)
        return {
            "status": "running",
            "version": VERSION,
            "timestamp": datetime.utcnow().isoformat(),
            "open_sessions": len(services.sessions),
            "default_target_minutes": settings.default_target_minutes,
            "complete_day_minutes": COMPLETE_DAY_MINUTES,
        }

    @app.get("/api/days/{day}", response_model=DayResponse)
    async def get_day(
        request: Request,
        day: date,
        user_id: str = Header(..., alias="X-User-Id", description="Caller's user id"),
    ):
        """Stored target and entries of a day."""
        record = await get_services(request).orchestrator.load_day(user_id, day)
        return DayResponse(
            date=record.date,
            target_minutes=record.daily_target.total_minutes
            if record.daily_target
            else None,
            entries=[EntryResponse.from_entry(e) for e in record.entries],
        )

    @app.post("/api/days/{day}/session", response_model=SessionResponse)
    async def open_session(
        request: Request,
        day: date,
        user_id: str = Header(..., alias="X-User-Id", description="Caller's user id"),
    ):
        """
        Open the editing session for a day.

        Returns the already open session if there is one.
        """
        services = get_services(request)
        session = services.sessions.get(user_id, day)
        if session is None:
            session = await services.orchestrator.open_session(user_id, day)
            services.sessions.put(user_id, session)
            logger.info(f"Session opened for {user_id}/{day} ({session.state.value})")
        return SessionResponse.from_session(session)

    @app.delete("/api/days/{day}/session")
    async def close_session(
        request: Request,
        day: date,
        user_id: str = Header(..., alias="X-User-Id", description="Caller's user id"),
    ):
        """Discard the session without saving anything."""
        if not get_services(request).sessions.discard(user_id, day):
            raise HTTPException(status_code=404, detail=f"No open session for {day}")
        return {"status": "success", "message": "Session discarded"}

    @app.put("/api/days/{day}/session/target", response_model=SessionResponse)
    async def set_target(
        request: Request,
        day: date,
        body: TargetRequest,
        user_id: str = Header(..., alias="X-User-Id", description="Caller's user id"),
    ):
        """
        Confirm the daily target.

        Without hours and minutes the configured default target is used. With
        ``persist`` the target is stored immediately.
        """
        services = get_services(request)
        session = _open_session(services, user_id, day)

        if body.hours is None and body.minutes is None:
            total = settings.default_target_minutes
        else:
            total = parse_duration(body.hours or 0, body.minutes or 0)
        session.check_target(total)

        # The session only changes once the target is stored
        if body.persist:
            await services.orchestrator.save_target(user_id, day, total)
        session.confirm_target(total)
        return SessionResponse.from_session(session)

    @app.post("/api/days/{day}/session/entries", response_model=SessionResponse)
    async def add_entry(
        request: Request,
        day: date,
        body: EntryRequest,
        user_id: str = Header(..., alias="X-User-Id", description="Caller's user id"),
    ):
        """Add an entry straight to the committed list."""
        session = _open_session(get_services(request), user_id, day)
        session.add_entry(session.build_entry(**body.model_dump()))
        return SessionResponse.from_session(session)

    @app.delete(
        "/api/days/{day}/session/entries/{entry_id}", response_model=SessionResponse
    )
    async def remove_entry(
        request: Request,
        day: date,
        entry_id: str,
        user_id: str = Header(..., alias="X-User-Id", description="Caller's user id"),
    ):
        session = _open_session(get_services(request), user_id, day)
        session.remove_entry(entry_id)
        return SessionResponse.from_session(session)

    @app.patch(
        "/api/days/{day}/session/entries/{entry_id}", response_model=SessionResponse
    )
    async def edit_entry(
        request: Request,
        day: date,
        entry_id: str,
        body: DurationRequest,
        user_id: str = Header(..., alias="X-User-Id", description="Caller's user id"),
    ):
        """Change a committed entry's duration or percentage."""
        session = _open_session(get_services(request), user_id, day)
        session.edit_entry(entry_id, **body.model_dump())
        return SessionResponse.from_session(session)

    @app.post("/api/days/{day}/session/drafts", response_model=SessionResponse)
    async def add_draft(
        request: Request,
        day: date,
        body: EntryRequest,
        user_id: str = Header(..., alias="X-User-Id", description="Caller's user id"),
    ):
        """Stage a draft for review."""
        session = _open_session(get_services(request), user_id, day)
        session.add_draft(session.build_entry(**body.model_dump()))
        return SessionResponse.from_session(session)

    @app.delete(
        "/api/days/{day}/session/drafts/{draft_id}", response_model=SessionResponse
    )
    async def remove_draft(
        request: Request,
        day: date,
        draft_id: str,
        user_id: str = Header(..., alias="X-User-Id", description="Caller's user id"),
    ):
        session = _open_session(get_services(request), user_id, day)
        session.remove_draft(draft_id)
        return SessionResponse.from_session(session)

    @app.patch(
        "/api/days/{day}/session/drafts/{draft_id}", response_model=SessionResponse
    )
    async def edit_draft(
        request: Request,
        day: date,
        draft_id: str,
        body: DurationRequest,
        user_id: str = Header(..., alias="X-User-Id", description="Caller's user id"),
    ):
        session = _open_session(get_services(request), user_id, day)
        session.edit_draft(draft_id, **body.model_dump())
        return SessionResponse.from_session(session)

    @app.post("/api/days/{day}/session/drafts/commit", response_model=CommitResponse)
    async def commit_drafts(
        request: Request,
        day: date,
        user_id: str = Header(..., alias="X-User-Id", description="Caller's user id"),
    ):
        """Move every complete draft into the committed list."""
        session = _open_session(get_services(request), user_id, day)
        result = session.commit_drafts()
        return CommitResponse(
            committed=len(result.committed),
            discarded=len(result.discarded),
            session=SessionResponse.from_session(session),
        )

    @app.post("/api/days/{day}/session/duplicate", response_model=SessionResponse)
    async def duplicate_previous(
        request: Request,
        day: date,
        user_id: str = Header(..., alias="X-User-Id", description="Caller's user id"),
    ):
        """Stage the most recent prior day's entries as drafts."""
        services = get_services(request)
        session = _open_session(services, user_id, day)
        await services.duplication.duplicate_previous(user_id, session)
        return SessionResponse.from_session(session)

    @app.post("/api/days/{day}/session/save", response_model=SessionResponse)
    async def save_session(
        request: Request,
        day: date,
        user_id: str = Header(..., alias="X-User-Id", description="Caller's user id"),
    ):
        """Store the target and replace the day's entries with the committed list."""
        services = get_services(request)
        session = _open_session(services, user_id, day)
        await services.orchestrator.save_session(user_id, session)
        response = SessionResponse.from_session(session)
        # Nothing is left to edit once the store matches the session
        if not session.drafts:
            services.sessions.release(user_id, day)
        return response

    @app.get("/api/calendar/{year}/{month}", response_model=list[CalendarDayResponse])
    async def calendar_month(
        request: Request,
        year: int = Path(..., ge=1, le=9999),
        month: int = Path(..., ge=1, le=12),
        user_id: str = Header(..., alias="X-User-Id", description="Caller's user id"),
    ):
        """Status of every day in a month."""
        days = await get_services(request).calendar.month(user_id, year, month)
        return [CalendarDayResponse.from_day(d) for d in days]

    @app.get("/api/projects", response_model=list[ReferenceItem])
    async def list_projects(request: Request, status: str = "open"):
        projects = await get_services(request).store.list_projects(status=status)
        return [ReferenceItem(id=p.id, name=p.name) for p in projects]

    @app.get("/api/projects/{project_id}/stages", response_model=list[ReferenceItem])
    async def list_stages(request: Request, project_id: str):
        stages = await get_services(request).store.list_stages(project_id)
        return [ReferenceItem(id=s.id, name=s.name) for s in stages]

    @app.get("/api/stages/{stage_id}/tasks", response_model=list[ReferenceItem])
    async def list_tasks(request: Request, stage_id: str):
        tasks = await get_services(request).store.list_tasks(stage_id)
        return [ReferenceItem(id=t.id, name=t.name) for t in tasks]


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )
