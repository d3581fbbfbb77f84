"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the study timer backend.
Controllers are intentionally thin: they accept requests, delegate to
the stores or services, and return JSON responses.

Endpoints implemented:
- GET/POST /api/tasks, GET/PUT/DELETE /api/tasks/{id}
- DELETE /api/tasks/completed
- GET/PUT /api/timer-settings
- GET/POST /api/study-sessions, GET/PUT/DELETE /api/study-sessions/{id}
- GET /api/study-sessions/date-range
- GET/PUT /api/study-stats
- POST /api/study-stats/increase-time
- GET /health
"""

from fastapi import FastAPI, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import OperationalError
from datetime import datetime
import json
import logging
import time
import uuid
from .config import settings
from .database import create_db_and_tables
from .deps import get_storage
from .schemas import (
    IncreaseTimeIn,
    StudySessionIn,
    StudySessionUpdate,
    StudyStatsUpdate,
    TaskIn,
    TaskUpdate,
    TimerSettingsUpdate,
)
from .services import StudySessionService, StudyStatsService
from .storage import Storage

app = FastAPI(title="Study Timer API")
logger = logging.getLogger("studyhub.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

# Wide-open CORS keeps a locally served frontend working without extra config in dev.
if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

if settings.STORAGE_BACKEND == "database":
    create_db_and_tables()


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception(
            "request_failed %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": elapsed_ms,
                    "client": request.client.host if request.client else "unknown",
                },
                ensure_ascii=True,
            ),
        )
        raise
    response.headers["X-Request-ID"] = req_id
    elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
    if request.url.path.startswith("/api"):
        logger.info(
            "request_done %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": response.status_code,
                    "duration_ms": elapsed_ms,
                    "client": request.client.host if request.client else "unknown",
                },
                ensure_ascii=True,
            ),
        )
    return response


@app.exception_handler(OperationalError)
async def storage_unavailable_handler(request: Request, exc: OperationalError):
    """Report an unreachable database as 503; the request is not retried."""
    logger.error(
        "storage_unavailable %s",
        json.dumps(
            {
                "request_id": getattr(request.state, "request_id", ""),
                "path": request.url.path,
                "error": str(exc.orig) if exc.orig is not None else str(exc),
            },
            ensure_ascii=True,
        ),
    )
    return JSONResponse(status_code=503, content={"detail": "storage backend unavailable"})


# Tasks

@app.get('/api/tasks')
def list_tasks(storage: Storage = Depends(get_storage)):
    """List all tasks, newest first."""
    return storage.tasks.list()


@app.post('/api/tasks', status_code=201)
def create_task(payload: TaskIn, storage: Storage = Depends(get_storage)):
    return storage.tasks.create(payload.model_dump(exclude_unset=True))


@app.delete('/api/tasks/completed', status_code=204)
def clear_completed_tasks(storage: Storage = Depends(get_storage)):
    """Delete every completed task.

    Deletion is best effort: tasks removed before a failure stay removed.
    """
    deleted = storage.tasks.delete_completed()
    logger.info("cleared %s completed tasks", deleted)
    return Response(status_code=204)


@app.get('/api/tasks/{task_id}')
def get_task(task_id: int, storage: Storage = Depends(get_storage)):
    task = storage.tasks.get(task_id)
    if not task:
        raise HTTPException(status_code=404, detail='Task not found')
    return task


@app.put('/api/tasks/{task_id}')
def update_task(task_id: int, payload: TaskUpdate, storage: Storage = Depends(get_storage)):
    """Update the supplied fields of a task; other fields keep their value."""
    task = storage.tasks.update(task_id, payload.model_dump(exclude_unset=True))
    if not task:
        raise HTTPException(status_code=404, detail='Task not found')
    return task


@app.delete('/api/tasks/{task_id}', status_code=204)
def delete_task(task_id: int, storage: Storage = Depends(get_storage)):
    if not storage.tasks.delete(task_id):
        raise HTTPException(status_code=404, detail='Task not found')
    return Response(status_code=204)


# Timer settings

@app.get('/api/timer-settings')
def get_timer_settings(storage: Storage = Depends(get_storage)):
    """Return the timer settings, or null if they were never saved."""
    return storage.timer_settings.get()


@app.put('/api/timer-settings')
def update_timer_settings(payload: TimerSettingsUpdate, storage: Storage = Depends(get_storage)):
    """Merge the supplied settings, creating them with defaults on first save."""
    return storage.timer_settings.update(payload.model_dump(exclude_unset=True))


# Study sessions

@app.get('/api/study-sessions')
def list_study_sessions(storage: Storage = Depends(get_storage)):
    """List all study sessions, most recent start first."""
    return storage.sessions.list()


@app.get('/api/study-sessions/date-range')
def study_sessions_by_date_range(start_date: datetime, end_date: datetime, storage: Storage = Depends(get_storage)):
    """Return sessions that started between `start_date` and `end_date` inclusive.

    A reversed range is not an error; it simply matches nothing.
    """
    return storage.sessions.get_by_date_range(start_date, end_date)


@app.get('/api/study-sessions/{session_id}')
def get_study_session(session_id: int, storage: Storage = Depends(get_storage)):
    session = storage.sessions.get(session_id)
    if not session:
        raise HTTPException(status_code=404, detail='Study session not found')
    return session


@app.post('/api/study-sessions', status_code=201)
def create_study_session(payload: StudySessionIn, storage: Storage = Depends(get_storage)):
    return storage.sessions.create(payload.model_dump(exclude_unset=True))


@app.put('/api/study-sessions/{session_id}')
def update_study_session(session_id: int, payload: StudySessionUpdate, storage: Storage = Depends(get_storage)):
    """Update a study session.

    Marking a session completed with a positive duration credits it to the
    study stats, under the category of its first tag.
    """
    svc = StudySessionService(storage)
    session = svc.update(session_id, payload.model_dump(exclude_unset=True))
    if not session:
        raise HTTPException(status_code=404, detail='Study session not found')
    return session


@app.delete('/api/study-sessions/{session_id}', status_code=204)
def delete_study_session(session_id: int, storage: Storage = Depends(get_storage)):
    if not storage.sessions.delete(session_id):
        raise HTTPException(status_code=404, detail='Study session not found')
    return Response(status_code=204)


# Study stats

@app.get('/api/study-stats')
def get_study_stats(storage: Storage = Depends(get_storage)):
    """Return the study stats, or null before any time was recorded."""
    return StudyStatsService(storage).get()


@app.put('/api/study-stats')
def update_study_stats(payload: StudyStatsUpdate, storage: Storage = Depends(get_storage)):
    """Manually edit goals or correct the stats; unsent fields are kept."""
    return StudyStatsService(storage).update(payload.model_dump(exclude_unset=True))


@app.post('/api/study-stats/increase-time')
def increase_study_time(payload: IncreaseTimeIn, storage: Storage = Depends(get_storage)):
    """Credit study time directly, e.g. from a stopwatch that saves itself."""
    svc = StudyStatsService(storage)
    try:
        return svc.increase_study_time(payload.seconds, payload.category)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
