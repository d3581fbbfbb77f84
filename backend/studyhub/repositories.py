"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (tasks,
study sessions, timer settings, study stats, users). Repositories
return SQLModel objects and perform commits/refreshes where
appropriate. `database_storage` bundles them over one session.
"""

import threading
from datetime import datetime
from typing import List, Optional
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select
from . import models, storage
from .utils.timeutil import as_utc


class _KeyedRepository:
    """Shared CRUD for tables keyed by an integer id."""
    model = None
    fields: storage.FieldSet = None
    order_column = ""

    def __init__(self, session: Session):
        self.session = session

    def list(self):
        """Return all rows newest first."""
        stmt = select(self.model).order_by(desc(getattr(self.model, self.order_column)), desc(self.model.id))
        return self.session.exec(stmt).all()

    def get(self, record_id: int):
        """Fetch a row by primary key."""
        return self.session.get(self.model, record_id)

    def create(self, values: dict):
        """Persist a new row and return the managed instance."""
        record = self.model(**self.fields.pick(values))
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return record

    def update(self, record_id: int, values: dict):
        """Merge `values` over the row; `None` if the id does not exist."""
        record = self.get(record_id)
        if record is None:
            return None
        self.fields.merge(record, values)
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return record

    def delete(self, record_id: int) -> bool:
        record = self.get(record_id)
        if record is None:
            return False
        self.session.delete(record)
        self.session.commit()
        return True


class TaskRepository(_KeyedRepository, storage.TaskStore):
    """CRUD operations for `Task` rows, ordered by `created_at`."""
    model = models.Task
    fields = storage.TASK_FIELDS
    order_column = "created_at"


class StudySessionRepository(_KeyedRepository, storage.StudySessionStore):
    """CRUD and date-range queries for `StudySession` rows."""
    model = models.StudySession
    fields = storage.STUDY_SESSION_FIELDS
    order_column = "start_time"

    def get_by_date_range(self, start: datetime, end: datetime) -> List[models.StudySession]:
        """Return sessions whose `start_time` falls inside [start, end]."""
        stmt = select(models.StudySession).where(
            models.StudySession.start_time >= as_utc(start),
            models.StudySession.start_time <= as_utc(end),
        ).order_by(desc(models.StudySession.start_time), desc(models.StudySession.id))
        return self.session.exec(stmt).all()


class _SingletonRepository(storage.SingletonStore):
    """Create-or-merge access to the single row that belongs to no user.

    Each subclass holds a process-wide lock across lookup, insert-or-merge
    and commit, so sessions on different threads never insert a second row.
    """
    model = None
    fields: storage.FieldSet = None
    _lock: threading.Lock = None

    def __init__(self, session: Session):
        self.session = session

    def get(self):
        stmt = select(self.model).where(col(self.model.user_id).is_(None)).order_by(self.model.id).limit(1)
        return self.session.exec(stmt).first()

    def update(self, values: dict):
        """Merge `values` into the row, inserting it with defaults first if needed."""
        with self._lock:
            record = self.get()
            if record is None:
                record = self.model(**self.fields.pick(values))
            else:
                self.fields.merge(record, values)
            self.session.add(record)
            self.session.commit()
            self.session.refresh(record)
            return record


class TimerSettingsRepository(_SingletonRepository):
    model = models.TimerSettings
    fields = storage.TIMER_SETTINGS_FIELDS
    _lock = threading.Lock()


class StudyStatsRepository(_SingletonRepository):
    model = models.StudyStats
    fields = storage.STUDY_STATS_FIELDS
    _lock = threading.Lock()


class UserRepository(storage.UserStore):
    """CRUD operations for `User` objects."""
    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: int) -> Optional[models.User]:
        return self.session.get(models.User, user_id)

    def get_by_username(self, username: str) -> Optional[models.User]:
        stmt = select(models.User).where(models.User.username == username)
        return self.session.exec(stmt).first()

    def _add(self, user: models.User) -> models.User:
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise ValueError(f"username already exists: {user.username}") from exc
        self.session.refresh(user)
        return user


def database_storage(session: Session) -> storage.Storage:
    """Return the repositories bound to `session` as one `Storage`."""
    return storage.Storage(
        tasks=TaskRepository(session),
        sessions=StudySessionRepository(session),
        timer_settings=TimerSettingsRepository(session),
        stats=StudyStatsRepository(session),
        users=UserRepository(session),
    )
