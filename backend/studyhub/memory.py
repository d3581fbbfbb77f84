"""In-memory storage backend.

Records live in dicts guarded by one lock per store, so every
read-modify-write is applied whole. Callers always receive detached
copies; mutating a returned record never changes stored state.
Nothing survives a restart.
"""

from __future__ import annotations

import copy
import itertools
import threading
from datetime import datetime
from typing import Optional

from . import models, storage
from .utils.timeutil import as_utc


def _detached(record):
    return type(record)(**copy.deepcopy(record.model_dump()))


class _MemoryKeyedStore:
    model = None
    fields: storage.FieldSet = None
    order_attr = ""

    def __init__(self):
        self._records: dict[int, object] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def _newest_first(self, records) -> list:
        return sorted(
            records,
            key=lambda r: (as_utc(getattr(r, self.order_attr)), r.id),
            reverse=True,
        )

    def list(self) -> list:
        with self._lock:
            return [_detached(r) for r in self._newest_first(self._records.values())]

    def get(self, record_id: int):
        with self._lock:
            record = self._records.get(record_id)
            return _detached(record) if record is not None else None

    def create(self, values: dict):
        with self._lock:
            record = self.model(id=next(self._ids), **self.fields.pick(values))
            self._records[record.id] = record
            return _detached(record)

    def update(self, record_id: int, values: dict):
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                return None
            self.fields.merge(record, values)
            return _detached(record)

    def delete(self, record_id: int) -> bool:
        with self._lock:
            return self._records.pop(record_id, None) is not None


class MemoryTaskStore(_MemoryKeyedStore, storage.TaskStore):
    model = models.Task
    fields = storage.TASK_FIELDS
    order_attr = "created_at"


class MemoryStudySessionStore(_MemoryKeyedStore, storage.StudySessionStore):
    model = models.StudySession
    fields = storage.STUDY_SESSION_FIELDS
    order_attr = "start_time"

    def get_by_date_range(self, start: datetime, end: datetime) -> list:
        start, end = as_utc(start), as_utc(end)
        with self._lock:
            hits = [r for r in self._records.values() if start <= as_utc(r.start_time) <= end]
            return [_detached(r) for r in self._newest_first(hits)]


class _MemorySingletonStore(storage.SingletonStore):
    model = None
    fields: storage.FieldSet = None

    def __init__(self):
        self._record = None
        self._lock = threading.Lock()

    def get(self):
        with self._lock:
            return _detached(self._record) if self._record is not None else None

    def update(self, values: dict):
        with self._lock:
            if self._record is None:
                self._record = self.model(id=1, **self.fields.pick(values))
            else:
                self.fields.merge(self._record, values)
            return _detached(self._record)


class MemoryTimerSettingsStore(_MemorySingletonStore):
    model = models.TimerSettings
    fields = storage.TIMER_SETTINGS_FIELDS


class MemoryStudyStatsStore(_MemorySingletonStore):
    model = models.StudyStats
    fields = storage.STUDY_STATS_FIELDS


class MemoryUserStore(storage.UserStore):
    def __init__(self):
        self._users: dict[int, models.User] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def get(self, user_id: int) -> Optional[models.User]:
        with self._lock:
            user = self._users.get(user_id)
            return _detached(user) if user is not None else None

    def get_by_username(self, username: str) -> Optional[models.User]:
        with self._lock:
            user = next((u for u in self._users.values() if u.username == username), None)
            return _detached(user) if user is not None else None

    def _add(self, user: models.User) -> models.User:
        with self._lock:
            if any(u.username == user.username for u in self._users.values()):
                raise ValueError(f"username already exists: {user.username}")
            user.id = next(self._ids)
            self._users[user.id] = user
            return _detached(user)


def memory_storage() -> storage.Storage:
    """Return a fresh, empty in-memory `Storage`."""
    return storage.Storage(
        tasks=MemoryTaskStore(),
        sessions=MemoryStudySessionStore(),
        timer_settings=MemoryTimerSettingsStore(),
        stats=MemoryStudyStatsStore(),
        users=MemoryUserStore(),
    )
