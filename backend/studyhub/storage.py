"""Storage contract shared by the database and in-memory backends.

`repositories` implements it over a SQLModel session, `memory` over
plain dicts. Both return `models` instances and signal a missing id by
returning `None` (or `False` from `delete`) instead of raising.

Partial updates go through a `FieldSet`: only the listed fields can be
written, and a field is overwritten only when the caller supplied it.
"""

import abc
from datetime import datetime
from typing import Iterable, List, Optional

from passlib.context import CryptContext

from . import models
from .utils.timeutil import as_utc

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class FieldSet:
    """Writable fields of one entity kind.

    `non_null` fields keep their current (or default) value when a caller
    passes an explicit `None` for them.
    """

    def __init__(self, fields: Iterable[str], non_null: Iterable[str] = ()):
        self.fields = tuple(fields)
        self.non_null = frozenset(non_null)

    def pick(self, values: dict) -> dict:
        """Return the writable subset of `values` with datetimes in UTC."""
        picked = {}
        for name in self.fields:
            if name not in values:
                continue
            value = values[name]
            if value is None and name in self.non_null:
                continue
            if isinstance(value, datetime):
                value = as_utc(value)
            elif isinstance(value, list):
                value = list(value)
            elif isinstance(value, dict):
                value = dict(value)
            picked[name] = value
        return picked

    def merge(self, record, values: dict):
        """Overwrite the supplied fields of `record` in place."""
        for name, value in self.pick(values).items():
            setattr(record, name, value)
        return record


TASK_FIELDS = FieldSet(("text", "completed", "due_date"), non_null=("text", "completed"))

STUDY_SESSION_FIELDS = FieldSet(
    ("user_id", "start_time", "end_time", "duration", "timer_type", "tags", "notes", "completed"),
    non_null=("start_time", "duration", "timer_type", "tags", "completed"),
)

TIMER_SETTINGS_FIELDS = FieldSet(
    (
        "default_minutes", "default_seconds", "alarm_sound", "volume", "auto_start_break",
        "timer_mode", "pomodoro_minutes", "short_break_minutes", "long_break_minutes",
        "long_break_interval", "auto_start_pomodoro", "track_stopwatch_time",
        "stopwatch_default_category", "stopwatch_auto_save", "background_image",
        "use_custom_background",
    ),
    non_null=(
        "default_minutes", "default_seconds", "alarm_sound", "volume", "auto_start_break",
        "timer_mode", "pomodoro_minutes", "short_break_minutes", "long_break_minutes",
        "long_break_interval", "auto_start_pomodoro", "track_stopwatch_time",
        "stopwatch_auto_save", "use_custom_background",
    ),
)

STUDY_STATS_FIELDS = FieldSet(
    ("total_study_time", "daily_goal", "weekly_goal", "streak_days", "last_study_date", "time_by_category"),
    non_null=("total_study_time", "daily_goal", "weekly_goal", "streak_days", "time_by_category"),
)


class EntityStore(abc.ABC):
    """Keyed records with integer ids that are never reused."""

    @abc.abstractmethod
    def list(self) -> List:
        """Return every record, newest first (ties: highest id first)."""

    @abc.abstractmethod
    def get(self, record_id: int):
        """Return the record or `None`."""

    @abc.abstractmethod
    def create(self, values: dict):
        """Insert a record with the next id and every default filled in."""

    @abc.abstractmethod
    def update(self, record_id: int, values: dict):
        """Merge `values` over an existing record; `None` if it is missing."""

    @abc.abstractmethod
    def delete(self, record_id: int) -> bool:
        """Remove a record. Returns False when nothing was there."""


class TaskStore(EntityStore):

    def delete_completed(self) -> int:
        """Delete every completed task one by one and return how many went.

        The batch is not atomic: a failure part way leaves the earlier
        deletions in place.
        """
        deleted = 0
        for task in self.list():
            if task.completed and self.delete(task.id):
                deleted += 1
        return deleted


class StudySessionStore(EntityStore):

    @abc.abstractmethod
    def get_by_date_range(self, start: datetime, end: datetime) -> List[models.StudySession]:
        """Sessions with `start <= start_time <= end`, newest first."""


class SingletonStore(abc.ABC):
    """A record kind with at most one live instance."""

    @abc.abstractmethod
    def get(self):
        """Return the record, or `None` before the first update."""

    @abc.abstractmethod
    def update(self, values: dict):
        """Create the record with defaults if absent, then merge `values`."""


class UserStore(abc.ABC):

    @abc.abstractmethod
    def get(self, user_id: int) -> Optional[models.User]:
        """Get a `User` by primary key."""

    @abc.abstractmethod
    def get_by_username(self, username: str) -> Optional[models.User]:
        """Return a `User` by username or `None` if not found."""

    @abc.abstractmethod
    def _add(self, user: models.User) -> models.User:
        """Persist a new user; raise ValueError if the username is taken."""

    def create(self, username: str, password: str) -> models.User:
        """Create a user with a hashed password."""
        if self.get_by_username(username) is not None:
            raise ValueError(f"username already exists: {username}")
        return self._add(models.User(username=username, password_hash=PWD_CTX.hash(password)))

    def verify_password(self, username: str, password: str) -> Optional[models.User]:
        """Return the user when `password` matches, otherwise `None`."""
        user = self.get_by_username(username)
        if user is None or not PWD_CTX.verify(password, user.password_hash):
            return None
        return user


class Storage:
    """The stores of one backend, handed to services and routes together."""

    def __init__(
        self,
        tasks: TaskStore,
        sessions: StudySessionStore,
        timer_settings: SingletonStore,
        stats: SingletonStore,
        users: UserStore,
    ):
        self.tasks = tasks
        self.sessions = sessions
        self.timer_settings = timer_settings
        self.stats = stats
        self.users = users
