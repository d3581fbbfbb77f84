"""SQLModel data models.

This module defines the application's records using SQLModel. The same
classes back both storage implementations: the database repositories
persist them as tables, the in-memory stores keep detached instances.

Id columns use `sqlite_autoincrement` so a deleted id is never handed
out again.
"""

from typing import Dict, List, Optional
from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field
from datetime import datetime

from .utils.timeutil import utcnow


class User(SQLModel, table=True):
    """A registered user.

    Fields:
    - `username`: unique login name
    - `password_hash`: hashed password string (never store plaintext)

    Kept for future authentication; no route reads it yet.
    """
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, nullable=False, unique=True)
    password_hash: str


class Task(SQLModel, table=True):
    """A to-do item. `created_at` is fixed when the task is created."""
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    text: str
    completed: bool = False
    due_date: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow, index=True)


class TimerSettings(SQLModel, table=True):
    """Timer preferences. At most one row exists (owned by no user)."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = None
    default_minutes: int = 25
    default_seconds: int = 0
    alarm_sound: str = "bell"
    volume: int = 80
    auto_start_break: bool = False
    timer_mode: str = "pomodoro"
    pomodoro_minutes: int = 25
    short_break_minutes: int = 5
    long_break_minutes: int = 15
    long_break_interval: int = 4
    auto_start_pomodoro: bool = False
    track_stopwatch_time: bool = True
    stopwatch_default_category: Optional[str] = "General"
    stopwatch_auto_save: bool = False
    background_image: Optional[str] = None
    use_custom_background: bool = False


class StudySession(SQLModel, table=True):
    """A single timed study block.

    `duration` is in seconds. `tags` keeps its order: the first tag is
    the category credited in the study statistics.
    """
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = None
    start_time: datetime = Field(default_factory=utcnow, index=True)
    end_time: Optional[datetime] = None
    duration: int = 0
    timer_type: str
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    notes: Optional[str] = None
    completed: bool = False


class StudyStats(SQLModel, table=True):
    """Aggregate study ledger. At most one row exists (owned by no user).

    Times are in seconds. `last_study_date` holds the full timestamp of
    the last credited session; streaks compare its UTC date only.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = None
    total_study_time: int = 0
    daily_goal: int = 7200
    weekly_goal: int = 36000
    streak_days: int = 0
    last_study_date: Optional[datetime] = None
    time_by_category: Dict[str, int] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
