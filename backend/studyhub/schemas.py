"""Pydantic request schemas used by the API.

Schemas keep API input shapes stable and validate request bodies
before they reach the stores. Update schemas make every field optional;
routes pass on only the fields a client actually sent.
"""

from datetime import datetime
from pydantic import BaseModel, Field
from typing import Dict, List, Literal, Optional

TimerMode = Literal["pomodoro", "countdown", "stopwatch"]


class TaskIn(BaseModel):
    """Payload for creating a task."""
    text: str = Field(min_length=1)
    completed: bool = False
    due_date: Optional[datetime] = None


class TaskUpdate(BaseModel):
    text: Optional[str] = Field(default=None, min_length=1)
    completed: Optional[bool] = None
    due_date: Optional[datetime] = None


class TimerSettingsUpdate(BaseModel):
    """Partial timer settings. `volume` is expected in 0-100 but not enforced."""
    default_minutes: Optional[int] = None
    default_seconds: Optional[int] = None
    alarm_sound: Optional[str] = None
    volume: Optional[int] = None
    auto_start_break: Optional[bool] = None
    timer_mode: Optional[TimerMode] = None
    pomodoro_minutes: Optional[int] = None
    short_break_minutes: Optional[int] = None
    long_break_minutes: Optional[int] = None
    long_break_interval: Optional[int] = None
    auto_start_pomodoro: Optional[bool] = None
    track_stopwatch_time: Optional[bool] = None
    stopwatch_default_category: Optional[str] = None
    stopwatch_auto_save: Optional[bool] = None
    background_image: Optional[str] = None
    use_custom_background: Optional[bool] = None


class StudySessionIn(BaseModel):
    """Payload for starting (or logging) a study session.

    `start_time` defaults to now and `duration` (seconds) to 0.
    """
    timer_type: TimerMode
    user_id: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, ge=0)
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    completed: Optional[bool] = None


class StudySessionUpdate(BaseModel):
    timer_type: Optional[TimerMode] = None
    user_id: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, ge=0)
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    completed: Optional[bool] = None


class StudyStatsUpdate(BaseModel):
    """Manual edit of the study statistics (goals, corrections)."""
    total_study_time: Optional[int] = Field(default=None, ge=0)
    daily_goal: Optional[int] = Field(default=None, ge=0)
    weekly_goal: Optional[int] = Field(default=None, ge=0)
    streak_days: Optional[int] = Field(default=None, ge=0)
    last_study_date: Optional[datetime] = None
    time_by_category: Optional[Dict[str, int]] = None


class IncreaseTimeIn(BaseModel):
    """Credit `seconds` of study time, optionally to a category."""
    seconds: int
    category: Optional[str] = None
