"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate the stores of
a `Storage`. Services are intentionally thin: they perform validation,
execute domain logic and persist records through the stores.

The only derived data is the study statistics ledger: completing a
study session credits its duration to the running total, the streak
and the category of its first tag.
"""

import logging
import threading
from datetime import date, datetime, timedelta
from typing import Callable, Optional
from . import models
from .storage import Storage
from .utils.timeutil import utc_day, utcnow

logger = logging.getLogger("studyhub.stats")

# One read-modify-write of the stats row at a time, whichever backend.
_STATS_LOCK = threading.RLock()


def next_streak(streak_days: int, last_study_date: Optional[datetime], today: date) -> int:
    """Return the streak after crediting study time on `today`.

    Days are compared as UTC calendar dates. A first session or a gap of
    two or more days starts a new streak at 1; studying the day after the
    last session extends it; another session on the same day keeps it.
    """
    if last_study_date is None:
        return 1
    last_day = utc_day(last_study_date)
    yesterday = today - timedelta(days=1)
    if last_day == yesterday:
        return streak_days + 1
    if last_day < yesterday:
        return 1
    return max(streak_days, 1)


class StudyStatsService:
    """Read, edit and accumulate the study statistics singleton."""
    def __init__(self, storage: Storage, clock: Callable[[], datetime] = utcnow):
        self.stats = storage.stats
        self.clock = clock

    def get(self) -> Optional[models.StudyStats]:
        return self.stats.get()

    def update(self, values: dict) -> models.StudyStats:
        """Merge a manual edit into the stats, creating them if needed."""
        with _STATS_LOCK:
            return self.stats.update(values)

    def increase_study_time(self, seconds: int, category: Optional[str] = None) -> models.StudyStats:
        """Credit `seconds` of study time, optionally to `category`.

        Creates the stats with defaults on first use, then updates the
        streak, the per-category total, the overall total and the last
        study timestamp in a single write.
        """
        if seconds is None or seconds <= 0:
            raise ValueError("seconds must be a positive number")
        with _STATS_LOCK:
            current = self.stats.get() or self.stats.update({})
            previous_streak = current.streak_days or 0
            now = self.clock()
            streak = next_streak(previous_streak, current.last_study_date, utc_day(now))
            by_category = dict(current.time_by_category or {})
            if category:
                by_category[category] = by_category.get(category, 0) + seconds
            updated = self.stats.update({
                "streak_days": streak,
                "time_by_category": by_category,
                "total_study_time": (current.total_study_time or 0) + seconds,
                "last_study_date": now,
            })
        if streak != previous_streak:
            logger.info("streak changed from %s to %s", previous_streak, streak)
        logger.debug("credited %ss to %r, total %ss", seconds, category, updated.total_study_time)
        return updated


class StudySessionService:
    """Update study sessions and credit completed ones to the stats."""
    def __init__(self, storage: Storage, stats_service: Optional[StudyStatsService] = None):
        self.sessions = storage.sessions
        self.stats_service = stats_service or StudyStatsService(storage)

    def update(self, session_id: int, values: dict) -> Optional[models.StudySession]:
        """Apply a partial update; `None` if the session does not exist.

        A session that goes from not completed to completed with a positive
        duration is credited once, to the category of its first tag.
        """
        previous = self.sessions.get(session_id)
        if previous is None:
            return None
        was_completed = bool(previous.completed)
        updated = self.sessions.update(session_id, values)
        if updated is None:
            return None
        if updated.completed and not was_completed and (updated.duration or 0) > 0:
            category = updated.tags[0] if updated.tags else None
            self.stats_service.increase_study_time(updated.duration, category)
        return updated
