import threading
import time

from sqlmodel import Session, select

from studyhub import models
from studyhub.database import create_db_and_tables, make_engine
from studyhub.repositories import StudyStatsRepository, TimerSettingsRepository


def _first_writes_race(tmp_path, monkeypatch, repo_cls, values):
    engine = make_engine(f"sqlite:///{tmp_path / 'race.db'}")
    create_db_and_tables(engine)
    original_get = repo_cls.get

    def slow_get(self):
        # widen the gap between lookup and insert
        found = original_get(self)
        time.sleep(0.2)
        return found

    monkeypatch.setattr(repo_cls, "get", slow_get)
    errors = []

    def worker(v):
        try:
            with Session(engine, expire_on_commit=False) as session:
                repo_cls(session).update(v)
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(v,)) for v in values]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    with Session(engine) as session:
        rows = session.exec(select(repo_cls.model)).all()
    engine.dispose()
    return rows, errors


def test_concurrent_first_timer_settings_writes_keep_one_row(tmp_path, monkeypatch):
    rows, errors = _first_writes_race(
        tmp_path, monkeypatch, TimerSettingsRepository, [{'volume': 10}, {'alarm_sound': 'chime'}]
    )
    assert errors == []
    assert len(rows) == 1
    assert rows[0].volume == 10
    assert rows[0].alarm_sound == 'chime'


def test_concurrent_first_stats_writes_keep_one_row(tmp_path, monkeypatch):
    rows, errors = _first_writes_race(
        tmp_path, monkeypatch, StudyStatsRepository, [{'daily_goal': 100}, {'weekly_goal': 900}]
    )
    assert errors == []
    assert len(rows) == 1
    assert isinstance(rows[0], models.StudyStats)
    assert (rows[0].daily_goal, rows[0].weekly_goal) == (100, 900)
