from datetime import datetime, timezone

import pytest


def _ts(day, hour=12):
    return datetime(2026, 3, day, hour, tzinfo=timezone.utc)


def test_created_task_can_be_read_back(storage):
    created = storage.tasks.create({'text': 'Read chapter 3'})
    fetched = storage.tasks.get(created.id)
    assert fetched.text == 'Read chapter 3'
    assert fetched.completed is False
    assert fetched.due_date is None
    assert fetched.created_at is not None


def test_created_task_keeps_explicit_completed(storage):
    created = storage.tasks.create({'text': 'Done already', 'completed': True})
    assert storage.tasks.get(created.id).completed is True


def test_task_scenario_create_update_delete(storage):
    task = storage.tasks.create({'text': 'Buy milk'})
    assert task.id == 1
    assert task.completed is False

    updated = storage.tasks.update(1, {'completed': True})
    assert updated.completed is True
    assert updated.text == 'Buy milk'
    assert updated.created_at == task.created_at

    assert storage.tasks.delete(1) is True
    assert storage.tasks.get(1) is None


def test_update_missing_id_does_not_create(storage):
    assert storage.tasks.update(42, {'text': 'ghost'}) is None
    assert storage.tasks.get(42) is None
    assert storage.tasks.list() == []
    assert storage.sessions.update(42, {'completed': True}) is None
    assert storage.sessions.list() == []


def test_delete_is_idempotent(storage):
    task = storage.tasks.create({'text': 'once'})
    assert storage.tasks.delete(task.id) is True
    assert storage.tasks.delete(task.id) is False
    session = storage.sessions.create({'timer_type': 'countdown'})
    assert storage.sessions.delete(session.id) is True
    assert storage.sessions.delete(session.id) is False


def test_ids_are_not_reused_after_delete(storage):
    first = storage.tasks.create({'text': 'a'})
    second = storage.tasks.create({'text': 'b'})
    storage.tasks.delete(second.id)
    third = storage.tasks.create({'text': 'c'})
    assert third.id > second.id > first.id


def test_update_only_touches_supplied_fields(storage):
    due = _ts(20)
    task = storage.tasks.create({'text': 'essay', 'due_date': due})
    updated = storage.tasks.update(task.id, {'text': 'essay draft'})
    assert updated.text == 'essay draft'
    assert updated.completed is False
    assert updated.due_date.replace(tzinfo=timezone.utc) == due


def test_explicit_null_keeps_required_field(storage):
    task = storage.tasks.create({'text': 'keep me'})
    updated = storage.tasks.update(task.id, {'text': None, 'completed': None})
    assert updated.text == 'keep me'
    assert updated.completed is False


def test_tasks_listed_newest_first(storage):
    for text in ('first', 'second', 'third'):
        storage.tasks.create({'text': text})
    tasks = storage.tasks.list()
    assert [t.text for t in tasks] == ['third', 'second', 'first']
    stamps = [t.created_at for t in tasks]
    assert stamps == sorted(stamps, reverse=True)


def test_delete_completed_removes_only_completed(storage):
    keep = storage.tasks.create({'text': 'open'})
    storage.tasks.create({'text': 'done 1', 'completed': True})
    done = storage.tasks.create({'text': 'done 2'})
    storage.tasks.update(done.id, {'completed': True})
    assert storage.tasks.delete_completed() == 2
    assert [t.id for t in storage.tasks.list()] == [keep.id]
    assert storage.tasks.delete_completed() == 0


def test_session_defaults(storage):
    session = storage.sessions.create({'timer_type': 'stopwatch'})
    assert session.duration == 0
    assert session.tags == []
    assert session.completed is False
    assert session.notes is None
    assert session.end_time is None
    assert session.start_time is not None


def test_sessions_listed_newest_first_by_start_time(storage):
    storage.sessions.create({'timer_type': 'pomodoro', 'start_time': _ts(5), 'notes': 'middle'})
    storage.sessions.create({'timer_type': 'pomodoro', 'start_time': _ts(1), 'notes': 'oldest'})
    storage.sessions.create({'timer_type': 'pomodoro', 'start_time': _ts(9), 'notes': 'newest'})
    assert [s.notes for s in storage.sessions.list()] == ['newest', 'middle', 'oldest']


def test_date_range_is_inclusive(storage):
    ids = {}
    for day in (1, 3, 5, 7):
        ids[day] = storage.sessions.create({'timer_type': 'countdown', 'start_time': _ts(day)}).id
    hits = storage.sessions.get_by_date_range(_ts(3), _ts(7))
    assert [s.id for s in hits] == [ids[7], ids[5], ids[3]]


def test_reversed_date_range_is_empty(storage):
    storage.sessions.create({'timer_type': 'countdown', 'start_time': _ts(4)})
    assert storage.sessions.get_by_date_range(_ts(6), _ts(2)) == []


def test_date_range_accepts_naive_bounds_as_utc(storage):
    session = storage.sessions.create({'timer_type': 'countdown', 'start_time': _ts(4)})
    hits = storage.sessions.get_by_date_range(datetime(2026, 3, 4), datetime(2026, 3, 4, 23, 59))
    assert [s.id for s in hits] == [session.id]


def test_timer_settings_absent_until_first_update(storage):
    assert storage.timer_settings.get() is None
    settings = storage.timer_settings.update({'volume': 30})
    assert settings.volume == 30
    assert settings.default_minutes == 25
    assert settings.timer_mode == 'pomodoro'
    assert settings.alarm_sound == 'bell'
    assert settings.stopwatch_default_category == 'General'
    assert settings.track_stopwatch_time is True
    assert settings.background_image is None


def test_timer_settings_merge_keeps_single_record(storage):
    first = storage.timer_settings.update({'timer_mode': 'stopwatch'})
    second = storage.timer_settings.update({'pomodoro_minutes': 50})
    assert second.id == first.id
    assert second.timer_mode == 'stopwatch'
    assert second.pomodoro_minutes == 50
    assert storage.timer_settings.get().pomodoro_minutes == 50


def test_study_stats_lazy_defaults(storage):
    assert storage.stats.get() is None
    stats = storage.stats.update({'daily_goal': 3600})
    assert stats.daily_goal == 3600
    assert stats.weekly_goal == 36000
    assert stats.total_study_time == 0
    assert stats.streak_days == 0
    assert stats.last_study_date is None
    assert stats.time_by_category == {}


def test_user_create_and_lookup(storage):
    user = storage.users.create('ada', 's3cret')
    assert user.id is not None
    assert user.password_hash != 's3cret'
    assert storage.users.get(user.id).username == 'ada'
    assert storage.users.get_by_username('ada').id == user.id
    assert storage.users.get_by_username('nobody') is None


def test_user_duplicate_username_rejected(storage):
    storage.users.create('ada', 'one')
    with pytest.raises(ValueError):
        storage.users.create('ada', 'two')


def test_user_password_verification(storage):
    storage.users.create('grace', 'hopper')
    assert storage.users.verify_password('grace', 'hopper') is not None
    assert storage.users.verify_password('grace', 'wrong') is None
    assert storage.users.verify_password('nobody', 'hopper') is None
