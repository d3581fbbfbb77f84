import os
from datetime import datetime, timedelta, timezone

# Keep the app import from creating app.db; every test gets its own storage.
os.environ.setdefault("STORAGE_BACKEND", "memory")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from studyhub.database import create_db_and_tables, make_engine
from studyhub.deps import get_storage
from studyhub.main import app
from studyhub.memory import memory_storage
from studyhub.repositories import database_storage


class FakeClock:
    """Callable clock that tests move forward by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(params=["memory", "database"])
def storage(request):
    """A fresh, empty storage for each backend."""
    if request.param == "memory":
        yield memory_storage()
        return
    engine = make_engine("sqlite://")
    create_db_and_tables(engine)
    with Session(engine, expire_on_commit=False) as session:
        yield database_storage(session)
    engine.dispose()


@pytest.fixture
def client(storage):
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_storage, None)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 10, 9, 30, tzinfo=timezone.utc))
