"""FastAPI dependencies that pick the configured storage backend."""

import threading

from .config import settings
from .database import get_session
from .memory import memory_storage
from .repositories import database_storage

_memory = None
_memory_lock = threading.Lock()


def get_memory_storage():
    """Return the process-wide in-memory storage, creating it on first use."""
    global _memory
    with _memory_lock:
        if _memory is None:
            _memory = memory_storage()
        return _memory


def get_storage():
    """Yield the `Storage` for one request.

    The database backend gets a fresh session per request; the memory
    backend is shared by the whole process.
    """
    if settings.STORAGE_BACKEND == "memory":
        yield get_memory_storage()
        return
    for session in get_session():
        yield database_storage(session)
