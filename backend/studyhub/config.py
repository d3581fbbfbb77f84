"""Application settings and validation."""

import os
from pathlib import Path

BASE = Path(__file__).resolve().parent.parent
STORAGE_BACKENDS = ("database", "memory")


class Settings:
    ENV: str
    DATABASE_URL: str
    STORAGE_BACKEND: str
    ALLOW_DEV_CORS: bool
    LOG_LEVEL: str
    SQL_ECHO: bool

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'app.db'}")
        self.STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "database").lower()
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"
        self._validate()

    def _validate(self):
        if self.STORAGE_BACKEND not in STORAGE_BACKENDS:
            raise RuntimeError(
                f"STORAGE_BACKEND must be one of {', '.join(STORAGE_BACKENDS)}, got {self.STORAGE_BACKEND!r}"
            )
        if self.ENV != "dev" and self.STORAGE_BACKEND == "memory":
            # nothing survives a restart; only allowed outside dev when asked for explicitly
            if os.getenv("ALLOW_VOLATILE_STORAGE", "false").lower() != "true":
                raise RuntimeError("memory storage requires ALLOW_VOLATILE_STORAGE=true in non-dev environments")


settings = Settings()
