import os
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session

from app.settings import settings


def _ensure_sqlite_dir(url: str) -> None:
    if not url.startswith("sqlite:///"):
        return
    path = url.replace("sqlite:///", "", 1)
    dir_path = os.path.dirname(path) if os.path.dirname(path) else "."
    if dir_path and not os.path.exists(dir_path):
        os.makedirs(dir_path, exist_ok=True)


_ensure_sqlite_dir(settings.DATABASE_URL)

engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {},
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def describe_db(url: str | None = None) -> dict:
    parsed = make_url(url or settings.DATABASE_URL)
    info = {"dialect": parsed.get_backend_name(), "driver": parsed.get_driver_name()}
    if info["dialect"] == "sqlite":
        database = parsed.database or ""
        info["sqlite_path"] = os.path.abspath(database) if database else ":memory:"
    else:
        info["host"] = parsed.host
        info["database"] = parsed.database
    return info


def get_session_factory() -> sessionmaker:
    return SessionLocal
