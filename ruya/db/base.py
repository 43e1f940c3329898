"""
Engine, session factory and declarative base.

Every store call is bounded by STORE_TIMEOUT_SECONDS: waiting for a pooled
connection, opening a new one, and (on PostgreSQL) each statement.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from ruya.core.config import settings


class Base(DeclarativeBase):
    pass


def _connect_args(url: str, timeout: float) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": timeout}
    if url.startswith("postgresql"):
        return {
            "connect_timeout": max(1, int(timeout)),
            "options": f"-c statement_timeout={int(timeout * 1000)}",
        }
    return {}


def build_engine(url: str, timeout: float):
    kwargs = {
        "pool_pre_ping": True,
        "connect_args": _connect_args(url, timeout),
    }
    if not url.startswith("sqlite"):
        kwargs["pool_timeout"] = timeout
    return create_engine(url, **kwargs)


engine = build_engine(settings.DATABASE_URL, settings.STORE_TIMEOUT_SECONDS)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
