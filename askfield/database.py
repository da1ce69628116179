"""
SQLAlchemy wiring: one engine per process, one session per request.
"""
from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import get_settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """
    Engine keyword arguments for a connection URL.

    SQLite connections are shared with FastAPI's threadpool; server databases
    get a liveness check on checkout instead.
    """
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


settings = get_settings()

engine = create_engine(settings.database_url, **engine_options(settings.database_url))

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

# Declarative base shared by the account and audit models
Base = declarative_base()


def get_db():
    """
    Request-scoped session dependency.

    Yields:
        Session: closed once the response has been produced
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
