from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.core.config import settings


def build_engine(dsn: str, **kwargs: Any) -> Engine:
    """Create an engine for the given DSN.

    SQLite connections get ``check_same_thread`` disabled and foreign keys
    enforced; other backends get ``pool_pre_ping`` so stale pooled connections
    are recycled instead of failing the request.
    """
    if "sqlite" in dsn:
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        new_engine = create_engine(dsn, **kwargs)

        @event.listens_for(new_engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return new_engine

    kwargs.setdefault("pool_pre_ping", True)
    return create_engine(dsn, **kwargs)


engine = build_engine(settings.APP_DATABASE_DSN)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base: Any = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Initialize database tables."""
    Base.metadata.create_all(bind=engine)
