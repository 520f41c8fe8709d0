"""Database engine, declarative base and session helpers."""

from __future__ import annotations

import contextlib
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import get_settings

Base = declarative_base()


def build_engine(database_url: str, pool_size: int = 10, max_overflow: int = 20) -> Engine:
    """Create an engine; SQLite URLs get thread-shareable connections."""
    if database_url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url.rstrip("/").endswith("sqlite:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(
        database_url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
    )


class DatabaseManager:
    """Owns the engine and session factory for one database URL."""

    def __init__(self, database_url: Optional[str] = None) -> None:
        settings = get_settings()
        self.database_url = database_url or settings.database_url
        self.engine = build_engine(
            self.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
        self.SessionLocal = sessionmaker(
            bind=self.engine, autocommit=False, autoflush=False, expire_on_commit=False
        )

    def create_all(self) -> None:
        # Models must be imported so their tables are registered on Base.metadata
        import app.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        import app.models  # noqa: F401

        Base.metadata.drop_all(bind=self.engine)

    @contextlib.contextmanager
    def db_session(self) -> Iterator[Session]:
        """Session scoped to a block; rolled back on error, always closed."""
        db = self.SessionLocal()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()


_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    """Process-wide manager for the configured database, created lazily."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


def get_db(request: Request) -> Iterator[Session]:
    """FastAPI dependency yielding a request-scoped session from the app's database."""
    chat_state = getattr(request.app.state, "chat", None)
    manager = chat_state.db_manager if chat_state is not None else get_db_manager()
    with manager.db_session() as db:
        yield db
