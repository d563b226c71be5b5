"""Database engine and session factory used across the application."""

from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from src.lessonhub.runtime.config.config_data import DatabaseConfig
from src.lessonhub.runtime.context import get_config


def _engine_kwargs(db_config: DatabaseConfig) -> dict:
    if db_config.is_sqlite:
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in db_config.url:
            # one shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {
        "pool_size": db_config.pool_size,
        "max_overflow": db_config.max_overflow,
        "pool_timeout": db_config.pool_timeout,
        "pool_recycle": db_config.pool_recycle,
        "pool_pre_ping": True,
    }


class DbSessionService:
    def __init__(self, db_config: DatabaseConfig | None = None):
        """Initialize the shared database engine and session factory."""
        db_config = db_config or get_config().database
        logger.info("Setting up database engine and session factory")
        self._engine = create_engine(db_config.url, echo=False, **_engine_kwargs(db_config))

    @property
    def engine(self):
        return self._engine

    def create_all(self) -> None:
        """Create all database tables."""
        from src.lessonhub.entities.core.account import AccountTable  # noqa: F401

        SQLModel.metadata.create_all(self._engine)
        logger.info("Database initialized with tables.")

    def get_session(self) -> Session:
        return Session(self._engine)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Yield a session that is closed when the block exits."""
        session = self.get_session()
        try:
            yield session
        finally:
            session.close()

    def dispose(self) -> None:
        self._engine.dispose()
