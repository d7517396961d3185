"""
Database session configuration.

The engine and session factory live on an explicit ``Database`` handle that
is opened when the process starts and closed at shutdown. Request handlers
obtain sessions through the ``get_db`` dependency, which reads the handle
from ``app.state``.
"""

import json
import logging
from pathlib import Path
from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from docdesk.db.base import Base

logger = logging.getLogger(__name__)


def _json_serializer(value) -> str:
    return json.dumps(value, ensure_ascii=False)


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def _register_sqlite_functions(dbapi_conn, connection_record) -> None:
    """Case folding for search; SQLite's own lower() is ASCII only."""
    dbapi_conn.create_function("unicode_lower", 1, _unicode_lower, deterministic=True)


class Database:
    """
    Storage-client handle owning the SQLAlchemy engine.

    Attributes:
        url: SQLAlchemy database URL.
        engine: Engine created by ``open()``.
        session_factory: Session factory bound to the engine.
    """

    def __init__(self, url: str) -> None:
        self.url = url
        self.engine: Engine | None = None
        self.session_factory: sessionmaker | None = None

    @property
    def is_open(self) -> bool:
        return self.engine is not None

    def open(self, create_tables: bool = True) -> "Database":
        """Create the engine and, optionally, all tables."""
        if self.is_open:
            return self

        if self.url.startswith("sqlite"):
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                # In-memory SQLite must share one connection across threads
                self.engine = create_engine(
                    self.url,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                    json_serializer=_json_serializer,
                )
            else:
                db_path = self.url.replace("sqlite:///", "", 1)
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
                self.engine = create_engine(
                    self.url,
                    connect_args={"check_same_thread": False},  # Needed for SQLite
                    json_serializer=_json_serializer,
                )
        else:
            self.engine = create_engine(
                self.url,
                pool_pre_ping=True,
                pool_size=10,
                max_overflow=20,
                json_serializer=_json_serializer,
            )

        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _register_sqlite_functions)

        self.session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
        )

        if create_tables:
            # Register all models on the metadata before creating tables
            import docdesk.models  # noqa: F401

            Base.metadata.create_all(bind=self.engine)

        logger.info(f"Database opened: {self.engine.url.render_as_string(hide_password=True)}")
        return self

    def close(self) -> None:
        """Dispose of the engine and its connection pool."""
        if self.engine is not None:
            self.engine.dispose()
            logger.info("Database closed")
        self.engine = None
        self.session_factory = None

    def session(self) -> Session:
        """Open a new session. The handle must be open."""
        if self.session_factory is None:
            raise RuntimeError("Database is not open")
        return self.session_factory()


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after use.

    Yields:
        Session: SQLAlchemy database session.
    """
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()
