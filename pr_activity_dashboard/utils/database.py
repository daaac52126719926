"""
Database connection and session management utilities
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..exceptions import StorageError

Base = declarative_base()

logger = logging.getLogger(__name__)


def _is_memory_url(database_url: str) -> bool:
    return database_url in ("sqlite://", "sqlite:///:memory:")


def create_db_engine(database_url: str) -> Engine:
    """
    Create a database engine for the given URL

    Args:
        database_url: SQLAlchemy database URL

    Returns:
        SQLAlchemy engine instance
    """
    if _is_memory_url(database_url):
        # Every session must see the same in-memory database
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    else:
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False} if database_url.startswith("sqlite") else {},
            echo=False,  # Set to True for SQL debugging
            pool_pre_ping=True,
            pool_recycle=300,
        )

    if database_url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA temp_store=MEMORY")
            cursor.close()

    return engine


class Database:
    """
    Explicitly acquired database handle

    Open it once, hand it to the services that need storage and close it
    on shutdown. Usable as a context manager.
    """

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    def open(self) -> "Database":
        """
        Create the engine and all tables

        Raises:
            StorageError: If the database cannot be initialized
        """
        # Register all models with Base before creating tables
        from .. import models  # noqa: F401

        try:
            self.engine = create_db_engine(self.database_url)
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            logger.error("Database initialization failed: %s", e)
            raise StorageError(f"Database initialization failed: {e}") from e

        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        logger.info("Database ready at %s", self.database_url)
        return self

    def close(self) -> None:
        """Release all pooled connections"""
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
            self._session_factory = None

    def __enter__(self) -> "Database":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._session_factory is not None

    def session(self) -> Session:
        """
        Create a new session

        Returns:
            Database session; the caller closes it
        """
        if self._session_factory is None:
            raise StorageError("Database is not open")
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Session that commits on success and rolls back on error

        Raises:
            StorageError: If the commit or any statement fails
        """
        session = self.session()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageError(f"Database write failed: {e}") from e
        finally:
            session.close()

    def check_connection(self) -> bool:
        """
        Check if database connection is working

        Returns:
            True if connection is successful, False otherwise
        """
        if self.engine is None:
            return False
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error("Database connection check failed: %s", e)
            return False

    def info(self) -> dict:
        """
        Get database information

        Returns:
            Dictionary with database information
        """
        info = {
            "database_url": self.database_url,
            "driver": self.engine.driver if self.engine is not None else "not connected",
            "connected": str(self.check_connection()).lower(),
        }

        if self.database_url.startswith("sqlite") and not _is_memory_url(self.database_url):
            db_path = Path(self.database_url.replace("sqlite:///", ""))
            info["file_path"] = str(db_path.absolute())
            if db_path.exists():
                info["file_size"] = f"{db_path.stat().st_size / 1024 / 1024:.2f} MB"
            else:
                info["file_size"] = "Not created"

        return info
