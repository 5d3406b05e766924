from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker

# Create declarative base for models
Base = declarative_base()


class Database:
    """
    Engine plus session factory owned by the process.

    Built once at startup and handed to whatever needs sessions (the web app,
    a worker task, a CLI command) instead of living in a module global.
    """

    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        self.engine = create_engine(url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @classmethod
    def from_settings(cls, settings) -> "Database":
        """Create the pooled PostgreSQL handle described by the settings"""
        if settings.is_sqlite:
            return cls(settings.DATABASE_URL, echo=settings.DB_ECHO)
        return cls(
            settings.DATABASE_URL,
            pool_size=settings.DB_MIN_CONNECTIONS,
            max_overflow=settings.DB_MAX_CONNECTIONS - settings.DB_MIN_CONNECTIONS,
            echo=settings.DB_ECHO,
            pool_pre_ping=True,
        )

    def create_all(self) -> None:
        """Create tables directly (tests and local SQLite); production uses Alembic"""
        import nursery.db.models  # noqa: F401  register models on Base.metadata

        Base.metadata.create_all(self.engine)

    def ping(self) -> None:
        with self.session() as session:
            session.execute(text("SELECT 1")).fetchone()

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Create a database session with proper cleanup"""
        db_session = self.SessionLocal()
        try:
            yield db_session
        except Exception:
            db_session.rollback()
            raise
        finally:
            db_session.close()


def get_db_session(request: Request) -> Iterator[Session]:
    """
    Dependency for getting DB session from the application's database handle.
    """
    database: Optional[Database] = request.app.state.database
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()
