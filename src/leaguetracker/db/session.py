"""
Database session management for the league tracker.

Provides the SQLAlchemy engine and session factory configured from
config.py.

Usage:
    # As a context manager (recommended for scripts)
    from leaguetracker.db import get_session

    with get_session() as session:
        players = session.query(Player).all()
        session.add(new_player)
        # Commits automatically on exit, rolls back on exception
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from leaguetracker.config import settings
from leaguetracker.db.models import Base


def get_engine(database_url: Optional[str] = None) -> Engine:
    """
    Create a SQLAlchemy engine.

    Pool sizing only applies to server databases; SQLite picks its own
    pool class and rejects those options.
    """
    url = database_url or settings.database_url
    kwargs = {
        "echo": settings.db_echo,
        "pool_pre_ping": True,  # Verify connection is alive before using
    }
    if not url.startswith("sqlite"):
        kwargs["pool_size"] = settings.db_pool_size
        kwargs["max_overflow"] = settings.db_max_overflow
    return create_engine(url, **kwargs)


# Create the engine lazily (singleton via module-level variable)
_engine: Optional[Engine] = None


def _get_engine() -> Engine:
    """Get or create the singleton engine instance."""
    global _engine
    if _engine is None:
        _engine = get_engine()
    return _engine


# Session factory; bound on first use so importing never touches the database
SessionLocal = sessionmaker(autoflush=False, expire_on_commit=False)


def init_db(engine: Optional[Engine] = None) -> Engine:
    """Create every table that does not exist yet."""
    engine = engine or _get_engine()
    Base.metadata.create_all(engine)
    return engine


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Automatically commits on successful exit, rolls back on exception.

    Example:
        with get_session() as session:
            league = LeagueOrchestrator(session)
            league.validate_and_sanitize_state()

    Raises:
        Any exception from the database operation (after rollback)
    """
    session = SessionLocal(bind=_get_engine())
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
