"""Database engine, session factory and declarative base for InkSlate records."""

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given database URL.

    Args:
        database_url: SQLAlchemy database URL
        echo: Log every SQL statement

    Returns:
        Configured engine
    """
    if database_url.startswith("sqlite"):
        # SQLite doesn't support pool_size and max_overflow
        return create_engine(database_url, echo=echo, pool_pre_ping=True)

    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


def create_session_factory(engine: Engine) -> sessionmaker:  # type: ignore[type-arg]
    """Session factory whose objects stay readable after commit and close."""
    return sessionmaker(
        bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
    )


def init_db(engine: Engine) -> None:
    """Create all record tables that do not exist yet."""
    # Register the mapped classes on Base.metadata
    from . import budget, notes  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.debug(f"Database schema ready on {engine.url!r}")
