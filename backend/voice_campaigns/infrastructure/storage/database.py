"""
Database Connection and Session Management
"""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import NullPool, StaticPool
from contextlib import contextmanager
from typing import Iterator

from voice_campaigns.infrastructure.storage.models import Base


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given URL.

    In-memory SQLite needs a single shared connection; everything else
    opens a fresh connection per session.
    """
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )
    return create_engine(
        database_url,
        poolclass=NullPool,
        echo=echo,  # Set to True for debugging SQL queries
    )


def create_session_factory(engine: Engine, create_tables: bool = True) -> sessionmaker:
    """Build the session factory, creating missing tables first."""
    if create_tables:
        Base.metadata.create_all(engine)
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@contextmanager
def get_db(session_factory: sessionmaker) -> Iterator[Session]:
    """
    Get database session with automatic cleanup

    Usage:
        with get_db(SessionLocal) as db:
            campaigns = db.query(CampaignRow).all()
    """
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
