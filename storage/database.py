"""
Database session management for win11-readiness-hub
"""

import os
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from common.config import Config
from common.logging import get_logger

logger = get_logger(__name__)

# Global engine and session factory
_engine = None
_SessionLocal = None


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given database URL.

    In-memory SQLite shares one connection across threads; file-backed
    SQLite gets its parent directory created.
    """
    db_url = make_url(url)
    if db_url.get_backend_name() == 'sqlite':
        database = db_url.database
        if not database or database == ':memory:':
            return create_engine(
                url,
                poolclass=StaticPool,
                connect_args={'check_same_thread': False},
                echo=echo,
            )
        directory = os.path.dirname(database)
        if directory:
            os.makedirs(directory, exist_ok=True)
        return create_engine(url, connect_args={'check_same_thread': False}, echo=echo)

    return create_engine(url, pool_pre_ping=True, pool_recycle=3600, echo=echo)


def get_engine():
    """Get or create database engine"""
    global _engine
    if _engine is None:
        config = Config()
        _engine = create_db_engine(config.database.url, echo=config.database.echo)
        logger.info("Database engine created", backend=_engine.url.get_backend_name())
    return _engine


def get_session_factory(engine: Optional[Engine] = None):
    """Get or create session factory; an explicit engine gets its own factory"""
    global _SessionLocal
    if engine is not None:
        return sessionmaker(autocommit=False, autoflush=False, bind=engine)
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
        logger.info("Database session factory created")
    return _SessionLocal


@contextmanager
def session_scope(session_factory=None) -> Generator[Session, None, None]:
    """Context manager for database sessions: commit on success, roll back on error"""
    factory = session_factory or get_session_factory()
    db = factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_database(engine: Optional[Engine] = None):
    """Initialize database tables"""
    from .schema import Base
    engine = engine or get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables initialized")


def check_connection() -> bool:
    """Test database connection"""
    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection test successful")
        return True
    except Exception as e:
        logger.error(f"Database connection test failed: {e}")
        return False
