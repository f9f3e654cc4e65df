"""
Database management for the single academy database
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from config import Config
import logging

logger = logging.getLogger(__name__)

# Global engine and session factory
ENGINE = None
SessionLocal = None


def init_database(config=None):
    """Initialize database engine and session factory"""
    global ENGINE, SessionLocal

    if config is None:
        config = Config()
    database_uri = config.get_database_uri()

    if ENGINE is not None:
        ENGINE.dispose()

    ENGINE = create_engine(
        database_uri,
        **config.SQLALCHEMY_ENGINE_OPTIONS
    )

    # Records are handed back to callers after the session closes
    SessionLocal = sessionmaker(bind=ENGINE, autoflush=False, autocommit=False,
                                expire_on_commit=False)

    logger.info(f"Database initialized: {ENGINE.url.render_as_string(hide_password=True)}")
    return ENGINE, SessionLocal


def get_engine():
    """Get the database engine, initializing it on first use"""
    if ENGINE is None:
        init_database()
    return ENGINE


def get_session():
    """Get a database session"""
    if SessionLocal is None:
        init_database()
    return SessionLocal()
