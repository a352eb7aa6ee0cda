"""
Database connection management for the print shop back office.
Handles SQLAlchemy engine creation, session management, and connection verification.
"""

import os
import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import QueuePool, StaticPool

logger = logging.getLogger(__name__)


def normalize_database_url(url):
    """Rewrite Heroku/Render style postgres:// URLs for SQLAlchemy."""
    if url and url.startswith('postgres://'):
        return url.replace('postgres://', 'postgresql://', 1)
    return url


# Get DATABASE_URL from environment
DATABASE_URL = normalize_database_url(os.environ.get('DATABASE_URL'))

# SQLAlchemy Base for model declarations
Base = declarative_base()

# Engine and SessionLocal will be initialized when needed
engine = None
SessionLocal = None


def configure_engine(url):
    """
    Point the store at a database URL, replacing any existing engine.

    Called by the app factory with the configured DATABASE_URL.
    """
    global DATABASE_URL, engine, SessionLocal

    if engine is not None:
        engine.dispose()

    DATABASE_URL = normalize_database_url(url)
    engine = None
    SessionLocal = None
    return get_engine()


def get_engine():
    """Get or create the SQLAlchemy engine."""
    global engine

    if engine is not None:
        return engine

    if not DATABASE_URL:
        logger.error("DATABASE_URL is not configured!")
        raise RuntimeError(
            "DATABASE_URL not configured. Set the DATABASE_URL environment variable."
        )

    try:
        if DATABASE_URL.startswith('sqlite'):
            # One shared connection so in-memory databases survive across sessions
            engine = create_engine(
                DATABASE_URL,
                poolclass=StaticPool,
                connect_args={'check_same_thread': False},
                echo=False
            )
        else:
            engine = create_engine(
                DATABASE_URL,
                poolclass=QueuePool,
                pool_size=5,
                max_overflow=10,
                pool_pre_ping=True,  # Verify connections before using
                pool_recycle=300,    # Recycle connections after 5 minutes
                echo=False
            )
        logger.info(f"Database engine created for {engine.url.get_backend_name()}")
        return engine
    except Exception as e:
        logger.error(f"Failed to create database engine: {e}")
        raise RuntimeError(f"Failed to connect to database: {e}")


def get_session_factory():
    """Get or create the session factory."""
    global SessionLocal

    if SessionLocal is not None:
        return SessionLocal

    eng = get_engine()
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=eng, expire_on_commit=False)
    return SessionLocal


@contextmanager
def get_db_session():
    """
    Context manager for getting a database session.

    Example:
        with get_db_session() as db:
            jobs = JobOrderRepository(db, org_id).list_jobs()
    """
    session_factory = get_session_factory()
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def check_db_connection():
    """
    Verify that the database connection is working.
    Returns True if connection is successful, raises exception otherwise.
    """
    try:
        eng = get_engine()
        with eng.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        logger.info("Database connection verified successfully")
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        raise RuntimeError(f"Cannot connect to database: {e}")


def init_db():
    """Create all tables that do not exist yet."""
    # Import models to ensure they're registered with Base
    from database import models  # noqa: F401

    eng = get_engine()
    Base.metadata.create_all(bind=eng)
    logger.info("Database tables created/verified")


def drop_db():
    """Drop every table. Used by the test suite."""
    from database import models  # noqa: F401

    Base.metadata.drop_all(bind=get_engine())
