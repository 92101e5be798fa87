# pyright: reportMissingTypeStubs=false
"""
Database configuration and session management.

This module sets up SQLAlchemy database connection, session management,
and provides dependency injection for database sessions in FastAPI routes.
"""

import logging
from contextlib import contextmanager
from typing import Generator

from fastapi import HTTPException
from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from core.config import DATABASE_URL
from core.constants import DB_POOL_RECYCLE_SECONDS

logger = logging.getLogger(__name__)

_engine_options = {"pool_pre_ping": True, "echo": False, "future": True}
if not DATABASE_URL.startswith("sqlite"):
    _engine_options["pool_recycle"] = DB_POOL_RECYCLE_SECONDS

engine = create_engine(DATABASE_URL, **_engine_options)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,  # Don't expire objects after commit
)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


# Audit columns are plain date/time strings so no timezone conversion ever happens.
@event.listens_for(Base, "before_insert", propagate=True)  # type: ignore
def receive_before_insert(mapper, connection, target):  # type: ignore
    """Stamp created_date/created_time and updated_date/updated_time on insert."""
    # Import here to avoid circular import
    from utils.date_string_utils import get_today_string, get_current_time_string
    today = get_today_string()
    now_time = get_current_time_string()
    columns = getattr(mapper, "columns", {})
    for date_field, time_field in (("created_date", "created_time"), ("updated_date", "updated_time")):
        if date_field in columns and getattr(target, date_field, None) is None:
            setattr(target, date_field, today)
        if time_field in columns and getattr(target, time_field, None) is None:
            setattr(target, time_field, now_time)


@event.listens_for(Base, "before_update", propagate=True)  # type: ignore
def receive_before_update(mapper, connection, target):  # type: ignore
    """Refresh updated_date/updated_time on update."""
    from utils.date_string_utils import get_today_string, get_current_time_string
    columns = getattr(mapper, "columns", {})
    if "updated_date" in columns:
        setattr(target, "updated_date", get_today_string())
    if "updated_time" in columns:
        setattr(target, "updated_time", get_current_time_string())


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency to provide database sessions.

    Yields a database session that is automatically closed after the request.
    Handles cleanup even if an exception occurs during request processing.

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    except SQLAlchemyError as e:
        logger.exception(f"Database error: {e}")
        db.rollback()
        raise
    except HTTPException:
        # Expected business errors, not logged as failures
        db.rollback()
        raise
    except Exception as e:
        logger.exception(f"Unexpected error in database session: {e}")
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Context manager for database sessions outside of FastAPI dependency injection.

    Useful for scripts or testing where you need manual session management.

    Example:
        ```python
        with get_db_context() as db:
            patient = db.query(Patient).filter(Patient.id == patient_id).first()
        ```
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Database transaction failed: {e}")
        raise
    finally:
        db.close()


def create_tables() -> None:
    """
    Create all database tables defined in SQLAlchemy models.

    Safe to call multiple times - will not recreate existing tables.
    In production, prefer the Alembic migrations.
    """
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        logger.exception(f"Failed to create database tables: {e}")
        raise


def drop_tables() -> None:
    """
    Drop all database tables defined in SQLAlchemy models.

    WARNING: This will permanently delete all data in the tables!
    """
    try:
        Base.metadata.drop_all(bind=engine)
        logger.info("Database tables dropped successfully")
    except SQLAlchemyError as e:
        logger.exception(f"Failed to drop database tables: {e}")
        raise
