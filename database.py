# database.py
"""
SQLAlchemy database connection and session management.

This module provides:
- Database engine configuration for PostgreSQL (psycopg driver)
- Session factory for dependency injection and background jobs
- Connection utilities

Usage:
     from database import get_session, engine
     
     # In FastAPI routes:
     @router.get("/items")
     def get_items(db: Session = Depends(get_session)):
          return db.query(Item).all()
     """
import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from config import DATABASE_URL, SQL_ECHO

logger = logging.getLogger(__name__)

# Create SQLAlchemy engine
engine = create_engine(
     DATABASE_URL,
     poolclass=QueuePool,
     pool_size=5,
     max_overflow=10,
     pool_timeout=30,
     pool_recycle=1800,  # Recycle connections after 30 minutes
     pool_pre_ping=True,
     echo=SQL_ECHO,
)

# Session factory
SessionLocal = sessionmaker(
     bind=engine,
     autocommit=False,
     autoflush=False,
     expire_on_commit=False,
)


def get_session() -> Generator[Session, None, None]:
     """
     FastAPI dependency that provides a database session.
     
     Route handlers and services commit explicitly; anything left pending
     when the request ends is committed here, and an exception rolls back.
     
     Yields:
          Session: SQLAlchemy database session
     """
     session = SessionLocal()
     try:
          yield session
          session.commit()
     except Exception:
          session.rollback()
          raise
     finally:
          session.close()


@contextmanager
def get_session_context(session_factory=None) -> Generator[Session, None, None]:
     """
     Context manager for database sessions (for use outside FastAPI routes,
     e.g. the scheduled jobs).
     
     Usage:
          with get_session_context() as db:
               plans = db.query(MaintenancePlan).all()
     
     Yields:
          Session: SQLAlchemy database session
     """
     session = (session_factory or SessionLocal)()
     try:
          yield session
          session.commit()
     except Exception:
          session.rollback()
          raise
     finally:
          session.close()


def check_connection() -> bool:
     """
     Test database connectivity.
     
     Returns:
          bool: True if connection successful, False otherwise
     """
     try:
          with engine.connect() as conn:
               conn.execute(text("SELECT 1"))
          return True
     except Exception:
          logger.exception("Database connection failed")
          return False
