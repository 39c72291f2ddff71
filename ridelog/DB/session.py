"""
ridelog/DB/session.py
======================================
Database Session Configuration Module
======================================

This module establishes the SQLAlchemy database connection and session
management configuration for the RideLog service.

Architecture:
------------
- Engine: Manages the database connection pool and dialect
- SessionLocal: Factory for creating database sessions
- Configuration: Sourced from centralized settings module

Usage Example:
-------------
    from ridelog.DB.session import SessionLocal

    with SessionLocal() as db:
        trips = db.query(Trip).filter(Trip.user_id == 7).all()

Session Configuration:
---------------------
- autocommit=False: Transactions must be explicitly committed
- autoflush=False: Changes are not automatically flushed before queries
- bind=engine: Sessions are bound to the configured database engine

SQLite:
------
SQLite URLs get check_same_thread=False (FastAPI runs sync endpoints on a
threadpool). In-memory SQLite additionally uses StaticPool so every session
shares the single connection that holds the database.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from ridelog.Core.config import settings


def _engine_options(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}

    options: dict = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options


# ============================================================
# DATABASE ENGINE CONFIGURATION
# ============================================================
engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))


# ============================================================
# SESSION FACTORY CONFIGURATION
# ============================================================
SessionLocal = sessionmaker(
    autocommit=False,  # Require explicit commit() for transaction control
    autoflush=False,   # Disable automatic flushing before queries
    bind=engine
)
