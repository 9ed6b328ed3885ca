"""
Database connection and session management.
Engine with connection pooling, health-checked connections and automatic recycling.
Supports SQLite (default, demo) and PostgreSQL backends.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool
from typing import Generator
import logging
import os
import time

from app.core.config import settings
from app.db.models import Base

logger = logging.getLogger(__name__)

# Track database availability to avoid repeated slow connection attempts
_db_available = True  # Assume available until proven otherwise
_db_last_check = 0.0
_DB_RETRY_INTERVAL = 30  # Re-check every 30 seconds when DB is down

_is_sqlite = settings.database_url.startswith("sqlite")

if _is_sqlite:
    # SQLite: StaticPool for thread safety, WAL mode.
    # Relative paths resolve against the backend directory.
    db_path = settings.database_url.replace("sqlite:///", "")
    if db_path.startswith("./"):
        db_path = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), db_path[2:])
        db_url = f"sqlite:///{db_path}"
    else:
        db_url = settings.database_url

    engine = create_engine(
        db_url,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
else:
    # PostgreSQL: production pooling
    engine = create_engine(
        settings.database_url,
        poolclass=QueuePool,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_recycle=settings.database_pool_recycle,
        pool_pre_ping=settings.database_pool_pre_ping,
        pool_timeout=30,
        echo=False,
        connect_args={"connect_timeout": 10},
    )

    @event.listens_for(engine, "connect")
    def receive_connect(dbapi_conn, connection_record):
        """Tag connections so they are identifiable in pg_stat_activity."""
        try:
            cursor = dbapi_conn.cursor()
            cursor.execute("SET application_name = 'smarttravel-deals'")
            cursor.close()
        except Exception as e:
            logger.debug(f"Could not set application_name: {e}")

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def mark_unavailable() -> None:
    """Record that the database is down so get_db() degrades without retrying."""
    global _db_available, _db_last_check
    _db_available = False
    _db_last_check = time.time()


def get_db() -> Generator[Session | None, None, None]:
    """
    Dependency injection for database session.
    Yields None if the database is unavailable (routes answer 503).
    Unavailability is cached for _DB_RETRY_INTERVAL seconds.
    """
    global _db_available, _db_last_check

    if not _db_available:
        now = time.time()
        if now - _db_last_check < _DB_RETRY_INTERVAL:
            yield None
            return
        _db_last_check = now

    try:
        db = SessionLocal()
    except Exception as e:
        logger.warning(f"Database unavailable: {e}")
        mark_unavailable()
        yield None
        return

    _db_available = True
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create tables and seed the default agent personas."""
    from app.db.repositories import AgentRepository

    logger.info("Initializing database schema...")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seeded = AgentRepository(db).seed_defaults()
        if seeded:
            logger.info(f"Seeded {seeded} default agents")
    finally:
        db.close()
    logger.info("Database schema initialized")
