# backend/lesson_scheduler/database.py
import logging
from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base: DeclarativeMeta = declarative_base()


def build_engine(database_url: str) -> Engine:
    """Create an engine with dialect-appropriate connection arguments."""
    if database_url.startswith("sqlite"):
        # Sessions are opened from request threads and worker threads alike
        connect_args: Dict[str, Any] = {"check_same_thread": False, "timeout": 30}
        return create_engine(database_url, connect_args=connect_args)
    return create_engine(
        database_url,
        pool_size=10,  # Number of persistent connections
        max_overflow=10,  # Maximum overflow connections
        pool_timeout=30,  # Timeout for getting connection
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_pre_ping=True,  # Test connections before using
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create all tables known to the metadata."""
    # Import models so they register on Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ensured on %s", engine.url.render_as_string(hide_password=True))
