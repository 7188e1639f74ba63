import logging

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from workforce_sync.core.config import settings

logger = logging.getLogger(__name__)


def _engine_options(database_url: str) -> dict:
    # - pool_pre_ping: Verify connections are alive before use (prevents stale connections)
    # - pool_recycle: Recycle connections after 1 hour to prevent DB-side timeouts
    # - pool_timeout: Wait up to 30s for a connection before raising an error
    options = {"echo": settings.SQLALCHEMY_ECHO}
    if database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        return options
    options.update(
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_timeout=30,
    )
    return options


engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


def check_db_connection() -> bool:
    """
    Verify database connectivity. Used by health checks.
    Returns True if connection is successful, False otherwise.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.warning(f"Database health check failed: {e}")
        return False
