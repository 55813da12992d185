# otbooking/database.py
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import get_settings

logger = logging.getLogger(__name__)


def _engine_options(database_url: str) -> dict:
    if not database_url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    options = {"connect_args": {"check_same_thread": False}}
    # An in-memory database lives inside a single connection
    if ":memory:" in database_url:
        options["poolclass"] = StaticPool
    return options


engine = create_engine(
    get_settings().database_url,
    echo=False,
    **_engine_options(get_settings().database_url)
)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


# Dependency to get database session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """Create all database tables - models must be imported first so they register with Base.metadata."""
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")


def drop_tables():
    """Drop all database tables"""
    from . import models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
    logger.info("Database tables dropped")


def ping_database() -> bool:
    """Round-trip a trivial statement to confirm the store is reachable."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return True


def prepare_schema() -> bool:
    """
    Build the tables straight from the models on SQLite only. Other databases
    are migrated with `alembic upgrade head`, which also installs the
    bookings_no_overlap exclusion constraint that create_all cannot express.
    """
    if not get_settings().is_sqlite:
        logger.info("Schema is managed by alembic; skipping create_all")
        return False
    create_tables()
    return True
