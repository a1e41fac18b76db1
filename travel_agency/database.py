"""
Database connection setup.

SQLAlchemy engine and session factory for PostgreSQL in production and
SQLite for local runs and tests.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from travel_agency.config import settings

# SQLite connections are shared across FastAPI's worker threads
connect_args = {}
if settings.database_url.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.database_url, connect_args=connect_args, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield a session per request and always close it afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create all tables registered on Base"""
    # Models must be imported so their tables are attached to Base.metadata
    from travel_agency import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
