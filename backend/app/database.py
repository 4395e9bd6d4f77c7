"""
Rail Complaint Desk - Database Configuration
SQLAlchemy engine and session factory (PostgreSQL by default, SQLite supported)
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import DATABASE_URL

# SQLite connections are shared across the threadpool FastAPI runs sync code in
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# Create engine
engine = create_engine(DATABASE_URL, echo=False, connect_args=connect_args)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for ORM models
Base = declarative_base()


def get_db():
    """Dependency for FastAPI - yields database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Initialize database - create all tables."""
    # Register every mapped table on Base.metadata before create_all
    from .models import db_models  # noqa: F401

    Base.metadata.create_all(bind=engine)
