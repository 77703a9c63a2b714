from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
import logging

from community_feed.core.config import settings

logger = logging.getLogger(__name__)
logger.info(f"Connecting to database with URL: {settings.DATABASE_URL}")

if not settings.DATABASE_URL:
    logger.error("DATABASE_URL is not set or empty!")
    raise ValueError("DATABASE_URL environment variable is required")


def build_engine(database_url: str, **kwargs):
    """Create an engine, adding the connect_args SQLite needs under a threadpool"""
    if database_url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)  # Check connection before using from pool
        kwargs.setdefault("pool_recycle", 3600)   # Recycle connections after 1 hour
    return create_engine(database_url, **kwargs)


try:
    engine = build_engine(settings.DATABASE_URL)
    logger.info("Database engine created successfully")
except Exception as e:
    logger.error(f"Failed to create database engine: {e}")
    raise

# Create session factory for database interactions
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for all SQLAlchemy models
Base = declarative_base()

def utcnow() -> datetime:
    """Naive UTC timestamp with microseconds, so rows created in the same second still order"""
    return datetime.now(timezone.utc).replace(tzinfo=None)

# Database session dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
