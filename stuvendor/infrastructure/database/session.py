"""Database engine and request-scoped sessions"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from stuvendor.config import settings


def build_engine(database_url: str) -> Engine:
    """Pooled engine for PostgreSQL; SQLite (local runs, tests) is shared across threads"""
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})

    # Withdrawal row locks pin a connection until commit, so keep the pool bounded
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_recycle=3600,
    )


engine = build_engine(settings.database_url)

# Ledger entries are read back after commit (withdrawal results, split payouts)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def get_db() -> Session:
    """Dependency injection for database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
