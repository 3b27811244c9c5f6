"""
SQLAlchemy 2.x engine, session factory and declarative base (sync)
"""

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from terravest.infrastructure.settings import Settings, get_settings


def build_engine(settings: Settings) -> Engine:
    """
    Postgres gets a sized, pre-pinged pool. SQLite (tests, local runs) is
    shared across request threads and waits on locks instead of failing.
    """
    if settings.is_sqlite:
        return create_engine(
            settings.DATABASE_URL,
            connect_args={"check_same_thread": False, "timeout": settings.DB_LOCK_TIMEOUT_SECONDS},
        )
    return create_engine(
        settings.DATABASE_URL,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
    )


engine = build_engine(get_settings())
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def get_db():
    """Request-scoped session; services commit through ledger_transaction"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
