"""Database engine and session factory. SQLite by default, any SQLAlchemy URL via DATABASE_URL."""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from medai.core.config import settings


def make_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        # one connection per session; the file is shared across threadpool workers
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=NullPool)
    return create_engine(url, pool_size=5, max_overflow=10, pool_recycle=3600, pool_pre_ping=True)


engine = make_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
