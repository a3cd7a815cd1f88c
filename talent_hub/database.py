"""Database engine, session factory and the request-scoped session dependency."""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from talent_hub.config import settings


def _connect_args(url: str) -> dict:
    # Every store round trip must fail within a bounded time.
    if url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": settings.DB_TIMEOUT_SECONDS}
    if url.startswith("postgresql"):
        return {
            "connect_timeout": settings.DB_TIMEOUT_SECONDS,
            "options": f"-c statement_timeout={settings.DB_TIMEOUT_SECONDS * 1000}",
        }
    return {}


def build_engine(url: str):
    kwargs = {"connect_args": _connect_args(url), "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        kwargs.update(pool_size=8, max_overflow=10, pool_timeout=settings.DB_TIMEOUT_SECONDS)
    return create_engine(url, **kwargs)


Base = declarative_base()
engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
