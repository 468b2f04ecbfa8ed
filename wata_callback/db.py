from typing import Generator
from urllib.parse import urlparse

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings


def normalize_url(url: str) -> str:
    """Postgres connections always go over TLS."""
    url = url.strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set. Please set a valid database URL.")
    if urlparse(url).scheme.startswith("postgresql") and "sslmode=" not in url:
        url = f"{url}{'&' if '?' in url else '?'}sslmode=require"
    return url


def build_engine(url: str) -> Engine:
    url = normalize_url(url)
    if not urlparse(url).scheme.startswith("sqlite"):
        return create_engine(url, future=True, pool_pre_ping=True, pool_recycle=300)

    kwargs = {"connect_args": {"check_same_thread": False}}
    # In-memory databases live on one connection
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(url, future=True, **kwargs)


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """One session per request, closed when the response is done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
