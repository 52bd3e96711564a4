"""SQL backing for the remote per-user document store."""

import os
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import JSON, Column, DateTime, Text, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker

DEFAULT_DATABASE_URL = "sqlite:///data/parseai.db"

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentRow(Base):
    """One JSON document, addressed by collection and key."""

    __tablename__ = "documents"

    collection = Column(Text, primary_key=True)
    key = Column(Text, primary_key=True)
    data = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


def _ensure_sqlite_dir(url: str) -> None:
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:"):
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)


def create_session_factory(database_url: str | None = None) -> sessionmaker:
    """Create the engine, make sure the schema exists and return a session factory.

    Args:
        database_url: SQLAlchemy URL; DATABASE_URL or a local SQLite file when omitted.
    """
    url = database_url or os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
    _ensure_sqlite_dir(url)

    engine = create_engine(url, pool_pre_ping=True)
    Base.metadata.create_all(engine)

    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
