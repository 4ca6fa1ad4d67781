"""Database engine and session management (SQLite or PostgreSQL)."""

import logging
from collections.abc import Generator
from pathlib import Path

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings

logger = logging.getLogger(__name__)

# Seconds a SQLite connection waits on a locked database before failing.
SQLITE_BUSY_TIMEOUT_SEC = 30


def create_db_engine(url: str, echo: bool = False, **engine_kwargs: object) -> Engine:
    """Build an engine for url; SQLite connections may be shared across request threads."""
    connect_args: dict[str, object] = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = SQLITE_BUSY_TIMEOUT_SEC
    return create_engine(
        url,
        pool_pre_ping=True,
        echo=echo,
        connect_args=connect_args,
        **engine_kwargs,
    )


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


engine = create_db_engine(settings.DATABASE_URL, echo=settings.DEBUG)

SessionLocal = create_session_factory(engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency that yields a DB session and closes it when done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> None:
    """
    Create tables that do not exist yet.

    For SQLite files the parent directory is created first, so a fresh checkout
    can start without any manual setup.
    """
    from app.models import Base

    bind = bind or engine
    url = bind.url
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).resolve().parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind)
    logger.info("Database schema ready", extra={"backend": url.get_backend_name()})


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
