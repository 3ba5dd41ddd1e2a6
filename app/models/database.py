import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from app.config import settings
from app.errors import PersistenceError

logger = logging.getLogger(__name__)


def build_engine(url: str, **kwargs) -> Engine:
    """Create an engine; SQLite connections are shared across FastAPI's worker threads."""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)
        kwargs.setdefault("pool_size", 5)
    return create_engine(url, echo=settings.SQL_ECHO, **kwargs)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


class Base(DeclarativeBase):
    pass


def get_db():
    """FastAPI dependency that yields a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> None:
    # Import registers every table on Base.metadata.
    from app.models import aps  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def close_db() -> None:
    engine.dispose()


@contextmanager
def transaction(db: Session, action: str = "operación de escritura") -> Iterator[Session]:
    """
    Commit everything done inside the block, or nothing.

    Store failures are logged with their detail and re-raised as a generic
    PersistenceError; any other exception rolls back and propagates unchanged.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Error de base de datos en %s: %s", action, exc)
        raise PersistenceError(f"No se pudo completar: {action}") from exc
    except Exception:
        db.rollback()
        raise
