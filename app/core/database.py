from contextlib import contextmanager
from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.models.base import Base


class Database:
    """
    Owns the SQLAlchemy engine and session factory.

    Built once by the application lifespan and handed to request handlers
    through `get_db`; nothing else holds a module-level engine.
    """

    def __init__(self, url: str, *, engine: Engine | None = None, echo: bool = False) -> None:
        self.url = url
        self.engine = engine or _build_engine(url, echo=echo)
        self.session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
            future=True,
        )

    def session(self) -> Session:
        return self.session_factory()

    def create_all(self) -> None:
        # Import models so every table is registered on Base.metadata
        import app.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


def _build_engine(url: str, *, echo: bool = False) -> Engine:
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}, "echo": echo}
        if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
            # In-memory databases only exist per connection; share one
            kwargs["poolclass"] = StaticPool
        return create_engine(url, future=True, **kwargs)

    return create_engine(
        url,
        future=True,
        echo=echo,
        pool_pre_ping=True,
    )


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a DB session from the app's Database.
    """
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Generator[Session, None, None]:
    """
    Run a unit of work: commit when the block finishes, roll back on any error.

    Usage:
        with atomic(db):
            medicine.current_stock -= qty
            db.add(InventoryTransaction(...))
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
