from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fooswap.config.settings import DATABASE_URL
from fooswap.storage.base import Base
import logging

log = logging.getLogger(__name__)


def make_engine(database_url: str = DATABASE_URL):
    if database_url.startswith("sqlite"):
        # the API threadpool and the indexer share the engine; the store lock serialises access
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


def make_session_factory(bind):
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=bind,
    )


engine = make_engine()
SessionLocal = make_session_factory(engine)


def init_db(bind=None) -> None:
    """Create the schema if needed. Failure here is fatal for the process."""
    # registers the models on Base.metadata
    from fooswap.storage.models import pools, swaps, indexer_state  # noqa: F401

    bind = bind if bind is not None else engine
    Base.metadata.create_all(bind)
    log.info(f"✅ Schema ready on {bind.url.render_as_string(hide_password=True)}")


_store = None


def get_store():
    """Process-wide LedgerStore over `SessionLocal` (FastAPI dependency)."""
    global _store
    if _store is None:
        from fooswap.storage.ledger_store import LedgerStore
        _store = LedgerStore(SessionLocal)
    return _store
