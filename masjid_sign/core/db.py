"""
SQLAlchemy engine, session, and base. DB path from config or default.
"""
import importlib
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()

_engine = None
_SessionLocal = None

MODEL_MODULES = (
    "masjid_sign.core.models",
    "masjid_sign.plugins.prayer.models",
    "masjid_sign.plugins.announcements.models",
    "masjid_sign.plugins.sign_config.models",
    "masjid_sign.plugins.events.models",
    "masjid_sign.plugins.notifications.models",
    "masjid_sign.plugins.community.models",
)


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Context manager for a single DB session. Commits on success, rolls back on error."""
    if _SessionLocal is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    session = _SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_engine():
    return _engine


def _default_url() -> str:
    base = Path.home() / ".masjid_sign"
    base.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{base / 'masjid_sign.db'}"


def init_db(config_data: Optional[dict] = None, db_url: Optional[str] = None) -> None:
    """
    Initialize database engine and create tables.
    config_data: app config dict; database.url or database.path used if db_url not given.
    db_url: optional SQLAlchemy URL override (e.g. "sqlite://" for an in-memory DB).
    """
    global _engine, _SessionLocal

    if _engine is not None:
        logger.debug("Database already initialized")
        return

    if db_url is None and config_data:
        db_config = config_data.get("database") or {}
        db_url = db_config.get("url")
        path = db_config.get("path")
        if not db_url and path:
            path = Path(path).expanduser().resolve()
            path.parent.mkdir(parents=True, exist_ok=True)
            db_url = f"sqlite:///{path}"
    if not db_url:
        db_url = _default_url()

    if db_url in ("sqlite://", "sqlite:///:memory:"):
        _engine = create_engine(
            db_url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        _engine = create_engine(db_url, echo=False, future=True)

    for module in MODEL_MODULES:
        importlib.import_module(module)

    Base.metadata.create_all(_engine)
    _SessionLocal = sessionmaker(bind=_engine, autocommit=False, autoflush=False, expire_on_commit=False)
    logger.info(f"Database initialized: {db_url.split('?')[0]}")


def dispose_db() -> None:
    """Drop the engine so init_db() can run again (tests, shutdown)."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
