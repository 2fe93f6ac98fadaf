from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.settings import Settings
from db.models import Base

# Global engine singleton
_engine = None

SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False)


def reset_engines():
    """Reset global engine singleton. Used for testing."""
    global _engine
    if _engine:
        _engine.dispose()
        _engine = None


def get_engine(settings: Settings):
    """Get or create the SQLAlchemy engine."""
    global _engine
    if _engine is None:
        if settings.DATABASE_URL.startswith("sqlite"):
            _engine = create_engine(
                settings.DATABASE_URL,
                future=True,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool if ":memory:" in settings.DATABASE_URL else None,
            )
        else:
            _engine = create_engine(settings.DATABASE_URL, future=True, pool_pre_ping=True)
        SessionLocal.configure(bind=_engine)
    return _engine


def init_db(settings: Settings) -> None:
    """Initialize database tables."""
    Base.metadata.create_all(get_engine(settings))


@contextmanager
def manual_session(factory=SessionLocal) -> Generator[Session, None, None]:
    """Session that commits on success and rolls back on error."""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
