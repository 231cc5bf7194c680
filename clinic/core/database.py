from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from typing import Callable, Generator, Optional
import logging
import redis
from .config import settings
from .exceptions import ClinicError, ServerError

logger = logging.getLogger(__name__)

database_url = settings.get_database_url

if database_url.startswith("sqlite"):
    # SQLite serializes writers itself; requests may run on worker threads
    engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,  # Recycle connections after 30 minutes
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Redis setup - mock for testing
if settings.TESTING:
    # Use a simple dict-based mock for Redis in tests
    class RedisMock:
        def __init__(self):
            self.data = {}

        def setex(self, key, time, value):
            self.data[key] = str(value)
            return True

        def get(self, key):
            return self.data.get(key)

        def delete(self, key):
            if key in self.data:
                del self.data[key]
            return 1

        def incr(self, key):
            try:
                self.data[key] = str(int(self.data.get(key, 0)) + 1)
            except ValueError:
                self.data[key] = "1"
            return int(self.data[key])

        def flushall(self):
            self.data.clear()
            return True

    redis_client = RedisMock()
else:
    # Real Redis client for production
    redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)

# Database dependency
def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

@contextmanager
def storage_guard(
    db: Session,
    action: str,
    on_integrity_error: Optional[Callable[[IntegrityError], Optional[ClinicError]]] = None,
):
    """Roll back on any failure and surface storage errors as SERVER_ERROR.

    Tagged ``ClinicError``s pass through unchanged. ``on_integrity_error``
    may turn a constraint violation into a domain error; returning ``None``
    leaves it a ``SERVER_ERROR``.
    """
    try:
        yield
    except ClinicError:
        db.rollback()
        raise
    except IntegrityError as exc:
        db.rollback()
        mapped = on_integrity_error(exc) if on_integrity_error is not None else None
        if mapped is not None:
            raise mapped from exc
        logger.exception(f"Integrity error while {action}")
        raise ServerError(f"Storage error while {action}") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(f"Storage failure while {action}")
        raise ServerError(f"Storage error while {action}") from exc

# Redis dependency
def get_redis():
    """Get Redis client."""
    return redis_client

# Database initialization
def init_db():
    """Initialize database tables."""
    # Register every model on Base.metadata before creating tables
    from ..models import user, department, doctor, appointment  # noqa: F401

    Base.metadata.create_all(bind=engine)
