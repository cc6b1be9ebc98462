import asyncio
import logging
from functools import wraps
from typing import Any, AsyncGenerator, Callable, TypeVar

from asyncpg.exceptions import ConnectionDoesNotExistError, ConnectionFailureError
from sqlalchemy.exc import (
    DisconnectionError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError,
)
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import text

from .config import (
    DATABASE_URL,
    DB_RETRY_ATTEMPTS,
    DB_RETRY_BACKOFF_FACTOR,
    DB_RETRY_DELAY,
)
from .exceptions import DatabaseConnectionError, DatabaseTimeoutError

logger = logging.getLogger(__name__)

# Failures worth a second try: the query itself never reached the server
CONNECTION_ERRORS = (
    OperationalError,
    DisconnectionError,
    ConnectionFailureError,
    ConnectionDoesNotExistError,
)
TRANSIENT_ERRORS = CONNECTION_ERRORS + (TimeoutError,)

POOL_OPTIONS = {
    "pool_size": 20,
    "max_overflow": 10,
    "pool_timeout": 30,
    "pool_recycle": 3600,
    "pool_pre_ping": True,
}

# SQLite (tests, local runs) has no connection pool to tune
engine = create_async_engine(
    DATABASE_URL,
    echo=False,
    **({} if DATABASE_URL.startswith("sqlite") else POOL_OPTIONS),
)

async_session = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)

Base = declarative_base()

F = TypeVar("F", bound=Callable[..., Any])


def db_retry(
    attempts: int = DB_RETRY_ATTEMPTS,
    delay: float = DB_RETRY_DELAY,
    backoff: float = DB_RETRY_BACKOFF_FACTOR,
) -> Callable[[F], F]:
    """
    Re-run an engine-level coroutine when the connection drops.

    Used for startup checks and table creation only; request handlers
    never retry, so a booking is never written twice.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            pause = delay
            for attempt in range(1, attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except TRANSIENT_ERRORS as e:
                    if attempt == attempts:
                        logger.error(f"{func.__name__} gave up after {attempts} attempts: {e}")
                        if isinstance(e, TimeoutError):
                            raise DatabaseTimeoutError(func.__name__, 30) from e
                        raise DatabaseConnectionError(
                            f"Database unreachable after {attempts} attempts"
                        ) from e
                    logger.warning(
                        f"{func.__name__} attempt {attempt}/{attempts} failed, "
                        f"retrying in {pause:.1f}s: {e}"
                    )
                    await asyncio.sleep(pause)
                    pause *= backoff

        return wrapper

    return decorator


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, rolled back on failure"""
    async with async_session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


class DatabaseManager:
    @staticmethod
    @db_retry()
    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @staticmethod
    @db_retry()
    async def check_connection() -> bool:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    @staticmethod
    async def close_connections():
        await engine.dispose()


db_manager = DatabaseManager()


def db_operation(func: F) -> F:
    """Trace a CRUD coroutine at DEBUG and log SQLAlchemy failures with its name"""

    @wraps(func)
    async def wrapper(*args, **kwargs):
        logger.debug(f"db: {func.__name__}")
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(
                f"db: {func.__name__} failed with {type(e).__name__}: {e}",
                extra={"operation": func.__name__},
            )
            raise

    return wrapper
