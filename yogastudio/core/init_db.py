"""
Schema creation and first-run data.

    python -m yogastudio.core.init_db          create tables, seed settings
    python -m yogastudio.core.init_db reset    drop everything first (dev/test)
"""

import asyncio
import logging
import sys

from yogastudio.core.config import ENVIRONMENT
from yogastudio.core.database import Base, async_session, db_manager, engine
from yogastudio.core.exceptions import ConfigurationError, DatabaseError

# Importing the models registers their tables on Base.metadata
from yogastudio.staff import models as staff_models  # noqa: F401
from yogastudio.clients import models as client_models  # noqa: F401
from yogastudio.staff.crud.settings import seed_default_settings

logger = logging.getLogger(__name__)


async def init_database():
    await db_manager.create_tables()

    async with async_session() as session:
        try:
            await seed_default_settings(session)
        except Exception as e:
            await session.rollback()
            raise DatabaseError(f"Could not seed studio settings: {e}") from e

    logger.info("Database schema and default settings are in place")


async def reset_database():
    if ENVIRONMENT not in ("development", "dev", "test"):
        raise ConfigurationError(
            "ENVIRONMENT", "Refusing to reset the database outside dev/test"
        )

    logger.warning("Dropping all tables")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await init_database()


COMMANDS = {"init": init_database, "reset": reset_database}


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    name = sys.argv[1] if len(sys.argv) > 1 else "init"
    if name not in COMMANDS:
        sys.exit(f"Unknown command '{name}', expected one of: {', '.join(COMMANDS)}")
    asyncio.run(COMMANDS[name]())
