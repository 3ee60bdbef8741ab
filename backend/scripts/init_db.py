"""Database initialization script."""
import asyncio
import logging
import sys
from skyearth.config import get_settings
from skyearth.database import Database
from skyearth.logging_config import configure_logging

logger = logging.getLogger("init_db")


async def init_database() -> int:
    """Create the database and all tables, leaving existing data intact."""
    settings = get_settings()
    database = Database.from_settings(settings)
    try:
        logger.info("Ensuring database exists...")
        await database.ensure_database()
        logger.info("Creating database tables...")
        await database.ensure_schema()
    except Exception:
        logger.exception("Database initialization failed")
        return 1
    finally:
        await database.dispose()

    logger.info("Database initialization complete!")
    return 0


if __name__ == "__main__":
    configure_logging(get_settings().debug)
    sys.exit(asyncio.run(init_database()))
