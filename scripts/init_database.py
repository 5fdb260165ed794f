#!/usr/bin/env python3
"""Initialize database tables."""

import asyncio
import sys

from loguru import logger

from triangle_engine.config.database import dispose_engine, get_engine
from triangle_engine.config.logging import setup_logging
from triangle_engine.config.settings import settings
from triangle_engine.models import Base

# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO")
setup_logging()


async def init_database() -> None:
    """Create all database tables."""
    logger.info(f"Connecting to database ({settings.environment})...")
    engine = get_engine()

    async with engine.begin() as conn:
        logger.info("Creating tables (checkfirst=True)...")
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    await dispose_engine()
    logger.success("Database tables created successfully!")


if __name__ == "__main__":
    asyncio.run(init_database())
