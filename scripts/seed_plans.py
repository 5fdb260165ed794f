#!/usr/bin/env python3
"""Upsert the default plan catalog."""

import asyncio
import sys

from loguru import logger

from triangle_engine.config.database import dispose_engine, get_session_maker
from triangle_engine.config.logging import setup_logging
from triangle_engine.repositories.plan_repository import PlanRepository

# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO")
setup_logging()


async def seed_plans() -> None:
    """Create or update the King/Queen/Bishop/Knight plans."""
    session_maker = get_session_maker()

    async with session_maker() as session:
        try:
            plans = await PlanRepository(session).upsert_defaults()
            await session.commit()
        except Exception:
            await session.rollback()
            logger.exception("Failed to seed plans")
            raise

    for plan in plans:
        logger.info(
            f"{plan.name}: entry {plan.entry_price}, payout {plan.payout_amount}, "
            f"referral bonus {plan.referral_bonus_amount}"
        )

    await dispose_engine()
    logger.success(f"Seeded {len(plans)} plans")


if __name__ == "__main__":
    asyncio.run(seed_plans())
