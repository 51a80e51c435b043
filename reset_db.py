# reset_db.py
import asyncio
import logging

from shared.db import engine, Base
from shared.logging import setup_logging

import services.school_management.models  # noqa: F401  registers the tables

logger = logging.getLogger("reset_db")


async def reset_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    logger.info("Database reset; run create_db.py to seed the superadmin")


if __name__ == "__main__":
    setup_logging()
    asyncio.run(reset_db())
