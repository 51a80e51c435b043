# create_db.py
import asyncio
import logging

from sqlalchemy.future import select

from shared import config
from shared.auth import get_password_hash
from shared.db import engine, Base, SessionLocal
from shared.logging import setup_logging

# Import all models here so they are registered with SQLAlchemy's metadata
from services.school_management.models import User, UserRole

logger = logging.getLogger("create_db")


async def init_models():
    async with engine.begin() as conn:
        logger.info("Creating tables...")
        await conn.run_sync(Base.metadata.create_all)
        logger.info("Tables created.")


async def seed_superadmin():
    async with SessionLocal() as session:
        result = await session.execute(select(User).where(User.email == config.SUPERADMIN_EMAIL))
        if result.scalars().first():
            logger.info("Superadmin %s already exists", config.SUPERADMIN_EMAIL)
            return

        session.add(User(
            name=config.SUPERADMIN_NAME,
            email=config.SUPERADMIN_EMAIL,
            hashed_password=get_password_hash(config.SUPERADMIN_PASSWORD),
            role=UserRole.SUPERADMIN,
        ))
        await session.commit()
        logger.info("Superadmin %s created", config.SUPERADMIN_EMAIL)


async def main():
    await init_models()
    await seed_superadmin()
    await engine.dispose()


if __name__ == "__main__":
    setup_logging()
    asyncio.run(main())
