# shared/db.py
from datetime import datetime, timezone

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from shared import config

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


def build_engine(database_url: str, echo: bool = False):
    engine = create_async_engine(database_url, echo=echo)

    # SQLite ignores ON DELETE CASCADE / SET NULL unless asked per connection
    if database_url.startswith("sqlite"):
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def build_sessionmaker(bind) -> async_sessionmaker:
    return async_sessionmaker(bind=bind, class_=AsyncSession, expire_on_commit=False, autoflush=True)


engine = build_engine(config.DATABASE_URL, echo=config.DB_ECHO)
SessionLocal = build_sessionmaker(engine)


# Dependency to get a DB session per request
async def get_db():
    async with SessionLocal() as session:
        yield session
