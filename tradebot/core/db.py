from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from tradebot.core.config import settings
from tradebot.infrastructure.db.base import Base


def make_engine(url: str = None, **kwargs) -> AsyncEngine:
    return create_async_engine(url or settings.DATABASE_URL, echo=False, future=True, **kwargs)


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables(engine: AsyncEngine) -> None:
    # importing models registers them on Base.metadata
    from tradebot.infrastructure.db import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
