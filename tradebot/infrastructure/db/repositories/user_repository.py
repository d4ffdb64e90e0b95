from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tradebot.infrastructure.db.models import User


class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_telegram_id(self, telegram_id: str) -> User | None:
        stmt = select(User).where(User.telegram_id == telegram_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(self, telegram_id: str, *, slippage: float, gas_priority: str) -> User:
        user = await self.get_by_telegram_id(telegram_id)
        if user:
            return user

        new_user = User(telegram_id=telegram_id, slippage=slippage, gas_priority=gas_priority)
        self.db.add(new_user)
        await self.db.commit()
        await self.db.refresh(new_user)
        return new_user

    async def update_preferences(self, telegram_id: str, *, slippage: float, gas_priority: str) -> User:
        user = await self.get_or_create(telegram_id, slippage=slippage, gas_priority=gas_priority)
        user.slippage = slippage
        user.gas_priority = gas_priority
        await self.db.commit()
        return user
