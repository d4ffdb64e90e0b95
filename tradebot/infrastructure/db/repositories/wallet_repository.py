from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tradebot.infrastructure.db.models import Wallet


class WalletRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_user(self, user_id: str) -> Wallet | None:
        stmt = select(Wallet).where(Wallet.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(self, user_id: str, *, address: str, encrypted_secret: str, kind: str) -> Wallet:
        """Store the user's wallet, replacing any previous one."""
        wallet = await self.get_by_user(user_id)
        if wallet is None:
            wallet = Wallet(user_id=user_id)
            self.db.add(wallet)
        wallet.address = address
        wallet.encrypted_secret = encrypted_secret
        wallet.kind = kind
        await self.db.commit()
        return wallet
