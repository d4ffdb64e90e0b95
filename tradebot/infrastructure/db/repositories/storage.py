"""``Storage`` adapter backed by the async SQLAlchemy repositories."""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tradebot.domain.errors import StorageUnavailable
from tradebot.domain.ports import UserRecord, WalletRecord
from tradebot.infrastructure.db.repositories.user_repository import UserRepository
from tradebot.infrastructure.db.repositories.wallet_repository import WalletRepository

logger = logging.getLogger("db.storage")


class SqlStorage:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        default_slippage: float = 1.0,
        default_gas_priority: str = "medium",
    ):
        self._session_factory = session_factory
        self._default_slippage = default_slippage
        self._default_gas_priority = default_gas_priority

    async def load_user(self, user_id: str) -> UserRecord:
        try:
            async with self._session_factory() as db:
                user = await UserRepository(db).get_or_create(
                    user_id,
                    slippage=self._default_slippage,
                    gas_priority=self._default_gas_priority,
                )
                return UserRecord(user.telegram_id, user.slippage, user.gas_priority)
        except SQLAlchemyError as exc:
            logger.exception("load_user failed for %s", user_id)
            raise StorageUnavailable(str(exc)) from exc

    async def save_user(self, user: UserRecord) -> None:
        try:
            async with self._session_factory() as db:
                await UserRepository(db).update_preferences(
                    user.user_id, slippage=user.slippage, gas_priority=user.gas_priority
                )
        except SQLAlchemyError as exc:
            logger.exception("save_user failed for %s", user.user_id)
            raise StorageUnavailable(str(exc)) from exc

    async def load_wallet(self, user_id: str) -> Optional[WalletRecord]:
        try:
            async with self._session_factory() as db:
                wallet = await WalletRepository(db).get_by_user(user_id)
        except SQLAlchemyError as exc:
            logger.exception("load_wallet failed for %s", user_id)
            raise StorageUnavailable(str(exc)) from exc
        if wallet is None:
            return None
        return WalletRecord(wallet.user_id, wallet.address, wallet.encrypted_secret, wallet.kind)

    async def save_wallet(self, wallet: WalletRecord) -> None:
        try:
            async with self._session_factory() as db:
                # wallets reference users; make sure the owner row exists
                await UserRepository(db).get_or_create(
                    wallet.user_id,
                    slippage=self._default_slippage,
                    gas_priority=self._default_gas_priority,
                )
                await WalletRepository(db).upsert(
                    wallet.user_id,
                    address=wallet.address,
                    encrypted_secret=wallet.encrypted_secret,
                    kind=wallet.kind,
                )
        except SQLAlchemyError as exc:
            logger.exception("save_wallet failed for %s", wallet.user_id)
            raise StorageUnavailable(str(exc)) from exc
