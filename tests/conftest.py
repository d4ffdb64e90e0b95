"""Shared test fixtures for the trading bot test suite."""

import asyncio
import dataclasses
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from tradebot.api.routes.tg_handlers import build_registry
from tradebot.core.config import Settings
from tradebot.domain.classifier import CallbackEvent, CommandEvent, TextEvent
from tradebot.domain.context import Services
from tradebot.domain.dispatcher import Dispatcher
from tradebot.domain.engine import WorkflowEngine
from tradebot.domain.errors import StorageUnavailable
from tradebot.domain.ports import Quote, TokenBalance, TxResult, UserRecord, WalletRecord
from tradebot.infrastructure.cache.session_cache import InMemorySessionStore

USER = "1001"
ADDRESS = "0x5ce9454909639D2D17A3F753ce7d93fa0b9aB12E"
PRIVATE_KEY = "0xb25c7db31feed9122727bf0939dc769a96564b2de4c4726d035b36ecf1e5b364"
ABC_ADDRESS = "0x" + "ab" * 20
DEST = "0x" + "12" * 20


@pytest.fixture(scope="session")
def event_loop():
    """Use a single event loop for the entire test session."""
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


class FakeStorage:
    """Dict-backed Storage port; set ``fail`` to simulate an outage."""

    def __init__(self):
        self.users = {}
        self.wallets = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise StorageUnavailable("database down")

    async def load_user(self, user_id: str) -> UserRecord:
        self._check()
        user = self.users.setdefault(user_id, UserRecord(user_id))
        return dataclasses.replace(user)

    async def save_user(self, user: UserRecord) -> None:
        self._check()
        self.users[user.user_id] = dataclasses.replace(user)

    async def load_wallet(self, user_id: str) -> Optional[WalletRecord]:
        self._check()
        return self.wallets.get(user_id)

    async def save_wallet(self, wallet: WalletRecord) -> None:
        self._check()
        self.wallets[wallet.user_id] = wallet


def make_crypto() -> MagicMock:
    crypto = MagicMock()
    crypto.generate_secret.return_value = PRIVATE_KEY
    crypto.derive_address.return_value = ADDRESS
    crypto.encrypt.side_effect = lambda secret: f"enc:{secret}"
    crypto.decrypt.side_effect = lambda encrypted: encrypted[len("enc:"):]
    return crypto


def make_chain() -> AsyncMock:
    chain = AsyncMock()
    chain.get_balances.return_value = [
        TokenBalance("ETH", None, 2.0),
        TokenBalance("ABC", ABC_ADDRESS, 100.0),
    ]
    chain.quote.return_value = Quote("ETH", "ABC", 1.5, 3000.0, 0.12)
    chain.execute_trade.return_value = TxResult("0xtrade")
    chain.send_funds.return_value = TxResult("0xsend")
    return chain


class Bot:
    """The full dispatch stack wired to fakes, driven one event at a time."""

    def __init__(self, *, wallet: bool = True, confirmation_timeout: Optional[float] = 600):
        self.settings = Settings()
        self.storage = FakeStorage()
        self.crypto = make_crypto()
        self.chain = make_chain()
        self.transport = AsyncMock()
        self.store = InMemorySessionStore()
        self.registry = build_registry()
        self.observed: List[tuple] = []
        self.engine = WorkflowEngine(
            self.registry,
            self.store,
            confirmation_timeout=confirmation_timeout,
            observer=lambda user_id, state, step: self.observed.append((state, step)),
        )
        self.services = Services(
            storage=self.storage,
            crypto=self.crypto,
            chain=self.chain,
            transport=self.transport,
            settings=self.settings,
        )
        self.dispatcher = Dispatcher(self.registry, self.store, self.engine, self.services)
        self._callbacks = 0
        if wallet:
            self.storage.wallets[USER] = WalletRecord(USER, ADDRESS, f"enc:{PRIVATE_KEY}")

    # -- events -----------------------------------------------------------

    async def command(self, name: str, *args: str) -> None:
        await self.dispatcher.dispatch(CommandEvent(USER, name, args))

    async def say(self, text: str) -> None:
        await self.dispatcher.dispatch(TextEvent(USER, text))

    async def tap(self, token: str, message_id: int = 42) -> str:
        self._callbacks += 1
        callback_id = f"cb{self._callbacks}"
        await self.dispatcher.dispatch(CallbackEvent(USER, token, callback_id, message_id))
        return callback_id

    async def session(self):
        return await self.store.get(USER)

    # -- transport inspection ---------------------------------------------

    def texts(self) -> List[str]:
        """Every text sent or edited, in order."""
        out = []
        for name, args, _kwargs in self.transport.mock_calls:
            if name == "reply":
                out.append(args[1])
            elif name == "edit_message":
                out.append(args[2])
        return out

    def last_text(self) -> str:
        return self.texts()[-1]

    def acks(self) -> List[tuple]:
        return [args for name, args, _kwargs in self.transport.mock_calls if name == "acknowledge"]


@pytest.fixture
def bot() -> Bot:
    return Bot()


@pytest.fixture
def bot_without_wallet() -> Bot:
    return Bot(wallet=False)
