# tradebot/bootstrap.py
"""
Process wiring shared by the webhook app and the long-polling runner.

The registry and session store are built before the first event is
dispatched; ``shutdown_runtime`` closes the store and disposes the engine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from tradebot.api.routes.tg_handlers import build_registry
from tradebot.core.config import Settings
from tradebot.core.db import create_tables, make_engine, make_session_factory
from tradebot.domain.context import Services
from tradebot.domain.dispatcher import Dispatcher
from tradebot.domain.engine import WorkflowEngine
from tradebot.domain.ports import SessionStore
from tradebot.infrastructure.cache.session_cache import InMemorySessionStore, RedisSessionStore
from tradebot.infrastructure.crypto.wallet_crypto import WalletCrypto, verify_encryption_key
from tradebot.infrastructure.db.repositories import SqlStorage
from tradebot.infrastructure.external.chain_gateway_client import ChainGatewayClient
from tradebot.infrastructure.external.telegram_client import TelegramAPIError, TelegramClient

logger = logging.getLogger("bootstrap")


@dataclass
class Runtime:
    settings: Settings
    db_engine: AsyncEngine
    store: SessionStore
    dispatcher: Dispatcher
    transport: TelegramClient


def make_session_store(settings: Settings) -> SessionStore:
    backend = settings.SESSION_BACKEND.lower()
    if backend == "redis":
        return RedisSessionStore(settings.REDIS_URL, ttl_seconds=settings.SESSION_TTL_SECONDS)
    if backend == "memory":
        logger.warning("Using in-memory session store; sessions are lost on restart")
        return InMemorySessionStore()
    raise RuntimeError(f"Unknown SESSION_BACKEND {settings.SESSION_BACKEND!r}")


async def build_runtime(settings: Settings) -> Runtime:
    verify_encryption_key(settings.WALLET_ENCRYPTION_KEY)

    db_engine = make_engine(settings.DATABASE_URL)
    await create_tables(db_engine)
    storage = SqlStorage(
        make_session_factory(db_engine),
        default_slippage=settings.DEFAULT_SLIPPAGE,
        default_gas_priority=settings.DEFAULT_GAS_PRIORITY,
    )

    crypto = WalletCrypto(settings.WALLET_ENCRYPTION_KEY)
    chain = ChainGatewayClient(settings.CHAIN_GATEWAY_URL, crypto, api_key=settings.CHAIN_GATEWAY_API_KEY)
    transport = TelegramClient(settings.TELEGRAM_BOT_TOKEN, settings.TELEGRAM_API_BASE)

    registry = build_registry()
    store = make_session_store(settings)
    workflow = WorkflowEngine(
        registry,
        store,
        confirmation_timeout=settings.CONFIRMATION_TIMEOUT_SECONDS,
    )
    services = Services(storage=storage, crypto=crypto, chain=chain, transport=transport, settings=settings)
    dispatcher = Dispatcher(registry, store, workflow, services)

    try:
        await transport.set_commands(registry.list_commands())
    except TelegramAPIError as exc:
        logger.warning("Could not publish bot commands: %s", exc)

    logger.info("Runtime ready (%d commands, session backend=%s)", len(registry.list_commands()), settings.SESSION_BACKEND)
    return Runtime(settings, db_engine, store, dispatcher, transport)


async def shutdown_runtime(runtime: Runtime) -> None:
    try:
        await runtime.store.close()
    finally:
        await runtime.db_engine.dispose()
    logger.info("Runtime stopped")
