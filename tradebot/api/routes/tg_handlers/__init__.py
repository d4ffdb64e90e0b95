# tradebot/api/routes/tg_handlers/__init__.py
"""
Telegram conversation handlers, one module per flow.

``build_registry`` wires every flow into a frozen ``ActionRegistry``.
Registration order is the order commands are published to Telegram.
"""

from __future__ import annotations

from tradebot.domain.registry import ActionRegistry

from . import balance, buy, sell, settings_handler, start_help, wallet, withdraw

ACTIONS = (
    start_help.START,
    start_help.HELP,
    wallet.WALLET,
    wallet.CREATE,
    wallet.IMPORT,
    wallet.EXPORT,
    balance.BALANCE,
    buy.BUY,
    sell.SELL,
    settings_handler.SETTINGS,
    balance.DEPOSIT,
    withdraw.WITHDRAW,
    start_help.CANCEL,
)


def build_registry() -> ActionRegistry:
    registry = ActionRegistry()
    for action in ACTIONS:
        registry.register(action)
    return registry.freeze()
