# tradebot/api/routes/tg_handlers/withdraw.py
"""
Withdraw the native coin to an external address.

States handled:
    withdraw_address  - waiting for the destination address
    withdraw_amount   - waiting for the amount (bounded by the native balance)
    withdraw_confirm  - confirmation gate; commit sends the funds
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from tradebot.domain import keyboards
from tradebot.domain.classifier import CallbackKind
from tradebot.domain.context import StepContext, Transition
from tradebot.domain.messages import t
from tradebot.domain.registry import Action, InputKind, Step
from tradebot.domain.validators import parse_address, parse_amount

logger = logging.getLogger("tg_handlers.withdraw")

WITHDRAW_ADDRESS = "withdraw_address"
WITHDRAW_AMOUNT = "withdraw_amount"
WITHDRAW_CONFIRM = "withdraw_confirm"


async def _native_balance(ctx: StepContext) -> Optional[float]:
    address = ctx.session.wallet_address
    if address is None:
        wallet = await ctx.services.storage.load_wallet(ctx.user_id)
        if wallet is None:
            return None
        address = wallet.address
    native = ctx.settings.NATIVE_SYMBOL
    for balance in await ctx.services.chain.get_balances(address):
        if balance.symbol == native:
            return balance.amount
    return None


async def start_withdraw(ctx: StepContext):
    wallet = await ctx.require_wallet()
    if wallet is None:
        return None
    await ctx.reply(t("WITHDRAW_ENTER_ADDRESS"))
    return Transition.goto(WITHDRAW_ADDRESS)


async def on_address(ctx: StepContext, text: str):
    to = parse_address(text)
    balance = await _native_balance(ctx)
    native = ctx.settings.NATIVE_SYMBOL
    hint = f"\nAvailable: {balance:g} {native}" if balance is not None else ""

    await ctx.reply(t("WITHDRAW_ENTER_AMOUNT", **ctx.fields(balance_hint=hint)))
    return Transition.goto(WITHDRAW_AMOUNT, to=to, balance=balance)


async def on_amount(ctx: StepContext, text: str):
    native = ctx.settings.NATIVE_SYMBOL
    amount = parse_amount(text, balance=ctx.data.get("balance"), symbol=native)
    await ctx.reply(
        t("WITHDRAW_CONFIRM", **ctx.fields(amount=f"{amount:g}", to=ctx.data["to"])),
        keyboards.confirm(),
    )
    return Transition.goto(WITHDRAW_CONFIRM, amount=amount)


async def commit_withdraw(ctx: StepContext, data: Mapping[str, Any]) -> None:
    storage = ctx.services.storage
    wallet = await storage.load_wallet(ctx.user_id)
    if wallet is None:
        await ctx.reply(t("NO_WALLET"))
        return
    user = await storage.load_user(ctx.user_id)

    to, amount = data["to"], data["amount"]
    result = await ctx.services.chain.send_funds(wallet, to, amount, gas_priority=user.gas_priority)
    logger.info("Withdraw %s to %s by user %s: tx=%s", amount, to, ctx.user_id, result.tx_hash)
    await ctx.edit_or_reply(
        t("WITHDRAW_DONE", **ctx.fields(amount=f"{amount:g}", to=to, tx_hash=result.tx_hash))
    )


WITHDRAW = Action(
    "withdraw",
    "Withdraw the native coin to another address",
    entry=start_withdraw,
    steps=(
        Step(WITHDRAW_ADDRESS, InputKind.TEXT, on_address, writes=frozenset({"to", "balance"})),
        Step(WITHDRAW_AMOUNT, InputKind.TEXT, on_amount, writes=frozenset({"amount"})),
        Step(WITHDRAW_CONFIRM, InputKind.CONFIRM),
    ),
    commit=commit_withdraw,
    launchers=frozenset({CallbackKind.WITHDRAW}),
    cancelled_message="WITHDRAW_CANCELLED",
)
