# tradebot/api/routes/tg_handlers/sell.py
"""
Sell flow: swap a held token back to the native coin.

States handled:
    sell_token         - waiting for a sell_token_<address> button
    sell_custom_token  - waiting for a token contract address as text
    sell_amount        - waiting for the amount to sell (bounded by balance)
    sell_confirm       - confirmation gate; commit executes the swap
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from tradebot.domain import keyboards
from tradebot.domain.classifier import CallbackAction, CallbackKind
from tradebot.domain.context import StepContext, Transition
from tradebot.domain.messages import t
from tradebot.domain.ports import TokenBalance
from tradebot.domain.registry import Action, InputKind, Step
from tradebot.domain.validators import parse_address, parse_amount

logger = logging.getLogger("tg_handlers.sell")

SELL_TOKEN = "sell_token"
SELL_CUSTOM_TOKEN = "sell_custom_token"
SELL_AMOUNT = "sell_amount"
SELL_CONFIRM = "sell_confirm"

CUSTOM = "custom"


async def _sellable(ctx: StepContext, address: str) -> List[TokenBalance]:
    native = ctx.settings.NATIVE_SYMBOL
    balances = await ctx.services.chain.get_balances(address)
    return [b for b in balances if b.address and b.amount > 0 and b.symbol != native]


def _find(balances: List[TokenBalance], token: str) -> Optional[TokenBalance]:
    token = token.lower()
    return next((b for b in balances if b.address and b.address.lower() == token), None)


async def start_sell(ctx: StepContext):
    wallet = await ctx.require_wallet()
    if wallet is None:
        return None

    tokens = await _sellable(ctx, wallet.address)
    prompt = "SELL_SELECT_TOKEN" if tokens else "SELL_NO_TOKENS"
    await ctx.reply(t(prompt), keyboards.sell_tokens(tokens))
    return Transition.goto(SELL_TOKEN)


async def _ask_amount(ctx: StepContext, token: str) -> Transition:
    wallet = await ctx.require_wallet()
    if wallet is None:
        return Transition.finish()

    held = _find(await _sellable(ctx, wallet.address), token)
    symbol = held.symbol if held else token
    balance = held.amount if held else None
    hint = f"\nBalance: {balance:g} {symbol}" if balance is not None else ""

    await ctx.edit_or_reply(t("SELL_ENTER_AMOUNT", token=symbol, balance_hint=hint))
    return Transition.goto(SELL_AMOUNT, token=token, symbol=symbol, balance=balance)


async def on_token(ctx: StepContext, decoded: CallbackAction):
    if decoded.value == CUSTOM:
        await ctx.edit_or_reply(t("ENTER_TOKEN_ADDRESS"))
        return Transition.goto(SELL_CUSTOM_TOKEN)
    return await _ask_amount(ctx, decoded.value)


async def on_custom_token(ctx: StepContext, text: str):
    return await _ask_amount(ctx, parse_address(text))


async def on_amount(ctx: StepContext, text: str):
    symbol = ctx.data.get("symbol", "")
    amount = parse_amount(text, balance=ctx.data.get("balance"), symbol=symbol)

    native = ctx.settings.NATIVE_SYMBOL
    quote = await ctx.services.chain.quote(ctx.data["token"], native, amount)
    user = await ctx.services.storage.load_user(ctx.user_id)
    await ctx.reply(
        t(
            "SELL_CONFIRM",
            **ctx.fields(
                amount=f"{amount:g}",
                token=symbol,
                amount_out=f"{quote.amount_out:g}",
                impact=f"{quote.price_impact:.2f}",
                slippage=f"{user.slippage:g}",
            ),
        ),
        keyboards.confirm(),
    )
    return Transition.goto(SELL_CONFIRM, amount=amount)


async def commit_sell(ctx: StepContext, data: Mapping[str, Any]) -> None:
    storage = ctx.services.storage
    wallet = await storage.load_wallet(ctx.user_id)
    if wallet is None:
        await ctx.reply(t("NO_WALLET"))
        return
    user = await storage.load_user(ctx.user_id)

    amount = data["amount"]
    result = await ctx.services.chain.execute_trade(
        wallet,
        data["token"],
        ctx.settings.NATIVE_SYMBOL,
        amount,
        slippage=user.slippage,
        gas_priority=user.gas_priority,
    )
    logger.info("Sell %s %s by user %s: tx=%s", amount, data["token"], ctx.user_id, result.tx_hash)
    await ctx.edit_or_reply(
        t("SELL_DONE", amount=f"{amount:g}", token=data.get("symbol"), tx_hash=result.tx_hash)
    )


_TOKEN_KEYS = frozenset({"token", "symbol", "balance"})

SELL = Action(
    "sell",
    "Sell tokens for the native coin",
    entry=start_sell,
    steps=(
        Step(
            SELL_TOKEN,
            InputKind.CALLBACK,
            on_token,
            accepts=frozenset({CallbackKind.SELL_TOKEN}),
            writes=_TOKEN_KEYS,
            reprompt="SELECT_TOKEN_REPROMPT",
        ),
        Step(SELL_CUSTOM_TOKEN, InputKind.TEXT, on_custom_token, writes=_TOKEN_KEYS),
        Step(SELL_AMOUNT, InputKind.TEXT, on_amount, writes=frozenset({"amount"})),
        Step(SELL_CONFIRM, InputKind.CONFIRM),
    ),
    commit=commit_sell,
    launchers=frozenset({CallbackKind.SELL_MENU}),
    cancelled_message="SELL_CANCELLED",
)
