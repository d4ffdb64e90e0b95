# tradebot/api/routes/tg_handlers/buy.py
"""
Buy flow: spend the native coin on a token.

States handled:
    buy_token         - waiting for a token button (token_<SYM> / token_custom)
    buy_custom_token  - waiting for a token contract address as text
    buy_amount        - waiting for the amount of native coin to spend
    buy_confirm       - confirmation gate; commit executes the swap
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from tradebot.domain import keyboards
from tradebot.domain.classifier import CallbackAction, CallbackKind
from tradebot.domain.context import StepContext, Transition
from tradebot.domain.messages import t
from tradebot.domain.registry import Action, InputKind, Step
from tradebot.domain.validators import parse_address, parse_amount

logger = logging.getLogger("tg_handlers.buy")

BUY_TOKEN = "buy_token"
BUY_CUSTOM_TOKEN = "buy_custom_token"
BUY_AMOUNT = "buy_amount"
BUY_CONFIRM = "buy_confirm"

CUSTOM = "custom"


def token_ref(ctx: StepContext, token: str) -> str:
    """Contract address for a known symbol; custom tokens are already addresses."""
    return ctx.settings.SUPPORTED_TOKENS.get(token, token)


async def start_buy(ctx: StepContext):
    wallet = await ctx.require_wallet()
    if wallet is None:
        return None
    await ctx.reply(t("BUY_SELECT_TOKEN"), keyboards.buy_tokens(ctx.settings.SUPPORTED_TOKENS))
    return Transition.goto(BUY_TOKEN)


async def on_token(ctx: StepContext, decoded: CallbackAction):
    if decoded.value == CUSTOM:
        await ctx.edit_or_reply(t("ENTER_TOKEN_ADDRESS"))
        return Transition.goto(BUY_CUSTOM_TOKEN)

    symbol = decoded.value
    await ctx.edit_or_reply(t("BUY_ENTER_AMOUNT", **ctx.fields(token=symbol)))
    return Transition.goto(BUY_AMOUNT, token=symbol)


async def on_custom_token(ctx: StepContext, text: str):
    address = parse_address(text)
    await ctx.reply(t("BUY_ENTER_AMOUNT", **ctx.fields(token=address)))
    return Transition.goto(BUY_AMOUNT, token=address)


async def on_amount(ctx: StepContext, text: str):
    amount = parse_amount(text)
    token = ctx.data["token"]
    native = ctx.settings.NATIVE_SYMBOL

    quote = await ctx.services.chain.quote(native, token_ref(ctx, token), amount)
    user = await ctx.services.storage.load_user(ctx.user_id)
    await ctx.reply(
        t(
            "BUY_CONFIRM",
            **ctx.fields(
                amount=f"{amount:g}",
                amount_out=f"{quote.amount_out:g}",
                token=token,
                impact=f"{quote.price_impact:.2f}",
                slippage=f"{user.slippage:g}",
            ),
        ),
        keyboards.confirm(),
    )
    return Transition.goto(BUY_CONFIRM, amount=amount)


async def commit_buy(ctx: StepContext, data: Mapping[str, Any]) -> None:
    storage = ctx.services.storage
    wallet = await storage.load_wallet(ctx.user_id)
    if wallet is None:
        await ctx.reply(t("NO_WALLET"))
        return
    user = await storage.load_user(ctx.user_id)

    token, amount = data["token"], data["amount"]
    result = await ctx.services.chain.execute_trade(
        wallet,
        ctx.settings.NATIVE_SYMBOL,
        token_ref(ctx, token),
        amount,
        slippage=user.slippage,
        gas_priority=user.gas_priority,
    )
    logger.info("Buy %s for %s by user %s: tx=%s", token, amount, ctx.user_id, result.tx_hash)
    await ctx.edit_or_reply(
        t("BUY_DONE", **ctx.fields(token=token, amount=f"{amount:g}", tx_hash=result.tx_hash))
    )


BUY = Action(
    "buy",
    "Buy tokens with the native coin",
    entry=start_buy,
    steps=(
        Step(
            BUY_TOKEN,
            InputKind.CALLBACK,
            on_token,
            accepts=frozenset({CallbackKind.TOKEN}),
            writes=frozenset({"token"}),
            reprompt="SELECT_TOKEN_REPROMPT",
        ),
        Step(BUY_CUSTOM_TOKEN, InputKind.TEXT, on_custom_token, writes=frozenset({"token"})),
        Step(BUY_AMOUNT, InputKind.TEXT, on_amount, writes=frozenset({"amount"})),
        Step(BUY_CONFIRM, InputKind.CONFIRM),
    ),
    commit=commit_buy,
    launchers=frozenset({CallbackKind.BUY_MENU}),
    cancelled_message="BUY_CANCELLED",
)
