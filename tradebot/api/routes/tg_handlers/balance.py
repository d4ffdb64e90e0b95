# tradebot/api/routes/tg_handlers/balance.py
"""Balance and deposit screens (one-shot, no pending step)."""

from __future__ import annotations

from tradebot.domain.classifier import CallbackKind
from tradebot.domain.context import StepContext
from tradebot.domain.messages import t
from tradebot.domain.registry import Action


async def show_balance(ctx: StepContext):
    wallet = await ctx.require_wallet()
    if wallet is None:
        return None

    balances = await ctx.services.chain.get_balances(wallet.address)
    lines = [t("BALANCE_HEADER", address=wallet.address)]
    held = [b for b in balances if b.amount > 0]
    if held:
        lines.extend(t("BALANCE_LINE", symbol=b.symbol, amount=f"{b.amount:g}") for b in held)
    else:
        lines.append(t("BALANCE_EMPTY"))
    await ctx.reply("\n".join(lines))
    return None


async def show_deposit(ctx: StepContext):
    wallet = await ctx.require_wallet()
    if wallet is None:
        return None
    await ctx.reply(t("DEPOSIT", **ctx.fields(address=wallet.address)))
    return None


BALANCE = Action(
    "balance",
    "Show current token balances",
    entry=show_balance,
    launchers=frozenset({CallbackKind.CHECK_BALANCE}),
)
DEPOSIT = Action(
    "deposit",
    "Show your deposit address",
    entry=show_deposit,
    launchers=frozenset({CallbackKind.DEPOSIT}),
)
