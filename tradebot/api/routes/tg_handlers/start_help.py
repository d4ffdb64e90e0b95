# tradebot/api/routes/tg_handlers/start_help.py
"""
Start, help and cancel.

One-shot actions: none of them open a pending step.  ``/cancel`` is
resolved by the workflow engine itself; it is registered here only so it
appears on the command surface.
"""

from __future__ import annotations

import logging

from tradebot.domain import keyboards
from tradebot.domain.classifier import CallbackKind
from tradebot.domain.context import StepContext
from tradebot.domain.messages import t
from tradebot.domain.registry import Action

logger = logging.getLogger("tg_handlers.start_help")


async def start(ctx: StepContext):
    storage = ctx.services.storage
    await storage.load_user(ctx.user_id)

    wallet = await storage.load_wallet(ctx.user_id)
    if wallet is None:
        logger.info("New user %s without wallet", ctx.user_id)
        ctx.session.wallet_address = None
        await ctx.reply(t("WELCOME_NO_WALLET", **ctx.fields()), keyboards.wallet_setup())
        return None

    ctx.session.wallet_address = wallet.address
    await ctx.reply(t("WELCOME", **ctx.fields()), keyboards.main_menu())
    return None


async def show_help(ctx: StepContext):
    await ctx.reply(t("HELP", **ctx.fields()))
    return None


START = Action("start", "Start the bot and register", entry=start)
HELP = Action("help", "Show help", entry=show_help, launchers=frozenset({CallbackKind.HELP}))
CANCEL = Action("cancel", "Cancel current operation", entry=None)
