# tradebot/api/routes/tg_handlers/settings_handler.py
"""
Trading settings: slippage and gas priority.

States handled:
    settings_slippage  - waiting for a slippage_<value> button
    settings_gas       - waiting for a gas_<priority> button

``settings_back`` closes a pending submenu and shows the main menu.
"""

from __future__ import annotations

import logging

from tradebot.domain import keyboards
from tradebot.domain.classifier import CallbackAction, CallbackKind
from tradebot.domain.context import StepContext, Transition
from tradebot.domain.messages import t
from tradebot.domain.registry import Action, InputKind, Step
from tradebot.domain.validators import check_slippage

logger = logging.getLogger("tg_handlers.settings")

SETTINGS_SLIPPAGE = "settings_slippage"
SETTINGS_GAS = "settings_gas"

_SUBMENUS = (SETTINGS_SLIPPAGE, SETTINGS_GAS)


async def open_settings(ctx: StepContext):
    storage = ctx.services.storage
    option = ctx.callback.value if ctx.callback and ctx.callback.kind is CallbackKind.SETTINGS else None

    if option == "back":
        await ctx.edit_or_reply(t("MAIN_MENU", **ctx.fields()), keyboards.main_menu())
        if ctx.session.current_action in _SUBMENUS:
            return Transition.finish()
        return None

    user = await storage.load_user(ctx.user_id)
    if option == "slippage":
        await ctx.edit_or_reply(
            t("SETTINGS_SLIPPAGE", slippage=f"{user.slippage:g}"), keyboards.slippage_options()
        )
        return Transition.goto(SETTINGS_SLIPPAGE)
    if option == "gasPriority":
        await ctx.edit_or_reply(
            t("SETTINGS_GAS", gas_priority=user.gas_priority), keyboards.gas_options()
        )
        return Transition.goto(SETTINGS_GAS)

    await ctx.reply(
        t("SETTINGS_MENU", slippage=f"{user.slippage:g}", gas_priority=user.gas_priority),
        keyboards.settings_menu(),
    )
    return None


async def on_slippage(ctx: StepContext, decoded: CallbackAction):
    value = check_slippage(decoded.number)
    storage = ctx.services.storage
    user = await storage.load_user(ctx.user_id)
    user.slippage = value
    await storage.save_user(user)

    logger.info("User %s slippage -> %s", ctx.user_id, value)
    await ctx.edit_or_reply(t("SLIPPAGE_UPDATED", slippage=f"{value:g}"), keyboards.settings_menu())
    return Transition.finish()


async def on_gas(ctx: StepContext, decoded: CallbackAction):
    storage = ctx.services.storage
    user = await storage.load_user(ctx.user_id)
    user.gas_priority = decoded.value
    await storage.save_user(user)

    logger.info("User %s gas priority -> %s", ctx.user_id, decoded.value)
    await ctx.edit_or_reply(t("GAS_UPDATED", gas_priority=decoded.value), keyboards.settings_menu())
    return Transition.finish()


SETTINGS = Action(
    "settings",
    "Change slippage and gas priority",
    entry=open_settings,
    steps=(
        Step(SETTINGS_SLIPPAGE, InputKind.CALLBACK, on_slippage, accepts=frozenset({CallbackKind.SLIPPAGE})),
        Step(SETTINGS_GAS, InputKind.CALLBACK, on_gas, accepts=frozenset({CallbackKind.GAS})),
    ),
    launchers=frozenset({CallbackKind.OPEN_SETTINGS, CallbackKind.SETTINGS}),
)
