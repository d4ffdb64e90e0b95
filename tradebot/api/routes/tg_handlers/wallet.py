# tradebot/api/routes/tg_handlers/wallet.py
"""
Wallet lifecycle: show, create, import and export.

States handled:
    create_replace  - user already has a wallet; waiting for replace yes/no
    import_replace  - same decision before importing
    import_wallet   - waiting for the private key as text
    export_wallet   - confirmation gate before the key is revealed
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from tradebot.domain import keyboards
from tradebot.domain.classifier import CallbackAction, CallbackKind
from tradebot.domain.context import StepContext, Transition
from tradebot.domain.messages import t
from tradebot.domain.ports import WalletRecord
from tradebot.domain.registry import Action, InputKind, Step
from tradebot.domain.validators import parse_private_key

logger = logging.getLogger("tg_handlers.wallet")

CREATE_REPLACE = "create_replace"
IMPORT_REPLACE = "import_replace"
IMPORT_WALLET = "import_wallet"
EXPORT_WALLET = "export_wallet"


async def show_wallet(ctx: StepContext):
    wallet = await ctx.services.storage.load_wallet(ctx.user_id)
    if wallet is None:
        ctx.session.wallet_address = None
        await ctx.reply(t("NO_WALLET"), keyboards.wallet_setup())
        return None

    ctx.session.wallet_address = wallet.address
    await ctx.reply(
        t("WALLET_INFO", address=wallet.address, kind=wallet.kind.title()),
        keyboards.wallet_actions(),
    )
    return None


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

async def _create_wallet(ctx: StepContext) -> None:
    crypto = ctx.services.crypto
    secret = crypto.generate_secret()
    address = crypto.derive_address(secret)
    await ctx.services.storage.save_wallet(
        WalletRecord(ctx.user_id, address, crypto.encrypt(secret), kind="generated")
    )
    ctx.session.wallet_address = address
    logger.info("Created wallet %s for user %s", address, ctx.user_id)
    await ctx.reply(t("WALLET_CREATED", address=address), keyboards.main_menu())


async def start_create(ctx: StepContext):
    existing = await ctx.services.storage.load_wallet(ctx.user_id)
    if existing is not None:
        await ctx.reply(t("WALLET_EXISTS_CREATE"), keyboards.replace_wallet("create"))
        return Transition.goto(CREATE_REPLACE)

    await _create_wallet(ctx)
    return None


async def on_create_decision(ctx: StepContext, decoded: CallbackAction):
    if decoded.kind is CallbackKind.CONFIRM_CREATE_WALLET:
        ctx.session.wallet_address = None
        await _create_wallet(ctx)
    else:
        await ctx.edit_or_reply(t("WALLET_REPLACE_CANCELLED"))
    return Transition.finish()


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------

async def start_import(ctx: StepContext):
    existing = await ctx.services.storage.load_wallet(ctx.user_id)
    if existing is not None:
        await ctx.reply(t("WALLET_EXISTS_IMPORT"), keyboards.replace_wallet("import"))
        return Transition.goto(IMPORT_REPLACE)

    await ctx.reply(t("IMPORT_PROMPT"))
    return Transition.goto(IMPORT_WALLET)


async def on_import_decision(ctx: StepContext, decoded: CallbackAction):
    if decoded.kind is CallbackKind.CONFIRM_IMPORT_WALLET:
        ctx.session.wallet_address = None
        await ctx.edit_or_reply(t("IMPORT_PROMPT"))
        return Transition.goto(IMPORT_WALLET)

    await ctx.edit_or_reply(t("WALLET_REPLACE_CANCELLED"))
    return Transition.finish()


async def on_private_key(ctx: StepContext, text: str):
    secret = parse_private_key(text)
    crypto = ctx.services.crypto
    address = crypto.derive_address(secret)

    await ctx.services.storage.save_wallet(
        WalletRecord(ctx.user_id, address, crypto.encrypt(secret), kind="imported")
    )
    ctx.session.wallet_address = address
    logger.info("Imported wallet %s for user %s", address, ctx.user_id)
    await ctx.reply(t("WALLET_IMPORTED", address=address), keyboards.main_menu())
    return Transition.finish()


# ---------------------------------------------------------------------------
# Export (sensitive)
# ---------------------------------------------------------------------------

async def start_export(ctx: StepContext):
    wallet = await ctx.require_wallet()
    if wallet is None:
        return None
    await ctx.reply(t("EXPORT_WARNING"), keyboards.confirm())
    return Transition.goto(EXPORT_WALLET)


async def commit_export(ctx: StepContext, data: Mapping[str, Any]) -> None:
    wallet = await ctx.services.storage.load_wallet(ctx.user_id)
    if wallet is None:
        await ctx.reply(t("NO_WALLET"))
        return
    secret = ctx.services.crypto.decrypt(wallet.encrypted_secret)
    logger.info("Private key exported for user %s", ctx.user_id)
    await ctx.edit_or_reply(t("EXPORT_REVEAL", secret=secret))


WALLET = Action("wallet", "Show wallet address and type", entry=show_wallet)

CREATE = Action(
    "create",
    "Create a new wallet",
    entry=start_create,
    steps=(
        Step(
            CREATE_REPLACE,
            InputKind.CALLBACK,
            on_create_decision,
            accepts=frozenset({CallbackKind.CONFIRM_CREATE_WALLET, CallbackKind.CANCEL_CREATE_WALLET}),
        ),
    ),
    launchers=frozenset({CallbackKind.CREATE_WALLET}),
)

IMPORT = Action(
    "import",
    "Import wallet via private key",
    entry=start_import,
    steps=(
        Step(
            IMPORT_REPLACE,
            InputKind.CALLBACK,
            on_import_decision,
            accepts=frozenset({CallbackKind.CONFIRM_IMPORT_WALLET, CallbackKind.CANCEL_IMPORT_WALLET}),
        ),
        Step(IMPORT_WALLET, InputKind.TEXT, on_private_key),
    ),
    launchers=frozenset({CallbackKind.IMPORT_WALLET}),
)

EXPORT = Action(
    "export",
    "Display private key (with confirmation)",
    entry=start_export,
    steps=(Step(EXPORT_WALLET, InputKind.CONFIRM),),
    commit=commit_export,
    launchers=frozenset({CallbackKind.EXPORT_KEY}),
    cancelled_message="EXPORT_CANCELLED",
)
