# tests/test_wallet_flows.py
"""Tests for start/help and the wallet lifecycle: create, import, export."""

from conftest import ADDRESS, PRIVATE_KEY, USER
from tradebot.domain.errors import CryptoError
from tradebot.domain.messages import t
from tradebot.domain.ports import WalletRecord

OTHER_ADDRESS = "0x" + "cd" * 20


# ── /start and /help ──────────────────────────────────────────────────

def test_start_without_wallet_offers_setup(event_loop, bot_without_wallet):
    bot = bot_without_wallet
    event_loop.run_until_complete(bot.command("start"))

    assert bot.last_text() == t("WELCOME_NO_WALLET", chain="Base")
    _user, _text, markup = bot.transport.reply.await_args.args
    tokens = [b["callback_data"] for row in markup["inline_keyboard"] for b in row]
    assert tokens == ["create_wallet", "import_wallet"]
    assert USER in bot.storage.users


def test_start_with_wallet_shows_main_menu(event_loop, bot):
    event_loop.run_until_complete(bot.command("start"))

    assert bot.last_text() == t("WELCOME", chain="Base")
    assert event_loop.run_until_complete(bot.session()).wallet_address == ADDRESS


def test_help_button(event_loop, bot):
    event_loop.run_until_complete(bot.tap("help"))
    assert bot.last_text().startswith("🤖 *Base Trading Bot Help*")


def test_wallet_shows_address_and_kind(event_loop, bot):
    event_loop.run_until_complete(bot.command("wallet"))
    assert bot.last_text() == t("WALLET_INFO", address=ADDRESS, kind="Generated")


# ── /create ───────────────────────────────────────────────────────────

def test_create_without_existing_wallet(event_loop, bot_without_wallet):
    bot = bot_without_wallet
    event_loop.run_until_complete(bot.command("create"))

    wallet = bot.storage.wallets[USER]
    assert wallet.address == ADDRESS
    assert wallet.encrypted_secret == f"enc:{PRIVATE_KEY}"
    assert wallet.kind == "generated"
    assert bot.last_text() == t("WALLET_CREATED", address=ADDRESS)
    assert event_loop.run_until_complete(bot.session()).is_idle


def test_create_with_existing_wallet_asks_to_replace(event_loop, bot):
    event_loop.run_until_complete(bot.tap("create_wallet"))

    assert bot.last_text() == t("WALLET_EXISTS_CREATE")
    assert event_loop.run_until_complete(bot.session()).current_action == "create_replace"
    bot.crypto.generate_secret.assert_not_called()


def test_confirm_replace_creates_new_wallet(event_loop, bot):
    run = event_loop.run_until_complete
    bot.crypto.derive_address.return_value = OTHER_ADDRESS
    run(bot.command("create"))
    run(bot.tap("confirm_create_wallet"))

    assert bot.storage.wallets[USER].address == OTHER_ADDRESS
    session = run(bot.session())
    assert session.is_idle
    assert session.wallet_address == OTHER_ADDRESS


def test_cancel_replace_keeps_wallet(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.command("create"))
    run(bot.tap("cancel_create_wallet"))

    assert bot.storage.wallets[USER].address == ADDRESS
    assert bot.last_text() == t("WALLET_REPLACE_CANCELLED")
    assert run(bot.session()).is_idle


def test_replace_decision_without_pending_step_is_expired(event_loop, bot):
    callback_id = event_loop.run_until_complete(bot.tap("confirm_create_wallet"))

    assert (callback_id, t("EXPIRED_BUTTON")) in bot.acks()
    bot.crypto.generate_secret.assert_not_called()


# ── /import ───────────────────────────────────────────────────────────

def test_import_happy_path(event_loop, bot_without_wallet):
    bot = bot_without_wallet
    run = event_loop.run_until_complete
    run(bot.command("import"))
    assert run(bot.session()).current_action == "import_wallet"

    run(bot.say(PRIVATE_KEY[2:]))

    bot.crypto.derive_address.assert_called_once_with(PRIVATE_KEY)
    wallet = bot.storage.wallets[USER]
    assert wallet == WalletRecord(USER, ADDRESS, f"enc:{PRIVATE_KEY}", kind="imported")
    assert bot.last_text() == t("WALLET_IMPORTED", address=ADDRESS)
    assert run(bot.session()).is_idle


def test_import_rejects_malformed_key(event_loop, bot_without_wallet):
    bot = bot_without_wallet
    run = event_loop.run_until_complete
    run(bot.command("import"))
    run(bot.say("0x1234"))

    assert bot.last_text() == t("IMPORT_INVALID_KEY")
    assert run(bot.session()).current_action == "import_wallet"
    assert USER not in bot.storage.wallets


def test_import_crypto_error_clears_action(event_loop, bot_without_wallet):
    bot = bot_without_wallet
    run = event_loop.run_until_complete
    bot.crypto.derive_address.side_effect = CryptoError("bad key", user_message="Invalid private key.")
    run(bot.command("import"))
    run(bot.say("f" * 64))

    assert bot.last_text() == t("OPERATION_FAILED", reason="Invalid private key.")
    assert run(bot.session()).is_idle


def test_import_over_existing_wallet(event_loop, bot):
    run = event_loop.run_until_complete
    bot.crypto.derive_address.return_value = OTHER_ADDRESS
    run(bot.command("import"))
    assert run(bot.session()).current_action == "import_replace"

    run(bot.tap("confirm_import_wallet"))
    assert run(bot.session()).current_action == "import_wallet"

    run(bot.say("ab" * 32))
    assert bot.storage.wallets[USER].address == OTHER_ADDRESS
    assert bot.storage.wallets[USER].kind == "imported"


def test_private_key_not_echoed_before_import(event_loop, bot_without_wallet):
    bot = bot_without_wallet
    event_loop.run_until_complete(bot.command("import"))
    event_loop.run_until_complete(bot.say(PRIVATE_KEY))

    assert not any(PRIVATE_KEY in text for text in bot.texts())


# ── /export (sensitive) ──────────────────────────────────────────────

def test_export_requires_confirmation(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.tap("export_key"))

    assert bot.last_text() == t("EXPORT_WARNING")
    assert run(bot.session()).current_action == "export_wallet"
    bot.crypto.decrypt.assert_not_called()

    run(bot.tap("confirm_yes"))
    assert bot.last_text() == t("EXPORT_REVEAL", secret=PRIVATE_KEY)
    assert run(bot.session()).is_idle


def test_export_declined(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.command("export"))
    run(bot.tap("confirm_no"))

    bot.crypto.decrypt.assert_not_called()
    assert bot.last_text() == t("EXPORT_CANCELLED")


def test_export_without_wallet(event_loop, bot_without_wallet):
    bot = bot_without_wallet
    event_loop.run_until_complete(bot.command("export"))

    assert bot.last_text() == t("NO_WALLET")
    assert event_loop.run_until_complete(bot.session()).is_idle
