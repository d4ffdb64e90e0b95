# tests/test_settings_handler.py
"""Tests for settings_handler: slippage, gas priority and the back button."""

from conftest import USER
from tradebot.domain.messages import t


def test_settings_menu_shows_current_values(event_loop, bot):
    event_loop.run_until_complete(bot.tap("open_settings"))

    assert bot.last_text() == t("SETTINGS_MENU", slippage="1", gas_priority="medium")
    assert event_loop.run_until_complete(bot.session()).is_idle


def test_slippage_submenu_and_update(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.command("settings"))
    run(bot.tap("settings_slippage"))
    assert run(bot.session()).current_action == "settings_slippage"

    run(bot.tap("slippage_0.5"))

    assert bot.storage.users[USER].slippage == 0.5
    assert bot.last_text() == t("SLIPPAGE_UPDATED", slippage="0.5")
    assert run(bot.session()).is_idle


def test_out_of_range_slippage_keeps_submenu(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.tap("settings_slippage"))
    run(bot.tap("slippage_75"))

    assert bot.last_text() == t("INVALID_SLIPPAGE", low="0.1", high="50")
    assert run(bot.session()).current_action == "settings_slippage"
    assert bot.storage.users[USER].slippage == 1.0


def test_gas_priority_update(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.tap("settings_gasPriority"))
    assert run(bot.session()).current_action == "settings_gas"

    run(bot.tap("gas_high"))

    assert bot.storage.users[USER].gas_priority == "high"
    assert bot.last_text() == t("GAS_UPDATED", gas_priority="high")


def test_switch_submenu(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.tap("settings_slippage"))
    run(bot.tap("settings_gasPriority"))
    assert run(bot.session()).current_action == "settings_gas"


def test_back_closes_submenu(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.tap("settings_slippage"))
    run(bot.tap("settings_back"))

    assert run(bot.session()).is_idle
    assert bot.last_text() == t("MAIN_MENU", chain="Base")


def test_back_keeps_unrelated_pending_action(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.command("withdraw"))
    run(bot.tap("settings_back"))

    assert run(bot.session()).current_action == "withdraw_address"


def test_gas_button_without_submenu_is_expired(event_loop, bot):
    callback_id = event_loop.run_until_complete(bot.tap("gas_low"))

    assert (callback_id, t("EXPIRED_BUTTON")) in bot.acks()
    assert bot.storage.users == {}
