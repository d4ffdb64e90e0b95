# tests/test_dispatcher.py
"""Tests for the dispatcher boundary: acknowledgement, error containment, resets."""

from unittest.mock import AsyncMock

from conftest import USER
from tradebot.domain.classifier import CallbackEvent, TextEvent
from tradebot.domain.errors import StorageUnavailable
from tradebot.domain.messages import t
from tradebot.domain.session import Session


def test_callback_always_acknowledged(event_loop, bot):
    callback_id = event_loop.run_until_complete(bot.tap("check_balance"))
    assert bot.acks() == [(callback_id, None)]


def test_callback_acknowledged_once_with_text(event_loop, bot):
    callback_id = event_loop.run_until_complete(bot.tap("confirm_yes"))
    assert bot.acks() == [(callback_id, t("UNKNOWN_ACTION"))]


def test_unexpected_error_is_contained(event_loop, bot):
    bot.chain.get_balances.side_effect = RuntimeError("boom")
    callback_id = event_loop.run_until_complete(bot.tap("check_balance"))

    assert bot.last_text() == t("GENERIC_ERROR")
    assert (callback_id, None) in bot.acks()


def test_failure_after_acknowledge_does_not_answer_twice(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.command("buy"))
    run(bot.tap("token_ABC"))
    run(bot.say("1"))
    bot.chain.execute_trade.side_effect = RuntimeError("boom")
    callback_id = run(bot.tap("confirm_yes"))

    assert bot.last_text() == t("GENERIC_ERROR")
    assert [ack for ack in bot.acks() if ack[0] == callback_id] == [(callback_id, None)]
    assert run(bot.session()).is_idle


def test_next_event_processed_after_failure(event_loop, bot):
    run = event_loop.run_until_complete
    bot.chain.get_balances.side_effect = RuntimeError("boom")
    run(bot.command("balance"))

    bot.chain.get_balances.side_effect = None
    run(bot.command("balance"))
    assert "ETH: 2" in bot.last_text()


def test_unknown_step_in_session_resets_user(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.store.set(USER, Session(current_action="ghost_step", temp_data={"x": 1})))
    run(bot.say("hello"))

    assert bot.last_text() == t("GENERIC_ERROR")
    session = run(bot.session())
    assert session.is_idle
    assert session.temp_data == {}


def test_session_store_outage_is_contained(event_loop, bot):
    bot.store.get = AsyncMock(side_effect=StorageUnavailable("redis down"))
    event_loop.run_until_complete(bot.dispatcher.dispatch(TextEvent(USER, "hi")))

    assert bot.last_text() == t("GENERIC_ERROR")


def test_transport_failure_does_not_escape(event_loop, bot):
    bot.transport.reply.side_effect = RuntimeError("telegram down")
    event = CallbackEvent(USER, "check_balance", "cb-x", 7)

    # must not raise
    event_loop.run_until_complete(bot.dispatcher.dispatch(event))
    bot.transport.acknowledge.assert_awaited_with("cb-x", None)


def test_session_persisted_per_user(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.command("buy"))
    run(bot.dispatcher.dispatch(TextEvent("2002", "hello")))

    assert run(bot.store.get(USER)).current_action == "buy_token"
    assert run(bot.store.get("2002")).is_idle
