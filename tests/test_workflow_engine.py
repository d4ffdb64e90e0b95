# tests/test_workflow_engine.py
"""Tests for the confirmation-gate state machine and its end-to-end properties."""

import time

import pytest

from conftest import USER, Bot
from tradebot.domain.context import Services, StepContext, Transition
from tradebot.domain.engine import (
    TRANSITIONS,
    Signal,
    WorkflowEngine,
    WorkflowState,
    can_transition,
    next_state,
)
from tradebot.domain.classifier import RunCommand
from tradebot.domain.errors import ChainError, WorkflowWiringError
from tradebot.domain.messages import t
from tradebot.domain.registry import Action, ActionRegistry, InputKind, Step
from tradebot.domain.session import Session
from tradebot.infrastructure.cache.session_cache import InMemorySessionStore

S = WorkflowState


def _assert_no_orphan_data(session):
    if session.current_action is None:
        assert session.temp_data == {}


# ── Transition table ──────────────────────────────────────────────────

def test_confirm_yes_only_from_gate():
    assert next_state(S.AWAITING_CONFIRMATION, Signal.CONFIRM_YES) is S.EXECUTING
    for state in (S.IDLE, S.COLLECTING, S.EXECUTING):
        assert not can_transition(state, Signal.CONFIRM_YES)


def test_confirm_no_yields_idle():
    assert next_state(S.AWAITING_CONFIRMATION, Signal.CONFIRM_NO) is S.IDLE


def test_executing_only_commits():
    assert set(TRANSITIONS[S.EXECUTING]) == {Signal.COMMITTED}
    assert next_state(S.EXECUTING, Signal.COMMITTED) is S.IDLE


def test_illegal_transition_raises_wiring_error():
    with pytest.raises(WorkflowWiringError):
        next_state(S.EXECUTING, Signal.CANCEL)


def test_cancel_from_every_pending_state():
    for state in (S.COLLECTING, S.AWAITING_CONFIRMATION):
        assert next_state(state, Signal.CANCEL) is S.IDLE


# ── Round trip ────────────────────────────────────────────────────────

def test_buy_round_trip_visits_exact_states(event_loop, bot):
    run = event_loop.run_until_complete

    run(bot.command("buy"))
    run(bot.tap("token_ABC"))
    run(bot.say("1.5"))
    session = run(bot.session())
    assert session.current_action == "buy_confirm"
    assert session.temp_data == {"token": "ABC", "amount": 1.5}

    run(bot.tap("confirm_yes"))

    assert bot.observed == [
        (S.COLLECTING, "buy_token"),
        (S.COLLECTING, "buy_amount"),
        (S.AWAITING_CONFIRMATION, "buy_confirm"),
        (S.EXECUTING, "buy_confirm"),
        (S.IDLE, None),
    ]
    bot.chain.execute_trade.assert_awaited_once()
    args, kwargs = bot.chain.execute_trade.await_args
    assert args[1:] == ("ETH", "ABC", 1.5)
    assert kwargs == {"slippage": 1.0, "gas_priority": "medium"}
    session = run(bot.session())
    assert session.is_idle
    _assert_no_orphan_data(session)


def test_repeated_confirm_does_not_commit_twice(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.command("buy"))
    run(bot.tap("token_ABC"))
    run(bot.say("1.5"))
    run(bot.tap("confirm_yes"))
    second = run(bot.tap("confirm_yes"))

    assert bot.chain.execute_trade.await_count == 1
    assert (second, t("UNKNOWN_ACTION")) in bot.acks()


def test_confirm_no_never_commits(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.command("buy"))
    run(bot.tap("token_ABC"))
    run(bot.say("2"))
    run(bot.tap("confirm_no"))

    bot.chain.execute_trade.assert_not_awaited()
    assert bot.last_text() == t("BUY_CANCELLED")
    session = run(bot.session())
    assert session.is_idle
    _assert_no_orphan_data(session)


def test_commit_sees_idle_session_already_persisted(event_loop, bot):
    run = event_loop.run_until_complete
    seen = []

    async def record(*args, **kwargs):
        seen.append(await bot.store.get(USER))
        return bot.chain.execute_trade.return_value

    bot.chain.execute_trade.side_effect = record
    run(bot.command("buy"))
    run(bot.tap("token_ABC"))
    run(bot.say("1"))
    run(bot.tap("confirm_yes"))

    assert len(seen) == 1
    assert seen[0].is_idle


# ── Cancel ────────────────────────────────────────────────────────────

def test_cancel_while_collecting(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.command("buy"))
    run(bot.tap("token_ABC"))
    run(bot.command("cancel"))

    session = run(bot.session())
    assert session.is_idle
    _assert_no_orphan_data(session)
    assert bot.last_text() == t("CANCELLED")


def test_cancel_at_gate_via_text(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.command("withdraw"))
    run(bot.say("0x" + "12" * 20))
    run(bot.say("0.5"))
    run(bot.say("/cancel"))

    assert run(bot.session()).is_idle
    bot.chain.send_funds.assert_not_awaited()


def test_cancel_while_idle_is_noop(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.command("cancel"))

    assert bot.last_text() == t("NOTHING_TO_CANCEL")
    assert run(bot.session()).is_idle
    assert bot.observed == []


# ── Idle / unknown input ─────────────────────────────────────────────

def test_unknown_callback_leaves_state(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.command("buy"))
    before = run(bot.session())
    callback_id = run(bot.tap("foo_bar"))

    after = run(bot.session())
    assert (after.current_action, after.temp_data) == (before.current_action, before.temp_data)
    assert (callback_id, t("UNKNOWN_CALLBACK")) in bot.acks()


def test_hello_while_idle_shows_help(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.say("hello"))

    assert bot.last_text() == t("IDLE_HELP", chain="Base", native="ETH")
    assert run(bot.session()).is_idle


def test_text_while_button_pending_reprompts(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.command("buy"))
    run(bot.say("ABC"))

    assert bot.last_text() == t("SELECT_TOKEN_REPROMPT")
    assert run(bot.session()).current_action == "buy_token"


def test_unknown_command(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.command("moon"))
    assert bot.last_text() == t("UNKNOWN_COMMAND")


# ── Validation ────────────────────────────────────────────────────────

def test_invalid_amount_keeps_step(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.command("buy"))
    run(bot.tap("token_ABC"))
    run(bot.say("abc"))
    run(bot.say("-3"))

    session = run(bot.session())
    assert session.current_action == "buy_amount"
    assert session.temp_data == {"token": "ABC"}
    assert bot.texts()[-2:] == [t("INVALID_AMOUNT"), t("INVALID_AMOUNT")]
    bot.chain.quote.assert_not_awaited()


# ── Confirmation timeout ─────────────────────────────────────────────

def _age_session(event_loop, bot, seconds):
    session = event_loop.run_until_complete(bot.session())
    session.updated_at = time.time() - seconds
    event_loop.run_until_complete(bot.store.set(USER, session))


def test_expired_gate_does_not_commit(event_loop, bot):
    run = event_loop.run_until_complete
    run(bot.command("export"))
    _age_session(event_loop, bot, 3600)
    run(bot.tap("confirm_yes"))

    bot.crypto.decrypt.assert_not_called()
    assert bot.last_text() == t("CONFIRMATION_EXPIRED")
    assert run(bot.session()).is_idle


def test_timeout_disabled(event_loop):
    bot = Bot(confirmation_timeout=0)
    run = event_loop.run_until_complete
    run(bot.command("export"))
    _age_session(event_loop, bot, 3600)
    run(bot.tap("confirm_yes"))

    bot.crypto.decrypt.assert_called_once()


# ── Collaborator failures ────────────────────────────────────────────

def test_chain_error_while_collecting_clears_action(event_loop, bot):
    run = event_loop.run_until_complete
    bot.chain.quote.side_effect = ChainError("quote failed", user_message="No liquidity for ABC")
    run(bot.command("buy"))
    run(bot.tap("token_ABC"))
    run(bot.say("1"))

    session = run(bot.session())
    assert session.is_idle
    _assert_no_orphan_data(session)
    assert bot.last_text() == t("OPERATION_FAILED", reason="No liquidity for ABC")
    assert bot.observed[-1] == (S.IDLE, None)


def test_failed_commit_is_reported_and_not_retried(event_loop, bot):
    run = event_loop.run_until_complete
    bot.chain.execute_trade.side_effect = ChainError("reverted")
    run(bot.command("buy"))
    run(bot.tap("token_ABC"))
    run(bot.say("1"))
    run(bot.tap("confirm_yes"))
    run(bot.tap("confirm_yes"))

    assert bot.chain.execute_trade.await_count == 1
    assert t("OPERATION_FAILED", reason=ChainError.default_message) in bot.texts()
    assert run(bot.session()).is_idle


def test_storage_outage_reported(event_loop, bot):
    run = event_loop.run_until_complete
    bot.storage.fail = True
    run(bot.command("balance"))

    assert bot.last_text().startswith("❌ Storage is temporarily unavailable")


# ── Handler contract enforcement ─────────────────────────────────────

def _engine_with(action):
    registry = ActionRegistry()
    registry.register(action)
    registry.freeze()
    return WorkflowEngine(registry, InMemorySessionStore())


def _ctx(bot):
    return StepContext(user_id=USER, session=Session(), services=bot.services)


def test_undeclared_data_key_is_wiring_error(event_loop, bot):
    async def entry(ctx):
        return Transition.goto("pick", secret="x")

    action = Action(
        "leaky", "Leaky", entry=entry,
        steps=(Step("pick", InputKind.TEXT, entry, writes=frozenset({"token"})),),
    )
    engine = _engine_with(action)
    with pytest.raises(WorkflowWiringError):
        event_loop.run_until_complete(engine.execute(RunCommand("leaky"), _ctx(bot)))


def test_finish_with_data_is_wiring_error(event_loop, bot):
    async def entry(ctx):
        return Transition(None, {"token": "x"})

    engine = _engine_with(Action("odd", "Odd", entry=entry))
    with pytest.raises(WorkflowWiringError):
        event_loop.run_until_complete(engine.execute(RunCommand("odd"), _ctx(bot)))


def test_state_of(bot):
    engine = bot.engine
    assert engine.state_of(Session()) is S.IDLE
    assert engine.state_of(Session(current_action="sell_amount")) is S.COLLECTING
    assert engine.state_of(Session(current_action="withdraw_confirm")) is S.AWAITING_CONFIRMATION
