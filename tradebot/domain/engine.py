# tradebot/domain/engine.py
"""
Workflow engine: the confirmation-gate state machine.

Per pending action the user is in one of four states:

    IDLE ──BEGIN──▶ COLLECTING ──GATE──▶ AWAITING_CONFIRMATION
                         │                   │ confirm_yes      │ confirm_no
                         └──FINISH──▶ IDLE   ▼                  ▼
                                         EXECUTING ──────▶ IDLE

The state is derived from ``session.current_action``: no step means IDLE, a
gate step means AWAITING_CONFIRMATION, any other step means COLLECTING.
EXECUTING only exists while a commit handler runs; the session is persisted
as IDLE before the commit starts, so a commit runs at most once.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Dict, Optional

from tradebot.domain import keyboards
from tradebot.domain.classifier import (
    CallbackAction,
    CallbackKind,
    ContinueAction,
    Idle,
    ResolvedIntent,
    RunCallback,
    RunCommand,
    UnknownCallbackIntent,
    UnknownCommandIntent,
)
from tradebot.domain.context import StepContext, Transition
from tradebot.domain.errors import (
    CollaboratorError,
    StaleConfirmation,
    ValidationError,
    WorkflowWiringError,
)
from tradebot.domain.messages import t
from tradebot.domain.ports import SessionStore
from tradebot.domain.registry import Action, ActionRegistry, Step
from tradebot.domain.session import Session

logger = logging.getLogger("domain.engine")

CANCEL_COMMAND = "cancel"


class WorkflowState(str, Enum):
    IDLE = "idle"
    COLLECTING = "collecting"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    EXECUTING = "executing"


class Signal(str, Enum):
    BEGIN = "begin"            # enter a collecting step
    GATE = "gate"              # data complete, enter the confirmation gate
    FINISH = "finish"          # non-sensitive completion
    ABORT = "abort"            # collaborator failure
    CANCEL = "cancel"
    CONFIRM_YES = "confirm_yes"
    CONFIRM_NO = "confirm_no"
    COMMITTED = "committed"


_S = WorkflowState

TRANSITIONS: Dict[WorkflowState, Dict[Signal, WorkflowState]] = {
    _S.IDLE: {
        Signal.BEGIN: _S.COLLECTING,
        Signal.GATE: _S.AWAITING_CONFIRMATION,
        Signal.FINISH: _S.IDLE,
        Signal.ABORT: _S.IDLE,
    },
    _S.COLLECTING: {
        Signal.BEGIN: _S.COLLECTING,
        Signal.GATE: _S.AWAITING_CONFIRMATION,
        Signal.FINISH: _S.IDLE,
        Signal.ABORT: _S.IDLE,
        Signal.CANCEL: _S.IDLE,
    },
    _S.AWAITING_CONFIRMATION: {
        # another command may replace a pending gate
        Signal.BEGIN: _S.COLLECTING,
        Signal.GATE: _S.AWAITING_CONFIRMATION,
        Signal.FINISH: _S.IDLE,
        Signal.ABORT: _S.IDLE,
        Signal.CANCEL: _S.IDLE,
        Signal.CONFIRM_YES: _S.EXECUTING,
        Signal.CONFIRM_NO: _S.IDLE,
    },
    _S.EXECUTING: {
        Signal.COMMITTED: _S.IDLE,
    },
}


def next_state(state: WorkflowState, signal: Signal) -> WorkflowState:
    try:
        return TRANSITIONS[state][signal]
    except KeyError:
        raise WorkflowWiringError(f"Illegal transition {state.value} --{signal.value}-->") from None


def can_transition(state: WorkflowState, signal: Signal) -> bool:
    return signal in TRANSITIONS[state]


Observer = Callable[[str, WorkflowState, Optional[str]], None]


class WorkflowEngine:
    def __init__(
        self,
        registry: ActionRegistry,
        store: SessionStore,
        *,
        confirmation_timeout: Optional[float] = None,
        observer: Optional[Observer] = None,
    ) -> None:
        self._registry = registry
        self._store = store
        self._confirmation_timeout = confirmation_timeout or None
        self._observer = observer

    # ------------------------------------------------------------------
    # State inspection
    # ------------------------------------------------------------------

    def state_of(self, session: Session) -> WorkflowState:
        if session.current_action is None:
            return WorkflowState.IDLE
        _action, step = self._registry.locate(session.current_action)
        if step.is_gate:
            return WorkflowState.AWAITING_CONFIRMATION
        return WorkflowState.COLLECTING

    def _notify(self, ctx: StepContext, before: WorkflowState, after: WorkflowState) -> None:
        step = ctx.session.current_action
        logger.info("user=%s %s -> %s (step=%s)", ctx.user_id, before.value, after.value, step)
        if self._observer is not None:
            self._observer(ctx.user_id, after, step)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def execute(self, intent: ResolvedIntent, ctx: StepContext) -> Session:
        """Run one resolved intent against ``ctx.session`` and return it."""
        try:
            if isinstance(intent, RunCommand):
                await self._run_command(intent.name, ctx)
            elif isinstance(intent, RunCallback):
                await self._run_callback(intent.decoded, ctx)
            elif isinstance(intent, ContinueAction):
                await self._continue(intent, ctx)
            elif isinstance(intent, Idle):
                await self._idle(intent, ctx)
            elif isinstance(intent, UnknownCallbackIntent):
                await ctx.acknowledge(t("UNKNOWN_CALLBACK"))
            elif isinstance(intent, UnknownCommandIntent):
                await ctx.reply(t("UNKNOWN_COMMAND"))
            else:
                raise WorkflowWiringError(f"Unhandled intent {intent!r}")
        except ValidationError as exc:
            # same step stays pending, no retry counter
            await ctx.reply(exc.message)
        except StaleConfirmation:
            logger.info("Stale confirmation from user=%s", ctx.user_id)
            await ctx.acknowledge(t("UNKNOWN_ACTION"))
        except CollaboratorError as exc:
            logger.warning("Collaborator failure for user=%s: %s", ctx.user_id, exc)
            self._abort(ctx)
            await ctx.reply(t("OPERATION_FAILED", reason=exc.user_message))
        return ctx.session

    # ------------------------------------------------------------------
    # Intent handlers
    # ------------------------------------------------------------------

    async def _run_command(self, name: str, ctx: StepContext) -> None:
        if name == CANCEL_COMMAND:
            await self.cancel(ctx)
            return
        await self._start(self._registry.resolve(name), ctx)

    async def _run_callback(self, decoded: CallbackAction, ctx: StepContext) -> None:
        if decoded.kind is CallbackKind.CONFIRM:
            await self._resolve_gate(decoded.value == "yes", ctx)
            return

        session = ctx.session
        if session.current_action is not None:
            action, step = self._registry.locate(session.current_action)
            if decoded.kind in step.accepts:
                transition = await step.handler(ctx, decoded)
                self._apply(action, step, transition, ctx)
                return

        launcher = self._registry.launcher(decoded.kind)
        if launcher is not None:
            await self._start(launcher, ctx)
            return

        # step-bound button with no matching pending step
        logger.info("Expired %s button from user=%s", decoded.kind.value, ctx.user_id)
        await ctx.acknowledge(t("EXPIRED_BUTTON"))

    async def _continue(self, intent: ContinueAction, ctx: StepContext) -> None:
        action, step = self._registry.locate(intent.current_action)
        transition = await step.handler(ctx, intent.content)
        self._apply(action, step, transition, ctx)

    async def _idle(self, intent: Idle, ctx: StepContext) -> None:
        if intent.pending is not None:
            _action, step = self._registry.locate(intent.pending)
            await ctx.reply(t(step.reprompt or "USE_BUTTONS"))
            return
        await ctx.reply(t("IDLE_HELP", **ctx.fields()), keyboards.idle_menu())

    async def _start(self, action: Action, ctx: StepContext) -> None:
        if action.entry is None:
            raise WorkflowWiringError(f"Action {action.name!r} has no entry handler")
        transition = await action.entry(ctx)
        self._apply(action, None, transition, ctx)

    # ------------------------------------------------------------------
    # Cancel and confirmation gate
    # ------------------------------------------------------------------

    async def cancel(self, ctx: StepContext) -> None:
        session = ctx.session
        before = self.state_of(session)
        if before is WorkflowState.IDLE:
            await ctx.reply(t("NOTHING_TO_CANCEL"))
            return
        after = next_state(before, Signal.CANCEL)
        session.clear()
        self._notify(ctx, before, after)
        await ctx.reply(t("CANCELLED"))

    def _gate_expired(self, session: Session) -> bool:
        if self._confirmation_timeout is None:
            return False
        return (time.time() - session.updated_at) > self._confirmation_timeout

    async def _resolve_gate(self, approved: bool, ctx: StepContext) -> None:
        session = ctx.session
        before = self.state_of(session)
        if before is not WorkflowState.AWAITING_CONFIRMATION:
            raise StaleConfirmation()

        action, _gate = self._registry.locate(session.current_action)

        if self._gate_expired(session):
            session.clear()
            self._notify(ctx, before, WorkflowState.IDLE)
            await ctx.acknowledge()
            await ctx.edit_or_reply(t("CONFIRMATION_EXPIRED"))
            return

        if not approved:
            after = next_state(before, Signal.CONFIRM_NO)
            session.clear()
            self._notify(ctx, before, after)
            await ctx.acknowledge()
            await ctx.edit_or_reply(t(action.cancelled_message))
            return

        snapshot = dict(session.temp_data)
        executing = next_state(before, Signal.CONFIRM_YES)
        self._notify(ctx, before, executing)
        session.clear()
        # persist IDLE before committing so a replayed confirm finds no gate
        await self._store.set(ctx.user_id, session)
        await ctx.acknowledge()

        try:
            await action.commit(ctx, snapshot)
        except CollaboratorError as exc:
            logger.warning("Commit of %s failed for user=%s: %s", action.name, ctx.user_id, exc)
            await ctx.reply(t("OPERATION_FAILED", reason=exc.user_message))
        finally:
            self._notify(ctx, executing, next_state(executing, Signal.COMMITTED))

    # ------------------------------------------------------------------
    # Transition application
    # ------------------------------------------------------------------

    def _abort(self, ctx: StepContext) -> None:
        session = ctx.session
        if session.current_action is None:
            return
        before = self.state_of(session)
        after = next_state(before, Signal.ABORT)
        session.clear()
        self._notify(ctx, before, after)

    def _apply(
        self,
        action: Action,
        step: Optional[Step],
        transition: Optional[Transition],
        ctx: StepContext,
    ) -> None:
        """Apply a handler's transition; ``step`` is None for entry handlers."""
        if transition is None:
            return

        session = ctx.session
        before = self.state_of(session)

        if transition.next_step is None:
            if transition.data:
                raise WorkflowWiringError(f"{action.name}: finishing transition carries data")
            after = next_state(before, Signal.FINISH)
            session.clear()
            self._notify(ctx, before, after)
            return

        target_action, target = self._registry.locate(transition.next_step)
        if target_action is not action:
            raise WorkflowWiringError(
                f"{action.name}: step {target.name!r} belongs to {target_action.name!r}"
            )
        allowed = step.writes if step is not None else action.data_keys
        undeclared = set(transition.data) - allowed
        if undeclared:
            raise WorkflowWiringError(
                f"{action.name}: undeclared data keys {sorted(undeclared)}"
            )

        after = next_state(before, Signal.GATE if target.is_gate else Signal.BEGIN)
        if step is None:
            # a fresh action instance replaces whatever was pending
            session.temp_data = {}
        session.temp_data.update(transition.data)
        session.current_action = target.name
        session.touch()
        self._notify(ctx, before, after)
