# tradebot/domain/registry.py
"""
Action registry.

Static table of every workflow the bot knows: its command surface, the
callback launchers that start it, its ordered steps and, for sensitive
actions, the commit handler behind the confirmation gate.  The registry is
frozen once wired; lookups of unknown names raise ``UnknownAction``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Dict,
    FrozenSet,
    List,
    Mapping,
    Optional,
    Tuple,
)

from tradebot.domain.classifier import CallbackKind
from tradebot.domain.errors import UnknownAction, WorkflowWiringError

if TYPE_CHECKING:
    from tradebot.domain.context import StepContext, Transition

logger = logging.getLogger("domain.registry")

EntryHandler = Callable[["StepContext"], Awaitable[Optional["Transition"]]]
StepHandler = Callable[["StepContext", Any], Awaitable[Optional["Transition"]]]
CommitHandler = Callable[["StepContext", Mapping[str, Any]], Awaitable[None]]


class InputKind(str, Enum):
    TEXT = "text"
    CALLBACK = "callback"
    CONFIRM = "confirm"


@dataclass(frozen=True)
class Step:
    name: str
    expects: InputKind
    handler: Optional[StepHandler] = None
    accepts: FrozenSet[CallbackKind] = frozenset()
    writes: FrozenSet[str] = frozenset()
    reprompt: Optional[str] = None

    @property
    def expects_text(self) -> bool:
        return self.expects is InputKind.TEXT

    @property
    def is_gate(self) -> bool:
        return self.expects is InputKind.CONFIRM


@dataclass(frozen=True)
class Action:
    name: str
    description: str
    entry: Optional[EntryHandler]
    steps: Tuple[Step, ...] = ()
    commit: Optional[CommitHandler] = None
    launchers: FrozenSet[CallbackKind] = frozenset()
    cancelled_message: str = "CANCELLED"
    command: bool = True
    data_keys: FrozenSet[str] = field(init=False)

    def __post_init__(self):
        keys = frozenset().union(*(step.writes for step in self.steps))
        object.__setattr__(self, "data_keys", keys)

    @property
    def sensitive(self) -> bool:
        return any(step.is_gate for step in self.steps)

    @property
    def gate(self) -> Optional[Step]:
        return next((step for step in self.steps if step.is_gate), None)


class ActionRegistry:
    def __init__(self) -> None:
        self._actions: Dict[str, Action] = {}
        self._steps: Dict[str, Tuple[Action, Step]] = {}
        self._launchers: Dict[CallbackKind, Action] = {}
        self._frozen = False

    def register(self, action: Action) -> Action:
        if self._frozen:
            raise WorkflowWiringError("Action registry is frozen")
        if action.name in self._actions:
            raise WorkflowWiringError(f"Action {action.name!r} registered twice")
        self._check_gate(action)

        for step in action.steps:
            if step.name in self._steps:
                raise WorkflowWiringError(f"Step {step.name!r} registered twice")
            if not step.is_gate and step.handler is None:
                raise WorkflowWiringError(f"Step {step.name!r} has no handler")
            if step.expects is InputKind.CALLBACK and not step.accepts:
                raise WorkflowWiringError(f"Callback step {step.name!r} accepts nothing")
        for kind in action.launchers:
            if kind in self._launchers:
                raise WorkflowWiringError(f"Launcher {kind.value!r} bound twice")

        self._actions[action.name] = action
        for step in action.steps:
            self._steps[step.name] = (action, step)
        for kind in action.launchers:
            self._launchers[kind] = action
        logger.debug("Registered action %s (%d steps)", action.name, len(action.steps))
        return action

    @staticmethod
    def _check_gate(action: Action) -> None:
        gates = [step for step in action.steps if step.is_gate]
        if len(gates) > 1:
            raise WorkflowWiringError(f"Action {action.name!r} declares more than one gate")
        if gates and action.commit is None:
            raise WorkflowWiringError(f"Sensitive action {action.name!r} has no commit handler")
        if action.commit is not None and not gates:
            raise WorkflowWiringError(f"Action {action.name!r} commits without a confirmation gate")
        if gates and action.steps[-1] is not gates[0]:
            raise WorkflowWiringError(f"Gate of {action.name!r} must be its last step")

    def freeze(self) -> "ActionRegistry":
        self._frozen = True
        return self

    def resolve(self, name: str) -> Action:
        try:
            return self._actions[name]
        except KeyError:
            raise UnknownAction(name) from None

    def locate(self, step_name: str) -> Tuple[Action, Step]:
        try:
            return self._steps[step_name]
        except KeyError:
            raise UnknownAction(step_name) from None

    def has_command(self, name: str) -> bool:
        action = self._actions.get(name)
        return action is not None and action.command

    def launcher(self, kind: CallbackKind) -> Optional[Action]:
        return self._launchers.get(kind)

    def list_commands(self) -> List[Tuple[str, str]]:
        return [(a.name, a.description) for a in self._actions.values() if a.command]
