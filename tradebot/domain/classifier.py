# tradebot/domain/classifier.py
"""
Event classification.

Turns one raw event (command, callback token or free text) plus the user's
session into a ``ResolvedIntent``.  Classification is pure: it never
touches storage or the transport.

Callback tokens are matched in two passes:
    1. exact literals (menu buttons, create/import decisions)
    2. longest matching prefix from ``CALLBACK_PREFIXES``; the prefix
       constructor decodes the payload and returns None when it is malformed
Anything left over resolves to ``UnknownCallback``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional, Tuple, Union

from tradebot.domain.session import Session

if TYPE_CHECKING:
    from tradebot.domain.registry import ActionRegistry

COMMAND_PREFIX = "/"


# ---------------------------------------------------------------------------
# Raw events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CommandEvent:
    user_id: str
    name: str
    args: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CallbackEvent:
    user_id: str
    token: str
    callback_id: Optional[str] = None
    message_id: Optional[int] = None


@dataclass(frozen=True)
class TextEvent:
    user_id: str
    content: str
    message_id: Optional[int] = None


Event = Union[CommandEvent, CallbackEvent, TextEvent]


# ---------------------------------------------------------------------------
# Decoded callbacks
# ---------------------------------------------------------------------------

class CallbackKind(str, Enum):
    # parametrized
    CONFIRM = "confirm"
    TOKEN = "token"
    SELL_TOKEN = "sell_token"
    SETTINGS = "settings"
    SLIPPAGE = "slippage"
    GAS = "gas"
    # literals
    CHECK_BALANCE = "check_balance"
    BUY_MENU = "buy_token"
    SELL_MENU = "sell_token_menu"
    OPEN_SETTINGS = "open_settings"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    HELP = "help"
    EXPORT_KEY = "export_key"
    CREATE_WALLET = "create_wallet"
    IMPORT_WALLET = "import_wallet"
    CONFIRM_CREATE_WALLET = "confirm_create_wallet"
    CANCEL_CREATE_WALLET = "cancel_create_wallet"
    CONFIRM_IMPORT_WALLET = "confirm_import_wallet"
    CANCEL_IMPORT_WALLET = "cancel_import_wallet"


@dataclass(frozen=True)
class CallbackAction:
    kind: CallbackKind
    value: Optional[str] = None

    @property
    def number(self) -> float:
        return float(self.value)


CALLBACK_LITERALS = {
    "check_balance": CallbackKind.CHECK_BALANCE,
    "buy_token": CallbackKind.BUY_MENU,
    "sell_token": CallbackKind.SELL_MENU,
    "open_settings": CallbackKind.OPEN_SETTINGS,
    "deposit": CallbackKind.DEPOSIT,
    "withdraw": CallbackKind.WITHDRAW,
    "help": CallbackKind.HELP,
    "export_key": CallbackKind.EXPORT_KEY,
    "create_wallet": CallbackKind.CREATE_WALLET,
    "import_wallet": CallbackKind.IMPORT_WALLET,
    "confirm_create_wallet": CallbackKind.CONFIRM_CREATE_WALLET,
    "cancel_create_wallet": CallbackKind.CANCEL_CREATE_WALLET,
    "confirm_import_wallet": CallbackKind.CONFIRM_IMPORT_WALLET,
    "cancel_import_wallet": CallbackKind.CANCEL_IMPORT_WALLET,
}


def _one_of(kind: CallbackKind, allowed) -> Callable[[str], Optional[CallbackAction]]:
    def build(rest: str) -> Optional[CallbackAction]:
        return CallbackAction(kind, rest) if rest in allowed else None
    return build


def _non_empty(kind: CallbackKind) -> Callable[[str], Optional[CallbackAction]]:
    def build(rest: str) -> Optional[CallbackAction]:
        return CallbackAction(kind, rest) if rest else None
    return build


def _slippage(rest: str) -> Optional[CallbackAction]:
    try:
        value = float(rest)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return CallbackAction(CallbackKind.SLIPPAGE, rest)


# (prefix, constructor) pairs; evaluated longest prefix first
CALLBACK_PREFIXES = sorted(
    [
        ("confirm_", _one_of(CallbackKind.CONFIRM, {"yes", "no"})),
        ("token_", _non_empty(CallbackKind.TOKEN)),
        ("sell_token_", _non_empty(CallbackKind.SELL_TOKEN)),
        ("settings_", _one_of(CallbackKind.SETTINGS, {"slippage", "gasPriority", "back"})),
        ("slippage_", _slippage),
        ("gas_", _one_of(CallbackKind.GAS, {"low", "medium", "high"})),
    ],
    key=lambda pair: len(pair[0]),
    reverse=True,
)


def parse_callback(token: str) -> Optional[CallbackAction]:
    """Decode a callback token, or return None when it is not understood."""
    literal = CALLBACK_LITERALS.get(token)
    if literal is not None:
        return CallbackAction(literal)
    for prefix, build in CALLBACK_PREFIXES:
        if token.startswith(prefix):
            return build(token[len(prefix):])
    return None


# ---------------------------------------------------------------------------
# Resolved intents
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RunCommand:
    name: str
    args: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RunCallback:
    decoded: CallbackAction


@dataclass(frozen=True)
class ContinueAction:
    current_action: str
    content: str


@dataclass(frozen=True)
class Idle:
    content: str
    # set when a step is pending but expects a button rather than text
    pending: Optional[str] = None


@dataclass(frozen=True)
class UnknownCallbackIntent:
    token: str


@dataclass(frozen=True)
class UnknownCommandIntent:
    name: str


ResolvedIntent = Union[
    RunCommand, RunCallback, ContinueAction, Idle, UnknownCallbackIntent, UnknownCommandIntent
]


def parse_command_text(text: str) -> Tuple[str, Tuple[str, ...]]:
    """Split ``/name@bot arg1 arg2`` into ``("name", ("arg1", "arg2"))``."""
    parts = text[len(COMMAND_PREFIX):].split()
    if not parts:
        return "", ()
    name = parts[0].split("@", 1)[0].lower()
    return name, tuple(parts[1:])


def _command_intent(name: str, args: Tuple[str, ...], registry: "ActionRegistry") -> ResolvedIntent:
    if registry.has_command(name):
        return RunCommand(name, args)
    return UnknownCommandIntent(name)


def classify(event: Event, session: Session, registry: "ActionRegistry") -> ResolvedIntent:
    if isinstance(event, CommandEvent):
        return _command_intent(event.name.lower(), event.args, registry)

    if isinstance(event, CallbackEvent):
        decoded = parse_callback(event.token)
        if decoded is None:
            return UnknownCallbackIntent(event.token)
        return RunCallback(decoded)

    content = event.content.strip()

    # Commands always take precedence over free-text continuation
    if content.startswith(COMMAND_PREFIX):
        name, args = parse_command_text(content)
        return _command_intent(name, args, registry)

    if session.current_action is None:
        return Idle(content)

    _action, step = registry.locate(session.current_action)
    if step.expects_text:
        return ContinueAction(session.current_action, content)
    return Idle(content, pending=session.current_action)
