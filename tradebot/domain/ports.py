"""Capability interfaces consumed by the dispatch core.

The core never implements storage, key handling, chain access or message
delivery itself; adapters under ``tradebot.infrastructure`` do.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

from tradebot.domain.session import Session

Markup = Dict[str, Any]


# ---------------------------------------------------------------------------
# Records exchanged with collaborators
# ---------------------------------------------------------------------------

@dataclass
class UserRecord:
    user_id: str
    slippage: float = 1.0
    gas_priority: str = "medium"


@dataclass
class WalletRecord:
    user_id: str
    address: str
    encrypted_secret: str
    kind: str = "generated"  # generated | imported


@dataclass
class TokenBalance:
    symbol: str
    address: Optional[str]
    amount: float


@dataclass
class Quote:
    token_in: str
    token_out: str
    amount_in: float
    amount_out: float
    price_impact: float = 0.0


@dataclass
class TxResult:
    tx_hash: str
    extra: Dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Collaborator protocols
# ---------------------------------------------------------------------------

class SessionStore(Protocol):
    async def get(self, user_id: str) -> Session: ...

    async def set(self, user_id: str, session: Session) -> None: ...

    async def clear(self, user_id: str) -> None: ...

    async def close(self) -> None: ...


class Storage(Protocol):
    async def load_user(self, user_id: str) -> UserRecord: ...

    async def save_user(self, user: UserRecord) -> None: ...

    async def load_wallet(self, user_id: str) -> Optional[WalletRecord]: ...

    async def save_wallet(self, wallet: WalletRecord) -> None: ...


class WalletCrypto(Protocol):
    def generate_secret(self) -> str: ...

    def derive_address(self, secret: str) -> str: ...

    def encrypt(self, secret: str) -> str: ...

    def decrypt(self, encrypted: str) -> str: ...

    def sign(self, encrypted_secret: str, tx: Dict[str, Any]) -> str: ...


class ChainGateway(Protocol):
    async def get_balances(self, address: str) -> List[TokenBalance]: ...

    async def quote(self, token_in: str, token_out: str, amount: float) -> Quote: ...

    async def execute_trade(
        self,
        wallet: WalletRecord,
        token_in: str,
        token_out: str,
        amount: float,
        *,
        slippage: float,
        gas_priority: str,
    ) -> TxResult: ...

    async def send_funds(
        self,
        wallet: WalletRecord,
        to: str,
        amount: float,
        *,
        gas_priority: str,
    ) -> TxResult: ...


class Transport(Protocol):
    async def reply(self, user_id: str, text: str, markup: Optional[Markup] = None) -> None: ...

    async def edit_message(
        self, user_id: str, message_id: int, text: str, markup: Optional[Markup] = None
    ) -> None: ...

    async def acknowledge(self, callback_id: str, text: Optional[str] = None) -> None: ...

    async def set_commands(self, commands: Sequence[tuple]) -> None: ...
