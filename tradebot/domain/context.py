"""Per-event context handed to step handlers, and the transitions they return."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from tradebot.core.config import Settings
from tradebot.domain.classifier import CallbackAction
from tradebot.domain.messages import t
from tradebot.domain.ports import (
    ChainGateway,
    Markup,
    Storage,
    Transport,
    WalletCrypto,
    WalletRecord,
)
from tradebot.domain.session import Session


@dataclass(frozen=True)
class Transition:
    """Outcome of a handler.

    ``next_step`` None means the pending action is finished (idle).  Handlers
    that leave the session untouched return ``None`` instead of a Transition.
    """

    next_step: Optional[str] = None
    data: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def goto(cls, step: str, **data: Any) -> "Transition":
        return cls(step, data)

    @classmethod
    def finish(cls) -> "Transition":
        return cls()


@dataclass
class Services:
    storage: Storage
    crypto: WalletCrypto
    chain: ChainGateway
    transport: Transport
    settings: Settings


@dataclass
class StepContext:
    user_id: str
    session: Session
    services: Services
    callback: Optional[CallbackAction] = None
    callback_id: Optional[str] = None
    message_id: Optional[int] = None
    args: Tuple[str, ...] = ()
    acknowledged: bool = False

    @property
    def settings(self) -> Settings:
        return self.services.settings

    @property
    def data(self) -> Dict[str, Any]:
        return self.session.temp_data

    def fields(self, **extra: Any) -> Dict[str, Any]:
        """Common template fields (chain and native symbol) plus ``extra``."""
        return {"chain": self.settings.CHAIN_NAME, "native": self.settings.NATIVE_SYMBOL, **extra}

    async def reply(self, text: str, markup: Optional[Markup] = None) -> None:
        await self.services.transport.reply(self.user_id, text, markup)

    async def edit_or_reply(self, text: str, markup: Optional[Markup] = None) -> None:
        """Edit the message that carried the tapped button, else send a new one."""
        if self.message_id is not None:
            await self.services.transport.edit_message(self.user_id, self.message_id, text, markup)
        else:
            await self.reply(text, markup)

    async def acknowledge(self, text: Optional[str] = None) -> None:
        if self.callback_id is not None and not self.acknowledged:
            self.acknowledged = True
            await self.services.transport.acknowledge(self.callback_id, text)

    async def require_wallet(self) -> Optional[WalletRecord]:
        """Load the user's wallet, telling the user when there is none."""
        wallet = await self.services.storage.load_wallet(self.user_id)
        if wallet is None:
            self.session.wallet_address = None
            await self.reply(t("NO_WALLET"))
            return None
        self.session.wallet_address = wallet.address
        return wallet
