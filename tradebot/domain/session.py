"""Per-user session record.

A session tracks at most one pending step.  ``temp_data`` lives exactly as
long as ``current_action``: every code path that clears the action goes
through :meth:`Session.clear`.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

SESSION_VERSION = 2


@dataclass
class Session:
    current_action: Optional[str] = None
    temp_data: Dict[str, Any] = field(default_factory=dict)
    wallet_address: Optional[str] = None
    updated_at: float = field(default_factory=time.time)

    @property
    def is_idle(self) -> bool:
        return self.current_action is None

    def clear(self) -> None:
        """Drop the pending action and its scratch data."""
        self.current_action = None
        self.temp_data = {}
        self.touch()

    def touch(self) -> None:
        self.updated_at = time.time()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": SESSION_VERSION,
            "current_action": self.current_action,
            "temp_data": dict(self.temp_data),
            "wallet_address": self.wallet_address,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Session":
        raw = migrate_session(dict(raw))
        session = cls(
            current_action=raw.get("current_action"),
            temp_data=dict(raw.get("temp_data") or {}),
            wallet_address=raw.get("wallet_address"),
            updated_at=float(raw.get("updated_at") or time.time()),
        )
        if session.current_action is None:
            session.temp_data = {}
        return session


def migrate_session(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Upgrade a v1 payload (camelCase keys, no timestamp) to v2 in-place."""
    if raw.get("version", 1) >= SESSION_VERSION:
        return raw
    raw["version"] = SESSION_VERSION
    if "currentAction" in raw:
        raw["current_action"] = raw.pop("currentAction")
    if "tempData" in raw:
        raw["temp_data"] = raw.pop("tempData")
    if "walletAddress" in raw:
        raw["wallet_address"] = raw.pop("walletAddress")
    raw.setdefault("updated_at", time.time())
    return raw
