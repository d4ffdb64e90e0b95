"""Input parsing for collecting steps.  Failures raise ``ValidationError``."""

from __future__ import annotations

import math
import re
from typing import Optional

from tradebot.domain.errors import ValidationError
from tradebot.domain.messages import t

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_PRIVATE_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")
# plain decimal notation such as 1.5 or .25
_AMOUNT_RE = re.compile(r"^(\d+(\.\d*)?|\.\d+)$")

MIN_SLIPPAGE = 0.1
MAX_SLIPPAGE = 50.0


def parse_amount(text: str, *, balance: Optional[float] = None, symbol: str = "") -> float:
    """Parse a positive amount, optionally bounded by a known balance."""
    raw = text.strip()
    if not _AMOUNT_RE.match(raw):
        raise ValidationError(t("INVALID_AMOUNT"))
    amount = float(raw)
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError(t("INVALID_AMOUNT"))
    if balance is not None and amount > balance:
        raise ValidationError(t("INSUFFICIENT_BALANCE", balance=f"{balance:g}", symbol=symbol))
    return amount


def parse_address(text: str) -> str:
    address = text.strip()
    if not _ADDRESS_RE.match(address):
        raise ValidationError(t("INVALID_ADDRESS"))
    return address


def parse_private_key(text: str) -> str:
    key = text.strip()
    if not _PRIVATE_KEY_RE.match(key):
        raise ValidationError(t("IMPORT_INVALID_KEY"))
    return key if key.startswith("0x") else f"0x{key}"


def check_slippage(value: float) -> float:
    if not MIN_SLIPPAGE <= value <= MAX_SLIPPAGE:
        raise ValidationError(t("INVALID_SLIPPAGE", low=f"{MIN_SLIPPAGE:g}", high=f"{MAX_SLIPPAGE:g}"))
    return value
