# tradebot/infrastructure/crypto/wallet_crypto.py
"""
Wallet key handling: generation, address derivation, encryption at rest and
local transaction signing.

Secrets are stored Fernet-encrypted.  The Fernet key is derived from the
32-character ``WALLET_ENCRYPTION_KEY`` setting.
"""

import base64
import logging
from typing import Any, Dict

from cryptography.fernet import Fernet, InvalidToken
from eth_account import Account

from tradebot.domain.errors import CryptoError

logger = logging.getLogger("wallet_crypto")

ENCRYPTION_KEY_LENGTH = 32


def _to_hex(raw: bytes) -> str:
    return "0x" + bytes(raw).hex()


def verify_encryption_key(key: str) -> None:
    """Raise RuntimeError when the configured key cannot be used."""
    if not key:
        raise RuntimeError("WALLET_ENCRYPTION_KEY is not set")
    if len(key.encode("utf-8")) != ENCRYPTION_KEY_LENGTH:
        raise RuntimeError(
            f"WALLET_ENCRYPTION_KEY must be exactly {ENCRYPTION_KEY_LENGTH} characters"
        )


class WalletCrypto:
    def __init__(self, encryption_key: str):
        verify_encryption_key(encryption_key)
        self._fernet = Fernet(base64.urlsafe_b64encode(encryption_key.encode("utf-8")))

    def generate_secret(self) -> str:
        account = Account.create()
        return _to_hex(account.key)

    def derive_address(self, secret: str) -> str:
        try:
            return Account.from_key(secret).address
        except Exception as exc:  # eth-keys raises its own ValidationError for out-of-range keys
            raise CryptoError(
                f"Cannot derive address: {exc}",
                user_message="Invalid private key. Please check it and try again.",
            ) from exc

    def encrypt(self, secret: str) -> str:
        return self._fernet.encrypt(secret.encode("utf-8")).decode("ascii")

    def decrypt(self, encrypted: str) -> str:
        try:
            return self._fernet.decrypt(encrypted.encode("ascii")).decode("utf-8")
        except (InvalidToken, ValueError) as exc:
            logger.error("Stored wallet secret could not be decrypted")
            raise CryptoError(
                "Wallet secret decryption failed",
                user_message="Your wallet key could not be unlocked. Please contact support.",
            ) from exc

    def sign(self, encrypted_secret: str, tx: Dict[str, Any]) -> str:
        """Sign ``tx`` with the wallet key and return the raw transaction hex."""
        secret = self.decrypt(encrypted_secret)
        try:
            signed = Account.sign_transaction(tx, secret)
        except Exception as exc:
            raise CryptoError(f"Transaction signing failed: {exc}") from exc
        return _to_hex(signed.raw_transaction)
