from .storage import SqlStorage
from .user_repository import UserRepository
from .wallet_repository import WalletRepository

__all__ = [
    "SqlStorage",
    "UserRepository",
    "WalletRepository",
]
