from sqlalchemy import Column, DateTime, Float, ForeignKey, String, Text, text

from tradebot.infrastructure.db.base import Base


class User(Base):
    __tablename__ = "users"
    telegram_id = Column(String(32), primary_key=True)
    slippage = Column(Float, nullable=False, default=1.0)
    gas_priority = Column(String(10), nullable=False, default="medium")
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))


class Wallet(Base):
    __tablename__ = "wallets"
    user_id = Column(String(32), ForeignKey("users.telegram_id"), primary_key=True)
    address = Column(String(42), nullable=False, index=True)
    encrypted_secret = Column(Text, nullable=False)
    kind = Column(String(10), nullable=False, default="generated")
    updated_at = Column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
    )
