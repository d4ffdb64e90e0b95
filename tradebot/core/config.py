from typing import Dict

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    # Read env from container + optionally from files
    model_config = SettingsConfigDict(
        env_file=(".env", ".env.docker"),
        extra="ignore",
        case_sensitive=False,
    )

    # App
    ENVIRONMENT: str = Field(default="dev", validation_alias=AliasChoices("ENVIRONMENT", "environment"))
    APP_NAME: str = Field(default="tradebot", validation_alias=AliasChoices("APP_NAME", "app_name"))
    LOG_LEVEL: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))
    DEBUG: bool = Field(default=False, validation_alias=AliasChoices("DEBUG", "debug"))

    # Telegram
    TELEGRAM_BOT_TOKEN: str = Field(default="", validation_alias=AliasChoices("TELEGRAM_BOT_TOKEN", "telegram_bot_token"))
    TELEGRAM_API_BASE: str = Field(default="https://api.telegram.org", validation_alias=AliasChoices("TELEGRAM_API_BASE", "telegram_api_base"))
    TELEGRAM_WEBHOOK_SECRET: str = Field(default="", validation_alias=AliasChoices("TELEGRAM_WEBHOOK_SECRET", "telegram_webhook_secret"))

    # Sessions
    SESSION_BACKEND: str = Field(default="redis", validation_alias=AliasChoices("SESSION_BACKEND", "session_backend"))
    REDIS_URL: str = Field(default="redis://redis:6379/0", validation_alias=AliasChoices("REDIS_URL", "redis_url"))
    SESSION_TTL_SECONDS: int = Field(default=14 * 24 * 60 * 60, validation_alias=AliasChoices("SESSION_TTL_SECONDS", "session_ttl_seconds"))
    CONFIRMATION_TIMEOUT_SECONDS: int = Field(default=10 * 60, validation_alias=AliasChoices("CONFIRMATION_TIMEOUT_SECONDS", "confirmation_timeout_seconds"))

    # Storage
    DATABASE_URL: str = Field(
        default="postgresql+asyncpg://postgres:postgres@db:5432/tradebot",
        validation_alias=AliasChoices("DATABASE_URL", "database_url"),
    )

    # Wallet encryption (must be exactly 32 characters)
    WALLET_ENCRYPTION_KEY: str = Field(default="", validation_alias=AliasChoices("WALLET_ENCRYPTION_KEY", "wallet_encryption_key"))

    # Chain gateway
    CHAIN_GATEWAY_URL: str = Field(default="http://chain-gateway:8080", validation_alias=AliasChoices("CHAIN_GATEWAY_URL", "chain_gateway_url"))
    CHAIN_GATEWAY_API_KEY: str = Field(default="", validation_alias=AliasChoices("CHAIN_GATEWAY_API_KEY", "chain_gateway_api_key"))
    CHAIN_NAME: str = Field(default="Base", validation_alias=AliasChoices("CHAIN_NAME", "chain_name"))
    NATIVE_SYMBOL: str = Field(default="ETH", validation_alias=AliasChoices("NATIVE_SYMBOL", "native_symbol"))

    # Trading defaults
    DEFAULT_SLIPPAGE: float = Field(default=1.0, validation_alias=AliasChoices("DEFAULT_SLIPPAGE", "default_slippage"))
    DEFAULT_GAS_PRIORITY: str = Field(default="medium", validation_alias=AliasChoices("DEFAULT_GAS_PRIORITY", "default_gas_priority"))
    SUPPORTED_TOKENS: Dict[str, str] = Field(
        default={
            "USDC": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
            "DAI": "0x50c5725949A6F0c72E6C4a641F24049A917DB0Cb",
            "WETH": "0x4200000000000000000000000000000000000006",
        },
        validation_alias=AliasChoices("SUPPORTED_TOKENS", "supported_tokens"),
    )


settings = Settings()
