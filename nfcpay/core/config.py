from decimal import Decimal
from functools import lru_cache
import json

from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors_origins(value: str) -> list[str]:
    if not value:
        return []

    parsed: list[str]
    raw = value.strip()
    if raw.startswith("["):
        try:
            items = json.loads(raw)
            parsed = [str(item).strip() for item in items if str(item).strip()]
        except (TypeError, ValueError):
            parsed = []
    else:
        parsed = [origin.strip() for origin in raw.split(",") if origin.strip()]

    # Preserve order and remove duplicates.
    return list(dict.fromkeys(parsed))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_name: str = "NFCPay"
    environment: str = "development"
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Security
    secret_key: str
    access_token_expire_minutes: int = 30
    refresh_token_expire_days: int = 7
    password_bcrypt_rounds: int = 12
    jwt_algorithm: str = "HS256"

    # Database
    database_url: str = "sqlite:///./nfcpay.db"
    db_pool_size: int = 5
    db_max_overflow: int = 5
    db_pool_timeout: int = 15
    db_pool_recycle: int = 1200
    db_pool_pre_ping: bool = True
    auto_create_tables: bool = False
    seed_merchants: bool = False

    rate_limit_enabled: bool = True

    # CORS
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # Ledger limits. All amounts are in wallet currency units.
    max_transaction_amount: Decimal = Decimal("10000")
    max_payment_amount: Decimal = Decimal("1000")
    daily_spend_limit: Decimal = Decimal("5000")
    max_wallet_balance: Decimal = Decimal("10000")
    max_cards_per_user: int = 5
    max_deposit_amount: Decimal = Decimal("2000")
    min_withdrawal_amount: Decimal = Decimal("10")
    max_withdrawal_amount: Decimal = Decimal("1000")
    max_transfer_amount: Decimal = Decimal("500")
    refund_window_days: int = 30
    default_currency: str = "USD"


@lru_cache
def get_settings() -> Settings:
    return Settings()
