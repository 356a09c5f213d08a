from decimal import Decimal

from nfcpay.core.config import Settings, parse_cors_origins
from nfcpay.services.limits import LedgerLimits


def test_parse_cors_origins_csv():
    value = "http://localhost:5173, http://localhost:3000"
    assert parse_cors_origins(value) == [
        "http://localhost:5173",
        "http://localhost:3000",
    ]


def test_parse_cors_origins_json_list():
    value = '["http://localhost:5173", "https://nfcpay.example.com"]'
    assert parse_cors_origins(value) == [
        "http://localhost:5173",
        "https://nfcpay.example.com",
    ]


def test_parse_cors_origins_deduplicates():
    value = "http://localhost:5173,http://localhost:5173"
    assert parse_cors_origins(value) == ["http://localhost:5173"]


def test_limits_follow_environment(monkeypatch):
    monkeypatch.setenv("DAILY_SPEND_LIMIT", "250.00")
    monkeypatch.setenv("MAX_CARDS_PER_USER", "2")
    limits = LedgerLimits.from_settings(Settings())

    assert limits.daily_spend_limit == Decimal("250.00")
    assert limits.max_cards_per_user == 2
    assert limits.max_payment_amount == Decimal("1000")
