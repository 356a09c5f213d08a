import os
from datetime import datetime, timezone
from decimal import Decimal

import pytest


def _set_test_env() -> None:
    defaults = {
        "APP_NAME": "NFCPay Test",
        "ENVIRONMENT": "test",
        "SECRET_KEY": "test-secret",
        "ACCESS_TOKEN_EXPIRE_MINUTES": "30",
        "REFRESH_TOKEN_EXPIRE_DAYS": "7",
        "PASSWORD_BCRYPT_ROUNDS": "4",
        "AUTO_CREATE_TABLES": "false",
        "SEED_MERCHANTS": "false",
        "DATABASE_URL": "sqlite://",
        "RATE_LIMIT_ENABLED": "false",
        "LOG_LEVEL": "WARNING",
        "CORS_ORIGINS": "http://localhost:5173,http://localhost:3000",
    }
    for key, value in defaults.items():
        os.environ.setdefault(key, value)


_set_test_env()

from nfcpay.core.database import Base, SessionLocal, engine  # noqa: E402
from nfcpay.core.security import hash_password  # noqa: E402
from nfcpay.models import Card, CardType, Merchant, Transaction, TransactionStatus, TransactionType, User, Wallet  # noqa: E402
from nfcpay.services.gateway import LedgerGateway  # noqa: E402
from nfcpay.services.ledger import LedgerService, generate_reference  # noqa: E402
from nfcpay.services.limits import LedgerLimits  # noqa: E402

NOW = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)
PASSWORD = "Secret123"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(balance="0.00", *, is_active=True, email=None, with_wallet=True):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            full_name=f"User {counter['n']}",
            hashed_password=hash_password(PASSWORD),
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        if with_wallet:
            db.add(Wallet(user_id=user.id, balance=Decimal(balance)))
            db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_card(db):
    counter = {"n": 0}

    def _make(user, *, is_active=True, card_name=None):
        counter["n"] += 1
        card = Card(
            user_id=user.id,
            card_uid=f"{counter['n']:016d}",
            card_name=card_name or f"Card {counter['n']}",
            card_type=CardType.VIRTUAL,
            is_active=is_active,
        )
        db.add(card)
        db.commit()
        db.refresh(card)
        return card

    return _make


@pytest.fixture
def make_merchant(db):
    counter = {"n": 0}

    def _make(*, is_active=True, category="Food & Beverage"):
        counter["n"] += 1
        merchant = Merchant(
            merchant_name=f"Merchant {counter['n']}",
            merchant_code=f"MER{counter['n']:03d}",
            category=category,
            is_active=is_active,
        )
        db.add(merchant)
        db.commit()
        db.refresh(merchant)
        return merchant

    return _make


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def ledger(db, clock):
    return LedgerService(LedgerGateway(db), LedgerLimits(), clock=clock)


def record_payment(db, user, merchant, amount, *, status=None, created_at=NOW, card=None):
    tx = Transaction(
        user_id=user.id,
        card_id=card.id if card else None,
        merchant_id=merchant.id,
        amount=Decimal(amount),
        tx_type=TransactionType.PAYMENT,
        status=status or TransactionStatus.SUCCESS,
        reference=generate_reference(),
        description="NFC Payment",
        created_at=created_at,
    )
    db.add(tx)
    db.commit()
    return tx


def wallet_balance(ledger, user):
    return ledger.gateway.get_wallet_balance(user.id)
