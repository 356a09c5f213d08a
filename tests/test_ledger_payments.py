from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import NOW, record_payment as _record, wallet_balance as _balance
from nfcpay.core.errors import (
    AuthorizationError,
    CompensationFailedError,
    LimitExceededError,
    NotFoundError,
    PersistenceError,
    StateError,
    ValidationError,
)
from nfcpay.models import Transaction, TransactionStatus, TransactionType, WalletLedger


def test_payment_debits_wallet(ledger, make_user, make_card, make_merchant):
    user = make_user("100.00")
    card = make_card(user)
    merchant = make_merchant()

    tx = ledger.process_payment(user.id, card.id, merchant.id, Decimal("50.00"))

    assert tx.status == TransactionStatus.SUCCESS
    assert tx.tx_type == TransactionType.PAYMENT
    assert tx.description == "NFC Payment"
    assert tx.reference.startswith("TXN_")
    assert tx.processed_at is not None
    assert _balance(ledger, user) == Decimal("50.00")


def test_payment_of_exact_balance_after_cent_deposits(db, ledger, make_user, make_card, make_merchant):
    user = make_user("0.00")
    card = make_card(user)
    merchant = make_merchant()
    ledger.add_funds(user.id, Decimal("0.70"))
    ledger.add_funds(user.id, Decimal("0.10"))

    tx = ledger.process_payment(user.id, card.id, merchant.id, Decimal("0.80"))

    assert tx.status == TransactionStatus.SUCCESS
    assert _balance(ledger, user) == Decimal("0.00")
    lines = db.query(WalletLedger).order_by(WalletLedger.id).all()
    assert [Decimal(str(line.balance_after)).quantize(Decimal("0.01")) for line in lines] == [
        Decimal("0.70"),
        Decimal("0.80"),
        Decimal("0.00"),
    ]


def test_payment_rejected_for_insufficient_funds(db, ledger, make_user, make_card, make_merchant):
    user = make_user("10.00")
    card = make_card(user)
    merchant = make_merchant()

    with pytest.raises(LimitExceededError) as exc:
        ledger.process_payment(user.id, card.id, merchant.id, Decimal("50.00"))

    assert exc.value.code == "INSUFFICIENT_FUNDS"
    assert _balance(ledger, user) == Decimal("10.00")
    assert db.query(Transaction).filter(Transaction.status == TransactionStatus.SUCCESS).count() == 0


def test_payment_rejected_over_daily_cap(db, ledger, make_user, make_card, make_merchant):
    user = make_user("2000.00")
    card = make_card(user)
    merchant = make_merchant()
    for amount in ("1000.00", "1000.00", "1000.00", "1000.00", "980.00"):
        _record(db, user, merchant, amount, created_at=NOW - timedelta(hours=1))
    # Yesterday's spend does not count.
    _record(db, user, merchant, "900.00", created_at=NOW - timedelta(days=1))

    with pytest.raises(LimitExceededError) as exc:
        ledger.process_payment(user.id, card.id, merchant.id, Decimal("30.00"))

    assert exc.value.code == "DAILY_LIMIT_EXCEEDED"
    assert _balance(ledger, user) == Decimal("2000.00")
    assert ledger.process_payment(user.id, card.id, merchant.id, Decimal("20.00")).status == TransactionStatus.SUCCESS


def test_payment_over_single_payment_limit(ledger, make_user, make_card, make_merchant):
    user = make_user("5000.00")
    card = make_card(user)
    merchant = make_merchant()

    with pytest.raises(LimitExceededError) as exc:
        ledger.process_payment(user.id, card.id, merchant.id, Decimal("1000.01"))
    assert exc.value.code == "PAYMENT_LIMIT_EXCEEDED"


def test_payment_card_checks_run_in_order(ledger, make_user, make_card, make_merchant):
    owner = make_user("100.00")
    other = make_user("100.00")
    merchant = make_merchant()
    inactive_foreign = make_card(other, is_active=False)
    active_foreign = make_card(other)

    with pytest.raises(NotFoundError) as exc:
        ledger.process_payment(owner.id, 999, merchant.id, Decimal("5.00"))
    assert exc.value.code == "CARD_NOT_FOUND"

    with pytest.raises(StateError) as exc:
        ledger.process_payment(owner.id, inactive_foreign.id, merchant.id, Decimal("5.00"))
    assert exc.value.code == "CARD_INACTIVE"

    with pytest.raises(AuthorizationError) as exc:
        ledger.process_payment(owner.id, active_foreign.id, merchant.id, Decimal("5.00"))
    assert exc.value.code == "CARD_UNAUTHORIZED"


def test_payment_rejects_inactive_user_and_merchant(ledger, make_user, make_card, make_merchant):
    user = make_user("100.00")
    card = make_card(user)
    closed = make_merchant(is_active=False)

    with pytest.raises(StateError) as exc:
        ledger.process_payment(user.id, card.id, closed.id, Decimal("5.00"))
    assert exc.value.code == "MERCHANT_INACTIVE"

    inactive = make_user("100.00", is_active=False)
    with pytest.raises(StateError) as exc:
        ledger.process_payment(inactive.id, card.id, closed.id, Decimal("5.00"))
    assert exc.value.code == "USER_INACTIVE"


def test_payment_validates_input_shape(ledger):
    with pytest.raises(ValidationError):
        ledger.process_payment(0, 1, 1, Decimal("5.00"))
    with pytest.raises(ValidationError) as exc:
        ledger.process_payment(1, 1, 1, Decimal("5.001"))
    assert exc.value.code == "INVALID_AMOUNT"


def test_failed_debit_is_recorded(db, ledger, make_user, make_card, make_merchant, monkeypatch):
    user = make_user("100.00")
    card = make_card(user)
    merchant = make_merchant()
    monkeypatch.setattr(ledger.gateway, "debit_wallet", lambda *args, **kwargs: False)

    with pytest.raises(PersistenceError) as exc:
        ledger.process_payment(user.id, card.id, merchant.id, Decimal("25.00"))

    assert exc.value.code == "PAYMENT_FAILED"
    failed = db.query(Transaction).one()
    assert failed.status == TransactionStatus.FAILED
    assert _balance(ledger, user) == Decimal("100.00")


def test_payment_compensates_when_record_cannot_be_saved(ledger, make_user, make_card, make_merchant, monkeypatch):
    user = make_user("100.00")
    card = make_card(user)
    merchant = make_merchant()
    monkeypatch.setattr(ledger.gateway, "insert_transaction", lambda record: False)

    with pytest.raises(PersistenceError) as exc:
        ledger.process_payment(user.id, card.id, merchant.id, Decimal("40.00"))

    assert exc.value.code == "PAYMENT_FAILED"
    assert not isinstance(exc.value, CompensationFailedError)
    assert _balance(ledger, user) == Decimal("100.00")


def test_failed_compensation_is_surfaced(ledger, make_user, make_card, make_merchant, monkeypatch):
    user = make_user("100.00")
    card = make_card(user)
    merchant = make_merchant()
    monkeypatch.setattr(ledger.gateway, "insert_transaction", lambda record: False)
    monkeypatch.setattr(ledger.gateway, "credit_wallet", lambda *args, **kwargs: False)

    with pytest.raises(CompensationFailedError) as exc:
        ledger.process_payment(user.id, card.id, merchant.id, Decimal("40.00"))

    assert exc.value.code == "COMPENSATION_FAILED"
    assert _balance(ledger, user) == Decimal("60.00")


def test_validate_payment_limits_reports_remaining(db, ledger, make_user, make_merchant):
    user = make_user("100.00")
    merchant = make_merchant()
    _record(db, user, merchant, "1200.00")

    assert ledger.validate_payment_limits(user.id, Decimal("10.00")) == Decimal("3800.00")
    with pytest.raises(LimitExceededError):
        ledger.validate_payment_limits(user.id, Decimal("1500.00"))


def test_history_and_monthly_spending(db, ledger, make_user, make_merchant):
    user = make_user("100.00")
    merchant = make_merchant()
    _record(db, user, merchant, "10.00", created_at=NOW - timedelta(days=2))
    _record(db, user, merchant, "15.50", created_at=NOW)
    _record(db, user, merchant, "99.00", status=TransactionStatus.FAILED)
    _record(db, user, merchant, "70.00", created_at=NOW - timedelta(days=40))

    history = ledger.transaction_history(user.id, limit=2)
    assert [tx.amount for tx in history] == [Decimal("99.00"), Decimal("15.50")]
    assert len(ledger.transaction_history(user.id)) == 4
    assert ledger.monthly_spending(user.id, 2026, 3) == Decimal("25.50")
    with pytest.raises(ValidationError):
        ledger.transaction_history(user.id, limit=0)
    with pytest.raises(ValidationError):
        ledger.monthly_spending(user.id, 2026, 13)


def test_get_transaction_checks_owner(db, ledger, make_user, make_merchant):
    owner = make_user()
    stranger = make_user()
    tx = _record(db, owner, make_merchant(), "5.00")

    assert ledger.get_transaction(tx.id, owner.id).id == tx.id
    with pytest.raises(AuthorizationError):
        ledger.get_transaction(tx.id, stranger.id)
    with pytest.raises(NotFoundError):
        ledger.get_transaction(tx.id + 100, owner.id)
