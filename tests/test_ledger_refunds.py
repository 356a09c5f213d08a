from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import NOW, record_payment as _record, wallet_balance as _balance
from nfcpay.core.errors import CompensationFailedError, LimitExceededError, PersistenceError, StateError, ValidationError
from nfcpay.models import TransactionStatus, TransactionType


def test_refund_restores_balance_and_links_original(ledger, make_user, make_card, make_merchant):
    user = make_user("100.00")
    card = make_card(user)
    merchant = make_merchant()
    payment = ledger.process_payment(user.id, card.id, merchant.id, Decimal("50.00"))

    refund = ledger.refund_payment(payment.id, user.id, "Wrong item")

    assert refund.tx_type == TransactionType.REFUND
    assert refund.status == TransactionStatus.SUCCESS
    assert refund.refund_of_id == payment.id
    assert refund.amount == Decimal("50.00")
    assert refund.description == f"Refund for transaction #{payment.id} - Wrong item"
    assert _balance(ledger, user) == Decimal("100.00")


def test_second_refund_is_rejected(ledger, make_user, make_card, make_merchant):
    user = make_user("100.00")
    card = make_card(user)
    payment = ledger.process_payment(user.id, card.id, make_merchant().id, Decimal("30.00"))
    ledger.refund_payment(payment.id, user.id)

    with pytest.raises(StateError) as exc:
        ledger.refund_payment(payment.id, user.id)

    assert exc.value.code == "ALREADY_REFUNDED"
    assert _balance(ledger, user) == Decimal("100.00")


def test_refund_window_expired(db, ledger, make_user, make_merchant):
    user = make_user("100.00")
    old = _record(db, user, make_merchant(), "20.00", created_at=NOW - timedelta(days=31))

    with pytest.raises(StateError) as exc:
        ledger.refund_payment(old.id, user.id)

    assert exc.value.code == "REFUND_WINDOW_EXPIRED"
    assert "Refund window expired" in exc.value.message


def test_only_successful_payments_are_refundable(ledger, db, make_user, make_card, make_merchant):
    user = make_user("100.00")
    merchant = make_merchant()
    failed = _record(db, user, merchant, "20.00", status=TransactionStatus.FAILED)

    with pytest.raises(StateError) as exc:
        ledger.refund_payment(failed.id, user.id)
    assert exc.value.code == "TRANSACTION_NOT_COMPLETED"

    payment = ledger.process_payment(user.id, make_card(user).id, merchant.id, Decimal("10.00"))
    refund = ledger.refund_payment(payment.id, user.id)
    with pytest.raises(ValidationError) as exc:
        ledger.refund_payment(refund.id, user.id)
    assert exc.value.code == "REFUND_NOT_ALLOWED"


def test_refund_respects_wallet_ceiling(db, ledger, make_user, make_merchant):
    user = make_user("9990.00")
    payment = _record(db, user, make_merchant(), "20.00")

    with pytest.raises(LimitExceededError) as exc:
        ledger.refund_payment(payment.id, user.id)
    assert exc.value.code == "WALLET_LIMIT_EXCEEDED"


def test_refund_compensates_when_record_cannot_be_saved(db, ledger, make_user, make_merchant, monkeypatch):
    user = make_user("40.00")
    payment = _record(db, user, make_merchant(), "20.00")
    monkeypatch.setattr(ledger.gateway, "insert_transaction", lambda record: False)

    with pytest.raises(PersistenceError) as exc:
        ledger.refund_payment(payment.id, user.id)

    assert exc.value.code == "REFUND_FAILED"
    assert _balance(ledger, user) == Decimal("40.00")


def test_refund_surfaces_failed_reversal(db, ledger, make_user, make_merchant, monkeypatch):
    user = make_user("40.00")
    payment = _record(db, user, make_merchant(), "20.00")
    monkeypatch.setattr(ledger.gateway, "insert_transaction", lambda record: False)
    monkeypatch.setattr(ledger.gateway, "debit_wallet", lambda *args, **kwargs: False)

    with pytest.raises(CompensationFailedError) as exc:
        ledger.refund_payment(payment.id, user.id)

    assert exc.value.code == "COMPENSATION_FAILED"
    assert _balance(ledger, user) == Decimal("60.00")


def test_cancel_only_pending(db, ledger, make_user, make_merchant):
    user = make_user("40.00")
    merchant = make_merchant()
    pending = _record(db, user, merchant, "5.00", status=TransactionStatus.PENDING)
    done = _record(db, user, merchant, "5.00")

    cancelled = ledger.cancel_transaction(pending.id, user.id)
    assert cancelled.status == TransactionStatus.CANCELLED
    assert cancelled.processed_at is not None

    with pytest.raises(StateError) as exc:
        ledger.cancel_transaction(pending.id, user.id)
    assert exc.value.code == "TRANSACTION_NOT_PENDING"
    with pytest.raises(StateError):
        ledger.cancel_transaction(done.id, user.id)


def test_terminal_status_cannot_change(db, make_user, make_merchant):
    user = make_user()
    tx = _record(db, user, make_merchant(), "5.00")

    with pytest.raises(StateError) as exc:
        tx.transition_to(TransactionStatus.FAILED)
    assert exc.value.code == "TRANSACTION_FINALIZED"
    assert tx.status == TransactionStatus.SUCCESS
