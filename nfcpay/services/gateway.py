"""Persistence gateway used by the ledger core.

Each call is its own unit of work: a mutation either commits fully or rolls
back and reports ``False``. Nothing here spans two calls, so multi-step
operations have to compensate on their own (see ``nfcpay.services.ledger``).
"""
from __future__ import annotations

import functools
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from nfcpay.core.errors import PersistenceError
from nfcpay.models import Card, Merchant, Transaction, TransactionStatus, TransactionType, User, Wallet
from nfcpay.models.base import utcnow
from nfcpay.services import wallet as wallet_store
from nfcpay.services.validation import CENT

logger = logging.getLogger(__name__)


def begin_day_utc(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def _as_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT)


def _read(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Gateway read %s failed: %s", method.__name__, exc)
            raise PersistenceError(
                "DATABASE_ERROR",
                f"{method.__name__} failed",
                "The service is temporarily unavailable. Please try again.",
            ) from exc

    return wrapper


class LedgerGateway:
    def __init__(self, db: Session):
        self.db = db

    @_read
    def get_user_by_id(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    @_read
    def get_card_by_id(self, card_id: int) -> Optional[Card]:
        return self.db.get(Card, card_id)

    @_read
    def card_belongs_to_user(self, card_id: int, user_id: int) -> bool:
        count = self.db.query(func.count(Card.id)).filter(Card.id == card_id, Card.user_id == user_id).scalar()
        return bool(count)

    @_read
    def get_merchant_by_id(self, merchant_id: int) -> Optional[Merchant]:
        return self.db.get(Merchant, merchant_id)

    @_read
    def get_wallet_balance(self, user_id: int) -> Optional[Decimal]:
        balance = self.db.query(Wallet.balance).filter(Wallet.user_id == user_id).scalar()
        return None if balance is None else _as_decimal(balance)

    @_read
    def sum_successful_payments_today(self, user_id: int, now: Optional[datetime] = None) -> Decimal:
        start = begin_day_utc(now or utcnow())
        return self.sum_successful_payments_between(user_id, start, start + timedelta(days=1))

    @_read
    def sum_successful_payments_between(self, user_id: int, start: datetime, end: datetime) -> Decimal:
        total = (
            self.db.query(func.coalesce(func.sum(Transaction.amount), 0))
            .filter(
                Transaction.user_id == user_id,
                Transaction.tx_type == TransactionType.PAYMENT,
                Transaction.status == TransactionStatus.SUCCESS,
                Transaction.created_at >= start,
                Transaction.created_at < end,
            )
            .scalar()
        )
        return _as_decimal(total)

    @_read
    def get_transaction_by_id(self, transaction_id: int) -> Optional[Transaction]:
        return self.db.get(Transaction, transaction_id)

    @_read
    def find_refund_of(self, transaction_id: int) -> Optional[Transaction]:
        return (
            self.db.query(Transaction)
            .filter(
                Transaction.refund_of_id == transaction_id,
                Transaction.tx_type == TransactionType.REFUND,
                Transaction.status == TransactionStatus.SUCCESS,
            )
            .first()
        )

    @_read
    def list_transactions(self, user_id: int, limit: int, offset: int) -> list[Transaction]:
        return (
            self.db.query(Transaction)
            .filter(Transaction.user_id == user_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def debit_wallet(self, user_id: int, amount: Decimal, *, reference: str = "", description: str = "Wallet debit") -> bool:
        try:
            return wallet_store.debit_wallet(self.db, user_id, amount, reference, description) is not None
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Debit of %s from user_id=%s failed: %s", amount, user_id, exc)
            return False

    def credit_wallet(self, user_id: int, amount: Decimal, *, reference: str = "", description: str = "Wallet credit") -> bool:
        try:
            return wallet_store.credit_wallet(self.db, user_id, amount, reference, description) is not None
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Credit of %s to user_id=%s failed: %s", amount, user_id, exc)
            return False

    def insert_transaction(self, record: Transaction) -> bool:
        try:
            self.db.add(record)
            self.db.commit()
            return True
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Insert of transaction %s failed: %s", record.reference, exc)
            return False

    def save_transaction(self, record: Transaction) -> bool:
        return self.insert_transaction(record)
