"""Business limits for money movement.

Every check is a pure function of its arguments: it reads no clock, no
database and no settings of its own, so calling it twice with the same input
gives the same answer. Callers pass the current figures (balance, today's
spend, active card count) and a ``LedgerLimits``.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional, Type

from nfcpay.core.config import Settings
from nfcpay.core.errors import LimitExceededError, NFCPayError, StateError


@dataclass(frozen=True)
class LedgerLimits:
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

    @classmethod
    def from_settings(cls, settings: Settings) -> "LedgerLimits":
        return cls(
            max_transaction_amount=Decimal(settings.max_transaction_amount),
            max_payment_amount=Decimal(settings.max_payment_amount),
            daily_spend_limit=Decimal(settings.daily_spend_limit),
            max_wallet_balance=Decimal(settings.max_wallet_balance),
            max_cards_per_user=int(settings.max_cards_per_user),
            max_deposit_amount=Decimal(settings.max_deposit_amount),
            min_withdrawal_amount=Decimal(settings.min_withdrawal_amount),
            max_withdrawal_amount=Decimal(settings.max_withdrawal_amount),
            max_transfer_amount=Decimal(settings.max_transfer_amount),
            refund_window_days=int(settings.refund_window_days),
        )


@dataclass(frozen=True)
class LimitCheck:
    passed: bool
    code: str = ""
    reason: str = ""
    limit: Optional[Decimal] = None
    attempted: Optional[Decimal] = None
    available: Optional[Decimal] = None
    error: Type[NFCPayError] = LimitExceededError

    def enforce(self) -> None:
        if self.passed:
            return
        details = {
            key: value
            for key, value in (("limit", self.limit), ("attempted", self.attempted), ("available", self.available))
            if value is not None
        }
        raise self.error(self.code, self.reason, **details)


PASSED = LimitCheck(passed=True)


def _money(value: Decimal) -> str:
    return f"${Decimal(value):,.2f}"


def check_amount_cap(amount: Decimal, limits: LedgerLimits) -> LimitCheck:
    if amount > limits.max_transaction_amount:
        return LimitCheck(
            False,
            "AMOUNT_LIMIT_EXCEEDED",
            f"Amount cannot exceed {_money(limits.max_transaction_amount)} per transaction",
            limit=limits.max_transaction_amount,
            attempted=amount,
        )
    return PASSED


def check_payment_amount(amount: Decimal, limits: LedgerLimits) -> LimitCheck:
    if amount <= 0 or amount > limits.max_payment_amount:
        return LimitCheck(
            False,
            "PAYMENT_LIMIT_EXCEEDED",
            f"Amount exceeds single transaction limit of {_money(limits.max_payment_amount)}",
            limit=limits.max_payment_amount,
            attempted=amount,
        )
    return PASSED


def check_sufficient_balance(balance: Decimal, amount: Decimal) -> LimitCheck:
    if balance < amount:
        return LimitCheck(
            False,
            "INSUFFICIENT_FUNDS",
            f"Insufficient funds. Available: {_money(balance)}, Required: {_money(amount)}",
            attempted=amount,
            available=balance,
        )
    return PASSED


def check_daily_spend(spent_today: Decimal, amount: Decimal, limits: LedgerLimits) -> LimitCheck:
    if spent_today + amount > limits.daily_spend_limit:
        return LimitCheck(
            False,
            "DAILY_LIMIT_EXCEEDED",
            f"Daily limit exceeded. Limit: {_money(limits.daily_spend_limit)}, Already spent: {_money(spent_today)}",
            limit=limits.daily_spend_limit,
            attempted=amount,
            available=max(limits.daily_spend_limit - spent_today, Decimal("0")),
        )
    return PASSED


def check_wallet_ceiling(balance: Decimal, amount: Decimal, limits: LedgerLimits) -> LimitCheck:
    if balance + amount > limits.max_wallet_balance:
        return LimitCheck(
            False,
            "WALLET_LIMIT_EXCEEDED",
            f"Wallet balance cannot exceed {_money(limits.max_wallet_balance)}",
            limit=limits.max_wallet_balance,
            attempted=amount,
            available=max(limits.max_wallet_balance - balance, Decimal("0")),
        )
    return PASSED


def check_card_count(active_cards: int, limits: LedgerLimits) -> LimitCheck:
    if active_cards >= limits.max_cards_per_user:
        return LimitCheck(
            False,
            "CARD_LIMIT_EXCEEDED",
            f"Maximum {limits.max_cards_per_user} cards allowed per user",
            limit=Decimal(limits.max_cards_per_user),
            attempted=Decimal(active_cards + 1),
        )
    return PASSED


def check_deposit_amount(amount: Decimal, limits: LedgerLimits) -> LimitCheck:
    if amount > limits.max_deposit_amount:
        return LimitCheck(
            False,
            "DEPOSIT_LIMIT_EXCEEDED",
            f"Maximum deposit amount is {_money(limits.max_deposit_amount)} per transaction",
            limit=limits.max_deposit_amount,
            attempted=amount,
        )
    return PASSED


def check_withdrawal_amount(amount: Decimal, limits: LedgerLimits) -> LimitCheck:
    if amount < limits.min_withdrawal_amount:
        return LimitCheck(
            False,
            "WITHDRAWAL_BELOW_MINIMUM",
            f"Minimum withdrawal amount is {_money(limits.min_withdrawal_amount)}",
            limit=limits.min_withdrawal_amount,
            attempted=amount,
        )
    if amount > limits.max_withdrawal_amount:
        return LimitCheck(
            False,
            "WITHDRAWAL_LIMIT_EXCEEDED",
            f"Maximum withdrawal amount is {_money(limits.max_withdrawal_amount)} per transaction",
            limit=limits.max_withdrawal_amount,
            attempted=amount,
        )
    return PASSED


def check_transfer_amount(amount: Decimal, limits: LedgerLimits) -> LimitCheck:
    if amount > limits.max_transfer_amount:
        return LimitCheck(
            False,
            "TRANSFER_LIMIT_EXCEEDED",
            f"Maximum transfer amount is {_money(limits.max_transfer_amount)}",
            limit=limits.max_transfer_amount,
            attempted=amount,
        )
    return PASSED


def check_refund_window(created_at: datetime, now: datetime, limits: LedgerLimits) -> LimitCheck:
    if created_at < now - timedelta(days=limits.refund_window_days):
        return LimitCheck(
            False,
            "REFUND_WINDOW_EXPIRED",
            f"Refund window expired ({limits.refund_window_days} days limit)",
            error=StateError,
        )
    return PASSED
