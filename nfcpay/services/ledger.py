"""Money movement between wallets, cards and merchants.

The store gives no multi-statement transactions, so every operation runs
its checks first, then issues one mutation at a time. When a later step
fails after funds already moved, the earlier mutation is reversed with its
inverse (credit for debit, debit for credit). A failed reversal is logged
and surfaced as ``CompensationFailedError``; it is not retried.

Checks run in a fixed order per operation and the first failure wins:
ids and amount shape, existence and ownership, active state, amount caps,
balance, then daily or wallet caps.
"""
from __future__ import annotations

import dataclasses
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional

from nfcpay.core.errors import (
    AuthorizationError,
    CompensationFailedError,
    NotFoundError,
    PersistenceError,
    StateError,
    ValidationError,
)
from nfcpay.models import Card, Merchant, Transaction, TransactionStatus, TransactionType, User
from nfcpay.models.base import as_utc, utcnow
from nfcpay.services.gateway import LedgerGateway
from nfcpay.services.limits import (
    LedgerLimits,
    check_amount_cap,
    check_daily_spend,
    check_deposit_amount,
    check_payment_amount,
    check_refund_window,
    check_sufficient_balance,
    check_transfer_amount,
    check_wallet_ceiling,
    check_withdrawal_amount,
)
from nfcpay.services.validation import (
    CENT,
    validate_amount,
    validate_optional_text,
    validate_positive_id,
    validate_range,
)

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_DESCRIPTION = "NFC Payment"


def generate_reference(prefix: str = "TXN") -> str:
    return f"{prefix}_{secrets.token_hex(8).upper()}"


def refund_description(transaction_id: int, reason: Optional[str]) -> str:
    text = f"Refund for transaction #{transaction_id}"
    if reason:
        text = f"{text} - {reason}"
    return text[:255]


@dataclass(frozen=True)
class WalletReceipt:
    reference: str
    user_id: int
    amount: Decimal
    balance: Decimal
    description: str


@dataclass(frozen=True)
class TransferReceipt:
    reference: str
    from_user_id: int
    to_user_id: int
    amount: Decimal
    from_balance: Decimal
    to_balance: Decimal
    description: str


class LedgerService:
    def __init__(
        self,
        gateway: LedgerGateway,
        limits: Optional[LedgerLimits] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.gateway = gateway
        self.limits = limits or LedgerLimits()
        self.clock = clock

    # Lookups

    def _require_active_user(self, user_id: int, *, role: str = "User") -> User:
        user = self.gateway.get_user_by_id(user_id)
        prefix = role.upper()
        if user is None:
            raise NotFoundError(f"{prefix}_NOT_FOUND", f"{role} not found")
        if not user.is_active:
            raise StateError(
                f"{prefix}_INACTIVE",
                f"{role} account is inactive",
                "Your account is not active. Please contact support." if role == "User" else f"{role} account is not active",
            )
        return user

    def _require_usable_card(self, card_id: int, user_id: int) -> Card:
        card = self.gateway.get_card_by_id(card_id)
        if card is None:
            raise NotFoundError("CARD_NOT_FOUND", "Card not found", "Selected card is not available")
        if not card.is_active:
            raise StateError("CARD_INACTIVE", "Card is inactive", "This card is currently deactivated")
        if not self.gateway.card_belongs_to_user(card_id, user_id):
            raise AuthorizationError(
                "CARD_UNAUTHORIZED", "Card does not belong to user", "You are not authorized to use this card"
            )
        return card

    def _require_active_merchant(self, merchant_id: int) -> Merchant:
        merchant = self.gateway.get_merchant_by_id(merchant_id)
        if merchant is None:
            raise NotFoundError("MERCHANT_NOT_FOUND", "Merchant not found")
        if not merchant.is_active:
            raise StateError(
                "MERCHANT_INACTIVE",
                "Merchant is inactive",
                "This merchant is currently not accepting payments",
            )
        return merchant

    def _balance(self, user_id: int) -> Decimal:
        balance = self.gateway.get_wallet_balance(user_id)
        if balance is None:
            raise NotFoundError("WALLET_NOT_FOUND", "Wallet not found for user")
        return balance

    def _compensate(self, mutation: Callable[..., bool], user_id: int, amount: Decimal, reference: str, operation: str) -> None:
        if mutation(user_id, amount, reference=reference, description=f"Reversal of {operation} {reference}"):
            logger.warning("Compensated %s %s: %s reversed for user_id=%s", operation, reference, amount, user_id)
            return
        logger.error(
            "Compensation failed for %s %s: user_id=%s amount=%s needs manual correction",
            operation,
            reference,
            user_id,
            amount,
        )
        raise CompensationFailedError(
            "COMPENSATION_FAILED",
            f"Could not reverse {operation} {reference}",
            "Your transaction could not be completed and needs manual review. Please contact support.",
            reference=reference,
            user_id=user_id,
            amount=amount,
        )

    # Payments

    def process_payment(
        self,
        user_id: int,
        card_id: int,
        merchant_id: int,
        amount,
        description: Optional[str] = None,
    ) -> Transaction:
        validate_positive_id(user_id, "User ID")
        validate_positive_id(card_id, "Card ID")
        validate_positive_id(merchant_id, "Merchant ID")
        amount = validate_amount(amount)
        description = validate_optional_text(description, "Description", 255) or DEFAULT_PAYMENT_DESCRIPTION

        self._require_active_user(user_id)
        self._require_usable_card(card_id, user_id)
        self._require_active_merchant(merchant_id)

        check_amount_cap(amount, self.limits).enforce()
        check_payment_amount(amount, self.limits).enforce()
        check_sufficient_balance(self._balance(user_id), amount).enforce()
        now = self.clock()
        spent_today = self.gateway.sum_successful_payments_today(user_id, now=now)
        check_daily_spend(spent_today, amount, self.limits).enforce()

        transaction = Transaction(
            user_id=user_id,
            card_id=card_id,
            merchant_id=merchant_id,
            amount=amount,
            tx_type=TransactionType.PAYMENT,
            status=TransactionStatus.PENDING,
            reference=generate_reference(),
            description=description,
            created_at=now,
        )
        reference = transaction.reference

        if not self.gateway.debit_wallet(
            user_id, amount, reference=reference, description=f"Payment to merchant #{merchant_id}"
        ):
            transaction.transition_to(TransactionStatus.FAILED, self.clock())
            if not self.gateway.insert_transaction(transaction):
                logger.error("Could not record failed payment %s for user_id=%s", reference, user_id)
            logger.warning("Payment %s failed: debit of %s from user_id=%s was refused", reference, amount, user_id)
            raise PersistenceError(
                "PAYMENT_FAILED",
                "Failed to deduct funds",
                "Payment could not be processed. Please try again.",
                reference=reference,
            )

        transaction.transition_to(TransactionStatus.SUCCESS, self.clock())
        if not self.gateway.insert_transaction(transaction):
            self._compensate(self.gateway.credit_wallet, user_id, amount, reference, "payment")
            raise PersistenceError(
                "PAYMENT_FAILED",
                "Failed to save transaction",
                "Payment could not be processed. Please try again.",
                reference=reference,
            )

        logger.info("Payment %s of %s from user_id=%s to merchant_id=%s succeeded", reference, amount, user_id, merchant_id)
        return transaction

    def refund_payment(self, transaction_id: int, user_id: int, reason: Optional[str] = None) -> Transaction:
        reason = validate_optional_text(reason, "Reason", 200)
        original = self.get_transaction(transaction_id, user_id)

        if original.tx_type != TransactionType.PAYMENT:
            raise ValidationError("REFUND_NOT_ALLOWED", "Only payment transactions can be refunded")
        if original.status != TransactionStatus.SUCCESS:
            raise StateError("TRANSACTION_NOT_COMPLETED", "Only completed transactions can be refunded")
        if self.gateway.find_refund_of(original.id) is not None:
            raise StateError("ALREADY_REFUNDED", "Transaction has already been refunded")
        now = self.clock()
        check_refund_window(as_utc(original.created_at), now, self.limits).enforce()

        amount = Decimal(original.amount).quantize(CENT)
        check_wallet_ceiling(self._balance(user_id), amount, self.limits).enforce()

        refund = Transaction(
            user_id=user_id,
            card_id=original.card_id,
            merchant_id=original.merchant_id,
            amount=amount,
            tx_type=TransactionType.REFUND,
            status=TransactionStatus.PENDING,
            reference=generate_reference(),
            description=refund_description(original.id, reason),
            refund_of_id=original.id,
            created_at=now,
        )
        reference = refund.reference

        if not self.gateway.credit_wallet(user_id, amount, reference=reference, description=refund.description):
            raise PersistenceError("REFUND_FAILED", "Failed to process refund", reference=reference)

        refund.transition_to(TransactionStatus.SUCCESS, self.clock())
        if not self.gateway.insert_transaction(refund):
            self._compensate(self.gateway.debit_wallet, user_id, amount, reference, "refund")
            raise PersistenceError("REFUND_FAILED", "Failed to save refund transaction", reference=reference)

        logger.info("Refund %s of %s for transaction_id=%s succeeded", reference, amount, transaction_id)
        return refund

    def cancel_transaction(self, transaction_id: int, user_id: int) -> Transaction:
        transaction = self.get_transaction(transaction_id, user_id)
        if transaction.status != TransactionStatus.PENDING:
            raise StateError(
                "TRANSACTION_NOT_PENDING",
                f"Transaction {transaction.reference} is {transaction.status.value}",
                "Only pending transactions can be cancelled",
            )
        transaction.transition_to(TransactionStatus.CANCELLED, self.clock())
        if not self.gateway.save_transaction(transaction):
            raise PersistenceError("CANCEL_FAILED", "Failed to cancel transaction")
        logger.info("Transaction %s cancelled by user_id=%s", transaction.reference, user_id)
        return transaction

    # Wallet funding

    def add_funds(self, user_id: int, amount, source: Optional[str] = None, card_id: Optional[int] = None) -> WalletReceipt:
        validate_positive_id(user_id, "User ID")
        if card_id is not None:
            validate_positive_id(card_id, "Card ID")
        amount = validate_amount(amount)
        source = validate_optional_text(source, "Source", 100)

        self._require_active_user(user_id)
        if card_id is not None:
            self._require_usable_card(card_id, user_id)

        check_amount_cap(amount, self.limits).enforce()
        check_deposit_amount(amount, self.limits).enforce()
        check_wallet_ceiling(self._balance(user_id), amount, self.limits).enforce()

        reference = generate_reference("DEP")
        description = f"Deposit from {source}" if source else "Wallet deposit"
        if not self.gateway.credit_wallet(user_id, amount, reference=reference, description=description):
            raise PersistenceError("DEPOSIT_FAILED", "Failed to add funds to wallet", reference=reference)

        logger.info("Deposit %s of %s to user_id=%s succeeded", reference, amount, user_id)
        return WalletReceipt(reference, user_id, amount, self._balance(user_id), description)

    def withdraw_funds(
        self, user_id: int, amount, destination: Optional[str] = None, card_id: Optional[int] = None
    ) -> WalletReceipt:
        validate_positive_id(user_id, "User ID")
        if card_id is not None:
            validate_positive_id(card_id, "Card ID")
        amount = validate_amount(amount)
        destination = validate_optional_text(destination, "Destination", 100)

        self._require_active_user(user_id)
        if card_id is not None:
            self._require_usable_card(card_id, user_id)

        check_amount_cap(amount, self.limits).enforce()
        check_sufficient_balance(self._balance(user_id), amount).enforce()
        check_withdrawal_amount(amount, self.limits).enforce()

        reference = generate_reference("WDR")
        description = f"Withdrawal to {destination}" if destination else "Wallet withdrawal"
        if not self.gateway.debit_wallet(user_id, amount, reference=reference, description=description):
            raise PersistenceError("WITHDRAWAL_FAILED", "Failed to withdraw funds from wallet", reference=reference)

        logger.info("Withdrawal %s of %s from user_id=%s succeeded", reference, amount, user_id)
        return WalletReceipt(reference, user_id, amount, self._balance(user_id), description)

    def transfer_funds(self, from_user_id: int, to_user_id: int, amount, description: Optional[str] = None) -> TransferReceipt:
        validate_positive_id(from_user_id, "From User ID")
        validate_positive_id(to_user_id, "To User ID")
        amount = validate_amount(amount)
        description = validate_optional_text(description, "Description", 200)
        if from_user_id == to_user_id:
            raise ValidationError("SAME_WALLET_TRANSFER", "Cannot transfer funds to the same wallet")

        check_amount_cap(amount, self.limits).enforce()
        check_transfer_amount(amount, self.limits).enforce()

        self._require_active_user(from_user_id)
        self._require_active_user(to_user_id, role="Recipient")
        from_balance = self._balance(from_user_id)
        to_balance = self._balance(to_user_id)

        check_sufficient_balance(from_balance, amount).enforce()
        ceiling = check_wallet_ceiling(to_balance, amount, self.limits)
        if not ceiling.passed:
            ceiling = dataclasses.replace(
                ceiling,
                code="RECIPIENT_WALLET_LIMIT_EXCEEDED",
                reason="Transfer would exceed recipient's wallet limit",
            )
        ceiling.enforce()

        reference = generate_reference("TRF")
        text = description or "Wallet transfer"
        if not self.gateway.debit_wallet(
            from_user_id, amount, reference=reference, description=f"{text} to user #{to_user_id}"
        ):
            raise PersistenceError("TRANSFER_FAILED", "Failed to deduct funds from sender wallet", reference=reference)

        if not self.gateway.credit_wallet(
            to_user_id, amount, reference=reference, description=f"{text} from user #{from_user_id}"
        ):
            self._compensate(self.gateway.credit_wallet, from_user_id, amount, reference, "transfer")
            raise PersistenceError("TRANSFER_FAILED", "Failed to add funds to recipient wallet", reference=reference)

        logger.info("Transfer %s of %s from user_id=%s to user_id=%s succeeded", reference, amount, from_user_id, to_user_id)
        return TransferReceipt(
            reference=reference,
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            amount=amount,
            from_balance=self._balance(from_user_id),
            to_balance=self._balance(to_user_id),
            description=text,
        )

    # Reads

    def get_transaction(self, transaction_id: int, user_id: int) -> Transaction:
        validate_positive_id(transaction_id, "Transaction ID")
        validate_positive_id(user_id, "User ID")
        transaction = self.gateway.get_transaction_by_id(transaction_id)
        if transaction is None:
            raise NotFoundError("TRANSACTION_NOT_FOUND", "Transaction not found")
        if transaction.user_id != user_id:
            raise AuthorizationError(
                "TRANSACTION_UNAUTHORIZED", "You are not authorized to view this transaction"
            )
        return transaction

    def transaction_history(self, user_id: int, limit: int = 50, offset: int = 0) -> list[Transaction]:
        validate_positive_id(user_id, "User ID")
        validate_range(limit, "Limit", 1, 200)
        validate_range(offset, "Offset", 0, 1_000_000)
        return self.gateway.list_transactions(user_id, limit, offset)

    def monthly_spending(self, user_id: int, year: int, month: int) -> Decimal:
        validate_positive_id(user_id, "User ID")
        validate_range(year, "Year", 2020, 2100)
        validate_range(month, "Month", 1, 12)
        start = datetime(year, month, 1, tzinfo=timezone.utc)
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc) if month == 12 else datetime(year, month + 1, 1, tzinfo=timezone.utc)
        return self.gateway.sum_successful_payments_between(user_id, start, end)

    def validate_payment_limits(self, user_id: int, amount) -> Decimal:
        """Run the payment caps without moving money; returns today's remaining allowance."""
        validate_positive_id(user_id, "User ID")
        amount = validate_amount(amount)
        check_amount_cap(amount, self.limits).enforce()
        check_payment_amount(amount, self.limits).enforce()
        spent_today = self.gateway.sum_successful_payments_today(user_id, now=self.clock())
        check_daily_spend(spent_today, amount, self.limits).enforce()
        return self.limits.daily_spend_limit - spent_today
