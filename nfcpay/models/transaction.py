import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Enum, Index, DateTime
from sqlalchemy.orm import relationship
from nfcpay.core.database import Base
from nfcpay.core.errors import StateError
from nfcpay.models.base import TimestampMixin, utcnow


class TransactionStatus(str, enum.Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class TransactionType(str, enum.Enum):
    PAYMENT = "PAYMENT"
    REFUND = "REFUND"


TERMINAL_STATUSES = frozenset({TransactionStatus.SUCCESS, TransactionStatus.FAILED, TransactionStatus.CANCELLED})


class Transaction(Base, TimestampMixin):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    card_id = Column(Integer, ForeignKey("cards.id", ondelete="SET NULL"), nullable=True)
    merchant_id = Column(Integer, ForeignKey("merchants.id"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    tx_type = Column(Enum(TransactionType), nullable=False)
    status = Column(Enum(TransactionStatus), nullable=False, default=TransactionStatus.PENDING)
    reference = Column(String(64), unique=True, nullable=False, index=True)
    description = Column(String(255), nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    refund_of_id = Column(Integer, ForeignKey("transactions.id"), nullable=True, index=True)

    user = relationship("User", back_populates="transactions")
    card = relationship("Card")
    merchant = relationship("Merchant")

    def transition_to(self, status: TransactionStatus, at: datetime | None = None) -> None:
        # PENDING is the only non-terminal state; nothing moves back into it.
        current = self.status or TransactionStatus.PENDING
        if current in TERMINAL_STATUSES:
            raise StateError(
                "TRANSACTION_FINALIZED",
                f"Transaction {self.reference} is already {current.value}",
                "This transaction can no longer be changed.",
            )
        if status not in TERMINAL_STATUSES:
            raise StateError(
                "INVALID_TRANSITION",
                f"Cannot move transaction from {current.value} to {status.value}",
            )
        self.status = status
        self.processed_at = at or utcnow()


Index("ix_transactions_user_status", Transaction.user_id, Transaction.status)
Index("ix_transactions_user_type_created", Transaction.user_id, Transaction.tx_type, Transaction.created_at)
