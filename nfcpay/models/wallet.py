import enum
from sqlalchemy import Column, Integer, ForeignKey, Numeric, Enum, Index
from sqlalchemy.orm import relationship
from nfcpay.core.database import Base
from nfcpay.models.base import TimestampMixin


class Currency(str, enum.Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    RWF = "RWF"


class Wallet(Base, TimestampMixin):
    __tablename__ = "wallets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    balance = Column(Numeric(12, 2), default=0, nullable=False)
    currency = Column(Enum(Currency), default=Currency.USD, nullable=False)

    user = relationship("User", back_populates="wallet")
    ledger_entries = relationship("WalletLedger", back_populates="wallet")


Index("ix_wallets_user_id", Wallet.user_id)
