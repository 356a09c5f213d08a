from sqlalchemy import Column, Integer, String, Boolean, Index, DateTime
from sqlalchemy.orm import relationship
from nfcpay.core.database import Base
from nfcpay.models.base import TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(100), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    wallet = relationship("Wallet", back_populates="user", uselist=False)
    cards = relationship("Card", back_populates="user")
    transactions = relationship("Transaction", back_populates="user")


Index("ix_users_email_active", User.email, User.is_active)
