from sqlalchemy import Column, Integer, String, Boolean, Index
from nfcpay.core.database import Base
from nfcpay.models.base import TimestampMixin


class Merchant(Base, TimestampMixin):
    __tablename__ = "merchants"

    id = Column(Integer, primary_key=True, index=True)
    merchant_name = Column(String(100), nullable=False)
    merchant_code = Column(String(10), unique=True, nullable=False, index=True)
    category = Column(String(50), nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)


Index("ix_merchants_category_active", Merchant.category, Merchant.is_active)
