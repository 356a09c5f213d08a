from pydantic import BaseModel, ConfigDict
from decimal import Decimal
from datetime import datetime
from typing import Optional
from nfcpay.models.transaction import TransactionStatus, TransactionType


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    reference: str
    card_id: Optional[int] = None
    merchant_id: int
    amount: Decimal
    tx_type: TransactionType
    status: TransactionStatus
    description: Optional[str] = None
    refund_of_id: Optional[int] = None


class PaymentRequest(BaseModel):
    card_id: int
    merchant_id: int
    amount: Decimal
    description: Optional[str] = None


class RefundRequest(BaseModel):
    reason: Optional[str] = None


class LimitCheckRequest(BaseModel):
    amount: Decimal


class LimitCheckOut(BaseModel):
    allowed: bool = True
    daily_remaining: Decimal


class MonthlySpendingOut(BaseModel):
    year: int
    month: int
    total: Decimal
