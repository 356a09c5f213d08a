from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict
from nfcpay.models.wallet import Currency
from nfcpay.models.wallet_ledger import LedgerType


class WalletOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    balance: Decimal
    currency: Currency


class LedgerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
    amount: Decimal
    entry_type: LedgerType
    reference: str
    description: str
    balance_after: Decimal


class DepositRequest(BaseModel):
    amount: Decimal
    source: Optional[str] = None
    card_id: Optional[int] = None


class WithdrawRequest(BaseModel):
    amount: Decimal
    destination: Optional[str] = None
    card_id: Optional[int] = None


class TransferRequest(BaseModel):
    recipient_email: str
    amount: Decimal
    description: Optional[str] = None


class WalletReceiptOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reference: str
    amount: Decimal
    balance: Decimal
    description: str


class TransferReceiptOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reference: str
    to_user_id: int
    amount: Decimal
    from_balance: Decimal
    description: str
