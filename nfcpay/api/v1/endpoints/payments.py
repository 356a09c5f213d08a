from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from nfcpay.dependencies import get_current_user, get_ledger
from nfcpay.middlewares.rate_limit import limiter
from nfcpay.models import User
from nfcpay.schemas.transaction import (
    LimitCheckOut,
    LimitCheckRequest,
    MonthlySpendingOut,
    PaymentRequest,
    RefundRequest,
    TransactionOut,
)
from nfcpay.services.ledger import LedgerService

router = APIRouter()


@router.post("", response_model=TransactionOut, status_code=201)
@limiter.limit("20/minute")
def pay(
    request: Request,
    payload: PaymentRequest,
    user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger),
):
    return ledger.process_payment(user.id, payload.card_id, payload.merchant_id, payload.amount, payload.description)


@router.get("/history", response_model=list[TransactionOut])
def history(
    limit: int = Query(50),
    offset: int = Query(0),
    user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger),
):
    return ledger.transaction_history(user.id, limit=limit, offset=offset)


@router.get("/spending/monthly", response_model=MonthlySpendingOut)
def monthly_spending(
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None),
    user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger),
):
    now = datetime.now(timezone.utc)
    year = year or now.year
    month = month or now.month
    total = ledger.monthly_spending(user.id, year, month)
    return MonthlySpendingOut(year=year, month=month, total=total)


@router.post("/limits/check", response_model=LimitCheckOut)
def check_limits(
    payload: LimitCheckRequest,
    user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger),
):
    remaining = ledger.validate_payment_limits(user.id, payload.amount)
    return LimitCheckOut(daily_remaining=remaining)


@router.get("/{transaction_id}", response_model=TransactionOut)
def get_transaction(
    transaction_id: int,
    user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger),
):
    return ledger.get_transaction(transaction_id, user.id)


@router.post("/{transaction_id}/refund", response_model=TransactionOut, status_code=201)
@limiter.limit("10/minute")
def refund(
    request: Request,
    transaction_id: int,
    payload: RefundRequest,
    user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger),
):
    return ledger.refund_payment(transaction_id, user.id, payload.reason)


@router.post("/{transaction_id}/cancel", response_model=TransactionOut)
def cancel(
    transaction_id: int,
    user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger),
):
    return ledger.cancel_transaction(transaction_id, user.id)
