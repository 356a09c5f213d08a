from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from nfcpay.core.database import get_db
from nfcpay.core.errors import NotFoundError
from nfcpay.dependencies import get_current_user, get_ledger
from nfcpay.middlewares.rate_limit import limiter
from nfcpay.models import User
from nfcpay.schemas.wallet import (
    DepositRequest,
    LedgerOut,
    TransferReceiptOut,
    TransferRequest,
    WalletOut,
    WalletReceiptOut,
    WithdrawRequest,
)
from nfcpay.services.auth import get_user_by_email
from nfcpay.services.ledger import LedgerService
from nfcpay.services.wallet import get_or_create_wallet, list_ledger_entries

router = APIRouter()


@router.get("/me", response_model=WalletOut)
def get_wallet(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return get_or_create_wallet(db, user.id)


@router.get("/ledger", response_model=list[LedgerOut])
def get_ledger_entries(
    limit: int = Query(50, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    wallet = get_or_create_wallet(db, user.id)
    return list_ledger_entries(db, wallet, limit=limit)


@router.post("/deposit", response_model=WalletReceiptOut)
@limiter.limit("10/minute")
def deposit(
    request: Request,
    payload: DepositRequest,
    user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger),
):
    return ledger.add_funds(user.id, payload.amount, payload.source, card_id=payload.card_id)


@router.post("/withdraw", response_model=WalletReceiptOut)
@limiter.limit("10/minute")
def withdraw(
    request: Request,
    payload: WithdrawRequest,
    user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger),
):
    return ledger.withdraw_funds(user.id, payload.amount, payload.destination, card_id=payload.card_id)


@router.post("/transfer", response_model=TransferReceiptOut)
@limiter.limit("10/minute")
def transfer(
    request: Request,
    payload: TransferRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    ledger: LedgerService = Depends(get_ledger),
):
    recipient = get_user_by_email(db, payload.recipient_email)
    if not recipient:
        raise NotFoundError("RECIPIENT_NOT_FOUND", "Recipient not found")
    return ledger.transfer_funds(user.id, recipient.id, payload.amount, payload.description)
