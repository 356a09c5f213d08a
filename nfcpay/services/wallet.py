from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Session
from nfcpay.core.config import get_settings
from nfcpay.models import Currency, Wallet, WalletLedger, LedgerType
from nfcpay.services.validation import CENT


def get_wallet(db: Session, user_id: int) -> Optional[Wallet]:
    return db.query(Wallet).filter(Wallet.user_id == user_id).first()


def new_wallet(user_id: int) -> Wallet:
    return Wallet(user_id=user_id, balance=Decimal("0"), currency=Currency(get_settings().default_currency))


def get_or_create_wallet(db: Session, user_id: int) -> Wallet:
    wallet = get_wallet(db, user_id)
    if not wallet:
        wallet = new_wallet(user_id)
        db.add(wallet)
        db.commit()
        db.refresh(wallet)
    return wallet


def list_ledger_entries(db: Session, wallet: Wallet, limit: int = 50) -> list[WalletLedger]:
    return (
        db.query(WalletLedger)
        .filter(WalletLedger.wallet_id == wallet.id)
        .order_by(WalletLedger.id.desc())
        .limit(limit)
        .all()
    )


def _apply(
    db: Session,
    user_id: int,
    amount: Decimal,
    entry_type: LedgerType,
    reference: str,
    description: str,
) -> Optional[WalletLedger]:
    """Move the balance and write the ledger line in one commit.

    The new balance is computed in Decimal and written back whole, so the
    store never does money arithmetic. Returns None without touching anything
    when the wallet is missing or, for a debit, when the balance does not
    cover the amount.
    """
    wallet = (
        db.query(Wallet)
        .filter(Wallet.user_id == user_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if wallet is None:
        return None

    current = Decimal(str(wallet.balance or 0)).quantize(CENT)
    if entry_type == LedgerType.DEBIT:
        new_balance = current - amount
        if new_balance < 0:
            db.rollback()
            return None
    else:
        new_balance = current + amount
    new_balance = new_balance.quantize(CENT)

    wallet.balance = new_balance
    entry = WalletLedger(
        wallet_id=wallet.id,
        amount=amount,
        entry_type=entry_type,
        reference=reference,
        description=description[:255],
        balance_after=new_balance,
    )
    db.add(entry)
    db.commit()
    return entry


def credit_wallet(db: Session, user_id: int, amount: Decimal, reference: str, description: str) -> Optional[WalletLedger]:
    return _apply(db, user_id, amount, LedgerType.CREDIT, reference, description)


def debit_wallet(db: Session, user_id: int, amount: Decimal, reference: str, description: str) -> Optional[WalletLedger]:
    return _apply(db, user_id, amount, LedgerType.DEBIT, reference, description)
