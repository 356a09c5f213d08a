import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from nfcpay.core.errors import NotFoundError, ValidationError
from nfcpay.models import Merchant
from nfcpay.services.validation import normalize_merchant_code, validate_positive_id, validate_string_length

logger = logging.getLogger(__name__)


DEFAULT_MERCHANTS = [
    {"merchant_name": "Campus Cafe", "merchant_code": "CAFE001", "category": "Food & Beverage"},
    {"merchant_name": "City Supermarket", "merchant_code": "SUPER01", "category": "Groceries"},
    {"merchant_name": "Metro Transit", "merchant_code": "TRANS01", "category": "Transport"},
    {"merchant_name": "Book Corner", "merchant_code": "BOOK001", "category": "Retail"},
    {"merchant_name": "Green Pharmacy", "merchant_code": "PHARM01", "category": "Health"},
    {"merchant_name": "Cinema Plaza", "merchant_code": "CINE001", "category": "Entertainment"},
]


def create_merchant(db: Session, *, merchant_name: str, merchant_code: str, category: str, is_active: bool = True) -> Merchant:
    merchant_name = validate_string_length(merchant_name, "Merchant name", 2, 100)
    merchant_code = normalize_merchant_code(merchant_code)
    category = validate_string_length(category, "Category", 1, 50)

    if not is_merchant_code_available(db, merchant_code):
        raise ValidationError("MERCHANT_CODE_TAKEN", f"Merchant code {merchant_code} is already in use")

    merchant = Merchant(merchant_name=merchant_name, merchant_code=merchant_code, category=category, is_active=is_active)
    db.add(merchant)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("MERCHANT_CODE_TAKEN", f"Merchant code {merchant_code} is already in use")
    db.refresh(merchant)
    return merchant


def seed_default_merchants(db: Session) -> int:
    created = 0
    for item in DEFAULT_MERCHANTS:
        if db.query(Merchant.id).filter(Merchant.merchant_code == item["merchant_code"]).first():
            continue
        db.add(Merchant(**item))
        created += 1
    if created:
        db.commit()
        logger.info("Seeded %s merchant(s).", created)
    return created


def get_merchant(db: Session, merchant_id: int) -> Merchant:
    validate_positive_id(merchant_id, "Merchant ID")
    merchant = db.get(Merchant, merchant_id)
    if not merchant:
        raise NotFoundError("MERCHANT_NOT_FOUND", "Merchant not found")
    return merchant


def get_merchant_by_code(db: Session, merchant_code: str) -> Merchant:
    code = normalize_merchant_code(merchant_code)
    merchant = db.query(Merchant).filter(Merchant.merchant_code == code).first()
    if not merchant:
        raise NotFoundError("MERCHANT_NOT_FOUND", f"Merchant not found with code: {code}")
    return merchant


def is_merchant_code_available(db: Session, merchant_code: str) -> bool:
    code = normalize_merchant_code(merchant_code)
    return db.query(Merchant.id).filter(Merchant.merchant_code == code).first() is None


def list_active_merchants(db: Session) -> list[Merchant]:
    return db.query(Merchant).filter(Merchant.is_active.is_(True)).order_by(Merchant.merchant_name).all()


def list_all_merchants(db: Session) -> list[Merchant]:
    return db.query(Merchant).order_by(Merchant.merchant_name).all()


def list_merchants_by_category(db: Session, category: str) -> list[Merchant]:
    category = validate_string_length(category, "Category", 1, 50)
    return (
        db.query(Merchant)
        .filter(Merchant.category == category, Merchant.is_active.is_(True))
        .order_by(Merchant.merchant_name)
        .all()
    )


def list_categories(db: Session) -> list[str]:
    rows = db.query(Merchant.category).distinct().order_by(Merchant.category).all()
    return [row[0] for row in rows]


def search_merchants(db: Session, search_term: Optional[str]) -> list[Merchant]:
    term = (search_term or "").strip()
    if not term:
        raise ValidationError("VALIDATION_ERROR", "Search term is required")
    if len(term) < 2:
        raise ValidationError("VALIDATION_ERROR", "Search term must be at least 2 characters")
    needle = term.lower()
    return [merchant for merchant in list_active_merchants(db) if needle in merchant.merchant_name.lower()]
