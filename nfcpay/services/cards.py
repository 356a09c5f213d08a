import logging
import secrets

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from nfcpay.core.errors import AuthorizationError, NotFoundError, PersistenceError, StateError, ValidationError
from nfcpay.models import Card, CardType, Transaction, User
from nfcpay.services.limits import LedgerLimits, check_card_count
from nfcpay.services.validation import validate_positive_id, validate_string_length

logger = logging.getLogger(__name__)

CARD_UID_LENGTH = 16


def generate_card_uid() -> str:
    return "".join(secrets.choice("0123456789") for _ in range(CARD_UID_LENGTH))


def _card_uid_exists(db: Session, card_uid: str) -> bool:
    return db.query(Card.id).filter(Card.card_uid == card_uid).first() is not None


def count_active_cards(db: Session, user_id: int) -> int:
    return int(db.query(func.count(Card.id)).filter(Card.user_id == user_id, Card.is_active.is_(True)).scalar() or 0)


def _ensure_unique_name(db: Session, user_id: int, card_name: str, exclude_card_id: int | None = None) -> None:
    query = db.query(Card.id).filter(Card.user_id == user_id, func.lower(Card.card_name) == card_name.lower())
    if exclude_card_id is not None:
        query = query.filter(Card.id != exclude_card_id)
    if query.first() is not None:
        raise ValidationError("CARD_NAME_TAKEN", "Card name already exists. Please choose a different name.")


def _require_active_user(user: User) -> None:
    if not user.is_active:
        raise StateError("USER_INACTIVE", "User account is not active")


def get_card(db: Session, card_id: int, user_id: int) -> Card:
    validate_positive_id(card_id, "Card ID")
    validate_positive_id(user_id, "User ID")
    card = db.get(Card, card_id)
    if not card:
        raise NotFoundError("CARD_NOT_FOUND", "Card not found")
    if card.user_id != user_id:
        raise AuthorizationError("CARD_UNAUTHORIZED", "You are not authorized to access this card")
    return card


def list_cards(db: Session, user_id: int) -> list[Card]:
    return db.query(Card).filter(Card.user_id == user_id).order_by(Card.created_at.desc(), Card.id.desc()).all()


def list_active_cards(db: Session, user_id: int) -> list[Card]:
    return (
        db.query(Card)
        .filter(Card.user_id == user_id, Card.is_active.is_(True))
        .order_by(Card.created_at.desc(), Card.id.desc())
        .all()
    )


def add_card(db: Session, user: User, card_name: str, card_type: CardType, limits: LedgerLimits) -> Card:
    card_name = validate_string_length(card_name, "Card name", 2, 50)
    if card_type is None:
        raise ValidationError("VALIDATION_ERROR", "Card type cannot be null")
    card_type = CardType(card_type)
    _require_active_user(user)

    check_card_count(count_active_cards(db, user.id), limits).enforce()
    _ensure_unique_name(db, user.id, card_name)

    card_uid = generate_card_uid()
    while _card_uid_exists(db, card_uid):
        card_uid = generate_card_uid()

    card = Card(user_id=user.id, card_uid=card_uid, card_name=card_name, card_type=card_type, is_active=True)
    db.add(card)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise PersistenceError("CARD_CREATE_FAILED", "Failed to create card") from exc
    db.refresh(card)
    logger.info("Added %s card_id=%s for user_id=%s", card_type.value, card.id, user.id)
    return card


def rename_card(db: Session, card_id: int, user_id: int, card_name: str) -> Card:
    card_name = validate_string_length(card_name, "Card name", 2, 50)
    card = get_card(db, card_id, user_id)
    _ensure_unique_name(db, user_id, card_name, exclude_card_id=card.id)
    card.card_name = card_name
    db.commit()
    db.refresh(card)
    return card


def activate_card(db: Session, card_id: int, user_id: int, limits: LedgerLimits) -> Card:
    card = get_card(db, card_id, user_id)
    if card.is_active:
        raise StateError("CARD_ALREADY_ACTIVE", "Card is already active")
    # Reactivating counts against the same cap as adding.
    check_card_count(count_active_cards(db, user_id), limits).enforce()
    card.is_active = True
    db.commit()
    db.refresh(card)
    return card


def deactivate_card(db: Session, card_id: int, user_id: int) -> Card:
    card = get_card(db, card_id, user_id)
    if not card.is_active:
        raise StateError("CARD_ALREADY_INACTIVE", "Card is already deactivated")
    card.is_active = False
    db.commit()
    db.refresh(card)
    return card


def delete_card(db: Session, card_id: int, user_id: int) -> None:
    card = get_card(db, card_id, user_id)
    # Payment history drops its link to the deleted card.
    db.execute(
        update(Transaction)
        .where(Transaction.card_id == card.id)
        .values(card_id=None)
        .execution_options(synchronize_session=False)
    )
    db.delete(card)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise PersistenceError("CARD_DELETE_FAILED", "Failed to delete card") from exc
    logger.info("Deleted card_id=%s for user_id=%s", card_id, user_id)


def can_add_more_cards(db: Session, user_id: int, limits: LedgerLimits) -> bool:
    return check_card_count(count_active_cards(db, user_id), limits).passed
