import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from nfcpay.core.errors import PersistenceError, StateError, ValidationError
from nfcpay.core.security import hash_password, verify_password
from nfcpay.models import User
from nfcpay.models.base import utcnow
from nfcpay.services.validation import normalize_email, validate_optional_text, validate_password, validate_string_length
from nfcpay.services.wallet import new_wallet

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def register_user(db: Session, *, full_name: str, email: str, password: str, phone: Optional[str] = None) -> User:
    full_name = validate_string_length(full_name, "Full name", 2, 100)
    email = normalize_email(email)
    validate_password(password)
    phone = validate_optional_text(phone, "Phone", 32)

    if get_user_by_email(db, email):
        raise ValidationError("EMAIL_TAKEN", "Email already registered")

    user = User(
        full_name=full_name,
        email=email,
        hashed_password=hash_password(password),
        phone=phone,
        is_active=True,
    )
    db.add(user)
    try:
        db.flush()
        # Every account gets its wallet at registration, starting from zero.
        db.add(new_wallet(user.id))
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("EMAIL_TAKEN", "Email already registered")
    db.refresh(user)
    logger.info("Registered user_id=%s", user.id)
    return user


def authenticate(db: Session, *, email: str, password: str) -> User:
    email = normalize_email(email)
    if not password:
        raise ValidationError("VALIDATION_ERROR", "Password is required")

    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.hashed_password):
        raise ValidationError("INVALID_CREDENTIALS", INVALID_CREDENTIALS)
    if not user.is_active:
        raise StateError("USER_INACTIVE", "Account is deactivated. Please contact support.")

    user.last_login_at = utcnow()
    db.commit()
    return user


def change_password(db: Session, user: User, *, current_password: str, new_password: str) -> None:
    if not verify_password(current_password or "", user.hashed_password):
        raise ValidationError("INVALID_CREDENTIALS", "Current password is incorrect")
    validate_password(new_password)

    user.hashed_password = hash_password(new_password)
    db.commit()


def update_profile(db: Session, user: User, *, full_name: str, email: Optional[str] = None, phone: Optional[str] = None) -> User:
    full_name = validate_string_length(full_name, "Full name", 2, 100)
    if email is not None:
        email = normalize_email(email)
        existing = get_user_by_email(db, email)
        if existing and existing.id != user.id:
            raise ValidationError("EMAIL_TAKEN", "Email already in use by another account")
        user.email = email

    user.full_name = full_name
    if phone is not None:
        user.phone = validate_optional_text(phone, "Phone", 32)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise PersistenceError("PROFILE_UPDATE_FAILED", "Failed to update user profile") from exc
    db.refresh(user)
    return user


def deactivate_account(db: Session, user: User) -> User:
    # Soft delete: the row, wallet and history stay.
    if not user.is_active:
        raise StateError("USER_INACTIVE", "Account is already deactivated")
    user.is_active = False
    db.commit()
    logger.info("Deactivated user_id=%s", user.id)
    return user
