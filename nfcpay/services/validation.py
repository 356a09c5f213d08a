import re
from decimal import Decimal, InvalidOperation

from nfcpay.core.errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
MERCHANT_CODE_PATTERN = re.compile(r"^[A-Z0-9]{3,10}$")

CENT = Decimal("0.01")


def _invalid(message: str, code: str = "VALIDATION_ERROR") -> ValidationError:
    return ValidationError(code, message)


def normalize_email(email: str | None) -> str:
    value = (email or "").strip()
    if not value:
        raise _invalid("Email is required")
    if not EMAIL_PATTERN.match(value):
        raise _invalid("Invalid email format", "INVALID_EMAIL")
    return value.lower()


def validate_password(password: str | None) -> str:
    if not password:
        raise _invalid("Password is required")
    if len(password) < 8:
        raise _invalid("Password must be at least 8 characters long", "WEAK_PASSWORD")
    # bcrypt only looks at the first 72 bytes.
    if len(password.encode("utf-8")) > 72:
        raise _invalid("Password too long (max 72 bytes)", "WEAK_PASSWORD")
    if not re.search(r"[A-Z]", password):
        raise _invalid("Password must contain at least one uppercase letter", "WEAK_PASSWORD")
    if not re.search(r"[a-z]", password):
        raise _invalid("Password must contain at least one lowercase letter", "WEAK_PASSWORD")
    if not re.search(r"\d", password):
        raise _invalid("Password must contain at least one digit", "WEAK_PASSWORD")
    return password


def validate_string_length(value: str | None, field_name: str, min_length: int, max_length: int) -> str:
    if value is None:
        raise _invalid(f"{field_name} is required")
    text = value.strip()
    if len(text) < min_length:
        raise _invalid(f"{field_name} must be at least {min_length} characters")
    if len(text) > max_length:
        raise _invalid(f"{field_name} cannot exceed {max_length} characters")
    return text


def validate_positive_id(value, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise _invalid(f"{field_name} must be a positive integer")
    return value


def validate_range(value: int, field_name: str, minimum: int, maximum: int) -> int:
    if value < minimum or value > maximum:
        raise _invalid(f"{field_name} must be between {minimum} and {maximum}")
    return value


def validate_amount(amount) -> Decimal:
    """Check the shape of a money amount and return it as a 2-place Decimal.

    Caps are not checked here; they live in the limits policy.
    """
    if amount is None:
        raise _invalid("Amount is required", "INVALID_AMOUNT")
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise _invalid("Amount must be a number", "INVALID_AMOUNT")
    if not value.is_finite():
        raise _invalid("Amount must be a number", "INVALID_AMOUNT")
    if value <= 0:
        raise _invalid("Amount must be greater than zero", "INVALID_AMOUNT")
    if value != value.quantize(CENT):
        raise _invalid("Amount cannot have more than 2 decimal places", "INVALID_AMOUNT")
    return value.quantize(CENT)


def normalize_merchant_code(code: str | None) -> str:
    value = (code or "").strip().upper()
    if not value:
        raise _invalid("Merchant code is required")
    if not MERCHANT_CODE_PATTERN.match(value):
        raise _invalid("Merchant code must be 3-10 alphanumeric characters", "INVALID_MERCHANT_CODE")
    return value


def validate_optional_text(value: str | None, field_name: str, max_length: int) -> str | None:
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    if len(text) > max_length:
        raise _invalid(f"{field_name} cannot exceed {max_length} characters")
    return text
