"""Error taxonomy shared by the ledger core, the supporting services and the API.

Every failure carries a machine-readable ``code``, a message for logs and a
``user_message`` safe to show to the account holder. The ``kind`` tag groups
codes into the five categories callers are expected to handle.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    STATE = "state"
    LIMIT_EXCEEDED = "limit_exceeded"
    PERSISTENCE = "persistence"


class NFCPayError(Exception):
    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, code: str, message: str, user_message: Optional[str] = None, **details: Any):
        super().__init__(message)
        self.code = code
        self.message = message
        self.user_message = user_message or message
        self.details = details

    def to_dict(self) -> dict:
        payload = {
            "code": self.code,
            "kind": self.kind.value,
            "message": self.user_message,
        }
        if self.details:
            payload["details"] = {key: _jsonable(value) for key, value in self.details.items()}
        return payload

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(NFCPayError):
    kind = ErrorKind.VALIDATION


class NotFoundError(ValidationError):
    pass


class AuthorizationError(NFCPayError):
    kind = ErrorKind.AUTHORIZATION


class StateError(NFCPayError):
    kind = ErrorKind.STATE


class LimitExceededError(NFCPayError):
    kind = ErrorKind.LIMIT_EXCEEDED

    @property
    def limit(self):
        return self.details.get("limit")

    @property
    def attempted(self):
        return self.details.get("attempted")

    @property
    def available(self):
        return self.details.get("available")


class PersistenceError(NFCPayError):
    kind = ErrorKind.PERSISTENCE


class CompensationFailedError(PersistenceError):
    """A reversing mutation failed; the wallet may be out of balance."""


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    return str(value)


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: Optional[T] = None
    error: Optional[NFCPayError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error is not None else None


def attempt(func: Callable[..., T], *args: Any, **kwargs: Any) -> Outcome[T]:
    try:
        return Outcome(value=func(*args, **kwargs))
    except NFCPayError as exc:
        return Outcome(error=exc)
