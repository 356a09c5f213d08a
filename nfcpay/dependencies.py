from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from nfcpay.core.config import get_settings
from nfcpay.core.database import get_db
from nfcpay.core.security import decode_token
from nfcpay.models import User
from nfcpay.services.gateway import LedgerGateway
from nfcpay.services.ledger import LedgerService
from nfcpay.services.limits import LedgerLimits

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if payload.get("type") != "access":
        raise HTTPException(status_code=401, detail="Invalid token")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user


def get_limits() -> LedgerLimits:
    return LedgerLimits.from_settings(get_settings())


def get_ledger(db: Session = Depends(get_db), limits: LedgerLimits = Depends(get_limits)) -> LedgerService:
    return LedgerService(LedgerGateway(db), limits)
