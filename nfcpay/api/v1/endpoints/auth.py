import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from jose import JWTError
from sqlalchemy.orm import Session
from nfcpay.core.security import create_access_token, create_refresh_token, decode_token
from nfcpay.core.database import get_db
from nfcpay.middlewares.rate_limit import limiter
from nfcpay.models import User
from nfcpay.schemas.auth import RegisterRequest, LoginRequest, TokenPair, RefreshRequest, Message, ChangePasswordRequest, UpdateMeRequest
from nfcpay.schemas.user import UserOut
from nfcpay.dependencies import get_current_user
from nfcpay.services import auth as auth_service

router = APIRouter()
logger = logging.getLogger(__name__)


def _token_pair(user: User) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(str(user.id)),
        refresh_token=create_refresh_token(str(user.id)),
    )


@router.post("/register", response_model=UserOut)
@limiter.limit("10/minute")
def register(request: Request, payload: RegisterRequest, db: Session = Depends(get_db)):
    return auth_service.register_user(
        db,
        full_name=payload.full_name,
        email=payload.email,
        password=payload.password,
        phone=payload.phone,
    )


@router.post("/login", response_model=TokenPair)
@limiter.limit("10/minute")
def login(request: Request, payload: LoginRequest, db: Session = Depends(get_db)):
    user = auth_service.authenticate(db, email=payload.email, password=payload.password)
    return _token_pair(user)


@router.post("/refresh", response_model=TokenPair)
@limiter.limit("30/minute")
def refresh(request: Request, payload: RefreshRequest, db: Session = Depends(get_db)):
    try:
        decoded = decode_token(payload.refresh_token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    if decoded.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    try:
        user_id = int(decoded.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")

    return _token_pair(user)


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user


@router.patch("/me", response_model=UserOut)
def update_me(payload: UpdateMeRequest, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return auth_service.update_profile(db, user, full_name=payload.full_name, email=payload.email, phone=payload.phone)


@router.post("/change-password", response_model=Message)
@limiter.limit("5/minute")
def change_password(
    request: Request,
    payload: ChangePasswordRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    auth_service.change_password(db, user, current_password=payload.current_password, new_password=payload.new_password)
    return Message(message="Password updated successfully")


@router.post("/deactivate", response_model=Message)
def deactivate(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    auth_service.deactivate_account(db, user)
    return Message(message="Account deactivated")
