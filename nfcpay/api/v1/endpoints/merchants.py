from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from nfcpay.core.database import get_db
from nfcpay.dependencies import get_current_user
from nfcpay.models import User
from nfcpay.schemas.merchant import CodeAvailability, MerchantOut
from nfcpay.services import merchants as merchant_service

router = APIRouter()


@router.get("", response_model=list[MerchantOut])
def list_merchants(
    category: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if category:
        return merchant_service.list_merchants_by_category(db, category)
    return merchant_service.list_active_merchants(db)


@router.get("/all", response_model=list[MerchantOut])
def list_all_merchants(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return merchant_service.list_all_merchants(db)


@router.get("/categories", response_model=list[str])
def list_categories(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return merchant_service.list_categories(db)


@router.get("/search", response_model=list[MerchantOut])
def search_merchants(q: str = Query(""), user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return merchant_service.search_merchants(db, q)


@router.get("/code/{merchant_code}", response_model=MerchantOut)
def get_merchant_by_code(merchant_code: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return merchant_service.get_merchant_by_code(db, merchant_code)


@router.get("/code/{merchant_code}/available", response_model=CodeAvailability)
def merchant_code_available(merchant_code: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    available = merchant_service.is_merchant_code_available(db, merchant_code)
    return CodeAvailability(merchant_code=merchant_code.strip().upper(), available=available)


@router.get("/{merchant_id}", response_model=MerchantOut)
def get_merchant(merchant_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return merchant_service.get_merchant(db, merchant_id)
