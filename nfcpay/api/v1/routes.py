from fastapi import APIRouter
from nfcpay.api.v1.endpoints import auth, wallet, cards, merchants, payments

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(wallet.router, prefix="/wallet", tags=["wallet"])
router.include_router(cards.router, prefix="/cards", tags=["cards"])
router.include_router(merchants.router, prefix="/merchants", tags=["merchants"])
router.include_router(payments.router, prefix="/payments", tags=["payments"])
