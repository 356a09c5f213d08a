from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from nfcpay.core.database import get_db
from nfcpay.dependencies import get_current_user, get_limits
from nfcpay.models import User
from nfcpay.schemas.auth import Message
from nfcpay.schemas.card import CardCreateRequest, CardOut, CardRenameRequest
from nfcpay.services import cards as card_service
from nfcpay.services.limits import LedgerLimits

router = APIRouter()


@router.get("", response_model=list[CardOut])
def list_cards(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return card_service.list_cards(db, user.id)


@router.get("/active", response_model=list[CardOut])
def list_active_cards(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return card_service.list_active_cards(db, user.id)


@router.post("", response_model=CardOut, status_code=201)
def add_card(
    payload: CardCreateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    limits: LedgerLimits = Depends(get_limits),
):
    return card_service.add_card(db, user, payload.card_name, payload.card_type, limits)


@router.get("/{card_id}", response_model=CardOut)
def get_card(card_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return card_service.get_card(db, card_id, user.id)


@router.patch("/{card_id}", response_model=CardOut)
def rename_card(
    card_id: int,
    payload: CardRenameRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return card_service.rename_card(db, card_id, user.id, payload.card_name)


@router.post("/{card_id}/activate", response_model=CardOut)
def activate_card(
    card_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    limits: LedgerLimits = Depends(get_limits),
):
    return card_service.activate_card(db, card_id, user.id, limits)


@router.post("/{card_id}/deactivate", response_model=CardOut)
def deactivate_card(card_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return card_service.deactivate_card(db, card_id, user.id)


@router.delete("/{card_id}", response_model=Message)
def delete_card(card_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    card_service.delete_card(db, card_id, user.id)
    return Message(message="Card deleted")
