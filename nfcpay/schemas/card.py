from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict
from nfcpay.models.card import CardType


class CardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    card_uid: str
    card_name: str
    card_type: CardType
    is_active: bool
    created_at: Optional[datetime] = None


class CardCreateRequest(BaseModel):
    card_name: str
    card_type: CardType = CardType.VIRTUAL


class CardRenameRequest(BaseModel):
    card_name: str
