import enum
from sqlalchemy import Column, Integer, String, ForeignKey, Boolean, Enum, Index
from sqlalchemy.orm import relationship
from nfcpay.core.database import Base
from nfcpay.models.base import TimestampMixin


class CardType(str, enum.Enum):
    VIRTUAL = "VIRTUAL"
    PHYSICAL = "PHYSICAL"


class Card(Base, TimestampMixin):
    __tablename__ = "cards"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    card_uid = Column(String(16), unique=True, nullable=False, index=True)
    card_name = Column(String(50), nullable=False)
    card_type = Column(Enum(CardType), nullable=False, default=CardType.VIRTUAL)
    is_active = Column(Boolean, default=True, nullable=False)

    user = relationship("User", back_populates="cards")


Index("ix_cards_user_active", Card.user_id, Card.is_active)
