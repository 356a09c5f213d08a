from decimal import Decimal

import pytest

from nfcpay.core.errors import AuthorizationError, LimitExceededError, NotFoundError, StateError, ValidationError
from nfcpay.models import CardType, Transaction
from nfcpay.services import cards as card_service
from nfcpay.services import merchants as merchant_service
from nfcpay.services.limits import LedgerLimits

LIMITS = LedgerLimits(max_cards_per_user=2)


def test_add_card_generates_uid(db, make_user):
    user = make_user()
    card = card_service.add_card(db, user, "  Daily card ", CardType.PHYSICAL, LIMITS)

    assert card.card_name == "Daily card"
    assert card.card_type == CardType.PHYSICAL
    assert card.is_active is True
    assert len(card.card_uid) == 16 and card.card_uid.isdigit()


def test_card_cap_counts_active_cards(db, make_user):
    user = make_user()
    first = card_service.add_card(db, user, "One", CardType.VIRTUAL, LIMITS)
    card_service.add_card(db, user, "Two", CardType.VIRTUAL, LIMITS)

    with pytest.raises(LimitExceededError) as exc:
        card_service.add_card(db, user, "Three", CardType.VIRTUAL, LIMITS)
    assert exc.value.code == "CARD_LIMIT_EXCEEDED"
    assert card_service.can_add_more_cards(db, user.id, LIMITS) is False

    card_service.deactivate_card(db, first.id, user.id)
    third = card_service.add_card(db, user, "Three", CardType.VIRTUAL, LIMITS)

    with pytest.raises(LimitExceededError):
        card_service.activate_card(db, first.id, user.id, LIMITS)
    card_service.deactivate_card(db, third.id, user.id)
    assert card_service.activate_card(db, first.id, user.id, LIMITS).is_active is True


def test_card_names_are_unique_per_user(db, make_user):
    user = make_user()
    other = make_user()
    card_service.add_card(db, user, "Travel", CardType.VIRTUAL, LIMITS)
    card_service.add_card(db, other, "Travel", CardType.VIRTUAL, LIMITS)

    with pytest.raises(ValidationError) as exc:
        card_service.add_card(db, user, "travel", CardType.VIRTUAL, LIMITS)
    assert exc.value.code == "CARD_NAME_TAKEN"


def test_card_state_changes_and_ownership(db, make_user, make_card):
    owner = make_user()
    stranger = make_user()
    card = make_card(owner)

    with pytest.raises(AuthorizationError):
        card_service.get_card(db, card.id, stranger.id)
    with pytest.raises(NotFoundError):
        card_service.get_card(db, card.id + 50, owner.id)
    with pytest.raises(StateError) as exc:
        card_service.activate_card(db, card.id, owner.id, LIMITS)
    assert exc.value.code == "CARD_ALREADY_ACTIVE"

    card_service.deactivate_card(db, card.id, owner.id)
    with pytest.raises(StateError) as exc:
        card_service.deactivate_card(db, card.id, owner.id)
    assert exc.value.code == "CARD_ALREADY_INACTIVE"
    assert card_service.list_active_cards(db, owner.id) == []

    renamed = card_service.rename_card(db, card.id, owner.id, "Renamed")
    assert renamed.card_name == "Renamed"

    card_service.delete_card(db, card.id, owner.id)
    assert card_service.list_cards(db, owner.id) == []


def test_deleted_card_is_unlinked_from_payment_history(db, ledger, make_user, make_card, make_merchant):
    owner = make_user("100.00")
    stranger = make_user()
    card = make_card(owner)
    payment = ledger.process_payment(owner.id, card.id, make_merchant().id, Decimal("10.00"))

    card_service.delete_card(db, card.id, owner.id)
    card_service.add_card(db, stranger, "Stranger card", CardType.VIRTUAL, LIMITS)

    db.expire_all()
    assert db.get(Transaction, payment.id).card_id is None


def test_seed_default_merchants_is_idempotent(db):
    assert merchant_service.seed_default_merchants(db) == len(merchant_service.DEFAULT_MERCHANTS)
    assert merchant_service.seed_default_merchants(db) == 0
    assert merchant_service.get_merchant_by_code(db, "cafe001").merchant_name == "Campus Cafe"


def test_merchant_queries(db, make_merchant):
    merchant_service.create_merchant(db, merchant_name="Night Bakery", merchant_code="bake01", category="Food")
    make_merchant(is_active=False, category="Retail")

    assert merchant_service.is_merchant_code_available(db, "BAKE01") is False
    assert merchant_service.is_merchant_code_available(db, "BAKE02") is True
    assert [m.merchant_code for m in merchant_service.search_merchants(db, "bak")] == ["BAKE01"]
    assert merchant_service.list_categories(db) == ["Food", "Retail"]
    assert len(merchant_service.list_all_merchants(db)) == 2
    assert len(merchant_service.list_active_merchants(db)) == 1
    assert merchant_service.list_merchants_by_category(db, "Retail") == []

    with pytest.raises(ValidationError) as exc:
        merchant_service.create_merchant(db, merchant_name="Other", merchant_code="BAKE01", category="Food")
    assert exc.value.code == "MERCHANT_CODE_TAKEN"
    with pytest.raises(ValidationError):
        merchant_service.search_merchants(db, "b")
    with pytest.raises(NotFoundError):
        merchant_service.get_merchant(db, 999)
