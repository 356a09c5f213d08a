import pytest

from nfcpay import cli
from nfcpay.cli import main


@pytest.fixture(autouse=True)
def _keep_test_logging(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda level=None: None)


def test_deposit_then_balance(db, make_user, capsys):
    user = make_user("10.00")

    assert main(["deposit", str(user.id), "15.50", "--source", "Cash"]) == 0
    assert main(["balance", str(user.id)]) == 0

    out = capsys.readouterr().out
    assert "DEP_" in out
    assert out.strip().splitlines()[-1] == "25.50"


def test_rejected_payment_exits_nonzero(db, make_user, make_card, make_merchant, capsys):
    user = make_user("1.00")
    card = make_card(user)
    merchant = make_merchant()

    assert main(["pay", str(user.id), str(card.id), str(merchant.id), "5.00"]) == 1
    assert "INSUFFICIENT_FUNDS" in capsys.readouterr().err


def test_seed_merchants(db, capsys):
    assert main(["seed-merchants"]) == 0
    assert "Seeded 6 merchant(s)." in capsys.readouterr().out
