"""Operator commands for a local NFCPay database.

Run ``nfcpay --help`` for the list. Ledger commands print the receipt on
success; on a rejected operation they print the error code and exit 1.
"""
from __future__ import annotations

import argparse
import sys
from decimal import Decimal, InvalidOperation
from typing import Optional

from nfcpay.core.database import Base, SessionLocal, engine
from nfcpay.core.errors import NFCPayError, Outcome, attempt
from nfcpay.core.logging import configure_logging
from nfcpay.dependencies import get_limits
from nfcpay.services.gateway import LedgerGateway
from nfcpay.services.ledger import LedgerService
from nfcpay.services.merchants import seed_default_merchants


def _amount(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid amount: {value!r}")


def _report(outcome: Outcome, render) -> int:
    if outcome.ok:
        print(render(outcome.value))
        return 0
    error = outcome.error
    print(f"ERROR {error.code} ({error.kind.value}): {error.user_message}", file=sys.stderr)
    return 1


def _render_transaction(tx) -> str:
    return f"{tx.reference} {tx.status.value} {tx.amount}"


def cmd_init_db(args, db) -> int:
    Base.metadata.create_all(bind=engine)
    print("Tables created.")
    return 0


def cmd_seed_merchants(args, db) -> int:
    created = seed_default_merchants(db)
    print(f"Seeded {created} merchant(s).")
    return 0


def cmd_balance(args, db) -> int:
    balance = LedgerGateway(db).get_wallet_balance(args.user_id)
    if balance is None:
        print(f"ERROR WALLET_NOT_FOUND: no wallet for user {args.user_id}", file=sys.stderr)
        return 1
    print(balance)
    return 0


def cmd_deposit(args, db) -> int:
    ledger = LedgerService(LedgerGateway(db), get_limits())
    outcome = attempt(ledger.add_funds, args.user_id, args.amount, args.source)
    return _report(outcome, lambda receipt: f"{receipt.reference} +{receipt.amount} balance={receipt.balance}")


def cmd_pay(args, db) -> int:
    ledger = LedgerService(LedgerGateway(db), get_limits())
    outcome = attempt(ledger.process_payment, args.user_id, args.card_id, args.merchant_id, args.amount, args.description)
    return _report(outcome, _render_transaction)


def cmd_refund(args, db) -> int:
    ledger = LedgerService(LedgerGateway(db), get_limits())
    return _report(attempt(ledger.refund_payment, args.transaction_id, args.user_id, args.reason), _render_transaction)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="nfcpay", description="NFCPay wallet ledger tools.")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL for this run")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create all tables").set_defaults(func=cmd_init_db)
    sub.add_parser("seed-merchants", help="Insert the default merchants").set_defaults(func=cmd_seed_merchants)

    balance = sub.add_parser("balance", help="Show a user's wallet balance")
    balance.add_argument("user_id", type=int)
    balance.set_defaults(func=cmd_balance)

    deposit = sub.add_parser("deposit", help="Add funds to a user's wallet")
    deposit.add_argument("user_id", type=int)
    deposit.add_argument("amount", type=_amount)
    deposit.add_argument("--source", default=None)
    deposit.set_defaults(func=cmd_deposit)

    pay = sub.add_parser("pay", help="Pay a merchant with a card")
    pay.add_argument("user_id", type=int)
    pay.add_argument("card_id", type=int)
    pay.add_argument("merchant_id", type=int)
    pay.add_argument("amount", type=_amount)
    pay.add_argument("--description", default=None)
    pay.set_defaults(func=cmd_pay)

    refund = sub.add_parser("refund", help="Refund a completed payment")
    refund.add_argument("transaction_id", type=int)
    refund.add_argument("user_id", type=int)
    refund.add_argument("--reason", default=None)
    refund.set_defaults(func=cmd_refund)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    db = SessionLocal()
    try:
        return args.func(args, db)
    except NFCPayError as exc:
        print(f"ERROR {exc.code} ({exc.kind.value}): {exc.user_message}", file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
