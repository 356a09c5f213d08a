from nfcpay.models.user import User
from nfcpay.models.wallet import Wallet, Currency
from nfcpay.models.wallet_ledger import WalletLedger, LedgerType
from nfcpay.models.card import Card, CardType
from nfcpay.models.merchant import Merchant
from nfcpay.models.transaction import Transaction, TransactionStatus, TransactionType, TERMINAL_STATUSES

__all__ = [
    "User",
    "Wallet",
    "Currency",
    "WalletLedger",
    "LedgerType",
    "Card",
    "CardType",
    "Merchant",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "TERMINAL_STATUSES",
]
