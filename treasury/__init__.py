"""Treasury ledger, withdrawals, and auto-recycle."""

from treasury.balance import AccountQueryService
from treasury.ledger import Ledger
from treasury.withdrawal import WithdrawalEngine
from treasury.recycle import AutoRecycleController

__all__ = [
    "AccountQueryService",
    "Ledger",
    "WithdrawalEngine",
    "AutoRecycleController",
]
