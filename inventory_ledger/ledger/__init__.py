# inventory_ledger/ledger/__init__.py
from .allocation import (
    Allocation,
    CandidateSale,
    Portion,
    ReturnCandidate,
    ReturnPlan,
    SaleState,
    allocate,
    pair_key,
    plan_return,
    return_candidates,
)
from .balances import (
    CustomerBalance,
    StatementRow,
    balance_after,
    balance_before,
    compute_balances,
    effective_payment_amount,
    running_balances,
    statement,
)
from .service import LedgerService
from .snapshot import Snapshot, build_snapshot

__all__ = [
    # allocation
    "Allocation",
    "CandidateSale",
    "Portion",
    "ReturnCandidate",
    "ReturnPlan",
    "SaleState",
    "allocate",
    "pair_key",
    "plan_return",
    "return_candidates",
    # balances
    "CustomerBalance",
    "StatementRow",
    "balance_after",
    "balance_before",
    "compute_balances",
    "effective_payment_amount",
    "running_balances",
    "statement",
    # service / snapshot
    "LedgerService",
    "Snapshot",
    "build_snapshot",
]
