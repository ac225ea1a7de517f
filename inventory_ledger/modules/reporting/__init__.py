"""
Reporting package: ledger filters and summaries (`ledger_views`) and CSV
exports (`exports`). Pure functions over snapshot rows; nothing here writes to
the database.
"""

from .exports import (
    credits_csv,
    inventory_csv,
    ledger_csv,
    save_csv,
    stock_movements_csv,
)
from .ledger_views import (
    LedgerFilter,
    customer_summary,
    filter_ledger,
    ledger_totals,
    monthly_summary,
    outstanding_customers,
    top_customers,
)

__all__ = [
    "LedgerFilter",
    "filter_ledger",
    "ledger_totals",
    "customer_summary",
    "top_customers",
    "monthly_summary",
    "outstanding_customers",
    "ledger_csv",
    "inventory_csv",
    "credits_csv",
    "stock_movements_csv",
    "save_csv",
]
