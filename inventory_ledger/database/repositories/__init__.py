# inventory_ledger/database/repositories/__init__.py
"""
Repository layer public API.

Usage:
    from inventory_ledger.database.repositories import (
        # Products
        ProductsRepo, Product,
        # Customers
        CustomersRepo, Customer,
        # Sales (returns included)
        SalesRepo, SaleRecord,
        # Stock movements
        StockRepo, StockMovement,
        # Credit log
        CreditsRepo, CreditEntry,
    )

Repositories never commit; LedgerService owns the transaction boundary.
"""

# ---------------- Products -----------------
from .products_repo import ProductsRepo, Product

# ---------------- Customers ----------------
from .customers_repo import CustomersRepo, Customer

# ------------------ Sales ------------------
from .sales_repo import SalesRepo, SaleRecord

# ------------- Stock movements -------------
from .stock_repo import StockRepo, StockMovement

# ---------------- Credit log ---------------
from .credits_repo import CreditsRepo, CreditEntry

__all__ = [
    "ProductsRepo",
    "Product",
    "CustomersRepo",
    "Customer",
    "SalesRepo",
    "SaleRecord",
    "StockRepo",
    "StockMovement",
    "CreditsRepo",
    "CreditEntry",
]
