"""
Inventory Ledger: stock, sales, returns and customer credit for a small shop.

    from inventory_ledger.database import get_connection
    from inventory_ledger import LedgerService

    svc = LedgerService(get_connection())
    snap = svc.record_sale(product_id=1, qty=2, customer_id=3, is_credit=True)
"""
from .errors import DomainError
from .ledger.service import LedgerService
from .ledger.snapshot import Snapshot

__version__ = "1.2.0"

__all__ = ["DomainError", "LedgerService", "Snapshot", "__version__"]
