"""
Inventory module package exports.

- ProductsTableModel: active products, with a role flagging low stock.
- StockMovementsTableModel: manual and sale-linked stock movements.
"""

from .model import ProductsTableModel, StockMovementsTableModel

__all__ = [
    "ProductsTableModel",
    "StockMovementsTableModel",
]
