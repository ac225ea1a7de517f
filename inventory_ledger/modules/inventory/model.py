from __future__ import annotations

from typing import Any, List, Optional

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt

from ...database.repositories.products_repo import Product
from ...database.repositories.stock_repo import StockMovement
from ...utils.helpers import fmt_money, fmt_qty, fmt_ts


class ProductsTableModel(QAbstractTableModel):
    """
    Active products with their stock level.

    LOW_STOCK_ROLE returns True when qty <= low_stock_threshold so views can
    colour or filter those rows.
    """
    HEADERS = ["ID", "Name", "SKU", "Unit Price", "Qty", "Low Stock At", "Note"]

    LOW_STOCK_ROLE = Qt.UserRole + 1

    def __init__(self, rows: Optional[List[Product]] = None):
        super().__init__()
        self._rows: List[Product] = list(rows or [])

    def rowCount(self, parent=QModelIndex()):
        return len(self._rows)

    def columnCount(self, parent=QModelIndex()):
        return len(self.HEADERS)

    def data(self, index, role=Qt.DisplayRole):
        if not index.isValid():
            return None
        p = self._rows[index.row()]
        if role in (Qt.DisplayRole, Qt.EditRole):
            values = [
                p.product_id,
                p.name,
                p.sku or "",
                fmt_money(p.unit_price),
                fmt_qty(p.qty),
                fmt_qty(p.low_stock_threshold),
                p.note or "",
            ]
            return values[index.column()]
        if role == self.LOW_STOCK_ROLE:
            return p.is_low_stock
        if role == Qt.TextAlignmentRole and index.column() in (3, 4, 5):
            return int(Qt.AlignRight | Qt.AlignVCenter)
        return None

    def headerData(self, section, orientation, role=Qt.DisplayRole):
        if orientation == Qt.Horizontal and role == Qt.DisplayRole:
            return self.HEADERS[section]
        return super().headerData(section, orientation, role)

    def at(self, row: int) -> Product:
        return self._rows[row]

    def replace(self, rows: List[Product]):
        self.beginResetModel()
        self._rows = list(rows)
        self.endResetModel()


class StockMovementsTableModel(QAbstractTableModel):
    """Stock movements, manual and sale-linked, newest first."""
    HEADERS: List[str] = [
        "ID", "Date", "Kind", "Product", "Qty", "Unit Price", "Total",
        "Counterparty", "Sale #", "Note",
    ]

    def __init__(self, rows: Optional[List[StockMovement]] = None) -> None:
        super().__init__()
        self._rows: List[StockMovement] = list(rows or [])

    # ---------- Qt model basics ----------

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:
        return len(self._rows)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:
        return len(self.HEADERS)

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole) -> Any:
        if not index.isValid():
            return None

        m = self._rows[index.row()]
        col = index.column()

        if role in (Qt.DisplayRole, Qt.EditRole):
            if col == 0:
                return m.movement_id
            elif col == 1:
                return fmt_ts(m.ts)
            elif col == 2:
                return m.kind
            elif col == 3:
                return m.product_name
            elif col == 4:
                return fmt_qty(m.qty)
            elif col == 5:
                return "" if m.unit_price is None else fmt_money(m.unit_price)
            elif col == 6:
                return "" if m.total_amount is None else fmt_money(m.total_amount)
            elif col == 7:
                # manual entries name a supplier; sale-linked ones a customer
                return m.counterparty or m.customer_name or ""
            elif col == 8:
                return "" if m.sale_id is None else m.sale_id
            elif col == 9:
                return m.note or ""

        if role == Qt.TextAlignmentRole and col in (0, 4, 5, 6, 8):
            return int(Qt.AlignRight | Qt.AlignVCenter)

        return None

    def headerData(self, section: int, orientation: Qt.Orientation, role: int = Qt.DisplayRole) -> Any:
        if role != Qt.DisplayRole:
            return None
        if orientation == Qt.Horizontal:
            if 0 <= section < len(self.HEADERS):
                return self.HEADERS[section]
            return None
        return section + 1

    # ---------- Convenience API ----------

    def at(self, row: int) -> StockMovement:
        return self._rows[row]

    def replace(self, rows: List[StockMovement]) -> None:
        self.beginResetModel()
        self._rows = list(rows)
        self.endResetModel()
