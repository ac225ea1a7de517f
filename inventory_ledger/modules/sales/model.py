from PySide6.QtCore import QAbstractTableModel, Qt, QModelIndex

from ...constants import WALK_IN_LABEL
from ...database.repositories.sales_repo import SaleRecord
from ...ledger.allocation import ReturnCandidate
from ...utils.helpers import fmt_money, fmt_qty, fmt_ts


class SalesLedgerTableModel(QAbstractTableModel):
    """
    Sales and returns interleaved, as the snapshot lists them.

    `remaining` maps sale_id -> returnable qty (Snapshot.sale_remaining);
    returns show nothing in that column.
    """
    HEADERS = [
        "ID", "Date", "Type", "Product", "Customer", "Qty",
        "Unit Price", "Total", "Credit", "Returnable", "Note",
    ]

    IS_RETURN_ROLE = Qt.UserRole + 1

    def __init__(self, rows: list[SaleRecord], remaining: dict[int, float] | None = None):
        super().__init__()
        self._rows = rows
        self._remaining = dict(remaining or {})

    def rowCount(self, parent=QModelIndex()):
        return len(self._rows)

    def columnCount(self, parent=QModelIndex()):
        return len(self.HEADERS)

    def data(self, index, role=Qt.DisplayRole):
        if not index.isValid():
            return None
        r = self._rows[index.row()]
        if role in (Qt.DisplayRole, Qt.EditRole):
            returnable = "" if r.is_return else fmt_qty(self._remaining.get(r.sale_id, 0.0))
            mapping = [
                r.sale_id,
                fmt_ts(r.ts),
                "Return" if r.is_return else "Sale",
                r.product_name,
                r.customer_name or WALK_IN_LABEL,
                fmt_qty(r.qty),
                fmt_money(r.unit_price),
                fmt_money(r.total_amount),
                "Yes" if r.is_credit else "",
                returnable,
                r.note or "",
            ]
            return mapping[index.column()]
        if role == self.IS_RETURN_ROLE:
            return r.is_return
        return None

    def headerData(self, section, orientation, role=Qt.DisplayRole):
        if orientation == Qt.Horizontal and role == Qt.DisplayRole:
            return self.HEADERS[section] if section < len(self.HEADERS) else None
        return super().headerData(section, orientation, role)

    def at(self, row: int) -> SaleRecord:
        return self._rows[row]

    def replace(self, rows: list[SaleRecord], remaining: dict[int, float] | None = None):
        self.beginResetModel()
        self._rows = rows
        if remaining is not None:
            self._remaining = dict(remaining)
        self.endResetModel()


class ReturnCandidatesModel(QAbstractTableModel):
    HEADERS = ["Customer", "Phone", "Product", "Returnable", "Open Sales", "Oldest Sale"]

    def __init__(self, rows: list[ReturnCandidate]):
        super().__init__()
        self._rows = rows

    def rowCount(self, parent=QModelIndex()):
        return len(self._rows)

    def columnCount(self, parent=QModelIndex()):
        return len(self.HEADERS)

    def data(self, idx, role=Qt.DisplayRole):
        if not idx.isValid():
            return None
        c = self._rows[idx.row()]
        if role in (Qt.DisplayRole, Qt.EditRole):
            oldest = c.sale_entries[0].ts if c.sale_entries else ""
            m = [c.customer_name, c.customer_phone or "", c.product_name,
                 fmt_qty(c.outstanding), len(c.sale_entries), fmt_ts(oldest)]
            return m[idx.column()]
        return None

    def headerData(self, s, o, role=Qt.DisplayRole):
        return self.HEADERS[s] if o == Qt.Horizontal and role == Qt.DisplayRole else super().headerData(s, o, role)

    def at(self, row: int) -> ReturnCandidate:
        return self._rows[row]

    def replace(self, rows: list[ReturnCandidate]):
        self.beginResetModel()
        self._rows = rows
        self.endResetModel()
