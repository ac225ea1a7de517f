from PySide6.QtCore import QAbstractTableModel, Qt, QModelIndex

from ...database.repositories.credits_repo import (
    CREDIT_SALE,
    PAYMENT,
    PAYMENT_ADJUSTMENT,
    PAYMENT_REVERSAL,
    RETURN_ADJUSTMENT,
    RETURN_REVERSAL,
    RETURN_SETTLEMENT,
)
from ...database.repositories.customers_repo import Customer
from ...ledger.balances import CustomerBalance, StatementRow
from ...utils.helpers import fmt_money, fmt_ts

SOURCE_LABELS = {
    CREDIT_SALE: "Credit sale",
    PAYMENT: "Payment",
    PAYMENT_ADJUSTMENT: "Payment adjustment",
    PAYMENT_REVERSAL: "Payment reversed",
    RETURN_SETTLEMENT: "Return settlement",
    RETURN_ADJUSTMENT: "Return adjustment",
    RETURN_REVERSAL: "Return reversed",
}


class CustomersTableModel(QAbstractTableModel):
    """
    Customers joined with their balance.

    OUTSTANDING_ROLE returns the raw outstanding amount (float) so views can
    sort or highlight customers who owe money.
    """

    HEADERS = ["ID", "Name", "Phone", "Credit", "Paid", "Outstanding", "Last Activity", "Note"]

    OUTSTANDING_ROLE = Qt.UserRole + 1

    def __init__(self, rows: list[Customer], balances: list[CustomerBalance] | None = None):
        super().__init__()
        self._rows = rows
        self._balances = {b.customer_id: b for b in (balances or [])}

    # --- Qt model basics ----------------------------------------------------

    def rowCount(self, parent=QModelIndex()):
        return len(self._rows)

    def columnCount(self, parent=QModelIndex()):
        return len(self.HEADERS)

    def _balance(self, c: Customer) -> CustomerBalance:
        b = self._balances.get(c.customer_id)
        if b is None:
            return CustomerBalance(c.customer_id, c.name, c.phone, 0.0, 0.0, 0.0, None)
        return b

    def data(self, index, role=Qt.DisplayRole):
        if not index.isValid():
            return None

        r = self._rows[index.row()]
        b = self._balance(r)

        if role in (Qt.DisplayRole, Qt.EditRole):
            values = [
                r.customer_id,
                r.name,
                r.phone,
                fmt_money(b.total_credit),
                fmt_money(b.total_paid),
                fmt_money(b.outstanding),
                fmt_ts(b.last_activity),
                r.note or "",
            ]
            return values[index.column()]

        if role == self.OUTSTANDING_ROLE:
            return b.outstanding

        return None

    def headerData(self, section, orientation, role=Qt.DisplayRole):
        if orientation == Qt.Horizontal and role == Qt.DisplayRole:
            return self.HEADERS[section]
        return super().headerData(section, orientation, role)

    # --- helpers ------------------------------------------------------------

    def at(self, row: int) -> Customer:
        return self._rows[row]

    def replace(self, rows: list[Customer], balances: list[CustomerBalance] | None = None):
        self.beginResetModel()
        self._rows = rows
        if balances is not None:
            self._balances = {b.customer_id: b for b in balances}
        self.endResetModel()


class CreditStatementTableModel(QAbstractTableModel):
    """One customer's credit log, oldest first, with the balance around each row."""

    HEADERS = ["ID", "Date", "Type", "Charge", "Payment", "Before", "After", "Note"]

    def __init__(self, rows: list[StatementRow]):
        super().__init__()
        self._rows = rows

    def rowCount(self, parent=QModelIndex()):
        return len(self._rows)

    def columnCount(self, parent=QModelIndex()):
        return len(self.HEADERS)

    def data(self, index, role=Qt.DisplayRole):
        if not index.isValid():
            return None
        row = self._rows[index.row()]
        e = row.entry
        if role in (Qt.DisplayRole, Qt.EditRole):
            values = [
                e.entry_id,
                fmt_ts(e.ts),
                SOURCE_LABELS.get(e.source_type, e.source_type),
                "" if e.is_payment else fmt_money(e.amount),
                fmt_money(e.amount) if e.is_payment else "",
                fmt_money(row.balance_before),
                fmt_money(row.balance_after),
                e.note or "",
            ]
            return values[index.column()]
        return None

    def headerData(self, section, orientation, role=Qt.DisplayRole):
        if orientation == Qt.Horizontal and role == Qt.DisplayRole:
            return self.HEADERS[section]
        return super().headerData(section, orientation, role)

    def at(self, row: int) -> StatementRow:
        return self._rows[row]

    def replace(self, rows: list[StatementRow]):
        self.beginResetModel()
        self._rows = rows
        self.endResetModel()
