from .model import SOURCE_LABELS, CreditStatementTableModel, CustomersTableModel

__all__ = [
    "CustomersTableModel",
    "CreditStatementTableModel",
    "SOURCE_LABELS",
]
