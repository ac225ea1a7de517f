"""
Sales module package exports.

- SalesLedgerTableModel: sales and returns with the returnable qty per sale.
- ReturnCandidatesModel: (customer, product) pairs that can still take a return.
"""

from .model import ReturnCandidatesModel, SalesLedgerTableModel

__all__ = [
    "SalesLedgerTableModel",
    "ReturnCandidatesModel",
]
