"""
Domain errors raised by the ledger.

Every error carries a stable `kind` so the presentation layer can map it to a
message without parsing text. Validation always happens before any write, so
catching one of these means the store is unchanged.
"""
from __future__ import annotations


class DomainError(Exception):
    """Domain-level error the controller/UI can surface directly."""

    kind = "DomainError"


class ValidationError(DomainError):
    kind = "ValidationError"


# ---- Not found ----------------------------------------------------------

class NotFound(DomainError):
    kind = "NotFound"


class ProductNotFound(NotFound):
    def __init__(self, product_id):
        super().__init__(f"Product {product_id} does not exist.")
        self.product_id = product_id


class CustomerNotFound(NotFound):
    def __init__(self, customer_id):
        super().__init__(f"Customer {customer_id} does not exist.")
        self.customer_id = customer_id


class SaleNotFound(NotFound):
    def __init__(self, sale_id):
        super().__init__(f"Sale {sale_id} does not exist.")
        self.sale_id = sale_id


class ReturnNotFound(NotFound):
    def __init__(self, return_id):
        super().__init__(f"Return {return_id} does not exist.")
        self.return_id = return_id


class StockEntryNotFound(NotFound):
    def __init__(self, movement_id):
        super().__init__(f"Stock movement {movement_id} does not exist.")
        self.movement_id = movement_id


class CreditEntryNotFound(NotFound):
    def __init__(self, entry_id, reason: str | None = None):
        msg = f"Credit payment {entry_id} does not exist."
        if reason:
            msg = f"Credit payment {entry_id}: {reason}"
        super().__init__(msg)
        self.entry_id = entry_id


# ---- Quantities & amounts ----------------------------------------------

class InvalidQuantity(DomainError):
    kind = "InvalidQuantity"


class InvalidAmount(DomainError):
    kind = "InvalidAmount"


class OverReturn(DomainError):
    kind = "OverReturn"

    def __init__(self, requested: float, available: float):
        super().__init__(
            f"Return qty exceeds remaining: requested {requested:g}, remaining {available:g}"
        )
        self.requested = requested
        self.available = available


# ---- Lifecycle guards ---------------------------------------------------

class CustomerRequiredForCredit(DomainError):
    kind = "CustomerRequiredForCredit"

    def __init__(self, message: str = "A credit sale needs a customer."):
        super().__init__(message)


class ReturnImmutable(DomainError):
    kind = "ReturnImmutable"

    def __init__(self, sale_id):
        super().__init__(
            f"Record {sale_id} is a return; use update_return/delete_return instead."
        )
        self.sale_id = sale_id


class SaleHasReturns(DomainError):
    kind = "SaleHasReturns"

    def __init__(self, sale_id, consumed: float):
        super().__init__(
            f"Sale {sale_id} has {consumed:g} returned; delete those returns first."
        )
        self.sale_id = sale_id
        self.consumed = consumed


class LinkedRecordImmutable(DomainError):
    kind = "LinkedRecordImmutable"
