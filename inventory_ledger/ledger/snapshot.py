# inventory_ledger/ledger/snapshot.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field
import sqlite3

from ..database.repositories import (
    CreditEntry,
    CreditsRepo,
    Customer,
    CustomersRepo,
    Product,
    ProductsRepo,
    SaleRecord,
    SalesRepo,
    StockMovement,
    StockRepo,
)
from .allocation import ReturnCandidate, allocate, return_candidates
from .balances import CustomerBalance, compute_balances


@dataclass
class Snapshot:
    """
    Full read-model handed back after every operation.

    Lists follow the store's ordering: sales, movements and credits newest
    first, products and customers most recently created first. Archived
    products are left out.
    """
    products: list[Product] = field(default_factory=list)
    customers: list[Customer] = field(default_factory=list)
    sales: list[SaleRecord] = field(default_factory=list)
    stock_movements: list[StockMovement] = field(default_factory=list)
    credits: list[CreditEntry] = field(default_factory=list)
    customer_balances: list[CustomerBalance] = field(default_factory=list)
    sale_remaining: dict[int, float] = field(default_factory=dict)
    return_candidates: list[ReturnCandidate] = field(default_factory=list)

    # ---- lookups used by the presentation layer ----

    def product(self, product_id: int) -> Product | None:
        return next((p for p in self.products if p.product_id == product_id), None)

    def customer(self, customer_id: int) -> Customer | None:
        return next((c for c in self.customers if c.customer_id == customer_id), None)

    def balance(self, customer_id: int) -> CustomerBalance | None:
        return next((b for b in self.customer_balances if b.customer_id == customer_id), None)

    def outstanding(self, customer_id: int) -> float:
        b = self.balance(customer_id)
        return b.outstanding if b else 0.0

    def to_dict(self) -> dict:
        """Plain dicts/lists only, for hosts that serialize the snapshot."""
        return {
            "products": [asdict(p) for p in self.products],
            "customers": [asdict(c) for c in self.customers],
            "sales": [asdict(s) for s in self.sales],
            "stock_movements": [asdict(m) for m in self.stock_movements],
            "credits": [asdict(e) for e in self.credits],
            "customer_balances": [asdict(b) for b in self.customer_balances],
            "sale_remaining": dict(self.sale_remaining),
            "return_candidates": [asdict(c) for c in self.return_candidates],
        }


def build_snapshot(conn: sqlite3.Connection) -> Snapshot:
    """Materialize everything from the connection's current view of the store."""
    customers = CustomersRepo(conn).list_customers()
    sales = SalesRepo(conn).list_records()
    credits = CreditsRepo(conn).list_entries()
    alloc = allocate(sales)
    return Snapshot(
        products=ProductsRepo(conn).list_products(),
        customers=customers,
        sales=sales,
        stock_movements=StockRepo(conn).list_movements(),
        credits=credits,
        customer_balances=compute_balances(customers, credits),
        sale_remaining={s.sale_id: alloc.remaining(s.sale_id) for s in sales if not s.is_return},
        return_candidates=return_candidates(sales),
    )
