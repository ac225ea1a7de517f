# tests/conftest.py
# ---------------------------------------------------------------------
# Ground rules:
# - Every test gets its own temp-file SQLite DB (real file, WAL + FKs),
#   created through get_connection() so schema + version stamp apply.
# - LedgerService runs on a deterministic clock: one minute per tick.
# - Small helpers return the id of the row an operation just created.
# ---------------------------------------------------------------------
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from inventory_ledger.database import get_connection
from inventory_ledger.ledger.service import LedgerService


class StepClock:
    """Returns a strictly increasing ISO timestamp on every call."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> str:
        self.now += timedelta(minutes=1)
        return self.now.isoformat(timespec="microseconds")

    def jump_to(self, year: int, month: int, day: int = 1) -> None:
        self.now = datetime(year, month, day, 9, 0, tzinfo=timezone.utc)


@pytest.fixture()
def db_path(tmp_path):
    return tmp_path / "ledger.db"


@pytest.fixture()
def conn(db_path):
    c = get_connection(db_path)
    try:
        yield c
    finally:
        c.close()


@pytest.fixture()
def clock():
    return StepClock()


@pytest.fixture()
def svc(conn, clock):
    return LedgerService(conn, clock=clock)


# ---------- id helpers ----------

def new_product(svc, name="Linen", price=10.0, qty=100.0, **kw) -> int:
    snap = svc.create_product(name, price, initial_qty=qty, **kw)
    return max(p.product_id for p in snap.products)


def new_customer(svc, name="Kim", phone="010-1234-5678", **kw) -> int:
    snap = svc.create_customer(name, phone, **kw)
    return max(c.customer_id for c in snap.customers)


def last_sale_id(snap) -> int:
    return max(s.sale_id for s in snap.sales)


def last_movement_id(snap) -> int:
    return max(m.movement_id for m in snap.stock_movements)


def last_credit_id(snap) -> int:
    return max(e.entry_id for e in snap.credits)


def qty_of(snap, product_id: int) -> float:
    return next(p.qty for p in snap.products if p.product_id == product_id)


def table_counts(conn) -> dict[str, int]:
    return {
        t: conn.execute(f"SELECT COUNT(*) FROM {t}").fetchone()[0]
        for t in ("products", "customers", "sales", "stock_movements", "credit_entries")
    }
