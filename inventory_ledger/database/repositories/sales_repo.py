# inventory_ledger/database/repositories/sales_repo.py
from __future__ import annotations

from dataclasses import dataclass, replace
import sqlite3
from typing import Optional


@dataclass
class SaleRecord:
    """
    One row of the `sales` table. Returns share the table (is_return=True);
    for a return, `unit_price` is the blended price (total / qty) and
    `origin_sale_id` points at the oldest sale it consumed from.
    """
    sale_id: int | None
    ts: str
    product_id: int
    product_name: str
    qty: float
    unit_price: float
    total_amount: float
    customer_id: int | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    note: str | None = None
    is_credit: bool = False
    is_return: bool = False
    origin_sale_id: int | None = None
    override_amount: float | None = None
    customer_deleted: bool = False

    def with_changes(self, **changes) -> "SaleRecord":
        return replace(self, **changes)


_COLUMNS = """
    sale_id, ts, product_id, product_name,
    CAST(qty AS REAL)          AS qty,
    CAST(unit_price AS REAL)   AS unit_price,
    CAST(total_amount AS REAL) AS total_amount,
    customer_id, customer_name, customer_phone, note,
    is_credit, is_return, origin_sale_id,
    CAST(override_amount AS REAL) AS override_amount,
    customer_deleted
"""


def _to_record(r: sqlite3.Row) -> SaleRecord:
    d = dict(r)
    for flag in ("is_credit", "is_return", "customer_deleted"):
        d[flag] = bool(d[flag])
    return SaleRecord(**d)


class SalesRepo:
    """
    Sales and returns. Ordering everywhere is newest first: ts DESC, sale_id DESC.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    # ---------------------------- Queries ----------------------------

    def list_records(self) -> list[SaleRecord]:
        rows = self.conn.execute(
            f"SELECT {_COLUMNS} FROM sales ORDER BY ts DESC, sale_id DESC"
        ).fetchall()
        return [_to_record(r) for r in rows]

    def list_for_pair(self, customer_id: Optional[int], product_id: int) -> list[SaleRecord]:
        """
        Attached rows (sales and returns) for one (customer, product) pair.
        customer_id=None selects walk-in rows; detached rows are never included.
        """
        rows = self.conn.execute(
            f"""
            SELECT {_COLUMNS} FROM sales
             WHERE product_id = ?
               AND customer_id IS ?
               AND customer_deleted = 0
             ORDER BY ts DESC, sale_id DESC
            """,
            (product_id, customer_id),
        ).fetchall()
        return [_to_record(r) for r in rows]

    def get(self, sale_id: int) -> SaleRecord | None:
        r = self.conn.execute(
            f"SELECT {_COLUMNS} FROM sales WHERE sale_id=?", (sale_id,)
        ).fetchone()
        return _to_record(r) if r else None

    # ---------------------------- Mutations ----------------------------

    def insert(self, rec: SaleRecord) -> int:
        cur = self.conn.execute(
            """
            INSERT INTO sales (
                ts, product_id, product_name, qty, unit_price, total_amount,
                customer_id, customer_name, customer_phone, note,
                is_credit, is_return, origin_sale_id, override_amount, customer_deleted
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                rec.ts, rec.product_id, rec.product_name, rec.qty, rec.unit_price,
                rec.total_amount, rec.customer_id, rec.customer_name, rec.customer_phone,
                rec.note, int(rec.is_credit), int(rec.is_return), rec.origin_sale_id,
                rec.override_amount, int(rec.customer_deleted),
            ),
        )
        return int(cur.lastrowid)

    def update(self, rec: SaleRecord) -> None:
        """Overwrite every mutable column of an existing row (ts and kind stay)."""
        self.conn.execute(
            """
            UPDATE sales
               SET qty=?, unit_price=?, total_amount=?,
                   customer_id=?, customer_name=?, customer_phone=?,
                   note=?, is_credit=?, origin_sale_id=?, override_amount=?,
                   customer_deleted=?
             WHERE sale_id=?
            """,
            (
                rec.qty, rec.unit_price, rec.total_amount,
                rec.customer_id, rec.customer_name, rec.customer_phone,
                rec.note, int(rec.is_credit), rec.origin_sale_id, rec.override_amount,
                int(rec.customer_deleted), rec.sale_id,
            ),
        )

    def delete(self, sale_id: int) -> None:
        self.conn.execute("DELETE FROM sales WHERE sale_id=?", (sale_id,))

    # ---- snapshot refreshes ----

    def refresh_product_name(self, product_id: int, name: str) -> None:
        self.conn.execute(
            "UPDATE sales SET product_name=? WHERE product_id=?", (name, product_id)
        )

    def refresh_customer(self, customer_id: int, name: str, phone: str) -> None:
        self.conn.execute(
            "UPDATE sales SET customer_name=?, customer_phone=? WHERE customer_id=?",
            (name, phone, customer_id),
        )

    def detach_customer(self, customer_id: int) -> None:
        """
        Null the link but keep the name/phone snapshot; the rows leave every
        allocation pair from now on.
        """
        self.conn.execute(
            "UPDATE sales SET customer_id=NULL, customer_deleted=1 WHERE customer_id=?",
            (customer_id,),
        )
