from __future__ import annotations

"""
Stock movements: IN/OUT receipts and adjustments entered by hand
(sale_id IS NULL) plus the OUT/RETURN rows mirrored from sales and returns.

Conventions:
- Listing is newest first: ts DESC, movement_id DESC.
- Amounts/qty are cast to REAL in SQL so Python always sees floats.
"""

from dataclasses import dataclass, replace
import sqlite3
from typing import Optional


@dataclass
class StockMovement:
    movement_id: int | None
    ts: str
    kind: str
    product_id: int
    product_name: str
    qty: float
    unit_price: float | None = None
    total_amount: float | None = None
    counterparty: str | None = None
    customer_id: int | None = None
    customer_name: str | None = None
    note: str | None = None
    sale_id: int | None = None

    @property
    def is_manual(self) -> bool:
        return self.sale_id is None

    def with_changes(self, **changes) -> "StockMovement":
        return replace(self, **changes)


_COLUMNS = """
    movement_id, ts, kind, product_id, product_name,
    CAST(qty AS REAL) AS qty,
    CAST(unit_price AS REAL) AS unit_price,
    CAST(total_amount AS REAL) AS total_amount,
    counterparty, customer_id, customer_name, note, sale_id
"""


class StockRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def list_movements(self, product_id: Optional[int] = None) -> list[StockMovement]:
        sql = f"SELECT {_COLUMNS} FROM stock_movements"
        params: tuple = ()
        if product_id is not None:
            sql += " WHERE product_id = ?"
            params = (int(product_id),)
        sql += " ORDER BY ts DESC, movement_id DESC"
        return [StockMovement(**r) for r in self.conn.execute(sql, params).fetchall()]

    def get(self, movement_id: int) -> StockMovement | None:
        r = self.conn.execute(
            f"SELECT {_COLUMNS} FROM stock_movements WHERE movement_id=?",
            (movement_id,),
        ).fetchone()
        return StockMovement(**r) if r else None

    def get_for_sale(self, sale_id: int) -> StockMovement | None:
        r = self.conn.execute(
            f"SELECT {_COLUMNS} FROM stock_movements WHERE sale_id=?",
            (sale_id,),
        ).fetchone()
        return StockMovement(**r) if r else None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def insert(self, m: StockMovement) -> int:
        cur = self.conn.execute(
            """
            INSERT INTO stock_movements (
                ts, kind, product_id, product_name, qty, unit_price, total_amount,
                counterparty, customer_id, customer_name, note, sale_id
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                m.ts, m.kind, m.product_id, m.product_name, m.qty, m.unit_price,
                m.total_amount, m.counterparty, m.customer_id, m.customer_name,
                m.note, m.sale_id,
            ),
        )
        return int(cur.lastrowid)

    def update(self, m: StockMovement) -> None:
        self.conn.execute(
            """
            UPDATE stock_movements
               SET qty=?, unit_price=?, total_amount=?, counterparty=?,
                   customer_id=?, customer_name=?, note=?
             WHERE movement_id=?
            """,
            (
                m.qty, m.unit_price, m.total_amount, m.counterparty,
                m.customer_id, m.customer_name, m.note, m.movement_id,
            ),
        )

    def delete(self, movement_id: int) -> None:
        self.conn.execute("DELETE FROM stock_movements WHERE movement_id=?", (movement_id,))

    def delete_for_sale(self, sale_id: int) -> None:
        self.conn.execute("DELETE FROM stock_movements WHERE sale_id=?", (sale_id,))

    # ---- snapshot refreshes ----

    def refresh_product_name(self, product_id: int, name: str) -> None:
        self.conn.execute(
            "UPDATE stock_movements SET product_name=? WHERE product_id=?",
            (name, product_id),
        )

    def refresh_customer_name(self, customer_id: int, name: str) -> None:
        self.conn.execute(
            "UPDATE stock_movements SET customer_name=? WHERE customer_id=?",
            (name, customer_id),
        )

    def detach_customer(self, customer_id: int) -> None:
        self.conn.execute(
            "UPDATE stock_movements SET customer_id=NULL WHERE customer_id=?",
            (customer_id,),
        )
