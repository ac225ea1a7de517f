# inventory_ledger/database/repositories/products_repo.py
from __future__ import annotations

from dataclasses import dataclass
import sqlite3


@dataclass
class Product:
    product_id: int | None
    name: str
    sku: str | None
    unit_price: float
    qty: float
    low_stock_threshold: float
    note: str | None
    created_at: str
    archived: bool = False

    @property
    def is_low_stock(self) -> bool:
        return self.qty <= self.low_stock_threshold


_COLUMNS = (
    "product_id, name, sku, "
    "CAST(unit_price AS REAL) AS unit_price, "
    "CAST(qty AS REAL) AS qty, "
    "CAST(low_stock_threshold AS REAL) AS low_stock_threshold, "
    "note, created_at, archived"
)


def _to_product(r: sqlite3.Row) -> Product:
    d = dict(r)
    d["archived"] = bool(d["archived"])
    return Product(**d)


class ProductsRepo:
    """
    Product rows. Writes here never commit: the caller owns the transaction.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        # Use Row for named access
        self.conn.row_factory = sqlite3.Row

    # ---------------------------- Queries ----------------------------

    def list_products(self, include_archived: bool = False) -> list[Product]:
        """
        Most recently created first. Archived (soft-deleted) products are
        hidden unless include_archived=True.
        """
        sql = f"SELECT {_COLUMNS} FROM products"
        if not include_archived:
            sql += " WHERE archived = 0"
        sql += " ORDER BY product_id DESC"
        return [_to_product(r) for r in self.conn.execute(sql).fetchall()]

    def get(self, product_id: int) -> Product | None:
        r = self.conn.execute(
            f"SELECT {_COLUMNS} FROM products WHERE product_id=?",
            (product_id,),
        ).fetchone()
        return _to_product(r) if r else None

    def name_exists(self, name: str, exclude_id: int | None = None) -> bool:
        if exclude_id is None:
            row = self.conn.execute(
                "SELECT 1 FROM products WHERE name=? LIMIT 1", (name,)
            ).fetchone()
        else:
            row = self.conn.execute(
                "SELECT 1 FROM products WHERE name=? AND product_id<>? LIMIT 1",
                (name, exclude_id),
            ).fetchone()
        return row is not None

    # ---------------------------- Mutations ----------------------------

    def create(
        self,
        name: str,
        sku: str | None,
        unit_price: float,
        low_stock_threshold: float,
        note: str | None,
        created_at: str,
    ) -> int:
        cur = self.conn.execute(
            "INSERT INTO products(name, sku, unit_price, qty, low_stock_threshold, note, created_at) "
            "VALUES (?, ?, ?, 0, ?, ?, ?)",
            (name, sku, unit_price, low_stock_threshold, note, created_at),
        )
        return int(cur.lastrowid)

    def update(
        self,
        product_id: int,
        name: str,
        sku: str | None,
        unit_price: float,
        low_stock_threshold: float,
        note: str | None,
    ) -> None:
        self.conn.execute(
            "UPDATE products "
            "SET name=?, sku=?, unit_price=?, low_stock_threshold=?, note=? "
            "WHERE product_id=?",
            (name, sku, unit_price, low_stock_threshold, note, product_id),
        )

    def set_qty(self, product_id: int, qty: float) -> None:
        self.conn.execute(
            "UPDATE products SET qty=? WHERE product_id=?", (qty, product_id)
        )

    def archive(self, product_id: int) -> None:
        """Soft delete: history rows keep pointing at the product."""
        self.conn.execute("UPDATE products SET archived=1 WHERE product_id=?", (product_id,))
