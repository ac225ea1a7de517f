from __future__ import annotations
from dataclasses import dataclass
import sqlite3


@dataclass
class Customer:
    customer_id: int | None
    name: str
    phone: str
    note: str | None
    created_at: str


class CustomersRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    # ---- Queries ----------------------------------------------------------

    def list_customers(self) -> list[Customer]:
        rows = self.conn.execute(
            "SELECT customer_id, name, phone, note, created_at "
            "FROM customers "
            "ORDER BY customer_id DESC"
        ).fetchall()
        return [Customer(**r) for r in rows]

    def search(self, term: str) -> list[Customer]:
        """
        Matches using LIKE on:
          - CAST(customer_id AS TEXT)
          - name
          - phone
        """
        pattern = f"%{term.strip()}%"
        rows = self.conn.execute(
            "SELECT customer_id, name, phone, note, created_at "
            "FROM customers "
            "WHERE CAST(customer_id AS TEXT) LIKE ? OR name LIKE ? OR phone LIKE ? "
            "ORDER BY customer_id DESC",
            (pattern, pattern, pattern),
        ).fetchall()
        return [Customer(**r) for r in rows]

    def get(self, customer_id: int) -> Customer | None:
        r = self.conn.execute(
            "SELECT customer_id, name, phone, note, created_at "
            "FROM customers WHERE customer_id=?",
            (customer_id,),
        ).fetchone()
        return Customer(**r) if r else None

    # ---- Mutations --------------------------------------------------------

    def create(self, name: str, phone: str, note: str | None, created_at: str) -> int:
        cur = self.conn.execute(
            "INSERT INTO customers(name, phone, note, created_at) VALUES (?,?,?,?)",
            (name, phone, note, created_at),
        )
        return int(cur.lastrowid)

    def update(self, customer_id: int, name: str, phone: str, note: str | None) -> None:
        self.conn.execute(
            "UPDATE customers SET name=?, phone=?, note=? WHERE customer_id=?",
            (name, phone, note, customer_id),
        )

    def delete(self, customer_id: int) -> None:
        self.conn.execute("DELETE FROM customers WHERE customer_id=?", (customer_id,))
