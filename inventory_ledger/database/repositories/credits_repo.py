# inventory_ledger/database/repositories/credits_repo.py
from __future__ import annotations

from dataclasses import dataclass
import sqlite3
from typing import Optional


# source_type values
CREDIT_SALE = "credit_sale"
PAYMENT = "payment"
PAYMENT_ADJUSTMENT = "payment_adjustment"
PAYMENT_REVERSAL = "payment_reversal"
RETURN_SETTLEMENT = "return_settlement"
RETURN_ADJUSTMENT = "return_adjustment"
RETURN_REVERSAL = "return_reversal"


@dataclass
class CreditEntry:
    entry_id: int | None
    ts: str
    customer_id: int
    customer_name: str
    customer_phone: str | None
    sale_id: int | None
    amount: float
    is_payment: bool
    note: str | None
    source_type: str
    ref_entry_id: int | None = None

    @property
    def signed_amount(self) -> float:
        """Effect on what the customer owes: charges add, payments subtract."""
        return -self.amount if self.is_payment else self.amount


_COLUMNS = """
    entry_id, ts, customer_id, customer_name, customer_phone, sale_id,
    CAST(amount AS REAL) AS amount,
    is_payment, note, source_type, ref_entry_id
"""


def _to_entry(r: sqlite3.Row) -> CreditEntry:
    d = dict(r)
    d["is_payment"] = bool(d["is_payment"])
    return CreditEntry(**d)


class CreditsRepo:
    """
    The customer credit log.

    Conventions:
      • Charges (is_payment = 0) raise what the customer owes.
      • Payments and return settlements (is_payment = 1) lower it.
      • Only 'credit_sale' rows are rewritten in place (they mirror their sale).
        Every other row is append-only: corrections are new rows that point at
        the corrected payment through ref_entry_id, or at the return through
        sale_id.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    # ---- queries ----------------------------------------------------------

    def list_entries(self) -> list[CreditEntry]:
        rows = self.conn.execute(
            f"SELECT {_COLUMNS} FROM credit_entries ORDER BY ts DESC, entry_id DESC"
        ).fetchall()
        return [_to_entry(r) for r in rows]

    def list_ledger(self, customer_id: int) -> list[CreditEntry]:
        """Chronological (oldest first) log for one customer."""
        rows = self.conn.execute(
            f"""
            SELECT {_COLUMNS} FROM credit_entries
             WHERE customer_id = ?
             ORDER BY ts ASC, entry_id ASC
            """,
            (customer_id,),
        ).fetchall()
        return [_to_entry(r) for r in rows]

    def get(self, entry_id: int) -> CreditEntry | None:
        r = self.conn.execute(
            f"SELECT {_COLUMNS} FROM credit_entries WHERE entry_id=?", (entry_id,)
        ).fetchone()
        return _to_entry(r) if r else None

    def get_sale_charge(self, sale_id: int) -> CreditEntry | None:
        r = self.conn.execute(
            f"""
            SELECT {_COLUMNS} FROM credit_entries
             WHERE sale_id = ? AND source_type = '{CREDIT_SALE}'
            """,
            (sale_id,),
        ).fetchone()
        return _to_entry(r) if r else None

    def list_for_return(self, return_id: int) -> list[CreditEntry]:
        """Settlement plus any adjustments already written for a return."""
        rows = self.conn.execute(
            f"""
            SELECT {_COLUMNS} FROM credit_entries
             WHERE sale_id = ?
               AND source_type IN ('{RETURN_SETTLEMENT}', '{RETURN_ADJUSTMENT}', '{RETURN_REVERSAL}')
             ORDER BY ts ASC, entry_id ASC
            """,
            (return_id,),
        ).fetchall()
        return [_to_entry(r) for r in rows]

    def list_referencing(self, entry_id: int) -> list[CreditEntry]:
        """Adjustments and reversals written against one payment."""
        rows = self.conn.execute(
            f"""
            SELECT {_COLUMNS} FROM credit_entries
             WHERE ref_entry_id = ?
             ORDER BY ts ASC, entry_id ASC
            """,
            (entry_id,),
        ).fetchall()
        return [_to_entry(r) for r in rows]

    # ---- mutations --------------------------------------------------------

    def insert(self, e: CreditEntry) -> int:
        cur = self.conn.execute(
            """
            INSERT INTO credit_entries (
                ts, customer_id, customer_name, customer_phone, sale_id,
                amount, is_payment, note, source_type, ref_entry_id
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                e.ts, e.customer_id, e.customer_name, e.customer_phone, e.sale_id,
                e.amount, int(e.is_payment), e.note, e.source_type, e.ref_entry_id,
            ),
        )
        return int(cur.lastrowid)

    def update_sale_charge(
        self,
        entry_id: int,
        *,
        customer_id: int,
        customer_name: str,
        customer_phone: Optional[str],
        amount: float,
        note: Optional[str],
    ) -> None:
        self.conn.execute(
            f"""
            UPDATE credit_entries
               SET customer_id=?, customer_name=?, customer_phone=?, amount=?, note=?
             WHERE entry_id=? AND source_type='{CREDIT_SALE}'
            """,
            (customer_id, customer_name, customer_phone, amount, note, entry_id),
        )

    def delete_sale_charge(self, sale_id: int) -> None:
        self.conn.execute(
            f"DELETE FROM credit_entries WHERE sale_id=? AND source_type='{CREDIT_SALE}'",
            (sale_id,),
        )

    def refresh_customer(self, customer_id: int, name: str, phone: str) -> None:
        self.conn.execute(
            "UPDATE credit_entries SET customer_name=?, customer_phone=? WHERE customer_id=?",
            (name, phone, customer_id),
        )

    def delete_for_customer(self, customer_id: int) -> None:
        self.conn.execute("DELETE FROM credit_entries WHERE customer_id=?", (customer_id,))
