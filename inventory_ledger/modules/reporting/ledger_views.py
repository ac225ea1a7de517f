# inventory_ledger/modules/reporting/ledger_views.py
"""
Read-side views computed from a Snapshot for the ledger and dashboard screens.

Nothing here writes; every function takes snapshot data and returns plain
dataclasses. Returns count negatively in every total.
"""
from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Iterable, List, Optional

from ...constants import WALK_IN_LABEL
from ...database.repositories.products_repo import Product
from ...database.repositories.sales_repo import SaleRecord
from ...ledger.balances import CustomerBalance
from ...utils.helpers import round_money

_DIGITS = re.compile(r"\D")
_PAREN_DIGITS = re.compile(r"\(\s*\d{2,}\s*\)")
_PAREN_GROUP = re.compile(r"\(.+?\)")


@dataclass
class LedgerFilter:
    start_date: Optional[str] = None   # inclusive 'YYYY-MM-DD'
    end_date: Optional[str] = None     # inclusive 'YYYY-MM-DD'
    customer: str = ""
    product: str = ""
    only_credit: bool = False


@dataclass
class LedgerTotals:
    qty: float = 0.0
    total: float = 0.0
    credit: float = 0.0


@dataclass
class CustomerSummaryRow:
    customer_id: Optional[int]
    name: str
    phone: Optional[str]
    qty: float
    total: float
    credit: float


@dataclass
class MonthlyRow:
    month: str          # 'YYYY-MM'
    paid: float
    credit: float
    outstanding: float  # net change in debt that month, floored at 0
    total: float


def _sign(rec: SaleRecord) -> int:
    return -1 if rec.is_return else 1


def matches_customer(term: str, name: Optional[str], phone: Optional[str]) -> bool:
    """
    Name substring OR phone digits (2+ digits). A term like 'Kim (0101)'
    requires both the name and the digits in brackets to match.
    """
    q = (term or "").strip().lower()
    if not q:
        return True
    term_digits = _DIGITS.sub("", q)
    term_name = _PAREN_GROUP.sub("", q).strip()
    phone_digits = _DIGITS.sub("", phone or "")
    name_hit = bool(term_name) and term_name in (name or WALK_IN_LABEL).lower()
    phone_hit = len(term_digits) >= 2 and term_digits in phone_digits
    if _PAREN_DIGITS.search(q):
        return name_hit and phone_hit
    return name_hit or phone_hit


def filter_ledger(sales: Iterable[SaleRecord], flt: LedgerFilter) -> List[SaleRecord]:
    product_term = flt.product.strip().lower()
    out: List[SaleRecord] = []
    for s in sales:
        day = s.ts[:10]
        if flt.start_date and day < flt.start_date:
            continue
        if flt.end_date and day > flt.end_date:
            continue
        if flt.customer.strip() and not matches_customer(flt.customer, s.customer_name, s.customer_phone):
            continue
        if product_term and product_term not in s.product_name.lower():
            continue
        if flt.only_credit and not s.is_credit:
            continue
        out.append(s)
    return out


def ledger_totals(sales: Iterable[SaleRecord]) -> LedgerTotals:
    t = LedgerTotals()
    for s in sales:
        sign = _sign(s)
        t.qty += sign * s.qty
        t.total += sign * s.total_amount
        if s.is_credit:
            t.credit += sign * s.total_amount
    t.total = round_money(t.total)
    t.credit = round_money(t.credit)
    return t


def _summarize(sales: Iterable[SaleRecord], key_fn) -> dict:
    rows: dict = {}
    for s in sales:
        key = key_fn(s)
        row = rows.get(key)
        if row is None:
            row = rows[key] = CustomerSummaryRow(
                customer_id=s.customer_id,
                name=s.customer_name or WALK_IN_LABEL,
                phone=s.customer_phone,
                qty=0.0,
                total=0.0,
                credit=0.0,
            )
        sign = _sign(s)
        row.qty += sign * s.qty
        row.total += sign * s.total_amount
        if s.is_credit:
            row.credit += sign * s.total_amount
        if not row.phone and s.customer_phone:
            row.phone = s.customer_phone
        if row.name == WALK_IN_LABEL and s.customer_name:
            row.name = s.customer_name
    for row in rows.values():
        row.total = round_money(row.total)
        row.credit = round_money(row.credit)
    return rows


def customer_summary(sales: Iterable[SaleRecord]) -> List[CustomerSummaryRow]:
    """Per-customer totals (walk-ins grouped together), biggest total first."""
    rows = _summarize(sales, lambda s: s.customer_id)
    return sorted(rows.values(), key=lambda r: r.total, reverse=True)


def top_customers(sales: Iterable[SaleRecord], limit: int = 5) -> List[CustomerSummaryRow]:
    """Best customers by net sales; walk-ins and deleted customers are left out."""
    rows = _summarize((s for s in sales if s.customer_id is not None), lambda s: s.customer_id)
    return sorted(rows.values(), key=lambda r: r.total, reverse=True)[:limit]


def monthly_summary(snapshot) -> List[MonthlyRow]:
    """Newest month first."""
    acc: dict[str, dict[str, float]] = {}

    def _row(month: str) -> dict[str, float]:
        return acc.setdefault(month, {"paid": 0.0, "credit": 0.0, "outstanding": 0.0})

    for s in snapshot.sales:
        row = _row(s.ts[:7])
        if s.is_credit:
            row["credit"] += _sign(s) * s.total_amount
        else:
            row["paid"] += _sign(s) * s.total_amount
    for e in snapshot.credits:
        _row(e.ts[:7])["outstanding"] += e.signed_amount

    out = [
        MonthlyRow(
            month=m,
            paid=round_money(v["paid"]),
            credit=round_money(v["credit"]),
            outstanding=round_money(max(v["outstanding"], 0.0)),
            total=round_money(v["paid"] + v["credit"]),
        )
        for m, v in acc.items()
    ]
    return sorted(out, key=lambda r: r.month, reverse=True)


def low_stock_products(products: Iterable[Product]) -> List[Product]:
    return [p for p in products if p.is_low_stock]


def outstanding_customers(
    balances: Iterable[CustomerBalance], term: str = ""
) -> List[CustomerBalance]:
    """Customers who owe something, largest balance first, optionally searched."""
    rows = [b for b in balances if b.outstanding > 0]
    if term.strip():
        rows = [b for b in rows if matches_customer(term, b.name, b.phone)]
    return sorted(rows, key=lambda b: b.outstanding, reverse=True)


def inventory_value(products: Iterable[Product]) -> float:
    return round_money(sum(p.qty * p.unit_price for p in products))
