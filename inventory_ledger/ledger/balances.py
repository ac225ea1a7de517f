# inventory_ledger/ledger/balances.py
"""
Customer balances folded from the credit log.

Per customer, entries are replayed in (ts, entry_id) order: charges add,
payments and settlements subtract. The signed running value is what gets
carried from one entry to the next; what callers see is that value floored
at 0, so the last figure is always max(total_credit - total_paid, 0) whatever
order the payments arrived in.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional

from ..database.repositories.credits_repo import (
    CreditEntry,
    PAYMENT,
    PAYMENT_ADJUSTMENT,
    PAYMENT_REVERSAL,
)
from ..database.repositories.customers_repo import Customer
from ..utils.helpers import clamp_non_negative, round_money


@dataclass
class CustomerBalance:
    customer_id: int
    name: str
    phone: str
    total_credit: float
    total_paid: float
    outstanding: float
    last_activity: Optional[str]


@dataclass
class StatementRow:
    entry: CreditEntry
    balance_before: float
    balance_after: float


def _chrono(e: CreditEntry) -> tuple[str, int]:
    return (e.ts, e.entry_id or 0)


def _by_customer(entries: Iterable[CreditEntry]) -> dict[int, list[CreditEntry]]:
    grouped: dict[int, list[CreditEntry]] = defaultdict(list)
    for e in entries:
        grouped[e.customer_id].append(e)
    for rows in grouped.values():
        rows.sort(key=_chrono)
    return grouped


def compute_balances(
    customers: Iterable[Customer],
    entries: Iterable[CreditEntry],
) -> list[CustomerBalance]:
    """One balance per customer, in the order the customers were given."""
    grouped = _by_customer(entries)
    out: list[CustomerBalance] = []
    for c in customers:
        rows = grouped.get(c.customer_id, [])
        total_credit = sum(e.amount for e in rows if not e.is_payment)
        total_paid = sum(e.amount for e in rows if e.is_payment)
        out.append(
            CustomerBalance(
                customer_id=c.customer_id,
                name=c.name,
                phone=c.phone,
                total_credit=round_money(total_credit),
                total_paid=round_money(total_paid),
                outstanding=round_money(clamp_non_negative(total_credit - total_paid)),
                last_activity=max((e.ts for e in rows), default=None),
            )
        )
    return out


def running_balances(entries: Iterable[CreditEntry]) -> dict[int, tuple[float, float]]:
    """entry_id -> (balance before, balance after), both floored at 0."""
    out: dict[int, tuple[float, float]] = {}
    for rows in _by_customer(entries).values():
        signed = 0.0
        for e in rows:
            before = signed
            signed += e.signed_amount
            out[e.entry_id] = (
                round_money(clamp_non_negative(before)),
                round_money(clamp_non_negative(signed)),
            )
    return out


def balance_before(entries: Iterable[CreditEntry], entry_id: int) -> float:
    return running_balances(entries).get(entry_id, (0.0, 0.0))[0]


def balance_after(entries: Iterable[CreditEntry], entry_id: int) -> float:
    return running_balances(entries).get(entry_id, (0.0, 0.0))[1]


def statement(entries: Iterable[CreditEntry], customer_id: int) -> list[StatementRow]:
    """Chronological log of one customer with the balance around each entry."""
    rows = sorted((e for e in entries if e.customer_id == customer_id), key=_chrono)
    running = running_balances(rows)
    return [StatementRow(e, *running[e.entry_id]) for e in rows]


def effective_payment_amount(entries: Iterable[CreditEntry], entry_id: int) -> float:
    """
    What a free-standing payment is currently worth once its adjustments are
    applied. A reversed payment is worth 0.
    """
    entries = list(entries)
    base = next(
        (e for e in entries if e.entry_id == entry_id and e.source_type == PAYMENT),
        None,
    )
    if base is None:
        return 0.0
    value = base.amount
    for e in entries:
        if e.ref_entry_id != entry_id:
            continue
        if e.source_type == PAYMENT_REVERSAL:
            return 0.0
        if e.source_type == PAYMENT_ADJUSTMENT:
            value += e.amount if e.is_payment else -e.amount
    return round_money(clamp_non_negative(value))
