"""Balance engine tests: totals, floors, running balances, statements."""
from __future__ import annotations

import pytest

from inventory_ledger.database.repositories.credits_repo import (
    CreditEntry,
    PAYMENT,
    PAYMENT_ADJUSTMENT,
    PAYMENT_REVERSAL,
    CREDIT_SALE,
)
from inventory_ledger.database.repositories.customers_repo import Customer
from inventory_ledger.ledger.balances import (
    balance_after,
    balance_before,
    compute_balances,
    effective_payment_amount,
    running_balances,
    statement,
)


def _e(entry_id, ts, amount, is_payment, customer_id=1, source_type=None, ref=None):
    return CreditEntry(
        entry_id=entry_id,
        ts=ts,
        customer_id=customer_id,
        customer_name="Kim",
        customer_phone="010",
        sale_id=None,
        amount=amount,
        is_payment=is_payment,
        note=None,
        source_type=source_type or (PAYMENT if is_payment else CREDIT_SALE),
        ref_entry_id=ref,
    )


CUSTOMERS = [Customer(1, "Kim", "010", None, "t0"), Customer(2, "Lee", "011", None, "t0")]


def test_b1_totals_and_outstanding():
    entries = [_e(1, "t1", 500, False), _e(2, "t2", 120, True), _e(3, "t3", 30, False)]
    kim, lee = compute_balances(CUSTOMERS, entries)
    assert (kim.total_credit, kim.total_paid, kim.outstanding) == (530.0, 120.0, 410.0)
    assert kim.last_activity == "t3"
    # customers without entries still get a zero row
    assert (lee.total_credit, lee.outstanding, lee.last_activity) == (0.0, 0.0, None)


def test_b2_overpayment_floors_outstanding_at_zero():
    entries = [_e(1, "t1", 100, False), _e(2, "t2", 150, True)]
    (kim, _lee) = compute_balances(CUSTOMERS, entries)
    assert kim.total_paid == 150.0
    assert kim.outstanding == 0.0


def test_b3_outstanding_is_a_function_of_history_only():
    """B3: order of arrival and repeated recomputation do not change the result."""
    entries = [_e(1, "t1", 100, True), _e(2, "t2", 300, False), _e(3, "t3", 50, True)]
    first = compute_balances(CUSTOMERS, entries)[0].outstanding
    again = compute_balances(CUSTOMERS, list(reversed(entries)))[0].outstanding
    assert first == again == 150.0
    assert balance_after(entries, 3) == 150.0


def test_b4_running_balances_use_ts_then_id():
    entries = [
        _e(2, "t1", 40, True),
        _e(1, "t1", 100, False),
        _e(3, "t2", 10, False),
    ]
    running = running_balances(entries)
    assert running[1] == (0.0, 100.0)
    assert running[2] == (100.0, 60.0)
    assert running[3] == (60.0, 70.0)
    assert balance_before(entries, 3) == 60.0
    assert balance_before(entries, 999) == 0.0


def test_b5_statement_is_per_customer_and_chronological():
    entries = [
        _e(1, "t1", 100, False),
        _e(2, "t2", 70, False, customer_id=2),
        _e(3, "t3", 25, True),
    ]
    rows = statement(entries, 1)
    assert [r.entry.entry_id for r in rows] == [1, 3]
    assert [(r.balance_before, r.balance_after) for r in rows] == [(0.0, 100.0), (100.0, 75.0)]


def test_b6_effective_payment_amount_follows_adjustments():
    entries = [
        _e(1, "t1", 100, True),
        _e(2, "t2", 30, False, source_type=PAYMENT_ADJUSTMENT, ref=1),
        _e(3, "t3", 10, True, source_type=PAYMENT_ADJUSTMENT, ref=1),
    ]
    assert effective_payment_amount(entries, 1) == pytest.approx(80.0)
    entries.append(_e(4, "t4", 80, False, source_type=PAYMENT_REVERSAL, ref=1))
    assert effective_payment_amount(entries, 1) == 0.0
    # not a free-standing payment
    assert effective_payment_amount(entries, 2) == 0.0
