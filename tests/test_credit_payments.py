"""Free-standing credit payments and their append-only corrections."""
from __future__ import annotations

import pytest

from conftest import last_credit_id, new_customer, new_product
from inventory_ledger.database.repositories.credits_repo import (
    PAYMENT,
    PAYMENT_ADJUSTMENT,
    PAYMENT_REVERSAL,
)
from inventory_ledger.errors import CreditEntryNotFound, CustomerNotFound, InvalidAmount


@pytest.fixture()
def owing(svc):
    """A customer who owes 300 from one credit sale."""
    pid = new_product(svc, price=100.0, qty=10)
    cid = new_customer(svc)
    svc.record_sale(pid, 3, customer_id=cid, is_credit=True)
    return cid


def test_f1_payment_lowers_outstanding(svc, owing):
    snap = svc.record_credit_payment(owing, 120, note="cash")
    e = snap.credits[0]
    assert (e.source_type, e.is_payment, e.amount, e.sale_id) == (PAYMENT, True, 120.0, None)
    bal = snap.balance(owing)
    assert (bal.total_credit, bal.total_paid, bal.outstanding) == (300.0, 120.0, 180.0)


def test_f2_overpayment_floors_at_zero(svc, owing):
    snap = svc.record_credit_payment(owing, 1000)
    assert snap.outstanding(owing) == 0.0
    assert snap.balance(owing).total_paid == 1000.0


def test_f3_payment_rejections(svc, owing):
    with pytest.raises(CustomerNotFound):
        svc.record_credit_payment(999, 10)
    with pytest.raises(InvalidAmount):
        svc.record_credit_payment(owing, 0)
    with pytest.raises(InvalidAmount):
        svc.record_credit_payment(owing, -5)
    with pytest.raises(InvalidAmount):
        svc.record_credit_payment(owing, 0.001)
    assert svc.get_snapshot().outstanding(owing) == 300.0


def test_f4_update_payment_appends_signed_adjustment(svc, owing):
    eid = last_credit_id(svc.record_credit_payment(owing, 100))

    snap = svc.update_credit_payment(eid, 150)
    adj = snap.credits[0]
    assert (adj.source_type, adj.is_payment, adj.amount, adj.ref_entry_id) == (
        PAYMENT_ADJUSTMENT, True, 50.0, eid,
    )
    assert snap.outstanding(owing) == 150.0

    snap = svc.update_credit_payment(eid, 60)
    adj = snap.credits[0]
    assert (adj.is_payment, adj.amount) == (False, 90.0)
    assert snap.outstanding(owing) == 240.0

    # the original row is untouched
    original = next(e for e in snap.credits if e.entry_id == eid)
    assert original.amount == 100.0


def test_f5_update_to_same_amount_writes_nothing(svc, owing):
    eid = last_credit_id(svc.record_credit_payment(owing, 100))
    count = len(svc.get_snapshot().credits)
    snap = svc.update_credit_payment(eid, 100)
    assert len(snap.credits) == count


def test_f6_delete_payment_appends_reversal_for_effective_amount(svc, owing):
    eid = last_credit_id(svc.record_credit_payment(owing, 100))
    svc.update_credit_payment(eid, 80)
    snap = svc.delete_credit_payment(eid)
    rev = snap.credits[0]
    assert (rev.source_type, rev.is_payment, rev.amount, rev.ref_entry_id) == (
        PAYMENT_REVERSAL, False, 80.0, eid,
    )
    assert snap.outstanding(owing) == 300.0

    with pytest.raises(CreditEntryNotFound):
        svc.delete_credit_payment(eid)
    with pytest.raises(CreditEntryNotFound):
        svc.update_credit_payment(eid, 10)


def test_f7_only_free_standing_payments_are_editable(svc, owing):
    charge_id = next(e.entry_id for e in svc.get_snapshot().credits if e.sale_id is not None)
    with pytest.raises(CreditEntryNotFound):
        svc.update_credit_payment(charge_id, 10)
    with pytest.raises(CreditEntryNotFound):
        svc.delete_credit_payment(424242)


@pytest.mark.parametrize("bad", ["inf", float("inf"), float("nan")])
def test_f8_non_finite_payment_is_rejected(svc, owing, bad):
    """F8: an infinite payment must not be able to zero the balance."""
    with pytest.raises(InvalidAmount):
        svc.record_credit_payment(owing, bad)
    eid = last_credit_id(svc.record_credit_payment(owing, 100))
    with pytest.raises(InvalidAmount):
        svc.update_credit_payment(eid, bad)
    snap = svc.delete_credit_payment(eid)
    bal = snap.balance(owing)
    assert (bal.total_credit, bal.total_paid, bal.outstanding) == (400.0, 100.0, 300.0)
