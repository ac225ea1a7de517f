"""
Returns through LedgerService: oldest-first pricing, settlements, the
append-only credit trail on edit/delete, and atomic rejection.
"""
from __future__ import annotations

import pytest

from conftest import last_sale_id, new_customer, new_product, qty_of, table_counts
from inventory_ledger.database.repositories.credits_repo import (
    RETURN_ADJUSTMENT,
    RETURN_REVERSAL,
    RETURN_SETTLEMENT,
)
from inventory_ledger.errors import (
    InvalidAmount,
    InvalidQuantity,
    LinkedRecordImmutable,
    OverReturn,
    ReturnNotFound,
)


def test_d1_round_trip_credit_sale_and_full_return(svc):
    """
    D1: 5 @ 100 on credit -> owes 500; return all 5 -> stock back, owes 0,
    and nothing is left to return.
    """
    pid = new_product(svc, price=100.0, qty=10)
    cid = new_customer(svc)
    svc.record_sale(pid, 5, unit_price=100, customer_id=cid, is_credit=True)
    assert svc.get_snapshot().outstanding(cid) == 500.0

    snap = svc.record_return(pid, cid, 5)
    assert qty_of(snap, pid) == pytest.approx(10)
    assert snap.outstanding(cid) == 0.0
    settlement = snap.credits[0]
    assert settlement.source_type == RETURN_SETTLEMENT
    assert settlement.is_payment and settlement.amount == 500.0
    assert snap.return_candidates == []

    with pytest.raises(OverReturn):
        svc.record_return(pid, cid, 1)


def test_d2_fifo_pricing_across_two_sales(svc, clock):
    pid = new_product(svc, qty=50)
    cid = new_customer(svc)
    s1 = last_sale_id(svc.record_sale(pid, 3, unit_price=10, customer_id=cid))
    s2 = last_sale_id(svc.record_sale(pid, 2, unit_price=12, customer_id=cid))

    plan = svc.preview_return(pid, cid, 4)
    assert plan.amount == pytest.approx(42.0)

    snap = svc.record_return(pid, cid, 4, note="damaged")
    ret = snap.sales[0]
    assert ret.is_return and ret.total_amount == pytest.approx(42.0)
    assert ret.unit_price == pytest.approx(10.5)
    assert ret.origin_sale_id == s1
    assert snap.sale_remaining[s1] == pytest.approx(0)
    assert snap.sale_remaining[s2] == pytest.approx(1)
    mv = next(m for m in snap.stock_movements if m.sale_id == ret.sale_id)
    assert (mv.kind, mv.qty) == ("RETURN", 4)


def test_d3_override_amount_is_stored(svc):
    pid = new_product(svc, qty=10)
    cid = new_customer(svc)
    svc.record_sale(pid, 4, unit_price=10, customer_id=cid, is_credit=True)
    snap = svc.record_return(pid, cid, 2, override_amount=15)
    ret = snap.sales[0]
    assert ret.total_amount == 15.0 and ret.override_amount == 15.0
    assert snap.outstanding(cid) == 25.0


def test_d4_over_return_leaves_store_unchanged(svc, conn):
    pid = new_product(svc, qty=10)
    cid = new_customer(svc)
    svc.record_sale(pid, 2, customer_id=cid, is_credit=True)
    before = table_counts(conn)
    stock_before = qty_of(svc.get_snapshot(), pid)
    with pytest.raises(OverReturn):
        svc.record_return(pid, cid, 3)
    with pytest.raises(InvalidQuantity):
        svc.record_return(pid, cid, -1)
    assert table_counts(conn) == before
    assert qty_of(svc.get_snapshot(), pid) == stock_before


def test_d5_zero_quantity_return_is_a_no_op(svc, conn):
    pid = new_product(svc)
    cid = new_customer(svc)
    svc.record_sale(pid, 2, customer_id=cid)
    before = table_counts(conn)
    snap = svc.record_return(pid, cid, 0)
    assert table_counts(conn) == before
    assert not any(s.is_return for s in snap.sales)


def test_d6_walk_in_return_has_no_settlement(svc):
    pid = new_product(svc, qty=5)
    svc.record_sale(pid, 2, unit_price=10)
    snap = svc.record_return(pid, None, 2)
    assert snap.sales[0].is_return
    assert snap.credits == []
    assert qty_of(snap, pid) == pytest.approx(5)


def test_d7_update_return_appends_adjustments(svc):
    """
    D7: the settlement row is never rewritten; each edit appends the signed
    money difference and the balance follows.
    """
    pid = new_product(svc, qty=20)
    cid = new_customer(svc)
    svc.record_sale(pid, 5, unit_price=10, customer_id=cid, is_credit=True)
    rid = last_sale_id(svc.record_return(pid, cid, 2))
    assert svc.get_snapshot().outstanding(cid) == 30.0

    snap = svc.update_return(rid, 4)
    assert qty_of(snap, pid) == pytest.approx(19)
    ret = next(s for s in snap.sales if s.sale_id == rid)
    assert (ret.qty, ret.total_amount) == (4, 40.0)
    adj = snap.credits[0]
    assert adj.source_type == RETURN_ADJUSTMENT and adj.is_payment and adj.amount == 20.0
    assert snap.outstanding(cid) == 10.0

    snap = svc.update_return(rid, 1)
    adj = snap.credits[0]
    assert adj.source_type == RETURN_ADJUSTMENT and not adj.is_payment and adj.amount == 30.0
    assert snap.outstanding(cid) == 40.0
    settlement = next(e for e in snap.credits if e.source_type == RETURN_SETTLEMENT)
    assert settlement.amount == 20.0

    mv = next(m for m in snap.stock_movements if m.sale_id == rid)
    assert mv.qty == 1


def test_d8_update_return_cannot_exceed_what_was_sold(svc):
    pid = new_product(svc, qty=20)
    cid = new_customer(svc)
    svc.record_sale(pid, 5, unit_price=10, customer_id=cid)
    rid = last_sale_id(svc.record_return(pid, cid, 2))
    svc.record_return(pid, cid, 2)
    # 5 sold, the other return holds 2: this one may go up to 3
    svc.update_return(rid, 3)
    with pytest.raises(OverReturn):
        svc.update_return(rid, 4)
    with pytest.raises(InvalidQuantity):
        svc.update_return(rid, 0)


def test_d9_delete_return_reinstates_debt(svc):
    pid = new_product(svc, qty=10)
    cid = new_customer(svc)
    svc.record_sale(pid, 5, unit_price=100, customer_id=cid, is_credit=True)
    rid = last_sale_id(svc.record_return(pid, cid, 2))
    svc.update_return(rid, 3)
    assert svc.get_snapshot().outstanding(cid) == 200.0

    snap = svc.delete_return(rid)
    assert qty_of(snap, pid) == pytest.approx(5)
    reversal = snap.credits[0]
    assert reversal.source_type == RETURN_REVERSAL
    assert not reversal.is_payment and reversal.amount == 300.0
    assert snap.outstanding(cid) == 500.0
    # original settlement and adjustment are still in the log
    assert len([e for e in snap.credits if e.sale_id == rid]) == 3
    assert all(m.sale_id != rid for m in snap.stock_movements)

    with pytest.raises(ReturnNotFound):
        svc.delete_return(rid)


def test_d10_delete_return_floors_stock(svc):
    pid = new_product(svc, qty=0)
    svc.record_stock_entry(pid, 3, kind="IN")
    svc.record_sale(pid, 3)
    rid = last_sale_id(svc.record_return(pid, None, 2))
    svc.record_sale(pid, 2)
    snap = svc.delete_return(rid)
    assert qty_of(snap, pid) == 0.0


def test_d11_sales_are_not_returns(svc):
    pid = new_product(svc)
    sid = last_sale_id(svc.record_sale(pid, 1))
    with pytest.raises(ReturnNotFound):
        svc.update_return(sid, 1)
    with pytest.raises(ReturnNotFound):
        svc.delete_return(sid)


def test_d12_returns_of_a_deleted_customer_are_frozen(svc):
    pid = new_product(svc)
    cid = new_customer(svc)
    svc.record_sale(pid, 2, customer_id=cid)
    rid = last_sale_id(svc.record_return(pid, cid, 1))
    svc.delete_customer(cid)
    with pytest.raises(LinkedRecordImmutable):
        svc.update_return(rid, 1)
    snap = svc.delete_return(rid)
    assert all(s.sale_id != rid for s in snap.sales)


def test_d13_edit_without_override_keeps_the_overridden_price(svc):
    """
    D13: a note-only edit leaves an overridden return's money alone; a qty
    edit scales the override per unit; the note survives when not given.
    """
    pid = new_product(svc, price=100.0, qty=10)
    cid = new_customer(svc)
    svc.record_sale(pid, 2, customer_id=cid, is_credit=True)
    rid = last_sale_id(svc.record_return(pid, cid, 2, override_amount=50))
    assert svc.get_snapshot().outstanding(cid) == 150.0
    count = len(svc.get_snapshot().credits)

    snap = svc.update_return(rid, 2, note="typo fixed")
    ret = next(s for s in snap.sales if s.sale_id == rid)
    assert (ret.total_amount, ret.override_amount, ret.note) == (50.0, 50.0, "typo fixed")
    assert len(snap.credits) == count
    assert snap.outstanding(cid) == 150.0

    snap = svc.update_return(rid, 1)
    ret = next(s for s in snap.sales if s.sale_id == rid)
    assert (ret.total_amount, ret.override_amount, ret.note) == (25.0, 25.0, "typo fixed")
    assert snap.outstanding(cid) == 175.0

    snap = svc.update_return(rid, 1, override_amount=100)
    assert next(s for s in snap.sales if s.sale_id == rid).total_amount == 100.0
    assert snap.outstanding(cid) == 100.0


def test_d14_non_finite_return_inputs_are_rejected(svc, conn):
    pid = new_product(svc, qty=10)
    cid = new_customer(svc)
    svc.record_sale(pid, 3, customer_id=cid, is_credit=True)
    before = table_counts(conn)
    with pytest.raises(InvalidQuantity):
        svc.record_return(pid, cid, float("nan"))
    with pytest.raises(InvalidAmount):
        svc.record_return(pid, cid, 1, override_amount=float("inf"))
    with pytest.raises(InvalidAmount):
        svc.preview_return(pid, cid, 1, override_amount="nan")
    assert table_counts(conn) == before
