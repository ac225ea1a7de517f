"""Product and customer CRUD, name snapshots, archive and detach rules."""
from __future__ import annotations

import pytest

from conftest import last_sale_id, new_customer, new_product, qty_of
from inventory_ledger.constants import DEFAULT_LOW_STOCK_THRESHOLD
from inventory_ledger.errors import (
    CustomerNotFound,
    OverReturn,
    ProductNotFound,
    ValidationError,
)


def test_g1_create_product_defaults(svc):
    snap = svc.create_product("  Silk ", 25, sku=" SK-1 ", note="")
    p = snap.products[0]
    assert (p.name, p.sku, p.unit_price, p.qty, p.note) == ("Silk", "SK-1", 25.0, 0.0, None)
    assert p.low_stock_threshold == DEFAULT_LOW_STOCK_THRESHOLD
    assert p.is_low_stock
    assert snap.stock_movements == []


def test_g2_product_validation(svc):
    new_product(svc, name="Linen")
    with pytest.raises(ValidationError):
        svc.create_product("Linen", 5)
    with pytest.raises(ValidationError):
        svc.create_product("   ", 5)
    with pytest.raises(ValidationError):
        svc.create_product("Wool", -1)
    assert [p.name for p in svc.get_snapshot().products] == ["Linen"]


def test_g3_update_product_refreshes_history_names(svc):
    pid = new_product(svc, name="Linen", qty=10)
    svc.record_sale(pid, 1)
    snap = svc.update_product(pid, "Fine Linen", 12, low_stock_threshold=2)
    p = snap.product(pid)
    assert (p.name, p.unit_price, p.low_stock_threshold) == ("Fine Linen", 12.0, 2.0)
    assert {s.product_name for s in snap.sales} == {"Fine Linen"}
    assert {m.product_name for m in snap.stock_movements} == {"Fine Linen"}


def test_g4_update_product_keeps_threshold_when_omitted(svc):
    pid = new_product(svc, low_stock_threshold=3)
    snap = svc.update_product(pid, "Linen", 11)
    assert snap.product(pid).low_stock_threshold == 3.0
    new_product(svc, name="Cotton")
    with pytest.raises(ValidationError):
        svc.update_product(pid, "Cotton", 11)


def test_g5_delete_product_archives_and_keeps_history(svc, conn):
    pid = new_product(svc, qty=5)
    sid = last_sale_id(svc.record_sale(pid, 2))
    snap = svc.delete_product(pid)
    assert snap.product(pid) is None
    assert any(s.sale_id == sid for s in snap.sales)
    assert conn.execute("SELECT archived FROM products WHERE product_id=?", (pid,)).fetchone()[0] == 1
    with pytest.raises(ProductNotFound):
        svc.record_sale(pid, 1)
    with pytest.raises(ProductNotFound):
        svc.delete_product(pid)
    # existing sales can still be reversed
    svc.delete_sale(sid)


def test_g6_customer_requires_name_and_phone(svc):
    with pytest.raises(ValidationError):
        svc.create_customer("Kim", "  ")
    with pytest.raises(ValidationError):
        svc.create_customer("", "010")
    with pytest.raises(CustomerNotFound):
        svc.update_customer(5, "Kim", "010")


def test_g7_update_customer_refreshes_snapshots(svc):
    pid = new_product(svc)
    cid = new_customer(svc)
    svc.record_sale(pid, 2, customer_id=cid, is_credit=True)
    snap = svc.update_customer(cid, "Kim Minji", "010-9999-0000", note="VIP")
    assert snap.customer(cid).note == "VIP"
    assert {(s.customer_name, s.customer_phone) for s in snap.sales} == {("Kim Minji", "010-9999-0000")}
    assert {m.customer_name for m in snap.stock_movements if m.customer_id == cid} == {"Kim Minji"}
    assert {(e.customer_name, e.customer_phone) for e in snap.credits} == {("Kim Minji", "010-9999-0000")}
    assert snap.balance(cid).name == "Kim Minji"


def test_g8_delete_customer_detaches_and_freezes(svc):
    """
    G8: history keeps the name snapshot, the link is gone, the credit log is
    gone, and those sales no longer count for returns.
    """
    pid = new_product(svc, qty=10)
    cid = new_customer(svc)
    sid = last_sale_id(svc.record_sale(pid, 3, customer_id=cid, is_credit=True))
    svc.record_credit_payment(cid, 10)

    snap = svc.delete_customer(cid)
    assert snap.customer(cid) is None
    sale = next(s for s in snap.sales if s.sale_id == sid)
    assert sale.customer_id is None and sale.customer_deleted
    assert sale.customer_name == "Kim"
    assert all(m.customer_id is None for m in snap.stock_movements)
    assert snap.credits == []
    assert snap.customer_balances == []
    assert snap.return_candidates == []
    assert snap.sale_remaining[sid] == 0.0

    # a detached sale is not a walk-in sale
    with pytest.raises(OverReturn):
        svc.record_return(pid, None, 1)
    # it can still be deleted, restoring stock
    snap = svc.delete_sale(sid)
    assert qty_of(snap, pid) == pytest.approx(10)

    with pytest.raises(CustomerNotFound):
        svc.delete_customer(cid)
