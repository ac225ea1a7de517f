# inventory_ledger/ledger/service.py
"""
Transaction operations over the ledger.

Every mutating method runs inside one BEGIN IMMEDIATE transaction: checks,
writes to every table it touches, and the snapshot build all happen before
the commit. A DomainError (or anything else) rolls the whole thing back, so a
rejected call leaves the store exactly as it was.
"""
from __future__ import annotations

from contextlib import contextmanager
import logging
import sqlite3
from typing import Callable, Optional

from ..constants import DEFAULT_LOW_STOCK_THRESHOLD, MONEY_PLACES, MOVEMENT_KINDS, QTY_EPSILON
from ..database.repositories import (
    CreditEntry,
    CreditsRepo,
    Customer,
    CustomersRepo,
    Product,
    ProductsRepo,
    SaleRecord,
    SalesRepo,
    StockMovement,
    StockRepo,
)
from ..database.repositories.credits_repo import (
    CREDIT_SALE,
    PAYMENT,
    PAYMENT_ADJUSTMENT,
    PAYMENT_REVERSAL,
    RETURN_ADJUSTMENT,
    RETURN_REVERSAL,
    RETURN_SETTLEMENT,
)
from ..errors import (
    CreditEntryNotFound,
    CustomerNotFound,
    CustomerRequiredForCredit,
    DomainError,
    InvalidAmount,
    LinkedRecordImmutable,
    ProductNotFound,
    ReturnImmutable,
    ReturnNotFound,
    SaleHasReturns,
    SaleNotFound,
    StockEntryNotFound,
    ValidationError,
)
from ..utils.helpers import clamp_non_negative, now_iso, round_money
from ..utils.validators import (
    normalize_text,
    require_non_empty,
    require_non_negative_qty,
    require_positive_amount,
    require_positive_qty,
    require_price,
)
from .allocation import ReturnCandidate, ReturnPlan, allocate, plan_return, return_candidates
from .balances import StatementRow, effective_payment_amount, statement
from .snapshot import Snapshot, build_snapshot

_log = logging.getLogger(__name__)

# money differences smaller than half a cent are rounding noise
_MONEY_EPSILON = 0.5 * 10 ** -MONEY_PLACES


def _money(amount) -> float:
    """Positive amount rounded to cents; rounding down to 0 is still invalid."""
    value = round_money(require_positive_amount(amount))
    if value <= 0:
        raise InvalidAmount(f"Amount must be at least one cent (got {amount!r}).")
    return value


@contextmanager
def _immediate_tx(conn: sqlite3.Connection):
    """
    Start an IMMEDIATE transaction (write lock taken up front),
    commit on success, rollback on error.
    """
    cur = conn.cursor()
    try:
        cur.execute("BEGIN IMMEDIATE")
        yield
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        cur.close()


class LedgerService:
    def __init__(self, conn: sqlite3.Connection, clock: Callable[[], str] = now_iso):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row
        self.clock = clock
        self.products = ProductsRepo(conn)
        self.customers = CustomersRepo(conn)
        self.sales = SalesRepo(conn)
        self.stock = StockRepo(conn)
        self.credits = CreditsRepo(conn)

    # ------------------------------------------------------------------
    # plumbing
    # ------------------------------------------------------------------
    def _mutate(self, op: str, fn: Callable[[], object]) -> Snapshot:
        try:
            with _immediate_tx(self.conn):
                ref = fn()
                snap = build_snapshot(self.conn)
        except DomainError as e:
            _log.warning("%s rejected [%s]: %s", op, e.kind, e)
            raise
        _log.info("%s committed (%s)", op, ref)
        return snap

    def _product(self, product_id: int) -> Product:
        p = self.products.get(product_id)
        if p is None:
            raise ProductNotFound(product_id)
        return p

    def _active_product(self, product_id: int) -> Product:
        p = self._product(product_id)
        if p.archived:
            raise ProductNotFound(product_id)
        return p

    def _customer(self, customer_id: int) -> Customer:
        c = self.customers.get(customer_id)
        if c is None:
            raise CustomerNotFound(customer_id)
        return c

    def _optional_customer(self, customer_id: Optional[int]) -> Optional[Customer]:
        return None if customer_id is None else self._customer(customer_id)

    def _shift_stock(self, product_id: int, delta: float) -> None:
        """Apply a signed stock change, floored at 0."""
        p = self._product(product_id)
        self.products.set_qty(product_id, clamp_non_negative(p.qty + delta))

    def _sale(self, sale_id: int) -> SaleRecord:
        rec = self.sales.get(sale_id)
        if rec is None:
            raise SaleNotFound(sale_id)
        if rec.is_return:
            raise ReturnImmutable(sale_id)
        return rec

    def _return(self, return_id: int) -> SaleRecord:
        rec = self.sales.get(return_id)
        if rec is None or not rec.is_return:
            raise ReturnNotFound(return_id)
        return rec

    def _consumed(self, rec: SaleRecord) -> float:
        if rec.customer_deleted:
            return 0.0
        rows = self.sales.list_for_pair(rec.customer_id, rec.product_id)
        return allocate(rows).consumed(rec.sale_id)

    def _net_return_credit(self, return_id: int) -> float:
        """What the customer has been credited for a return so far."""
        return round_money(sum(-e.signed_amount for e in self.credits.list_for_return(return_id)))

    def _free_payment(self, entry_id: int) -> CreditEntry:
        e = self.credits.get(entry_id)
        if e is None or e.source_type != PAYMENT:
            raise CreditEntryNotFound(entry_id)
        if any(r.source_type == PAYMENT_REVERSAL for r in self.credits.list_referencing(entry_id)):
            raise CreditEntryNotFound(entry_id, "payment was already reversed")
        return e

    # ------------------------------------------------------------------
    # products
    # ------------------------------------------------------------------
    def create_product(
        self,
        name: str,
        unit_price,
        sku: Optional[str] = None,
        note: Optional[str] = None,
        low_stock_threshold=None,
        initial_qty=None,
    ) -> Snapshot:
        def run():
            clean = require_non_empty(name, "Product name")
            if self.products.name_exists(clean):
                raise ValidationError(f"A product named '{clean}' already exists.")
            price = require_price(unit_price)
            threshold = (
                DEFAULT_LOW_STOCK_THRESHOLD
                if low_stock_threshold is None
                else require_non_negative_qty(low_stock_threshold, "Low stock threshold")
            )
            start = 0.0 if initial_qty is None else require_non_negative_qty(initial_qty, "Initial quantity")

            ts = self.clock()
            pid = self.products.create(
                clean, normalize_text(sku), price, threshold, normalize_text(note), ts
            )
            if start > 0:
                self.products.set_qty(pid, start)
                self.stock.insert(
                    StockMovement(
                        movement_id=None,
                        ts=ts,
                        kind="IN",
                        product_id=pid,
                        product_name=clean,
                        qty=start,
                        unit_price=price,
                        total_amount=round_money(start * price),
                        note="initial stock",
                    )
                )
            return f"product_id={pid}"

        return self._mutate("create_product", run)

    def update_product(
        self,
        product_id: int,
        name: str,
        unit_price,
        sku: Optional[str] = None,
        note: Optional[str] = None,
        low_stock_threshold=None,
    ) -> Snapshot:
        def run():
            p = self._active_product(product_id)
            clean = require_non_empty(name, "Product name")
            if self.products.name_exists(clean, exclude_id=product_id):
                raise ValidationError(f"A product named '{clean}' already exists.")
            price = require_price(unit_price)
            threshold = (
                p.low_stock_threshold
                if low_stock_threshold is None
                else require_non_negative_qty(low_stock_threshold, "Low stock threshold")
            )
            self.products.update(
                product_id, clean, normalize_text(sku), price, threshold, normalize_text(note)
            )
            if clean != p.name:
                self.sales.refresh_product_name(product_id, clean)
                self.stock.refresh_product_name(product_id, clean)
            return f"product_id={product_id}"

        return self._mutate("update_product", run)

    def delete_product(self, product_id: int) -> Snapshot:
        def run():
            self._active_product(product_id)
            self.products.archive(product_id)
            return f"product_id={product_id}"

        return self._mutate("delete_product", run)

    # ------------------------------------------------------------------
    # customers
    # ------------------------------------------------------------------
    def create_customer(self, name: str, phone: str, note: Optional[str] = None) -> Snapshot:
        def run():
            clean = require_non_empty(name, "Customer name")
            tel = require_non_empty(phone, "Phone")
            cid = self.customers.create(clean, tel, normalize_text(note), self.clock())
            return f"customer_id={cid}"

        return self._mutate("create_customer", run)

    def update_customer(
        self, customer_id: int, name: str, phone: str, note: Optional[str] = None
    ) -> Snapshot:
        def run():
            self._customer(customer_id)
            clean = require_non_empty(name, "Customer name")
            tel = require_non_empty(phone, "Phone")
            self.customers.update(customer_id, clean, tel, normalize_text(note))
            self.sales.refresh_customer(customer_id, clean, tel)
            self.stock.refresh_customer_name(customer_id, clean)
            self.credits.refresh_customer(customer_id, clean, tel)
            return f"customer_id={customer_id}"

        return self._mutate("update_customer", run)

    def delete_customer(self, customer_id: int) -> Snapshot:
        """
        Sales and movements keep their name/phone snapshot but lose the link;
        the customer's credit log goes with them.
        """
        def run():
            self._customer(customer_id)
            self.sales.detach_customer(customer_id)
            self.stock.detach_customer(customer_id)
            self.credits.delete_for_customer(customer_id)
            self.customers.delete(customer_id)
            return f"customer_id={customer_id}"

        return self._mutate("delete_customer", run)

    # ------------------------------------------------------------------
    # sales
    # ------------------------------------------------------------------
    def record_sale(
        self,
        product_id: int,
        qty,
        unit_price=None,
        customer_id: Optional[int] = None,
        note: Optional[str] = None,
        is_credit: bool = False,
    ) -> Snapshot:
        def run():
            q = require_positive_qty(qty)
            p = self._active_product(product_id)
            price = p.unit_price if unit_price is None else require_price(unit_price)
            customer = self._optional_customer(customer_id)
            if is_credit and customer is None:
                raise CustomerRequiredForCredit()

            ts = self.clock()
            total = round_money(q * price)
            text = normalize_text(note)
            sale_id = self.sales.insert(
                SaleRecord(
                    sale_id=None,
                    ts=ts,
                    product_id=p.product_id,
                    product_name=p.name,
                    qty=q,
                    unit_price=price,
                    total_amount=total,
                    customer_id=customer_id,
                    customer_name=customer.name if customer else None,
                    customer_phone=customer.phone if customer else None,
                    note=text,
                    is_credit=bool(is_credit),
                )
            )
            self.stock.insert(
                StockMovement(
                    movement_id=None,
                    ts=ts,
                    kind="OUT",
                    product_id=p.product_id,
                    product_name=p.name,
                    qty=q,
                    unit_price=price,
                    total_amount=total,
                    customer_id=customer_id,
                    customer_name=customer.name if customer else None,
                    note=text,
                    sale_id=sale_id,
                )
            )
            self._shift_stock(p.product_id, -q)
            if is_credit and total > 0:
                self.credits.insert(
                    CreditEntry(
                        entry_id=None,
                        ts=ts,
                        customer_id=customer.customer_id,
                        customer_name=customer.name,
                        customer_phone=customer.phone,
                        sale_id=sale_id,
                        amount=total,
                        is_payment=False,
                        note=text,
                        source_type=CREDIT_SALE,
                    )
                )
            return f"sale_id={sale_id}"

        return self._mutate("record_sale", run)

    def update_sale(
        self,
        sale_id: int,
        qty,
        unit_price=None,
        customer_id: Optional[int] = None,
        note: Optional[str] = None,
        is_credit: bool = False,
    ) -> Snapshot:
        """
        Rewrites the sale, its OUT movement and its credit charge in place.
        Refused while returns hold part of the sale and the change would shrink
        it below what they hold or move it to another customer.
        """
        def run():
            rec = self._sale(sale_id)
            q = require_positive_qty(qty)
            price = rec.unit_price if unit_price is None else require_price(unit_price)
            customer = self._optional_customer(customer_id)
            if is_credit and customer is None:
                raise CustomerRequiredForCredit()

            consumed = self._consumed(rec)
            if consumed > QTY_EPSILON:
                if q < consumed - QTY_EPSILON or customer_id != rec.customer_id:
                    raise SaleHasReturns(sale_id, consumed)

            if customer is not None:
                name, phone, detached = customer.name, customer.phone, False
            elif rec.customer_deleted:
                # frozen snapshot of a deleted customer stays as it was
                name, phone, detached = rec.customer_name, rec.customer_phone, True
            else:
                name, phone, detached = None, None, False

            total = round_money(q * price)
            text = normalize_text(note)
            self.sales.update(
                rec.with_changes(
                    qty=q,
                    unit_price=price,
                    total_amount=total,
                    customer_id=customer_id,
                    customer_name=name,
                    customer_phone=phone,
                    note=text,
                    is_credit=bool(is_credit),
                    customer_deleted=detached,
                )
            )
            mv = self.stock.get_for_sale(sale_id)
            if mv is not None:
                self.stock.update(
                    mv.with_changes(
                        qty=q,
                        unit_price=price,
                        total_amount=total,
                        customer_id=customer_id,
                        customer_name=name,
                        note=text,
                    )
                )
            self._shift_stock(rec.product_id, -(q - rec.qty))

            charge = self.credits.get_sale_charge(sale_id)
            if is_credit and total > 0:
                if charge is not None:
                    self.credits.update_sale_charge(
                        charge.entry_id,
                        customer_id=customer.customer_id,
                        customer_name=customer.name,
                        customer_phone=customer.phone,
                        amount=total,
                        note=text,
                    )
                else:
                    self.credits.insert(
                        CreditEntry(
                            entry_id=None,
                            ts=rec.ts,
                            customer_id=customer.customer_id,
                            customer_name=customer.name,
                            customer_phone=customer.phone,
                            sale_id=sale_id,
                            amount=total,
                            is_payment=False,
                            note=text,
                            source_type=CREDIT_SALE,
                        )
                    )
            elif charge is not None:
                self.credits.delete_sale_charge(sale_id)
            return f"sale_id={sale_id}"

        return self._mutate("update_sale", run)

    def delete_sale(self, sale_id: int) -> Snapshot:
        def run():
            rec = self._sale(sale_id)
            consumed = self._consumed(rec)
            if consumed > QTY_EPSILON:
                raise SaleHasReturns(sale_id, consumed)
            self._shift_stock(rec.product_id, rec.qty)
            self.stock.delete_for_sale(sale_id)
            self.credits.delete_sale_charge(sale_id)
            self.sales.delete(sale_id)
            return f"sale_id={sale_id}"

        return self._mutate("delete_sale", run)

    # ------------------------------------------------------------------
    # returns
    # ------------------------------------------------------------------
    def preview_return(
        self,
        product_id: int,
        customer_id: Optional[int],
        qty,
        override_amount=None,
    ) -> ReturnPlan:
        """Read-only: what record_return would do with the same arguments."""
        self._product(product_id)
        self._optional_customer(customer_id)
        return plan_return(
            self.sales.list_for_pair(customer_id, product_id),
            customer_id,
            product_id,
            qty,
            override_amount=override_amount,
        )

    def record_return(
        self,
        product_id: int,
        customer_id: Optional[int],
        qty,
        note: Optional[str] = None,
        override_amount=None,
    ) -> Snapshot:
        """
        Take `qty` back from the (customer, product) pair, oldest sale first.
        qty == 0 changes nothing. With a customer attached, the return's amount
        is written to the credit log as a settlement.
        """
        def run():
            p = self._product(product_id)
            customer = self._optional_customer(customer_id)
            plan = plan_return(
                self.sales.list_for_pair(customer_id, product_id),
                customer_id,
                product_id,
                qty,
                override_amount=override_amount,
            )
            if plan.is_empty:
                return "no-op"

            ts = self.clock()
            text = normalize_text(note)
            return_id = self.sales.insert(
                SaleRecord(
                    sale_id=None,
                    ts=ts,
                    product_id=p.product_id,
                    product_name=p.name,
                    qty=plan.qty,
                    unit_price=plan.unit_price,
                    total_amount=plan.amount,
                    customer_id=customer_id,
                    customer_name=customer.name if customer else None,
                    customer_phone=customer.phone if customer else None,
                    note=text,
                    is_return=True,
                    origin_sale_id=plan.origin_sale_id,
                    override_amount=plan.override_amount,
                )
            )
            self.stock.insert(
                StockMovement(
                    movement_id=None,
                    ts=ts,
                    kind="RETURN",
                    product_id=p.product_id,
                    product_name=p.name,
                    qty=plan.qty,
                    unit_price=plan.unit_price,
                    total_amount=plan.amount,
                    customer_id=customer_id,
                    customer_name=customer.name if customer else None,
                    note=text,
                    sale_id=return_id,
                )
            )
            self._shift_stock(p.product_id, plan.qty)
            if customer is not None and plan.amount > 0:
                self.credits.insert(
                    CreditEntry(
                        entry_id=None,
                        ts=ts,
                        customer_id=customer.customer_id,
                        customer_name=customer.name,
                        customer_phone=customer.phone,
                        sale_id=return_id,
                        amount=plan.amount,
                        is_payment=True,
                        note=text or "return settlement",
                        source_type=RETURN_SETTLEMENT,
                    )
                )
            return f"return_id={return_id}"

        return self._mutate("record_return", run)

    def update_return(
        self,
        return_id: int,
        qty,
        note: Optional[str] = None,
        override_amount=None,
    ) -> Snapshot:
        """
        Re-price the return at its place in the replay and append the money
        difference to the credit log; the original settlement is left alone.
        Without `override_amount` a previously overridden return keeps its
        per-unit override; without `note` the note is kept.
        """
        def run():
            rec = self._return(return_id)
            if rec.customer_deleted:
                raise LinkedRecordImmutable(
                    f"Return {return_id} belongs to a deleted customer and can no longer be edited."
                )
            q = require_positive_qty(qty)
            override = override_amount
            if override is None and rec.override_amount is not None:
                override = (
                    rec.override_amount
                    if abs(q - rec.qty) <= QTY_EPSILON
                    else round_money(rec.override_amount / rec.qty * q)
                )
            plan = plan_return(
                self.sales.list_for_pair(rec.customer_id, rec.product_id),
                rec.customer_id,
                rec.product_id,
                q,
                override_amount=override,
                exclude_return_id=return_id,
            )
            text = rec.note if note is None else normalize_text(note)
            self.sales.update(
                rec.with_changes(
                    qty=plan.qty,
                    unit_price=plan.unit_price,
                    total_amount=plan.amount,
                    note=text,
                    origin_sale_id=plan.origin_sale_id,
                    override_amount=plan.override_amount,
                )
            )
            mv = self.stock.get_for_sale(return_id)
            if mv is not None:
                self.stock.update(
                    mv.with_changes(
                        qty=plan.qty,
                        unit_price=plan.unit_price,
                        total_amount=plan.amount,
                        note=text,
                    )
                )
            self._shift_stock(rec.product_id, plan.qty - rec.qty)

            if rec.customer_id is not None:
                diff = round_money(plan.amount - self._net_return_credit(return_id))
                if abs(diff) >= _MONEY_EPSILON:
                    customer = self._customer(rec.customer_id)
                    self.credits.insert(
                        CreditEntry(
                            entry_id=None,
                            ts=self.clock(),
                            customer_id=customer.customer_id,
                            customer_name=customer.name,
                            customer_phone=customer.phone,
                            sale_id=return_id,
                            amount=abs(diff),
                            is_payment=diff > 0,
                            note=f"return #{return_id} adjusted",
                            source_type=RETURN_ADJUSTMENT,
                        )
                    )
            return f"return_id={return_id}"

        return self._mutate("update_return", run)

    def delete_return(self, return_id: int) -> Snapshot:
        """Undo a return; the debt it cancelled comes back as a new charge."""
        def run():
            rec = self._return(return_id)
            self._shift_stock(rec.product_id, -rec.qty)
            self.stock.delete_for_sale(return_id)
            self.sales.delete(return_id)
            if rec.customer_id is not None:
                owed = self._net_return_credit(return_id)
                if owed >= _MONEY_EPSILON:
                    customer = self._customer(rec.customer_id)
                    self.credits.insert(
                        CreditEntry(
                            entry_id=None,
                            ts=self.clock(),
                            customer_id=customer.customer_id,
                            customer_name=customer.name,
                            customer_phone=customer.phone,
                            sale_id=return_id,
                            amount=owed,
                            is_payment=False,
                            note=f"return #{return_id} deleted",
                            source_type=RETURN_REVERSAL,
                        )
                    )
            return f"return_id={return_id}"

        return self._mutate("delete_return", run)

    # ------------------------------------------------------------------
    # manual stock entries
    # ------------------------------------------------------------------
    def record_stock_entry(
        self,
        product_id: int,
        qty,
        kind: str = "IN",
        unit_price=None,
        counterparty: Optional[str] = None,
        customer_id: Optional[int] = None,
        note: Optional[str] = None,
    ) -> Snapshot:
        def run():
            k = (kind or "").strip().upper()
            if k == "RETURN":
                raise ValidationError("Returns are recorded with record_return.")
            if k not in MOVEMENT_KINDS:
                raise ValidationError(f"Stock entry kind must be IN or OUT (got {kind!r}).")
            q = require_positive_qty(qty)
            p = self._active_product(product_id)
            price = p.unit_price if unit_price is None else require_price(unit_price)
            customer = self._optional_customer(customer_id)

            mid = self.stock.insert(
                StockMovement(
                    movement_id=None,
                    ts=self.clock(),
                    kind=k,
                    product_id=p.product_id,
                    product_name=p.name,
                    qty=q,
                    unit_price=price,
                    total_amount=round_money(q * price),
                    counterparty=normalize_text(counterparty),
                    customer_id=customer_id,
                    customer_name=customer.name if customer else None,
                    note=normalize_text(note),
                )
            )
            self._shift_stock(p.product_id, q if k == "IN" else -q)
            return f"movement_id={mid}"

        return self._mutate("record_stock_entry", run)

    def _manual_movement(self, movement_id: int) -> StockMovement:
        mv = self.stock.get(movement_id)
        if mv is None:
            raise StockEntryNotFound(movement_id)
        if not mv.is_manual:
            raise LinkedRecordImmutable(
                f"Stock movement {movement_id} belongs to sale {mv.sale_id}; edit the sale instead."
            )
        return mv

    @staticmethod
    def _signed(kind: str, qty: float) -> float:
        return qty if kind == "IN" else -qty

    def update_stock_entry(
        self,
        movement_id: int,
        qty,
        unit_price=None,
        counterparty: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Snapshot:
        def run():
            mv = self._manual_movement(movement_id)
            q = require_positive_qty(qty)
            price = mv.unit_price if unit_price is None else require_price(unit_price)
            self.stock.update(
                mv.with_changes(
                    qty=q,
                    unit_price=price,
                    total_amount=round_money(q * price) if price is not None else None,
                    counterparty=normalize_text(counterparty),
                    note=normalize_text(note),
                )
            )
            self._shift_stock(mv.product_id, self._signed(mv.kind, q) - self._signed(mv.kind, mv.qty))
            return f"movement_id={movement_id}"

        return self._mutate("update_stock_entry", run)

    def delete_stock_entry(self, movement_id: int) -> Snapshot:
        def run():
            mv = self._manual_movement(movement_id)
            self.stock.delete(movement_id)
            self._shift_stock(mv.product_id, -self._signed(mv.kind, mv.qty))
            return f"movement_id={movement_id}"

        return self._mutate("delete_stock_entry", run)

    # ------------------------------------------------------------------
    # credit payments
    # ------------------------------------------------------------------
    def record_credit_payment(
        self, customer_id: int, amount, note: Optional[str] = None
    ) -> Snapshot:
        def run():
            customer = self._customer(customer_id)
            value = _money(amount)
            eid = self.credits.insert(
                CreditEntry(
                    entry_id=None,
                    ts=self.clock(),
                    customer_id=customer.customer_id,
                    customer_name=customer.name,
                    customer_phone=customer.phone,
                    sale_id=None,
                    amount=value,
                    is_payment=True,
                    note=normalize_text(note),
                    source_type=PAYMENT,
                )
            )
            return f"entry_id={eid}"

        return self._mutate("record_credit_payment", run)

    def update_credit_payment(
        self, entry_id: int, amount, note: Optional[str] = None
    ) -> Snapshot:
        """Append an adjustment that brings the payment to `amount`."""
        def run():
            e = self._free_payment(entry_id)
            value = _money(amount)
            current = effective_payment_amount(self.credits.list_ledger(e.customer_id), entry_id)
            diff = round_money(value - current)
            if abs(diff) < _MONEY_EPSILON:
                return f"entry_id={entry_id} unchanged"
            customer = self._customer(e.customer_id)
            adj_id = self.credits.insert(
                CreditEntry(
                    entry_id=None,
                    ts=self.clock(),
                    customer_id=customer.customer_id,
                    customer_name=customer.name,
                    customer_phone=customer.phone,
                    sale_id=None,
                    amount=abs(diff),
                    is_payment=diff > 0,
                    note=normalize_text(note) or f"payment #{entry_id} adjusted",
                    source_type=PAYMENT_ADJUSTMENT,
                    ref_entry_id=entry_id,
                )
            )
            return f"entry_id={entry_id} adjustment={adj_id}"

        return self._mutate("update_credit_payment", run)

    def delete_credit_payment(self, entry_id: int) -> Snapshot:
        """Append a reversal charge for whatever the payment is currently worth."""
        def run():
            e = self._free_payment(entry_id)
            current = effective_payment_amount(self.credits.list_ledger(e.customer_id), entry_id)
            customer = self._customer(e.customer_id)
            rev_id = self.credits.insert(
                CreditEntry(
                    entry_id=None,
                    ts=self.clock(),
                    customer_id=customer.customer_id,
                    customer_name=customer.name,
                    customer_phone=customer.phone,
                    sale_id=None,
                    amount=current,
                    is_payment=False,
                    note=f"payment #{entry_id} reversed",
                    source_type=PAYMENT_REVERSAL,
                    ref_entry_id=entry_id,
                )
            )
            return f"entry_id={entry_id} reversal={rev_id}"

        return self._mutate("delete_credit_payment", run)

    # ------------------------------------------------------------------
    # read-only
    # ------------------------------------------------------------------
    def get_snapshot(self) -> Snapshot:
        return build_snapshot(self.conn)

    def return_candidates(self) -> list[ReturnCandidate]:
        return return_candidates(self.sales.list_records())

    def customer_statement(self, customer_id: int) -> list[StatementRow]:
        self._customer(customer_id)
        return statement(self.credits.list_ledger(customer_id), customer_id)
