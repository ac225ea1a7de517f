# inventory_ledger/ledger/allocation.py
"""
Oldest-first allocation of returns against sales.

Returns are not bound to a single parent sale. For every (customer, product)
pair the sales are ordered by (ts, sale_id) and each return, replayed in the
same order, consumes what is left on the oldest sale first and spills into the
next one. Nothing here is stored: the split is recomputed from the sale rows
every time, so editing history can never leave a stale allocation behind.

Rows whose customer was deleted keep their name snapshot but belong to no pair.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from ..constants import QTY_EPSILON, WALK_IN_LABEL
from ..database.repositories.sales_repo import SaleRecord
from ..errors import InvalidQuantity, OverReturn
from ..utils.helpers import clamp_non_negative, is_zero, round_money
from ..utils.validators import require_non_negative_amount, try_parse_float

PairKey = tuple[Optional[int], int]


class SaleState(str, Enum):
    ACTIVE = "active"
    PARTIALLY_RETURNED = "partially_returned"
    FULLY_RETURNED = "fully_returned"


@dataclass(frozen=True)
class Portion:
    """Part of one sale consumed by a return, priced at that sale's unit price."""
    sale_id: int
    qty: float
    unit_price: float

    @property
    def amount(self) -> float:
        return self.qty * self.unit_price


def pair_key(rec: SaleRecord) -> PairKey | None:
    if rec.customer_deleted:
        return None
    return (rec.customer_id, rec.product_id)


def _chrono(rec: SaleRecord) -> tuple[str, int]:
    return (rec.ts, rec.sale_id or 0)


def _group(records: Iterable[SaleRecord]) -> dict[PairKey, tuple[list[SaleRecord], list[SaleRecord]]]:
    groups: dict[PairKey, tuple[list[SaleRecord], list[SaleRecord]]] = defaultdict(lambda: ([], []))
    for rec in records:
        key = pair_key(rec)
        if key is None:
            continue
        sales, returns = groups[key]
        (returns if rec.is_return else sales).append(rec)
    for sales, returns in groups.values():
        sales.sort(key=_chrono)
        returns.sort(key=_chrono)
    return groups


@dataclass
class Allocation:
    sold: dict[int, float] = field(default_factory=dict)
    consumed_by_sale: dict[int, float] = field(default_factory=dict)
    portions_by_return: dict[int, list[Portion]] = field(default_factory=dict)
    # return qty that found no sale left to consume (only possible on
    # hand-edited data); kept so callers can see it instead of losing it
    unallocated: dict[int, float] = field(default_factory=dict)

    def consumed(self, sale_id: int) -> float:
        return self.consumed_by_sale.get(sale_id, 0.0)

    def remaining(self, sale_id: int) -> float:
        return clamp_non_negative(self.sold.get(sale_id, 0.0) - self.consumed(sale_id))

    def portions(self, return_id: int) -> list[Portion]:
        return list(self.portions_by_return.get(return_id, []))

    def state(self, sale_id: int) -> SaleState:
        if is_zero(self.consumed(sale_id)):
            return SaleState.ACTIVE
        if is_zero(self.remaining(sale_id)):
            return SaleState.FULLY_RETURNED
        return SaleState.PARTIALLY_RETURNED

    def remaining_by_sale(self) -> dict[int, float]:
        return {sid: self.remaining(sid) for sid in self.sold}


def _consume(
    sales: list[SaleRecord],
    left: dict[int, float],
    qty: float,
) -> tuple[list[Portion], float]:
    portions: list[Portion] = []
    need = qty
    for s in sales:
        if need <= QTY_EPSILON:
            break
        avail = left[s.sale_id]
        if avail <= QTY_EPSILON:
            continue
        take = min(avail, need)
        portions.append(Portion(s.sale_id, take, s.unit_price))
        left[s.sale_id] = avail - take
        need -= take
    return portions, clamp_non_negative(need)


def allocate(
    records: Iterable[SaleRecord],
    exclude_return_id: Optional[int] = None,
) -> Allocation:
    """
    Replay every pair's returns against its sales, oldest first.
    `exclude_return_id` leaves one return out, as if it had not been recorded.
    """
    out = Allocation()
    for sales, returns in _group(records).values():
        left = {s.sale_id: s.qty for s in sales}
        out.sold.update(left)
        for r in returns:
            if r.sale_id == exclude_return_id:
                continue
            portions, short = _consume(sales, left, r.qty)
            out.portions_by_return[r.sale_id] = portions
            for p in portions:
                out.consumed_by_sale[p.sale_id] = out.consumed_by_sale.get(p.sale_id, 0.0) + p.qty
            if short > 0:
                out.unallocated[r.sale_id] = short
    return out


@dataclass
class ReturnPlan:
    customer_id: Optional[int]
    product_id: int
    qty: float
    max_returnable: float
    portions: list[Portion]
    computed_amount: float
    amount: float
    override_amount: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return not self.portions

    @property
    def origin_sale_id(self) -> Optional[int]:
        return self.portions[0].sale_id if self.portions else None

    @property
    def unit_price(self) -> float:
        return self.amount / self.qty if self.qty > QTY_EPSILON else 0.0


def plan_return(
    records: Iterable[SaleRecord],
    customer_id: Optional[int],
    product_id: int,
    qty,
    override_amount=None,
    exclude_return_id: Optional[int] = None,
) -> ReturnPlan:
    """
    Work out which sales a return of `qty` would consume and what it is worth.

    qty == 0 gives an empty plan; qty < 0 raises InvalidQuantity; more than
    the pair has left raises OverReturn. An override replaces the money
    figure only, the quantities still come out of the oldest sales first.
    """
    ok, q = try_parse_float(qty)
    if not ok or q is None or q < 0:
        raise InvalidQuantity(f"Return quantity must be 0 or more (got {qty!r}).")
    override = None
    if override_amount is not None:
        override = require_non_negative_amount(override_amount, "Override amount")

    key = (customer_id, product_id)
    pair_rows = [r for r in records if pair_key(r) == key]
    target = next(
        (r for r in pair_rows if r.is_return and r.sale_id == exclude_return_id), None
    )
    others = [r for r in pair_rows if r is not target]
    sales = sorted((r for r in others if not r.is_return), key=_chrono)
    taken = sum(r.qty for r in others if r.is_return)
    max_returnable = clamp_non_negative(sum(s.qty for s in sales) - taken)

    # an edited return keeps its place in the replay: only returns recorded
    # before it are priced ahead of it
    if target is not None:
        others = [r for r in others if not r.is_return or _chrono(r) < _chrono(target)]
    alloc = allocate(others)
    left = {s.sale_id: alloc.remaining(s.sale_id) for s in sales}

    if is_zero(q):
        return ReturnPlan(customer_id, product_id, 0.0, max_returnable, [], 0.0, 0.0, override)
    if q > max_returnable + QTY_EPSILON:
        raise OverReturn(q, max_returnable)

    portions, _ = _consume(sales, left, q)
    computed = round_money(sum(p.amount for p in portions))
    amount = round_money(override) if override is not None else computed
    return ReturnPlan(customer_id, product_id, q, max_returnable, portions, computed, amount, override)


# ---------------------------------------------------------------------------
# Return candidates
# ---------------------------------------------------------------------------

@dataclass
class CandidateSale:
    sale_id: int
    ts: str
    qty: float
    remaining: float
    unit_price: float


@dataclass
class ReturnCandidate:
    customer_id: Optional[int]
    customer_name: str
    customer_phone: Optional[str]
    product_id: int
    product_name: str
    outstanding: float
    sale_entries: list[CandidateSale]


def return_candidates(records: Iterable[SaleRecord]) -> list[ReturnCandidate]:
    """
    Every pair that still has something returnable, with its open sales
    oldest first. Sorted by customer then product name.
    """
    records = list(records)
    alloc = allocate(records)
    out: list[ReturnCandidate] = []
    for (customer_id, product_id), (sales, _returns) in _group(records).items():
        entries = [
            CandidateSale(s.sale_id, s.ts, s.qty, alloc.remaining(s.sale_id), s.unit_price)
            for s in sales
            if alloc.remaining(s.sale_id) > 0
        ]
        if not entries:
            continue
        newest = sales[-1]
        out.append(
            ReturnCandidate(
                customer_id=customer_id,
                customer_name=newest.customer_name or WALK_IN_LABEL,
                customer_phone=newest.customer_phone,
                product_id=product_id,
                product_name=newest.product_name,
                outstanding=sum(e.remaining for e in entries),
                sale_entries=entries,
            )
        )
    out.sort(key=lambda c: (c.customer_name.lower(), c.product_name.lower()))
    return out
