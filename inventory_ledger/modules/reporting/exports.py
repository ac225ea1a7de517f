# inventory_ledger/modules/reporting/exports.py
"""
CSV exports of the ledger, inventory, credit balances and stock movements.

Each `*_csv` function renders text; `save_csv` writes it out. Returns are
exported with negative qty and amount so a spreadsheet SUM gives net figures.
"""
from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence

from ...config import DATA_PATH
from ...constants import WALK_IN_LABEL
from ...database.repositories.products_repo import Product
from ...database.repositories.sales_repo import SaleRecord
from ...database.repositories.stock_repo import StockMovement
from ...ledger.balances import CustomerBalance
from ...utils.helpers import fmt_qty, fmt_ts

_log = logging.getLogger(__name__)

LEDGER_HEADERS = ["Date", "Type", "Customer", "Phone", "Product", "Qty", "Unit Price", "Amount", "Status", "Note"]
INVENTORY_HEADERS = ["Product", "Qty", "Unit Price", "Stock Value", "Low Stock At", "Note"]
CREDITS_HEADERS = ["Customer", "Phone", "Total Credit", "Total Paid", "Outstanding", "Last Activity"]
STOCK_HEADERS = ["Date", "Kind", "Product", "Qty", "Unit Price", "Total", "Counterparty/Customer", "Note"]


def _num(v: Optional[float]) -> str:
    return "" if v is None else f"{float(v):g}"


def render_csv(rows: Sequence[Sequence[object]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    for row in rows:
        writer.writerow(["" if cell is None else cell for cell in row])
    return buf.getvalue()


def _status(s: SaleRecord) -> str:
    if s.is_return:
        return "Credit settled" if s.customer_id is not None else "Returned"
    return "On credit" if s.is_credit else "Paid"


def ledger_csv(sales: Iterable[SaleRecord]) -> str:
    rows = [LEDGER_HEADERS]
    for s in sales:
        sign = -1 if s.is_return else 1
        rows.append([
            fmt_ts(s.ts),
            "Return" if s.is_return else "Sale",
            s.customer_name or WALK_IN_LABEL,
            s.customer_phone or "",
            s.product_name,
            fmt_qty(sign * s.qty),
            _num(s.unit_price),
            _num(sign * s.total_amount),
            _status(s),
            s.note or "",
        ])
    return render_csv(rows)


def inventory_csv(products: Iterable[Product]) -> str:
    rows = [INVENTORY_HEADERS]
    for p in products:
        rows.append([
            p.name,
            fmt_qty(p.qty),
            _num(p.unit_price),
            _num(p.qty * p.unit_price),
            fmt_qty(p.low_stock_threshold),
            p.note or "",
        ])
    return render_csv(rows)


def credits_csv(balances: Iterable[CustomerBalance]) -> str:
    rows = [CREDITS_HEADERS]
    for b in balances:
        rows.append([
            b.name,
            b.phone or "",
            _num(b.total_credit),
            _num(b.total_paid),
            _num(b.outstanding),
            b.last_activity or "",
        ])
    return render_csv(rows)


def stock_movements_csv(movements: Iterable[StockMovement]) -> str:
    rows = [STOCK_HEADERS]
    for m in movements:
        rows.append([
            fmt_ts(m.ts),
            m.kind,
            m.product_name,
            fmt_qty(m.qty),
            _num(m.unit_price),
            _num(m.total_amount),
            m.customer_name or m.counterparty or "",
            m.note or "",
        ])
    return render_csv(rows)


def default_export_dir() -> Path:
    desktop = Path.home() / "Desktop"
    return desktop if desktop.is_dir() else DATA_PATH


def save_csv(filename: str, content: str, directory: Path | str | None = None) -> Path:
    """
    Write `content` to `directory/filename`, adding '.csv' when missing.
    Defaults to the user's Desktop, else the app data directory.
    """
    # only the final component: the file always lands in the export directory
    base = Path(filename).name
    name = base if base.lower().endswith(".csv") else f"{base}.csv"
    target_dir = Path(directory) if directory is not None else default_export_dir()
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / name
    # BOM so spreadsheet apps pick UTF-8 for non-ASCII names
    target.write_text(content, encoding="utf-8-sig")
    _log.info("CSV saved to %s", target)
    return target
