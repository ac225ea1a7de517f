# utils/helpers.py
from datetime import datetime, timezone
import logging
from typing import Union, Optional

from ..constants import MONEY_PLACES, QTY_EPSILON

NumberLike = Union[float, int, str]

_log = logging.getLogger(__name__)


def now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string (microsecond precision)."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def is_zero(x: float) -> bool:
    return abs(x) <= QTY_EPSILON


def clamp_non_negative(x: float) -> float:
    """Floor at 0, snapping float noise (|x| <= epsilon) to exactly 0."""
    return x if x > QTY_EPSILON else 0.0


def round_money(x: float) -> float:
    return round(float(x), MONEY_PLACES)


def fmt_money(
    v: NumberLike,
    places: int = MONEY_PLACES,
    *,
    strict: bool = False,
    sentinel: Optional[str] = None,
) -> str:
    """
    Format a number as money with thousands separators and a fixed number of decimals.

    Behavior on parse failure:
      - By default returns str(v).
      - If `sentinel` is provided (e.g., "N/A"), returns that sentinel instead.
      - If `strict=True`, raises ValueError.
    """
    try:
        x = float(v)
    except (TypeError, ValueError) as e:
        _log.debug("fmt_money: failed to parse %r as float: %s", v, e)
        if strict:
            raise ValueError(f"Could not parse {v!r} as a number.") from e
        return str(sentinel) if sentinel is not None else str(v)
    return f"{x:,.{places}f}"


def fmt_qty(v: NumberLike | None) -> str:
    """Compact quantity text: 3 -> '3', 2.5 -> '2.5', None -> ''."""
    if v is None:
        return ""
    try:
        return f"{float(v):g}"
    except (TypeError, ValueError):
        return str(v)


def fmt_ts(ts: str | None) -> str:
    """'2024-03-01T09:15:00.000000+00:00' -> '2024-03-01 09:15'."""
    if not ts:
        return ""
    return str(ts)[:16].replace("T", " ")
