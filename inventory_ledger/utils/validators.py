# utils/validators.py
import math

from ..errors import InvalidAmount, InvalidQuantity, ValidationError


def non_empty(text: str | None) -> bool:
    """
    True if `text` is not None/empty after stripping whitespace.
    """
    return bool(text and str(text).strip())


def normalize_text(s: str | None) -> str | None:
    """Trim surrounding whitespace; blank strings become None."""
    if s is None:
        return None
    s = str(s).strip()
    return s or None


def require_non_empty(value: str | None, field_label: str) -> str:
    if not non_empty(value):
        raise ValidationError(f"{field_label} cannot be empty.")
    return str(value).strip()


# ---- Numeric parsing & validators ----

def try_parse_float(x):
    """
    Best-effort parse to a finite float.

    Returns:
        (ok: bool, value: float|None)
    """
    try:
        val = float(x)
    except (TypeError, ValueError):
        return False, None
    # nan and inf never make a usable quantity or amount
    if not math.isfinite(val):
        return False, None
    return True, val


def require_positive_qty(qty, label: str = "Quantity") -> float:
    """Strictly positive quantity or InvalidQuantity."""
    ok, val = try_parse_float(qty)
    if not ok or val is None or val <= 0:
        raise InvalidQuantity(f"{label} must be greater than 0 (got {qty!r}).")
    return val


def require_non_negative_qty(qty, label: str = "Quantity") -> float:
    ok, val = try_parse_float(qty)
    if not ok or val is None or val < 0:
        raise InvalidQuantity(f"{label} must be 0 or more (got {qty!r}).")
    return val


def require_positive_amount(amount, label: str = "Amount") -> float:
    ok, val = try_parse_float(amount)
    if not ok or val is None or val <= 0:
        raise InvalidAmount(f"{label} must be greater than 0 (got {amount!r}).")
    return val


def require_non_negative_amount(amount, label: str = "Amount") -> float:
    ok, val = try_parse_float(amount)
    if not ok or val is None or val < 0:
        raise InvalidAmount(f"{label} must be 0 or more (got {amount!r}).")
    return val


def require_price(price, label: str = "Unit price") -> float:
    """Prices may be 0 but never negative or non-numeric."""
    ok, val = try_parse_float(price)
    if not ok or val is None or val < 0:
        raise ValidationError(f"{label} must be a number >= 0 (got {price!r}).")
    return val
