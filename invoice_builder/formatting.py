# formatting.py: numeric coercion and display strings for the preview

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Optional, Union

DEC_QUANT = Decimal("0.01")
ZERO = Decimal("0")

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "COP": "COP$",
    "CAD": "CAD$",
    "AUD": "AUD$",
    "MXN": "MXN$",
}
DEFAULT_SYMBOL = "$"

# Fixed English names so output does not follow the process locale
MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
MONTH_NAMES = ("January", "February", "March", "April", "May", "June",
               "July", "August", "September", "October", "November", "December")

EMPTY_SHORT_DATE = "-"
EMPTY_LONG_DATE = "Select date"

DateLike = Union[str, date, None]

# Leading decimal number of a free-text field: "12abc" reads as 12, "1_000" as 1
_LEADING_NUMBER = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
# Anything past double range counts as unusable
MAX_EXPONENT = 308


def to_decimal(x, default: Decimal = ZERO) -> Decimal:
    """Parse a number or numeric string; anything unusable becomes `default`."""
    if isinstance(x, Decimal):
        value = x
    else:
        if x is None or isinstance(x, bool):
            return default
        m = _LEADING_NUMBER.match(str(x))
        if not m:
            return default
        try:
            value = Decimal(m.group(1))
        except InvalidOperation:
            return default
        if value.adjusted() > MAX_EXPONENT:
            return default
    if not value.is_finite():
        return default
    return value


def currency_symbol(code: str) -> str:
    return CURRENCY_SYMBOLS.get((code or "").upper(), DEFAULT_SYMBOL)


def format_currency(amount, currency_code: str) -> str:
    """Symbol + amount fixed to two decimals, e.g. ``$1234.50``.

    Negative amounts keep the sign on the digits (``$-5.00``).
    """
    value = to_decimal(amount)
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus the cents
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        value = value.quantize(DEC_QUANT, rounding=ROUND_HALF_UP)
    return f"{currency_symbol(currency_code)}{value}"


def format_number(x) -> str:
    """Plain display of a quantity or percentage: ``2``, ``7.5``, ``100``."""
    value = to_decimal(x).normalize()
    if value == 0:
        return "0"
    return format(value, "f")


def parse_date(value: DateLike) -> Optional[date]:
    """Return a date for a date/datetime/ISO string, None when empty.

    Raises ValueError for a non-empty string that is not an ISO date.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    return date.fromisoformat(text[:10])


def iso_date(value: DateLike) -> str:
    d = parse_date(value)
    return d.isoformat() if d else ""


def format_date_short(value: DateLike) -> str:
    """``6 Jan 26`` style used on the preview; ``-`` when empty."""
    try:
        d = parse_date(value)
    except ValueError:
        return str(value)
    if d is None:
        return EMPTY_SHORT_DATE
    return f"{d.day} {MONTH_ABBR[d.month - 1]} {d.year % 100:02d}"


def format_date_long(value: DateLike) -> str:
    """``January 06, 2026`` style used on date pickers; ``Select date`` when empty."""
    try:
        d = parse_date(value)
    except ValueError:
        return str(value)
    if d is None:
        return EMPTY_LONG_DATE
    return f"{MONTH_NAMES[d.month - 1]} {d.day:02d}, {d.year}"
