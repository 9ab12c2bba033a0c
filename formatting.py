# formatting.py
"""
Display formatting shared by the PDF export and the on-screen preview.

Both adapters go through these two functions with the same arguments, so a
given amount/date always renders to the same string on screen and on paper.
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP


class UnsupportedCurrencyError(ValueError):
    pass


# code -> (prefix, minor digits)
_CURRENCIES: dict[str, tuple[str, int]] = {
    "USD": ("$", 2),
    "EUR": ("€", 2),
    "GBP": ("£", 2),
    "KES": ("KES ", 2),
    "TZS": ("TZS ", 2),
    "UGX": ("UGX ", 0),
    "RWF": ("RWF ", 0),
    "ZAR": ("ZAR ", 2),
    "JPY": ("¥", 0),
}


def supported_currencies() -> list[str]:
    return sorted(_CURRENCIES)


def format_currency(amount, currency_code: str) -> str:
    code = (currency_code or "").strip().upper()
    if code not in _CURRENCIES:
        raise UnsupportedCurrencyError(f"Unsupported currency: {currency_code!r}")
    prefix, digits = _CURRENCIES[code]

    value = amount if isinstance(amount, Decimal) else Decimal(str(amount or 0))
    quant = Decimal(1).scaleb(-digits)
    value = value.quantize(quant, rounding=ROUND_HALF_UP)

    sign = "-" if value < 0 else ""
    return f"{sign}{prefix}{abs(value):,.{digits}f}"


def _as_date(value) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value).strip()
    if not raw:
        return None
    # "2024-01-05", "2024-01-05T10:30:00", "2024-01-05T10:30:00Z"
    return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()


def format_date(value) -> str:
    """
    "Jan 5, 2024" for a date, datetime or ISO string.
    Returns "" for None so callers never print a placeholder.
    """
    d = _as_date(value)
    if d is None:
        return ""
    return f"{d:%b} {d.day}, {d.year}"
