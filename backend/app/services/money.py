"""
Money, VAT and date helpers shared by the engines and the report renderer.

Currency strings follow the en-ZA convention: space as thousands separator,
comma as decimal mark, ``R`` prefix (e.g. ``R 1 234,56``).
"""
import re
from datetime import date
from typing import Optional, Union

from app.config import SA_VAT_RATE

_NUMERIC_STRIP = re.compile(r"[R$€£,\s]")

EMPTY_DATE = "—"


def format_number(value: float, decimals: int = 2) -> str:
    """1234.5 → '1 234,50'."""
    text = f"{value:,.{decimals}f}"
    return text.replace(",", " ").replace(".", ",")


def format_zar(amount: float) -> str:
    """1234.56 → 'R 1 234,56'; negatives as '-R 1 234,56'."""
    rounded = round(amount, 2)
    body = format_number(abs(rounded), 2)
    return f"-R {body}" if rounded < 0 else f"R {body}"


def format_zar_compact(amount: float) -> str:
    """Short form for dashboards: 'R 1,2M', 'R 350K', 'R 950'."""
    sign = "-" if amount < 0 else ""
    value = abs(amount)
    for threshold, suffix in ((1e9, "B"), (1e6, "M"), (1e3, "K")):
        if value >= threshold:
            scaled = f"{value / threshold:.1f}".rstrip("0").rstrip(".")
            return f"{sign}R {scaled.replace('.', ',')}{suffix}"
    return f"{sign}R {value:.0f}"


def calculate_vat(amount: float) -> float:
    return amount * SA_VAT_RATE


def add_vat(amount: float) -> float:
    return amount * (1 + SA_VAT_RATE)


def parse_number(value) -> float:
    """
    Lenient numeric parse for spreadsheet cells.

    Strips currency symbols (R $ € £), thousands commas and whitespace.
    Anything unparseable, empty or non-finite yields 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if value == value and abs(value) != float("inf") else 0.0
    cleaned = _NUMERIC_STRIP.sub("", str(value))
    if not cleaned:
        return 0.0
    try:
        result = float(cleaned)
    except ValueError:
        return 0.0
    if result != result or abs(result) == float("inf"):
        return 0.0
    return result


# ── Dates ──────────────────────────────────────────────────────────────────────

DateLike = Union[date, str, None]


def _to_date(value: DateLike) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def format_date(value: DateLike) -> str:
    """ISO date → '05 Mar 2025'; missing → '—'."""
    d = _to_date(value)
    return d.strftime("%d %b %Y") if d else EMPTY_DATE


def format_date_short(value: DateLike) -> str:
    """ISO date → '05/03/2025'; missing → '—'."""
    d = _to_date(value)
    return d.strftime("%d/%m/%Y") if d else EMPTY_DATE


def days_remaining(value: DateLike, today: Optional[date] = None) -> Optional[int]:
    """Whole days from ``today`` until ``value``; negative once past, None when unset."""
    d = _to_date(value)
    if d is None:
        return None
    return (d - (today or date.today())).days
