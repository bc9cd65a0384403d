"""
Value helpers shared by models, importers and exporters.

Amounts follow the Brazilian convention at the edges of the system
("R$ 1.234,56") and are plain floats inside it. Timestamps are naive UTC
datetimes inside the system and JavaScript-style ISO strings
("2024-03-01T00:00:00.000Z") when serialized.
"""

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional
from uuid import uuid4

_CURRENCY_SYMBOLS = re.compile(r"R\$|US\$|\$|€|£")
_WHITESPACE = re.compile(r"\s+")

# Excel counts days from 1899-12-30 (it keeps the 1900 leap-year bug)
_EXCEL_EPOCH = datetime(1899, 12, 30)

_DATE_FORMATS = ["%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%Y/%m/%d", "%d.%m.%Y"]


def generate_id() -> str:
    """Opaque record identifier."""
    return uuid4().hex


def truncate_to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision, which the serialized form cannot hold."""
    return value.replace(microsecond=value.microsecond - value.microsecond % 1000)


def utc_now() -> datetime:
    """Current time as a naive UTC datetime, to the millisecond."""
    return truncate_to_millis(datetime.now(timezone.utc).replace(tzinfo=None))


def normalize_datetime(value: datetime) -> datetime:
    """
    Convert aware datetimes to naive UTC and truncate to milliseconds.

    Naive datetimes are taken as UTC already.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return truncate_to_millis(value)


def to_iso(value: datetime) -> str:
    """Serialize a timestamp the way browsers do (millisecond precision, Z suffix)."""
    value = normalize_datetime(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_value(raw: Any) -> float:
    """
    Parse a monetary amount.

    Numbers pass through. Strings like "R$ 1.234,56" are normalized by
    dropping currency symbols and whitespace, removing "." thousands
    separators and turning "," into the decimal point. Anything that still
    does not parse yields 0.0.
    """
    if isinstance(raw, bool):
        return float(raw)
    if isinstance(raw, (int, float)):
        return float(raw)
    if raw is None:
        return 0.0

    text = _CURRENCY_SYMBOLS.sub("", str(raw))
    text = _WHITESPACE.sub("", text)
    text = text.replace(".", "").replace(",", ".")
    if not text:
        return 0.0

    try:
        number = float(text)
    except ValueError:
        return 0.0
    # float() accepts "nan" and "inf"; neither is an amount
    if number != number or number in (float("inf"), float("-inf")):
        return 0.0
    return number


def parse_date_value(raw: Any) -> Optional[datetime]:
    """
    Parse a date coming from a spreadsheet cell or an extraction result.

    Accepts datetime/date objects, Excel serial numbers, ISO strings and
    day-first strings. Returns None for empty input and raises ValueError
    for input that is present but unreadable.
    """
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return normalize_datetime(raw)
    if isinstance(raw, date):
        return datetime.combine(raw, time.min)
    if isinstance(raw, bool):
        raise ValueError(f"Not a date: {raw!r}")
    if isinstance(raw, (int, float)):
        return _EXCEL_EPOCH + timedelta(days=float(raw))

    text = str(raw).strip()
    if not text:
        return None

    iso_text = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        return normalize_datetime(datetime.fromisoformat(iso_text))
    except ValueError:
        pass

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    raise ValueError(f"Unrecognized date: {text!r}")


def format_currency(value: Optional[float]) -> str:
    """Format an amount as Brazilian reais, e.g. R$ 1.234,56."""
    amount = value or 0.0
    sign = "-" if amount < 0 else ""
    formatted = f"{abs(amount):,.2f}"
    # swap the US separators for the Brazilian ones
    formatted = formatted.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}R$ {formatted}"


def format_date(value: Optional[datetime]) -> str:
    """Format a timestamp as dd/mm/yyyy."""
    if value is None:
        return "N/A"
    return value.strftime("%d/%m/%Y")
