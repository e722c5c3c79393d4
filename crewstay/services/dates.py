"""Date normalization helpers shared by the billing engine.

Stay timestamps reach the engine in several shapes: ISO strings (with or
without time and zone), Russian `DD.MM.YYYY HH:mm[:ss]` strings produced by
earlier report stages, and native date objects. Every shape is reduced to a
naive local `datetime` carrying the wall-clock time as written; zone suffixes
are ignored on purpose because hotel check-in rules apply to local time.

Contract: malformed input of a supported type yields `None`; only an
unsupported input type raises `TypeError`.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta
from typing import Any, Iterator, Optional

import pandas as pd


_ISO_PATTERN = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})"
    r"(?:[T ](\d{2}):(\d{2})(?::(\d{2})(?:\.\d{1,6})?)?)?"
    r"(?:Z|[+-]\d{2}:?\d{2})?$"
)
_LOCAL_PATTERN = re.compile(
    r"^(\d{2})\.(\d{2})\.(\d{4})(?:[ T](\d{1,2}):(\d{2})(?::(\d{2}))?)?$"
)
_AMOUNT_NOISE = re.compile(r"[^\d.,\-]")


def _build(
    year: str,
    month: str,
    day: str,
    hour: Optional[str],
    minute: Optional[str],
    second: Optional[str],
) -> Optional[datetime]:
    try:
        return datetime(
            int(year),
            int(month),
            int(day),
            int(hour or 0),
            int(minute or 0),
            int(second or 0),
        )
    except ValueError:
        return None


def parse_local_datetime(value: Any) -> Optional[datetime]:
    """Normalize a date-like value to a naive local datetime."""
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        raise TypeError(f"Expected a date string or date object, got {type(value).__name__}")

    text = value.strip()
    if not text:
        return None

    iso = _ISO_PATTERN.fullmatch(text)
    if iso is not None:
        year, month, day, hour, minute, second = iso.groups()
        return _build(year, month, day, hour, minute, second)

    local = _LOCAL_PATTERN.fullmatch(text)
    if local is not None:
        day, month, year, hour, minute, second = local.groups()
        return _build(year, month, day, hour, minute, second)

    parsed = pd.to_datetime(text, errors="coerce", dayfirst=True)
    if pd.isna(parsed):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.tz_localize(None)
    return parsed.to_pydatetime()


def to_calendar_day(value: Any) -> Optional[date]:
    parsed = parse_local_datetime(value)
    if parsed is None:
        return None
    return parsed.date()


def each_day_inclusive(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def format_local_datetime(value: datetime) -> str:
    return value.strftime("%d.%m.%Y %H:%M:%S")


def format_day(value: date) -> str:
    return value.strftime("%d.%m.%Y")


def format_iso_local(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%S")


def parse_amount(value: Any) -> Optional[float]:
    """Read a money-like value, tolerating `1 400,50 ₽` style strings."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    cleaned = _AMOUNT_NOISE.sub("", str(value)).replace(",", ".")
    if not cleaned:
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    return number if math.isfinite(number) else None
