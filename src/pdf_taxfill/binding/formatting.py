"""
Value Formatter
================
Turns a transformed value into what ends up on the page: a string for text
placement or a bool for checkbox/radio state.

Empty input (None, "") formats to "" for text types and False for
checkbox/radio, which the render engine treats as "nothing to place".
Malformed input degrades to "" or the unformatted string, never an error.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping

from dateutil import parser as date_parser

from .transforms import parse_number, stringify
from ..models.annotation import FieldType

DEFAULT_DATE_FORMAT = "MM/DD/YYYY"

_NON_DIGIT_RE = re.compile(r"\D")
_DATE_PATTERNS = ("%m/%d/%Y", "%Y/%m/%d", "%m-%d-%Y", "%Y%m%d")


def format_value(
    value: Any,
    field_type: str,
    fmt: Mapping[str, Any] | None = None,
    *,
    suppress_zero: bool = False,
) -> str | bool:
    """
    Format ``value`` for a field of ``field_type``.

    Parameters
    ----------
    value:
        Transformed value.
    field_type:
        The field's declared type (a :class:`FieldType` value or any string).
    fmt:
        Field format options, keyed by their JSON names (``decimalPlaces``,
        ``currencySymbol``, ``dateFormat``, ``suppressZero``...).
    suppress_zero:
        Omit amounts that parse to exactly zero (currency and number).
    """
    fmt = fmt or {}
    if field_type in (FieldType.CHECKBOX, FieldType.RADIO):
        return _is_checked(value)
    if value is None or value == "":
        return ""

    suppress_zero = suppress_zero or bool(fmt.get("suppressZero"))

    if field_type == FieldType.CURRENCY:
        symbol = fmt.get("currencySymbol")
        if symbol is True:
            symbol = "$"
        return format_amount(
            value,
            _decimals(fmt, 2),
            symbol=symbol if isinstance(symbol, str) else "",
            suppress_zero=suppress_zero,
        )
    if field_type == FieldType.NUMBER:
        return format_amount(value, _decimals(fmt, 0), suppress_zero=suppress_zero)
    if field_type == FieldType.SSN:
        digits = _digits(value)
        if len(digits) == 9:
            return f"{digits[:3]}-{digits[3:5]}-{digits[5:]}"
        return digits
    if field_type == FieldType.EIN:
        digits = _digits(value)
        if len(digits) == 9:
            return f"{digits[:2]}-{digits[2:]}"
        return digits
    if field_type == FieldType.DATE:
        return format_date(value, fmt.get("dateFormat") or DEFAULT_DATE_FORMAT)
    return stringify(value)


def format_amount(
    value: Any,
    decimals: int,
    *,
    symbol: str = "",
    suppress_zero: bool = False,
) -> str:
    """Fixed-point, thousands-grouped rendering of a numeric value."""
    number = parse_number(value)
    if number is None or not math.isfinite(number):
        return ""
    if number == 0 and suppress_zero:
        return ""

    quantum = Decimal(1).scaleb(-decimals)
    amount = Decimal(repr(number)).quantize(quantum, rounding=ROUND_HALF_UP)
    if amount == 0:
        amount = abs(amount)
    text = f"{abs(amount):,.{decimals}f}"
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{text}"


def format_date(value: Any, pattern: str = DEFAULT_DATE_FORMAT) -> str:
    """Render a date into ``pattern`` using ``MM``, ``DD`` and ``YYYY`` tokens."""
    parsed = parse_date(value)
    if parsed is None:
        return stringify(value)
    return (
        pattern.replace("MM", f"{parsed.month:02d}")
        .replace("DD", f"{parsed.day:02d}")
        .replace("YYYY", f"{parsed.year:04d}")
    )


def parse_date(value: Any) -> date | None:
    """Best-effort calendar date parse; None when the input is not a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        # Epoch milliseconds, as JavaScript producers emit them.
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc).date()
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for pattern in _DATE_PATTERNS:
        try:
            return datetime.strptime(text, pattern).date()
        except ValueError:
            continue

    # Free-form text ("January 15, 2024", "15 Jan 2024").
    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError):
        return None


def _is_checked(value: Any) -> bool:
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def _digits(value: Any) -> str:
    return _NON_DIGIT_RE.sub("", stringify(value))


def _decimals(fmt: Mapping[str, Any], default: int) -> int:
    places = fmt.get("decimalPlaces")
    if isinstance(places, bool) or not isinstance(places, int) or places < 0:
        return default
    return places
