"""
Transform Stage
================
Named, pure value transforms applied between resolution and formatting.
Unknown names are a pass-through, never an error.
"""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import Any


class Transform(str, Enum):
    """Transform names recognised in ``binding.transform``."""
    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"
    TRIM = "trim"
    SUM = "sum"
    COUNT = "count"


_LEADING_NUMBER_RE = re.compile(r"^\s*([+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?)")


def parse_number(value: Any) -> float | None:
    """
    Parse ``value`` as a float the lenient way form data arrives.

    Numbers pass through, strings contribute their leading numeric part
    (``"12.5 USD"`` -> 12.5). Booleans, containers, NaN and text without a
    leading number give None.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)
    if isinstance(value, str):
        match = _LEADING_NUMBER_RE.match(value)
        if match:
            return float(match.group(1))
    return None


def stringify(value: Any) -> str:
    """Text rendering of a resolved value (``true``/``false``, ``5`` not ``5.0``)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list):
        return ",".join(stringify(v) for v in value)
    return str(value)


def apply_transform(value: Any, name: str | None) -> Any:
    """Apply the transform called ``name`` to ``value``."""
    if not name:
        return value

    if name == Transform.UPPERCASE:
        return value if value is None else stringify(value).upper()
    if name == Transform.LOWERCASE:
        return value if value is None else stringify(value).lower()
    if name == Transform.TRIM:
        return value if value is None else stringify(value).strip()
    if name == Transform.SUM:
        if not isinstance(value, list):
            return value
        total = sum((parse_number(v) or 0.0 for v in value), 0.0)
        return int(total) if total.is_integer() else total
    if name == Transform.COUNT:
        return len(value) if isinstance(value, list) else 0
    return value
