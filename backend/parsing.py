"""
Lenient coercion of user-entered form values.

Calculator forms submit whatever the user typed.  Anything that does not
parse as a finite number becomes 0 so the calculators degrade to a
degenerate result instead of failing.
"""
from __future__ import annotations

import math
import re
from typing import Any

# Leading numeric prefix, e.g. "12.5%" -> "12.5", "3e2x" -> "3e2".
_NUMBER_PREFIX = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def parse_number(value: Any, default: float = 0.0) -> float:
    """Coerce ``value`` to a finite float, falling back to ``default``."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(",", ".")
        match = _NUMBER_PREFIX.match(text)
        if not match:
            return default
        number = float(match.group(0))
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def parse_int(value: Any, default: int = 0) -> int:
    """Coerce ``value`` to an int, truncating any fractional part."""
    number = parse_number(value, float(default))
    return int(number)


def pct_to_fraction(value: Any) -> float:
    """Whole-number percentage ("55") to a fraction (0.55)."""
    return parse_number(value) / 100.0
