"""JSON rendering of money values.

Amounts travel as Decimal internally. Response bodies carry them as JSON
numbers in major units (3 for 3.00, 19.39 for 19.39), not as strings.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any


def json_number(value: Decimal) -> int | float:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def money_json(obj: Any) -> Any:
    """Recursively replace Decimals in dicts/lists with JSON numbers."""
    if isinstance(obj, Decimal):
        return json_number(obj)
    if isinstance(obj, dict):
        return {k: money_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [money_json(v) for v in obj]
    return obj
