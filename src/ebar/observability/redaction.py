"""Log-safe rendering of values.

Customer emails and phone numbers, Stripe API keys, webhook signing secrets
and PaymentIntent client secrets never reach a log line. Containers are
summarised by shape only, since Stripe objects nest customer data.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

REDACTED = "[REDACTED]"

# Secrets first: a client secret contains digits the phone pattern would split.
_SENSITIVE_PATTERNS = (
    re.compile(r"\bpi_[A-Za-z0-9]+_secret_[A-Za-z0-9]+"),
    re.compile(r"\b(?:sk|rk)_(?:live|test)_[A-Za-z0-9]+"),
    re.compile(r"\bwhsec_[A-Za-z0-9]+"),
    re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"),
    re.compile(r"\+?\d[\d\s\-()]{8,}\d"),
)


def redact_string(value: str) -> str:
    """Replace every sensitive substring of value with [REDACTED]."""
    for pattern in _SENSITIVE_PATTERNS:
        value = pattern.sub(REDACTED, value)
    return value


def redact_value(value: Any) -> str:
    """Render value as a log-safe string."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, Mapping):
        return f"dict(keys={list(value.keys())})"
    if isinstance(value, (list, tuple, set)):
        return f"list(len={len(value)})"
    if type(value).__str__ is not object.__str__:
        # Decimal amounts, enum members
        return redact_string(str(value))
    return f"<{type(value).__name__}>"


def safe_log_context(**fields: Any) -> dict[str, str]:
    """Redact every value of fields, for use as ``extra_fields``."""
    return {key: redact_value(value) for key, value in fields.items()}
