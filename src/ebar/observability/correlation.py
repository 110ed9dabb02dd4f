"""Per-request correlation IDs.

Every request runs under one ID. It is taken from the X-Correlation-ID header
when the caller sends a well-formed one, stamped on every log line, and
echoed back on the response.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

CORRELATION_ID_HEADER = "X-Correlation-ID"

_current_id: ContextVar[str] = ContextVar("ebar_correlation_id", default="")

# Echoed into headers and log lines, so only plain tokens are trusted.
_TRUSTED_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def resolve_correlation_id(incoming: str | None) -> str:
    """Return the caller's ID if it is a plain token, else a fresh UUID4."""
    if incoming and _TRUSTED_ID.match(incoming):
        return incoming
    return str(uuid.uuid4())


def get_correlation_id() -> str:
    """ID of the request being served ("" outside a request)."""
    return _current_id.get()


@contextmanager
def correlation_scope(cid: str) -> Iterator[str]:
    """Bind cid as the current correlation ID until the block exits."""
    token = _current_id.set(cid)
    try:
        yield cid
    finally:
        _current_id.reset(token)
