"""Correlation ID management for request tracing.

Inbound X-Correlation-ID values are only reused when they look like an id;
anything else (too long, control chars, JSON fragments) is replaced so it
cannot be injected into structured logs.
"""

import re
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

# Accessible across async calls and threadpool-run sync endpoints
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

CORRELATION_ID_HEADER = "X-Correlation-ID"

_VALID_ID = re.compile(r"[A-Za-z0-9._:\-]{1,128}")


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def inbound_correlation_id(value: str | None) -> str:
    """Reuse a caller-supplied id if well-formed, else generate one."""
    if value and _VALID_ID.fullmatch(value):
        return value
    return generate_correlation_id()


def get_correlation_id() -> str:
    """Get current correlation ID from context ("" outside a request)."""
    return correlation_id_var.get()


@contextmanager
def correlation_scope(cid: str) -> Iterator[str]:
    """Bind ``cid`` as the current correlation ID for the enclosed block."""
    token = correlation_id_var.set(cid)
    try:
        yield cid
    finally:
        correlation_id_var.reset(token)
