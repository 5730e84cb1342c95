"""Per-call correlation ID via contextvars."""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

call_id_var: ContextVar[str] = ContextVar("call_id", default="")


def generate_call_id() -> str:
    """Return a new 32-character hex call ID."""
    return uuid.uuid4().hex


def get_call_id() -> str:
    """Read the current call ID from the contextvar."""
    return call_id_var.get()


@contextmanager
def call_scope() -> Iterator[str]:
    """Bind a fresh call ID for the duration of the block."""
    call_id = generate_call_id()
    token = call_id_var.set(call_id)
    try:
        yield call_id
    finally:
        call_id_var.reset(token)
