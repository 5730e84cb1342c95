"""Lightweight models used by the SDK client."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping

RATE_LIMIT_EXHAUSTED = "rate_limit_exhausted"
HTTP_STATUS = "http_status"
TRANSPORT = "transport"
DECODE = "decode"


def _parse_number(raw: str | None) -> float | None:
    if raw is None:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


@dataclass(frozen=True)
class RateLimitInfo:
    """Rate-limit metadata parsed from response headers.

    ``reset`` is a Unix timestamp in seconds. ``limit`` and ``remaining``
    are only present when the server sends them.
    """

    reset: float
    limit: int | None = None
    remaining: int | None = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> RateLimitInfo | None:
        """Parse ``X-RateLimit-*`` headers, returning *None* without a usable reset."""
        reset = _parse_number(headers.get("x-ratelimit-reset"))
        if reset is None:
            return None
        limit = _parse_number(headers.get("x-ratelimit-limit"))
        remaining = _parse_number(headers.get("x-ratelimit-remaining"))
        return cls(
            reset=reset,
            limit=int(limit) if limit is not None else None,
            remaining=int(remaining) if remaining is not None else None,
        )


@dataclass(frozen=True)
class FetchFailure:
    """Why the most recent call came back empty."""

    kind: str
    path: str
    status_code: int | None = None
    detail: str = ""
