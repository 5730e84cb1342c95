"""Backoff policy and per-path rate-limit bookkeeping."""

from __future__ import annotations

import math
import random
import time
from dataclasses import dataclass
from typing import Callable

from quipservice.config import Settings
from quipservice.sdk.models import RateLimitInfo

# Statuses that mean "slow down and try again".
RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 503})


@dataclass(frozen=True)
class RetryPolicy:
    """Tuning for the rate-limit retry loop. Delays are in milliseconds."""

    max_attempts: int = 100
    base_delay_ms: float = 1000
    backoff_factor: float = 0.1
    jitter_ms: float = 100

    def __post_init__(self) -> None:
        if self.max_attempts < 0:
            raise ValueError(f"max_attempts must be >= 0, got {self.max_attempts}")
        for name in ("base_delay_ms", "backoff_factor", "jitter_ms"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"{name} must be a finite number >= 0, got {value}")

    @classmethod
    def from_settings(cls, s: Settings) -> RetryPolicy:
        return cls(
            max_attempts=s.rate_limit_max_attempts,
            base_delay_ms=s.rate_limit_base_delay_ms,
            backoff_factor=s.rate_limit_backoff_factor,
            jitter_ms=s.rate_limit_jitter_ms,
        )


class RateLimitTracker:
    """Counts rate-limited responses per request path.

    Keys include the query string. Counts never decrease, so a path that
    was throttled once keeps a larger backoff for the tracker's lifetime.
    """

    def __init__(self) -> None:
        self._counts: dict[str, int] = {}

    def count(self, path: str) -> int:
        return self._counts.get(path, 0)

    def record(self, path: str) -> int:
        """Register one rate-limited response for *path*; return the new count."""
        self._counts[path] = self._counts.get(path, 0) + 1
        return self._counts[path]

    def snapshot(self) -> dict[str, int]:
        return dict(self._counts)


def compute_wait_ms(
    policy: RetryPolicy,
    attempts: int,
    rate_limit: RateLimitInfo | None = None,
    *,
    now: float | None = None,
    rand: Callable[[], float] = random.random,
) -> float:
    """Delay before the next retry of a path already throttled *attempts* times.

    The base delay grows by ``backoff_factor`` per prior attempt and gets up
    to ``jitter_ms`` of random jitter. A reset time in the future replaces
    the computed value with the exact time left until that reset.
    """
    wait = policy.base_delay_ms * (1 + policy.backoff_factor * attempts)
    wait += rand() * policy.jitter_ms

    if rate_limit is not None:
        now_ms = (time.time() if now is None else now) * 1000
        reset_ms = rate_limit.reset * 1000
        if reset_ms > now_ms:
            wait = reset_ms - now_ms

    return wait
