"""Quip Python SDK: an async client with rate-limit backoff."""

from __future__ import annotations

from quipservice.sdk.backoff import RateLimitTracker, RetryPolicy, compute_wait_ms
from quipservice.sdk.client import AsyncQuipClient
from quipservice.sdk.models import FetchFailure, RateLimitInfo

__all__ = [
    "AsyncQuipClient",
    "RetryPolicy",
    "RateLimitTracker",
    "compute_wait_ms",
    "FetchFailure",
    "RateLimitInfo",
]
