"""Async adapter for the Quip document-collaboration REST API."""

from __future__ import annotations

from quipservice.sdk import AsyncQuipClient, FetchFailure, RateLimitInfo, RetryPolicy

__all__ = ["AsyncQuipClient", "FetchFailure", "RateLimitInfo", "RetryPolicy"]
