"""Async HTTP client for the Quip document API with rate-limit backoff."""

from __future__ import annotations

import asyncio
import random
import time
from typing import Any, Awaitable, Callable, Iterable

import httpx

from quipservice.config import Settings
from quipservice.logging_config import LogSink, default_sink
from quipservice.sdk.backoff import (
    RETRYABLE_STATUSES,
    RateLimitTracker,
    RetryPolicy,
    compute_wait_ms,
)
from quipservice.sdk.models import (
    DECODE,
    HTTP_STATUS,
    RATE_LIMIT_EXHAUSTED,
    TRANSPORT,
    FetchFailure,
    RateLimitInfo,
)
from quipservice.services.request_context import call_scope
from quipservice.services.stats import UsageStats

# httpx raises InvalidURL outside its HTTPError hierarchy.
_TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


def _join_ids(ids: str | Iterable[str]) -> str:
    if isinstance(ids, str):
        return ids
    return ",".join(str(i) for i in ids)


class AsyncQuipClient:
    """Async client for the Quip API (backed by ``httpx.AsyncClient``).

    Failures never raise: every operation returns ``None`` (or ``False``
    for :meth:`check_user`) and records the cause in ``last_failure``.
    Responses with status 429 or 503 are retried per request path with a
    growing, jittered delay until the path has been throttled
    ``policy.max_attempts`` times.
    """

    def __init__(
        self,
        access_token: str,
        api_url: str,
        timeout: float = 30.0,
        *,
        policy: RetryPolicy | None = None,
        logger: LogSink | None = None,
        _transport: httpx.AsyncBaseTransport | None = None,
        _sleep: Callable[[float], Awaitable[Any]] | None = None,
        _clock: Callable[[], float] | None = None,
        _rand: Callable[[], float] | None = None,
    ) -> None:
        self._access_token = access_token
        self._api_url = api_url
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        kwargs: dict[str, Any] = {
            "base_url": api_url,
            "headers": headers,
            "timeout": timeout,
        }
        if _transport is not None:
            kwargs["transport"] = _transport
        self._client = httpx.AsyncClient(**kwargs)

        self.policy = policy or RetryPolicy()
        self.stats = UsageStats()
        self.rate_limits = RateLimitTracker()
        self.last_rate_limit: RateLimitInfo | None = None
        self.last_failure: FetchFailure | None = None

        self._logger = logger if logger is not None else default_sink(__name__)
        self._sleep = _sleep or asyncio.sleep
        self._clock = _clock or time.time
        self._rand = _rand or random.random

    @classmethod
    def from_settings(cls, s: Settings, **kwargs: Any) -> AsyncQuipClient:
        kwargs.setdefault("policy", RetryPolicy.from_settings(s))
        return cls(s.quip_access_token, s.quip_api_url, s.request_timeout, **kwargs)

    @property
    def access_token(self) -> str:
        return self._access_token

    @property
    def api_url(self) -> str:
        return self._api_url

    def set_logger(self, new_logger: LogSink) -> None:
        self._logger = new_logger

    # -- context manager -----------------------------------------------------

    async def __aenter__(self) -> AsyncQuipClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    # -- internal ------------------------------------------------------------

    def _fail(
        self,
        kind: str,
        path: str,
        status_code: int | None = None,
        detail: str = "",
    ) -> None:
        self.last_failure = FetchFailure(kind, path, status_code, detail)

    async def _api_call(self, path: str, *, binary: bool = False) -> Any:
        """GET *path* and decode it, retrying while the API rate limits us."""
        with call_scope():
            return await self._execute(path, binary)

    async def _get(self, path: str) -> httpx.Response | None:
        """Send one GET; transport faults are logged and yield None."""
        try:
            return await self._client.get(path)
        except _TRANSPORT_ERRORS as exc:
            self._logger.error(f"Couldn't fetch {path}: {exc}", exc)
            self._fail(TRANSPORT, path, detail=str(exc))
            return None

    async def _execute(self, path: str, binary: bool) -> Any:
        # Each pass either returns or bumps the path's counter, so the
        # counter passes max_attempts within max_attempts + 1 requests.
        for _ in range(self.policy.max_attempts + 1):
            resp = await self._get(path)
            if resp is None:
                return None

            self.last_rate_limit = RateLimitInfo.from_headers(resp.headers)

            if resp.is_success:
                return self._decode(path, resp, binary)

            if resp.status_code not in RETRYABLE_STATUSES:
                self._logger.debug(f"Couldn't fetch {path}, received {resp.status_code}")
                self._fail(HTTP_STATUS, path, resp.status_code)
                return None

            attempts = self.rate_limits.count(path)
            wait_ms = compute_wait_ms(
                self.policy,
                attempts,
                self.last_rate_limit,
                now=self._clock(),
                rand=self._rand,
            )
            if self.rate_limits.record(path) > self.policy.max_attempts:
                self._logger.error(f"Couldn't fetch {path}, tried to get it {attempts} times")
                self._fail(
                    RATE_LIMIT_EXHAUSTED,
                    path,
                    resp.status_code,
                    f"rate limited {attempts + 1} times",
                )
                return None

            self._logger.debug(
                f"Rate limited for {path}, iteration {attempts + 1}. "
                f"Wait time in ms: {wait_ms:.0f}"
            )
            await self._sleep(wait_ms / 1000)
        return None

    def _decode(self, path: str, resp: httpx.Response, binary: bool) -> Any:
        if binary:
            self.last_failure = None
            return resp.content
        try:
            body = resp.json()
        except ValueError as exc:
            self._logger.error(f"Couldn't decode JSON from {path}: {exc}", exc)
            self._fail(DECODE, path, resp.status_code, str(exc))
            return None
        self.last_failure = None
        return body

    # -- public methods ------------------------------------------------------

    async def check_user(self) -> bool:
        """Return True if the token is accepted by ``/users/current``. No retries."""
        self.stats.inc("check_user")
        path = "/users/current"
        with call_scope():
            resp = await self._get(path)
            if resp is None:
                return False
            if resp.is_success:
                self.last_failure = None
                return True
            self._logger.debug(f"Couldn't fetch {path}, received {resp.status_code}")
            self._fail(HTTP_STATUS, path, resp.status_code)
            return False

    async def get_user(self, user_ids: str | Iterable[str]) -> Any:
        self.stats.inc("get_user")
        return await self._api_call(f"/users/{_join_ids(user_ids)}")

    async def get_current_user(self) -> Any:
        self.stats.inc("get_current_user")
        return await self._api_call("/users/current")

    async def get_folder(self, folder_id: str) -> Any:
        self.stats.inc("get_folder")
        return await self._api_call(f"/folders/{folder_id}")

    async def get_folders(self, folder_ids: str | Iterable[str]) -> Any:
        self.stats.inc("get_folders")
        return await self._api_call(f"/folders/?ids={_join_ids(folder_ids)}")

    async def get_thread(self, thread_id: str) -> Any:
        self.stats.inc("get_thread")
        return await self._api_call(f"/threads/{thread_id}")

    async def get_threads(self, thread_ids: str | Iterable[str]) -> Any:
        self.stats.inc("get_threads")
        return await self._api_call(f"/threads/?ids={_join_ids(thread_ids)}")

    async def get_thread_messages(self, thread_id: str) -> Any:
        self.stats.inc("get_thread_messages")
        return await self._api_call(f"/messages/{thread_id}")

    async def get_blob(self, thread_id: str, blob_id: str) -> bytes | None:
        self.stats.inc("get_blob")
        return await self._api_call(f"/blob/{thread_id}/{blob_id}", binary=True)

    async def get_pdf(self, thread_id: str) -> bytes | None:
        self.stats.inc("get_pdf")
        return await self._api_call(f"/threads/{thread_id}/export/pdf", binary=True)

    async def get_docx(self, thread_id: str) -> bytes | None:
        self.stats.inc("get_docx")
        return await self._api_call(f"/threads/{thread_id}/export/docx", binary=True)

    async def get_xlsx(self, thread_id: str) -> bytes | None:
        self.stats.inc("get_xlsx")
        return await self._api_call(f"/threads/{thread_id}/export/xlsx", binary=True)
