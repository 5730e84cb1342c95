"""Logging sink used by the API client."""

from __future__ import annotations

import logging
from typing import Protocol

from quipservice.services.request_context import get_call_id


class LogSink(Protocol):
    """What the client needs from a logger: pre-formatted messages only."""

    def debug(self, message: str) -> None: ...

    def error(self, message: str, cause: BaseException | None = None) -> None: ...


class StdlibLogSink:
    """Forwards client messages to a stdlib logger.

    Each record carries the current ``call_id`` as an extra, so retries of
    one call can be grouped with ``%(call_id)s`` in a format string.
    """

    def __init__(self, logger: logging.Logger | logging.LoggerAdapter) -> None:
        self.logger = logger

    def debug(self, message: str) -> None:
        self.logger.debug(message, extra={"call_id": get_call_id()})

    def error(self, message: str, cause: BaseException | None = None) -> None:
        self.logger.error(message, exc_info=cause, extra={"call_id": get_call_id()})


def default_sink(name: str) -> StdlibLogSink:
    return StdlibLogSink(logging.getLogger(name))
