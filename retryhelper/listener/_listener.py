# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Per-attempt capture of a response delivered by ``LoopHttpClient``."""

from __future__ import annotations

import concurrent.futures
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from retryhelper._errors import ResponseTimeoutError

__all__ = [
    "ListenerResponse",
    "ResponseListener",
]


@dataclass(frozen=True)
class ListenerResponse:
    """Status line and headers of a response, captured before the body.

    Attributes:
        status: HTTP status code.
        reason: HTTP reason phrase.
        headers: Response headers (case-insensitive mapping).
        url: Final URL of the request.

    """

    status: int
    reason: str = ""
    headers: Mapping[str, str] = field(default_factory=dict, repr=False)
    url: str = ""

    @property
    def is_success(self) -> bool:
        """Whether the status is 2xx."""
        return self.status // 100 == 2


class ResponseListener:
    """Receives the events of one request and lets another thread wait on them.

    The client calls ``on_headers`` once, ``on_content`` per body chunk, then
    exactly one of ``on_complete`` or ``on_failure``.  ``abort()`` ends the
    exchange early from any thread.  A listener is used for a single attempt
    and discarded afterwards.
    """

    def __init__(self) -> None:
        """Initialize an empty listener."""
        self._lock = threading.Lock()
        self._response: concurrent.futures.Future[ListenerResponse] = concurrent.futures.Future()
        self._body: concurrent.futures.Future[bytes] = concurrent.futures.Future()
        self._chunks: list[bytes] = []
        self._exchange: concurrent.futures.Future[None] | None = None
        self._aborted = False

    # -- Events (called on the client's loop thread) --------------------------

    def on_headers(self, response: ListenerResponse) -> None:
        """Record the status line and headers."""
        with self._lock:
            if not self._response.done():
                self._response.set_result(response)

    def on_content(self, chunk: bytes) -> None:
        """Append one body chunk."""
        self._chunks.append(chunk)

    def on_complete(self) -> None:
        """Mark the body as fully received."""
        with self._lock:
            if not self._body.done():
                self._body.set_result(b"".join(self._chunks))

    def on_failure(self, exception: BaseException) -> None:
        """Deliver a transport failure to whoever is waiting."""
        with self._lock:
            if not self._response.done():
                self._response.set_exception(exception)
            if not self._body.done():
                self._body.set_exception(exception)

    # -- Control (called from any thread) -------------------------------------

    def attach(self, exchange: concurrent.futures.Future[None]) -> None:
        """Bind the future of the request feeding this listener; cancel it if already aborted."""
        with self._lock:
            self._exchange = exchange
            aborted = self._aborted
        if aborted:
            exchange.cancel()

    def abort(self, exception: BaseException) -> None:
        """Fail pending waits with *exception* and cancel the request, if any."""
        self.on_failure(exception)
        with self._lock:
            self._aborted = True
            exchange = self._exchange
        if exchange is not None:
            exchange.cancel()

    # -- Waiting (called on the requesting thread) ----------------------------

    def get(self, timeout: float | None = None) -> ListenerResponse:
        """Wait for the status line and headers.

        Raises:
            ResponseTimeoutError: If nothing arrives within *timeout* seconds.
            Exception: The transport failure delivered through ``on_failure``,
                or the exception passed to ``abort()``.

        """
        return _wait(self._response, timeout, "response")

    def content(self, timeout: float | None = None) -> bytes:
        """Wait for the complete body.

        Raises:
            ResponseTimeoutError: If the body is not complete within *timeout* seconds.
            Exception: The transport failure delivered through ``on_failure``,
                or the exception passed to ``abort()``.

        """
        return _wait(self._body, timeout, "response body")


def _wait(future: concurrent.futures.Future[Any], timeout: float | None, what: str) -> Any:
    done, _ = concurrent.futures.wait([future], timeout=timeout)
    if not done:
        raise ResponseTimeoutError(f"Timed out after {timeout}s waiting for the {what}")
    return future.result()
