# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Retry helper around a listener-driven ``LoopHttpClient``.

Logger: ``retryhelper.listener``: one WARNING per retry.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Callable, Iterator
from typing import TypeVar

from retryhelper._errors import (
    HttpResponseError,
    RetryHelperError,
    RetryInterruptedError,
    body_unavailable_message,
    not_2xx_message,
)
from retryhelper._retry import RetryConfig, RetryHelperBase
from retryhelper.listener._client import LoopHttpClient
from retryhelper.listener._listener import ListenerResponse, ResponseListener
from retryhelper.listener._reader import ListenerResponseReader
from retryhelper.listener._requester import ListenerSingleRequester

__all__ = ["ListenerRetryHelper"]

_logger = logging.getLogger("retryhelper.listener")

T = TypeVar("T")


class ListenerRetryHelper(RetryHelperBase):
    """Runs ``ListenerSingleRequester`` requests with retries.

    A client made by *client_creator* is owned: ``close()`` stops it if it is
    started, then destroys it.  A client supplied by the caller is borrowed
    and left untouched by ``close()``.

    Concurrent ``request_with_retry`` calls share the client without any
    locking of their own.
    """

    def __init__(
        self,
        config: RetryConfig,
        client: LoopHttpClient | None = None,
        *,
        owns_client: bool | None = None,
        client_creator: Callable[[], LoopHttpClient] = LoopHttpClient.create_and_start,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize with a retry config and an owned or borrowed client.

        Args:
            config: Retry budget and backoff bounds.
            client: A started client.  When ``None``, *client_creator* makes one.
            owns_client: Whether ``close()`` stops and destroys the client.
                Defaults to ``True`` for a created client and ``False`` for a
                supplied one.
            client_creator: Creates and starts the client when *client* is ``None``.
            logger: Logger for retry warnings; defaults to ``retryhelper.listener``.

        Raises:
            RetryHelperError: If *client_creator* fails.

        """
        super().__init__(config, logger if logger is not None else _logger)
        created = client is None
        if client is None:
            try:
                client = client_creator()
            except Exception as exc:
                raise RetryHelperError("Failed to create and start the HTTP client") from exc
        self._client = client
        self._owns_client = owns_client if owns_client is not None else created
        self._waiting: set[ResponseListener] = set()
        self._waiting_lock = threading.Lock()

    @classmethod
    def with_ready_made_client(
        cls,
        config: RetryConfig,
        client: LoopHttpClient,
        *,
        logger: logging.Logger | None = None,
    ) -> ListenerRetryHelper:
        """Build a helper that borrows the started *client*; ``close()`` leaves it running."""
        return cls(config, client, owns_client=False, logger=logger)

    @property
    def client(self) -> LoopHttpClient:
        """The wrapped client."""
        return self._client

    @property
    def owns_client(self) -> bool:
        """Whether ``close()`` stops and destroys the wrapped client."""
        return self._owns_client

    def request_with_retry(self, reader: ListenerResponseReader[T], requester: ListenerSingleRequester) -> T:
        """Send *requester*'s request, retrying failures it classifies as retryable.

        Each attempt takes a fresh listener from *reader*, lets *requester*
        send the request, and waits for the response through *reader*.

        Args:
            reader: Captures the response and reads a 2xx body into the result.
            requester: Sends one attempt and classifies failures.

        Returns:
            The value read from the first 2xx response.

        Raises:
            RetryGiveupError: If a failure is not retryable or retries are
                exhausted.  ``cause`` is the last failure, an
                ``HttpResponseError`` for non-2xx responses.
            RetryInterruptedError: If ``interrupt()`` is called while waiting
                for a response or during a backoff wait.

        """

        def attempt() -> T:
            listener = reader.get_listener()
            with self._waiting_on(listener):
                requester.request_once(self._client, listener)
                response = reader.get_response()
                if not response.is_success:
                    raise _not_2xx_error(reader, response)
                return reader.read_response_content()

        return self._run(attempt, requester.to_retry)

    def interrupt(self) -> None:
        """Abort the response waits and backoff waits in progress on this helper.

        Requests still in flight are cancelled.  The flag stays set, so later
        waits fail immediately until ``clear_interrupt()`` is called.
        """
        super().interrupt()
        with self._waiting_lock:
            listeners = list(self._waiting)
        for listener in listeners:
            listener.abort(RetryInterruptedError("Interrupted while waiting for the response"))

    @contextlib.contextmanager
    def _waiting_on(self, listener: ResponseListener) -> Iterator[None]:
        with self._waiting_lock:
            self._waiting.add(listener)
        try:
            if self.interrupted:
                raise RetryInterruptedError("Interrupted before the request was sent")
            yield
        finally:
            with self._waiting_lock:
                self._waiting.discard(listener)

    def close(self) -> None:
        """Stop and destroy the client if this helper created it.

        ``destroy()`` runs even when ``stop()`` raises; the ``stop()`` error
        is then re-raised.
        """
        if not self._owns_client:
            return
        try:
            if self._client.is_started:
                self._client.stop()
        finally:
            self._client.destroy()


def _not_2xx_error(reader: ListenerResponseReader[object], response: ListenerResponse) -> HttpResponseError:
    """Build the failure for a non-2xx *response*, tolerating an unreadable body."""
    try:
        body = reader.read_response_content_in_string()
    except RetryInterruptedError:
        raise
    except Exception as exc:
        return HttpResponseError(body_unavailable_message(response.status, response.reason, exc), response)
    return HttpResponseError(not_2xx_message(response.status, response.reason, body), response, body=body)
