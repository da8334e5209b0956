# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Retry helper around a blocking ``httpx.Client``.

Logger: ``retryhelper.direct``: one WARNING per retry.
"""

from __future__ import annotations

import logging
from typing import TypeVar

import httpx

from retryhelper._errors import body_unavailable_message, not_2xx_message
from retryhelper._retry import RetryConfig, RetryHelperBase
from retryhelper.direct._reader import DirectResponseReader
from retryhelper.direct._requester import DirectSingleRequester

__all__ = ["DirectRetryHelper"]

_logger = logging.getLogger("retryhelper.direct")

T = TypeVar("T")


class DirectRetryHelper(RetryHelperBase):
    """Runs ``DirectSingleRequester`` requests with retries.

    The helper owns the ``httpx.Client`` it creates and closes it in
    ``close()``.  A helper built with ``with_ready_made_client`` borrows the
    caller's client and never closes it.

    Concurrent ``request_with_retry`` calls share the client without any
    locking of their own.
    """

    def __init__(
        self,
        config: RetryConfig,
        client: httpx.Client | None = None,
        *,
        owns_client: bool | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize with a retry config and an owned or borrowed client.

        Args:
            config: Retry budget and backoff bounds.
            client: Client to send requests with.  When ``None`` a default
                ``httpx.Client()`` is created.
            owns_client: Whether ``close()`` closes *client*.  Defaults to
                ``True`` for a created client and ``False`` for a supplied one.
            logger: Logger for retry warnings; defaults to ``retryhelper.direct``.

        """
        super().__init__(config, logger if logger is not None else _logger)
        self._client = client if client is not None else httpx.Client()
        self._owns_client = owns_client if owns_client is not None else client is None

    @classmethod
    def with_ready_made_client(
        cls,
        config: RetryConfig,
        client: httpx.Client,
        *,
        logger: logging.Logger | None = None,
    ) -> DirectRetryHelper:
        """Build a helper that borrows *client*; ``close()`` leaves it open."""
        return cls(config, client, owns_client=False, logger=logger)

    @property
    def client(self) -> httpx.Client:
        """The wrapped client."""
        return self._client

    @property
    def owns_client(self) -> bool:
        """Whether ``close()`` closes the wrapped client."""
        return self._owns_client

    def request_with_retry(self, reader: DirectResponseReader[T], requester: DirectSingleRequester) -> T:
        """Send *requester*'s request, retrying failures it classifies as retryable.

        Args:
            reader: Reads a 2xx response into the result.
            requester: Sends one attempt and classifies failures.

        Returns:
            The value read from the first 2xx response.

        Raises:
            RetryGiveupError: If a failure is not retryable or retries are
                exhausted.  ``cause`` is the last failure, an
                ``httpx.HTTPStatusError`` for non-2xx responses.
            RetryInterruptedError: If ``interrupt()`` is called during a
                backoff wait.

        """

        def attempt() -> T:
            response = requester.request_once(self._client)
            try:
                if not response.is_success:
                    raise httpx.HTTPStatusError(
                        _error_message(reader, response),
                        request=response.request,
                        response=response,
                    )
                return reader.read_response(response)
            finally:
                response.close()

        return self._run(attempt, requester.to_retry)

    def close(self) -> None:
        """Close the client if this helper created it."""
        if self._owns_client and not self._client.is_closed:
            self._client.close()


def _error_message(reader: DirectResponseReader[object], response: httpx.Response) -> str:
    """Render a non-2xx *response*, tolerating an unreadable body."""
    try:
        body = reader.read_response_content_in_string(response)
    except Exception as exc:
        return body_unavailable_message(response.status_code, response.reason_phrase, exc)
    return not_2xx_message(response.status_code, response.reason_phrase, body)
