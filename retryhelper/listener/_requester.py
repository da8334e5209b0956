# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Single-request definition for ``ListenerRetryHelper``."""

from __future__ import annotations

import abc
from typing import final

from retryhelper._classify import to_retry
from retryhelper.listener._client import LoopHttpClient
from retryhelper.listener._listener import ListenerResponse, ResponseListener

__all__ = ["ListenerSingleRequester"]


class ListenerSingleRequester(abc.ABC):
    """Defines one request to the target service, ready to be retried.

    Used with ``ListenerRetryHelper``::

        text = helper.request_with_retry(
            StringListenerResponseReader(timeout_seconds=30),
            MyRequester(),
        )

    where ``MyRequester`` implements::

        class MyRequester(ListenerSingleRequester):
            def request_once(self, client: LoopHttpClient, listener: ResponseListener) -> None:
                client.send(listener, "GET", "https://example.com/api/resource")

            def is_response_status_to_retry(self, response: ListenerResponse) -> bool:
                return response.status // 100 == 4
    """

    @abc.abstractmethod
    def request_once(self, client: LoopHttpClient, listener: ResponseListener) -> None:
        """Send the request with *client*; the response goes to *listener*."""
        ...

    @final
    def to_retry(self, exception: BaseException) -> bool:
        """Return ``True`` if the attempt that raised *exception* is retried.

        Not meant to be overridden.  ``HttpResponseError`` is routed to
        ``is_response_status_to_retry``; everything else goes to
        ``is_exception_to_retry``.
        """
        return to_retry(self, exception)

    @abc.abstractmethod
    def is_response_status_to_retry(self, response: ListenerResponse) -> bool:
        """Return ``True`` if a non-2xx *response* is retried."""
        ...

    def is_exception_to_retry(self, exception: BaseException) -> bool:
        """Return ``True`` if *exception* is retried.  Never retries by default."""
        return False
