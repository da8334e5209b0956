# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Single-request definition for ``DirectRetryHelper``."""

from __future__ import annotations

import abc
from typing import final

import httpx

from retryhelper._classify import to_retry

__all__ = ["DirectSingleRequester"]


class DirectSingleRequester(abc.ABC):
    """Defines one request to the target service, ready to be retried.

    Used with ``DirectRetryHelper``::

        text = helper.request_with_retry(
            StringDirectResponseReader(),
            MyRequester(),
        )

    where ``MyRequester`` implements::

        class MyRequester(DirectSingleRequester):
            def request_once(self, client: httpx.Client) -> httpx.Response:
                return client.get("https://example.com/api/resource")

            def is_response_status_to_retry(self, response: httpx.Response) -> bool:
                return response.status_code // 100 == 5
    """

    @abc.abstractmethod
    def request_once(self, client: httpx.Client) -> httpx.Response:
        """Send the request with *client* and return its response."""
        ...

    @final
    def to_retry(self, exception: BaseException) -> bool:
        """Return ``True`` if the attempt that raised *exception* is retried.

        Not meant to be overridden.  ``httpx.HTTPStatusError`` is routed to
        ``is_response_status_to_retry``; everything else goes to
        ``is_exception_to_retry``.
        """
        return to_retry(self, exception)

    @abc.abstractmethod
    def is_response_status_to_retry(self, response: httpx.Response) -> bool:
        """Return ``True`` if a non-2xx *response* is retried."""
        ...

    def is_exception_to_retry(self, exception: BaseException) -> bool:
        """Return ``True`` if *exception* is retried.  Never retries by default."""
        return False
