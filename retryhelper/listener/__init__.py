# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Retry helper for a listener-driven ``aiohttp`` client.

The requester schedules one attempt on a ``LoopHttpClient`` and the response
is delivered to a ``ResponseListener`` obtained from the reader.  A non-2xx
status is raised as ``HttpResponseError`` and classified by the requester's
``is_response_status_to_retry``.
"""

from retryhelper.listener._client import ClientOptions, LoopHttpClient
from retryhelper.listener._helper import ListenerRetryHelper
from retryhelper.listener._listener import ListenerResponse, ResponseListener
from retryhelper.listener._reader import (
    BytesListenerResponseReader,
    ListenerResponseReader,
    StringListenerResponseReader,
)
from retryhelper.listener._requester import ListenerSingleRequester

__all__ = [
    "BytesListenerResponseReader",
    "ClientOptions",
    "ListenerResponse",
    "ListenerResponseReader",
    "ListenerRetryHelper",
    "ListenerSingleRequester",
    "LoopHttpClient",
    "ResponseListener",
    "StringListenerResponseReader",
]
