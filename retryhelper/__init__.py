# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Retry helpers for HTTP clients and column writers for Arrow record batches."""

import logging

from retryhelper._classify import HttpStatusFailure, OtherFailure, classify_failure, to_retry
from retryhelper._errors import (
    HttpResponseError,
    ResponseTimeoutError,
    RetryGiveupError,
    RetryHelperError,
    RetryInterruptedError,
)
from retryhelper._retry import RetryConfig, run_with_retry
from retryhelper.direct import (
    BytesDirectResponseReader,
    DirectResponseReader,
    DirectRetryHelper,
    DirectSingleRequester,
    JsonDirectResponseReader,
    StringDirectResponseReader,
)
from retryhelper.listener import (
    BytesListenerResponseReader,
    ClientOptions,
    ListenerResponse,
    ListenerResponseReader,
    ListenerRetryHelper,
    ListenerSingleRequester,
    LoopHttpClient,
    ResponseListener,
    StringListenerResponseReader,
)
from retryhelper.page import PageBuilder
from retryhelper.record import (
    JsonPointerLocator,
    JsonServiceRecord,
    JsonServiceValue,
    ServiceRecord,
    ServiceValue,
    TopLevelLocator,
    ValueLocator,
)
from retryhelper.timestamp import TimestampParser
from retryhelper.writer import (
    BooleanColumnWriter,
    ColumnWriter,
    DoubleColumnWriter,
    JsonColumnWriter,
    LongColumnWriter,
    SchemaWriter,
    StringColumnWriter,
    TimestampColumnWriter,
)

__all__ = [
    # Retry core
    "HttpResponseError",
    "HttpStatusFailure",
    "OtherFailure",
    "ResponseTimeoutError",
    "RetryConfig",
    "RetryGiveupError",
    "RetryHelperError",
    "RetryInterruptedError",
    "classify_failure",
    "run_with_retry",
    "to_retry",
    # Direct (httpx)
    "BytesDirectResponseReader",
    "DirectResponseReader",
    "DirectRetryHelper",
    "DirectSingleRequester",
    "JsonDirectResponseReader",
    "StringDirectResponseReader",
    # Listener (aiohttp)
    "BytesListenerResponseReader",
    "ClientOptions",
    "ListenerResponse",
    "ListenerResponseReader",
    "ListenerRetryHelper",
    "ListenerSingleRequester",
    "LoopHttpClient",
    "ResponseListener",
    "StringListenerResponseReader",
    # Column writers
    "BooleanColumnWriter",
    "ColumnWriter",
    "DoubleColumnWriter",
    "JsonColumnWriter",
    "JsonPointerLocator",
    "JsonServiceRecord",
    "JsonServiceValue",
    "LongColumnWriter",
    "PageBuilder",
    "SchemaWriter",
    "ServiceRecord",
    "ServiceValue",
    "StringColumnWriter",
    "TimestampColumnWriter",
    "TimestampParser",
    "TopLevelLocator",
    "ValueLocator",
]

# Attach NullHandler so library users don't get "No handler found" warnings.
logging.getLogger("retryhelper").addHandler(logging.NullHandler())
