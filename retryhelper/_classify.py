# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Two-case classification of a failed attempt.

A failed attempt is either an HTTP-application-level failure that carries
the captured response, or any other exception (transport errors, timeouts,
decode errors).  The status case always takes precedence: when a response
was captured, only the requester's status classifier is consulted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from retryhelper._errors import HttpResponseError

__all__ = [
    "Failure",
    "HttpStatusFailure",
    "OtherFailure",
    "RetryClassifier",
    "classify_failure",
    "to_retry",
]


@dataclass(frozen=True)
class HttpStatusFailure:
    """A non-2xx response was received; *response* is the captured response."""

    response: Any


@dataclass(frozen=True)
class OtherFailure:
    """Any failure that did not capture a response."""

    cause: BaseException


Failure = HttpStatusFailure | OtherFailure


class RetryClassifier(Protocol):
    """The two hooks a requester provides to classify failures."""

    def is_response_status_to_retry(self, response: Any) -> bool:
        """Return ``True`` to retry after receiving *response*."""
        ...

    def is_exception_to_retry(self, exception: BaseException) -> bool:
        """Return ``True`` to retry after *exception*."""
        ...


def classify_failure(exception: BaseException) -> Failure:
    """Tag *exception* as a status failure or an other failure.

    ``httpx.HTTPStatusError`` (direct family) and ``HttpResponseError``
    (listener family) carry the captured response.
    """
    if isinstance(exception, (httpx.HTTPStatusError, HttpResponseError)):
        return HttpStatusFailure(exception.response)
    return OtherFailure(exception)


def to_retry(classifier: RetryClassifier, exception: BaseException) -> bool:
    """Decide whether the attempt that raised *exception* is retried.

    Only ``Exception`` subclasses reach the classifier; ``KeyboardInterrupt``
    and other ``BaseException`` subclasses are never retried.
    """
    if not isinstance(exception, Exception):
        return False
    match classify_failure(exception):
        case HttpStatusFailure(response=response):
            return classifier.is_response_status_to_retry(response)
        case OtherFailure(cause=cause):
            return classifier.is_exception_to_retry(cause)
