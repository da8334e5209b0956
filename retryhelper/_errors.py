# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Exception types raised by the retry helpers."""

from __future__ import annotations

import traceback
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from retryhelper.listener._listener import ListenerResponse

__all__ = [
    "HttpResponseError",
    "ResponseTimeoutError",
    "RetryGiveupError",
    "RetryHelperError",
    "RetryInterruptedError",
]


class RetryHelperError(Exception):
    """Base class for all errors raised by ``retryhelper``."""


class HttpResponseError(RetryHelperError):
    """Raised when a listener-family request completes with a non-2xx status.

    Carries the captured response so that the requester's status classifier
    can decide whether the attempt is retried.

    Attributes:
        response: The captured response snapshot.
        status_code: HTTP status code of *response*.
        reason: HTTP reason phrase of *response*.
        body: Diagnostic rendering of the body, or ``None`` if unavailable.

    """

    def __init__(self, message: str, response: ListenerResponse, *, body: str | None = None) -> None:
        """Initialize with a diagnostic message and the captured response."""
        self.response = response
        self.status_code = response.status
        self.reason = response.reason
        self.body = body
        super().__init__(message)


class RetryGiveupError(RetryHelperError):
    """Raised when a request is given up.

    Either the last attempt failed with a non-retryable error, or the retry
    budget was exhausted.  ``__cause__`` is the last underlying failure.

    Attributes:
        cause: The last attempt's exception.
        attempts: Number of attempts made, including the first.

    """

    def __init__(self, cause: BaseException, attempts: int) -> None:
        """Initialize with the last underlying failure and the attempt count."""
        self.cause = cause
        self.attempts = attempts
        super().__init__(f"Gave up after {attempts} attempt(s): {type(cause).__name__}: {cause}")


class RetryInterruptedError(RetryHelperError):
    """Raised when a retry wait is interrupted through ``interrupt()``."""


class ResponseTimeoutError(RetryHelperError, TimeoutError):
    """Raised when a response does not arrive within the reader's timeout."""


def not_2xx_message(status: int, reason: str, body: str) -> str:
    """Build the diagnostic message for a non-2xx response."""
    return f"Response not 2xx: {status} {reason} {body}"


def body_unavailable_message(status: int, reason: str, exc: BaseException) -> str:
    """Build the diagnostic message when the error body itself cannot be read."""
    rendered = "".join(traceback.format_exception(exc))
    return f"Response not 2xx: {status} {reason} Response body not available by: {rendered}"
