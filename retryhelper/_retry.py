# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Retry execution shared by the direct and listener helpers.

The retry loop itself (attempt counting, exponential backoff, give-up) is
``tenacity.Retrying``.  This module configures it from ``RetryConfig``,
logs each retry, makes the backoff wait interruptible, and translates the
executor's outcomes into ``RetryGiveupError`` / ``RetryInterruptedError``.
"""

from __future__ import annotations

import abc
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from types import TracebackType
from typing import Self, TypeVar

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from retryhelper._errors import RetryGiveupError, RetryInterruptedError

__all__ = [
    "RetryConfig",
    "run_with_retry",
]

T = TypeVar("T")

# Every Nth retry logs the full traceback of the causing exception.
_TRACEBACK_EVERY = 3


@dataclass(frozen=True)
class RetryConfig:
    """Retry budget and backoff bounds for a helper.

    Attributes:
        max_retries: Number of retries (total attempts = max_retries + 1).
        initial_retry_wait: Wait before the first retry, in seconds.  Each
            further retry doubles the wait.
        max_retry_wait: Upper bound on a single wait, in seconds.

    Raises:
        ValueError: If *max_retries* < 0, *initial_retry_wait* < 0, or
            *max_retry_wait* < *initial_retry_wait*.

    """

    max_retries: int = 7
    initial_retry_wait: float = 1.0
    max_retry_wait: float = 60.0

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.initial_retry_wait < 0:
            raise ValueError(f"initial_retry_wait must be >= 0, got {self.initial_retry_wait}")
        if self.max_retry_wait < self.initial_retry_wait:
            raise ValueError(
                f"max_retry_wait ({self.max_retry_wait}) must be >= initial_retry_wait ({self.initial_retry_wait})"
            )

    @classmethod
    def from_millis(cls, max_retries: int, initial_retry_wait_ms: int, max_retry_wait_ms: int) -> RetryConfig:
        """Build a config from integer millisecond waits."""
        return cls(
            max_retries=max_retries,
            initial_retry_wait=initial_retry_wait_ms / 1000,
            max_retry_wait=max_retry_wait_ms / 1000,
        )


def _log_retry(logger: logging.Logger, retry_limit: int) -> Callable[[RetryCallState], None]:
    """Build the ``before_sleep`` callback that warns on each retry."""

    def before_sleep(retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        exception = outcome.exception() if outcome is not None else None
        retry_count = retry_state.attempt_number
        wait = retry_state.next_action.sleep if retry_state.next_action is not None else 0.0
        logger.warning(
            "Retrying %d/%d after %d seconds. Message: %s",
            retry_count,
            retry_limit,
            int(wait),
            exception,
            exc_info=exception if retry_count % _TRACEBACK_EVERY == 0 else None,
            extra={
                "retry_count": retry_count,
                "retry_limit": retry_limit,
                "retry_wait": wait,
                "error_type": type(exception).__name__,
            },
        )

    return before_sleep


def _retryable(to_retry: Callable[[BaseException], bool]) -> Callable[[BaseException], bool]:
    """Wrap *to_retry* so that only ordinary exceptions reach it.

    ``KeyboardInterrupt``, ``SystemExit`` and an interrupted wait are never
    retried; tenacity re-raises them unchanged.
    """

    def predicate(exception: BaseException) -> bool:
        if not isinstance(exception, Exception) or isinstance(exception, RetryInterruptedError):
            return False
        return to_retry(exception)

    return predicate


def _interruptible_sleep(interrupt: threading.Event) -> Callable[[float], None]:
    """Build a sleep that returns early, raising, once *interrupt* is set."""

    def sleep(seconds: float) -> None:
        if interrupt.wait(seconds):
            raise RetryInterruptedError(f"Interrupted while waiting {seconds:.3f}s to retry")

    return sleep


def run_with_retry(
    attempt: Callable[[], T],
    *,
    to_retry: Callable[[BaseException], bool],
    config: RetryConfig,
    logger: logging.Logger,
    interrupt: threading.Event,
) -> T:
    """Run *attempt* until it succeeds, is classified fatal, or the budget runs out.

    Args:
        attempt: One request attempt; raises on failure.
        to_retry: Classifier deciding whether a failed attempt is retried.
        config: Retry budget and backoff bounds.
        logger: Logger receiving a warning on each retry.
        interrupt: Event that aborts a backoff wait when set.

    Returns:
        The value returned by the first successful attempt.

    Raises:
        RetryGiveupError: If a failure is not retryable or retries are
            exhausted.  Wraps the last attempt's exception.
        RetryInterruptedError: If *interrupt* is set during a backoff wait, or
            an attempt raised it.

    """
    attempts = 0

    def counted() -> T:
        nonlocal attempts
        attempts += 1
        return attempt()

    retryer = Retrying(
        stop=stop_after_attempt(config.max_retries + 1),
        wait=wait_exponential(multiplier=config.initial_retry_wait, max=config.max_retry_wait),
        retry=retry_if_exception(_retryable(to_retry)),
        before_sleep=_log_retry(logger, config.max_retries),
        sleep=_interruptible_sleep(interrupt),
    )
    try:
        return retryer(counted)
    except RetryInterruptedError:
        raise
    except RetryError as exc:
        last = exc.last_attempt.exception()
        if last is None:  # pragma: no cover - RetryError is only raised after a failed attempt
            raise
        raise RetryGiveupError(last, attempts) from last
    except Exception as exc:
        # tenacity re-raises failures the classifier rejected
        raise RetryGiveupError(exc, attempts) from exc


class RetryHelperBase(abc.ABC):
    """Interrupt flag and context-manager plumbing shared by the helpers."""

    def __init__(self, config: RetryConfig, logger: logging.Logger) -> None:
        """Initialize with the retry config and the logger used for retry warnings."""
        self._config = config
        self._logger = logger
        self._interrupt = threading.Event()

    @property
    def config(self) -> RetryConfig:
        """The retry budget and backoff bounds of this helper."""
        return self._config

    @property
    def interrupted(self) -> bool:
        """Whether the interrupt flag is set."""
        return self._interrupt.is_set()

    def interrupt(self) -> None:
        """Abort any backoff wait in progress on this helper.

        The flag stays set, so later waits fail immediately until
        ``clear_interrupt()`` is called.
        """
        self._interrupt.set()

    def clear_interrupt(self) -> None:
        """Reset the interrupt flag."""
        self._interrupt.clear()

    def _run(self, attempt: Callable[[], T], to_retry: Callable[[BaseException], bool]) -> T:
        return run_with_retry(
            attempt,
            to_retry=to_retry,
            config=self._config,
            logger=self._logger,
            interrupt=self._interrupt,
        )

    @abc.abstractmethod
    def close(self) -> None:
        """Release resources owned by the helper."""
        ...

    def __enter__(self) -> Self:
        """Enter context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit context manager, closing the helper."""
        self.close()
