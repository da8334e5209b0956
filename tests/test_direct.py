"""Tests for DirectRetryHelper over httpx.

Requests go through ``httpx.MockTransport`` and retry waits are zero (or
interrupted) to stay fast.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator

import httpx
import pytest

from retryhelper import (
    BytesDirectResponseReader,
    DirectRetryHelper,
    DirectSingleRequester,
    JsonDirectResponseReader,
    RetryConfig,
    RetryGiveupError,
    RetryInterruptedError,
    StringDirectResponseReader,
)

_URL = "https://example.com/api/resource"

_FAST = RetryConfig(max_retries=3, initial_retry_wait=0, max_retry_wait=0)


class _ScriptedTransport:
    """Replies with the queued responses in order; repeats the last one."""

    def __init__(self, *responses: httpx.Response | Exception) -> None:
        self._responses = list(responses)
        self.calls = 0
        self.attempted = threading.Event()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        self.attempted.set()
        reply = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(reply, Exception):
            raise reply
        return httpx.Response(reply.status_code, headers=reply.headers, content=reply.content)


class _GetRequester(DirectSingleRequester):
    """GETs ``_URL``; retries the statuses in *retry_statuses*."""

    def __init__(
        self,
        retry_statuses: frozenset[int] = frozenset({503}),
        retry_exception: Callable[[BaseException], bool] | None = None,
    ) -> None:
        self._retry_statuses = retry_statuses
        self._retry_exception = retry_exception

    def request_once(self, client: httpx.Client) -> httpx.Response:
        return client.get(_URL)

    def is_response_status_to_retry(self, response: httpx.Response) -> bool:
        return response.status_code in self._retry_statuses

    def is_exception_to_retry(self, exception: BaseException) -> bool:
        if self._retry_exception is None:
            return super().is_exception_to_retry(exception)
        return self._retry_exception(exception)


class _BrokenBodyReader(StringDirectResponseReader):
    """Cannot render error bodies."""

    def read_response_content_in_string(self, response: httpx.Response) -> str:
        raise RuntimeError("body stream already consumed")


def _helper(transport: _ScriptedTransport, config: RetryConfig = _FAST) -> DirectRetryHelper:
    return DirectRetryHelper(config, httpx.Client(transport=httpx.MockTransport(transport)), owns_client=True)


@pytest.fixture
def direct_log(caplog: pytest.LogCaptureFixture) -> Iterator[pytest.LogCaptureFixture]:
    """Capture warnings from the direct helper's logger."""
    caplog.set_level(logging.WARNING, logger="retryhelper.direct")
    yield caplog


# ---------------------------------------------------------------------------
# Success and retry paths
# ---------------------------------------------------------------------------


class TestRequestWithRetry:
    """End-to-end behaviour of request_with_retry."""

    def test_2xx_single_attempt(self) -> None:
        """A 2xx response is read and returned after one attempt."""
        transport = _ScriptedTransport(httpx.Response(200, text="hello"))
        with _helper(transport) as helper:
            assert helper.request_with_retry(StringDirectResponseReader(), _GetRequester()) == "hello"
        assert transport.calls == 1

    @pytest.mark.parametrize("status", [200, 201, 204, 299])
    def test_any_2xx_is_success(self, status: int) -> None:
        """Every status in [200, 299] counts as success."""
        transport = _ScriptedTransport(httpx.Response(status, content=b""))
        with _helper(transport) as helper:
            assert helper.request_with_retry(BytesDirectResponseReader(), _GetRequester()) == b""
        assert transport.calls == 1

    def test_json_reader(self) -> None:
        """JsonDirectResponseReader parses the body."""
        transport = _ScriptedTransport(httpx.Response(200, json={"items": [1, 2]}))
        with _helper(transport) as helper:
            assert helper.request_with_retry(JsonDirectResponseReader(), _GetRequester()) == {"items": [1, 2]}

    def test_two_503_then_ok(self, direct_log: pytest.LogCaptureFixture) -> None:
        """max_retries=2: two retryable 503s, then 200 "ok" after three attempts and two warnings."""
        transport = _ScriptedTransport(
            httpx.Response(503, text="busy"),
            httpx.Response(503, text="busy"),
            httpx.Response(200, text="ok"),
        )
        config = RetryConfig.from_millis(2, 10, 100)
        with _helper(transport, config) as helper:
            assert helper.request_with_retry(StringDirectResponseReader(), _GetRequester()) == "ok"
        assert transport.calls == 3
        warnings = [r for r in direct_log.records if r.name == "retryhelper.direct"]
        assert len(warnings) == 2
        assert "Response not 2xx: 503 Service Unavailable busy" in warnings[0].getMessage()

    def test_retryable_status_exhausts_budget(self) -> None:
        """A retryable status on every attempt gives up with the last response."""
        transport = _ScriptedTransport(httpx.Response(503, text="still busy"))
        with _helper(transport) as helper, pytest.raises(RetryGiveupError) as exc_info:
            helper.request_with_retry(StringDirectResponseReader(), _GetRequester())
        assert transport.calls == 4
        cause = exc_info.value.cause
        assert isinstance(cause, httpx.HTTPStatusError)
        assert cause.response.status_code == 503
        assert exc_info.value.attempts == 4

    @pytest.mark.parametrize("status", [301, 400, 404, 500])
    def test_non_retryable_status_raises_immediately(self, status: int) -> None:
        """A non-2xx status the requester does not retry fails after one attempt."""
        transport = _ScriptedTransport(httpx.Response(status, text="nope"))
        with _helper(transport) as helper, pytest.raises(RetryGiveupError) as exc_info:
            helper.request_with_retry(StringDirectResponseReader(), _GetRequester())
        assert transport.calls == 1
        cause = exc_info.value.cause
        assert isinstance(cause, httpx.HTTPStatusError)
        assert cause.response.status_code == status
        assert str(cause).startswith(f"Response not 2xx: {status} ")
        assert str(cause).endswith("nope")

    def test_unreadable_error_body_keeps_status(self) -> None:
        """A failing body render still reports the status, with a marker."""
        transport = _ScriptedTransport(httpx.Response(502, text="bad gateway"))
        with _helper(transport) as helper, pytest.raises(RetryGiveupError) as exc_info:
            helper.request_with_retry(_BrokenBodyReader(), _GetRequester())
        message = str(exc_info.value.cause)
        assert message.startswith("Response not 2xx: 502 Bad Gateway")
        assert "Response body not available by:" in message
        assert "body stream already consumed" in message
        assert isinstance(exc_info.value.cause, httpx.HTTPStatusError)


# ---------------------------------------------------------------------------
# Transport exceptions
# ---------------------------------------------------------------------------


class TestTransportExceptions:
    """Exceptions that carry no response."""

    def test_not_retried_by_default(self) -> None:
        """Transport errors are not retried unless the requester opts in."""
        transport = _ScriptedTransport(httpx.ConnectError("Connection refused"), httpx.Response(200, text="ok"))
        with _helper(transport) as helper, pytest.raises(RetryGiveupError) as exc_info:
            helper.request_with_retry(StringDirectResponseReader(), _GetRequester())
        assert transport.calls == 1
        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    def test_retried_when_classified(self) -> None:
        """An overridden exception classifier enables retries."""
        transport = _ScriptedTransport(httpx.ConnectError("Connection refused"), httpx.Response(200, text="ok"))
        requester = _GetRequester(retry_exception=lambda exc: isinstance(exc, httpx.TransportError))
        with _helper(transport) as helper:
            assert helper.request_with_retry(StringDirectResponseReader(), requester) == "ok"
        assert transport.calls == 2

    def test_body_decode_failure_not_retried(self) -> None:
        """A 2xx body the reader cannot read is an ordinary exception."""
        transport = _ScriptedTransport(httpx.Response(200, text="not json"))
        with _helper(transport) as helper, pytest.raises(RetryGiveupError) as exc_info:
            helper.request_with_retry(JsonDirectResponseReader(), _GetRequester())
        assert isinstance(exc_info.value.cause, ValueError)

    def test_keyboard_interrupt_not_retried(self) -> None:
        """Ctrl-C propagates after one call even when every exception is retryable."""

        class _Interrupted(_GetRequester):
            calls = 0

            def request_once(self, client: httpx.Client) -> httpx.Response:
                self.calls += 1
                raise KeyboardInterrupt

        requester = _Interrupted(retry_exception=lambda exc: True)
        with _helper(_ScriptedTransport(httpx.Response(200, text="ok"))) as helper, pytest.raises(KeyboardInterrupt):
            helper.request_with_retry(StringDirectResponseReader(), requester)
        assert requester.calls == 1


# ---------------------------------------------------------------------------
# Interruption
# ---------------------------------------------------------------------------


class TestInterrupt:
    """interrupt() aborts a backoff wait and stays set."""

    def test_interrupt_during_wait(self) -> None:
        """Interrupting a long wait raises RetryInterruptedError promptly."""
        transport = _ScriptedTransport(httpx.Response(503, text="busy"))
        helper = _helper(transport, RetryConfig(max_retries=3, initial_retry_wait=30, max_retry_wait=30))
        errors: list[BaseException] = []

        def run() -> None:
            try:
                helper.request_with_retry(StringDirectResponseReader(), _GetRequester())
            except Exception as exc:
                errors.append(exc)

        thread = threading.Thread(target=run)
        thread.start()
        assert transport.attempted.wait(5)
        helper.interrupt()
        thread.join(5)
        assert not thread.is_alive()
        assert len(errors) == 1
        assert isinstance(errors[0], RetryInterruptedError)
        assert helper.interrupted
        helper.close()

    def test_flag_persists_until_cleared(self) -> None:
        """A set flag fails the next wait immediately; clearing it restores retries."""
        transport = _ScriptedTransport(httpx.Response(503, text="busy"), httpx.Response(200, text="ok"))
        with _helper(transport, RetryConfig(max_retries=1, initial_retry_wait=30, max_retry_wait=30)) as helper:
            helper.interrupt()
            with pytest.raises(RetryInterruptedError):
                helper.request_with_retry(StringDirectResponseReader(), _GetRequester())
            assert helper.interrupted
            helper.clear_interrupt()
            assert not helper.interrupted
            assert helper.request_with_retry(StringDirectResponseReader(), _GetRequester()) == "ok"

    def test_no_wait_no_interrupt(self) -> None:
        """A set flag does not affect a request that succeeds first time."""
        transport = _ScriptedTransport(httpx.Response(200, text="ok"))
        with _helper(transport) as helper:
            helper.interrupt()
            assert helper.request_with_retry(StringDirectResponseReader(), _GetRequester()) == "ok"


# ---------------------------------------------------------------------------
# Client ownership
# ---------------------------------------------------------------------------


class TestOwnership:
    """close() closes only a client the helper owns."""

    def test_created_client_is_closed(self) -> None:
        """A helper without a supplied client creates and closes its own."""
        helper = DirectRetryHelper(_FAST)
        assert helper.owns_client
        helper.close()
        assert helper.client.is_closed

    def test_supplied_client_is_borrowed(self) -> None:
        """A supplied client is left open by default."""
        client = httpx.Client(transport=httpx.MockTransport(_ScriptedTransport(httpx.Response(200))))
        with DirectRetryHelper(_FAST, client) as helper:
            assert not helper.owns_client
        assert not client.is_closed
        client.close()

    def test_ready_made_client(self) -> None:
        """with_ready_made_client never closes the client."""
        client = httpx.Client(transport=httpx.MockTransport(_ScriptedTransport(httpx.Response(200, text="x"))))
        with DirectRetryHelper.with_ready_made_client(_FAST, client) as helper:
            assert helper.request_with_retry(StringDirectResponseReader(), _GetRequester()) == "x"
        assert not client.is_closed
        client.close()

    def test_close_twice(self) -> None:
        """Closing an already closed owned client is harmless."""
        helper = DirectRetryHelper(_FAST)
        helper.close()
        helper.close()
        assert helper.client.is_closed

    def test_custom_logger(self, caplog: pytest.LogCaptureFixture) -> None:
        """Retry warnings go to the supplied logger."""
        caplog.set_level(logging.WARNING, logger="tests.direct.custom")
        transport = _ScriptedTransport(httpx.Response(503), httpx.Response(200, text="ok"))
        client = httpx.Client(transport=httpx.MockTransport(transport))
        helper = DirectRetryHelper(_FAST, client, logger=logging.getLogger("tests.direct.custom"))
        assert helper.request_with_retry(StringDirectResponseReader(), _GetRequester()) == "ok"
        assert [r.name for r in caplog.records] == ["tests.direct.custom"]
        client.close()
