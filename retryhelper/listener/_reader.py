# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Response readers for ``ListenerRetryHelper``."""

from __future__ import annotations

from typing import Protocol, TypeVar

from retryhelper.listener._listener import ListenerResponse, ResponseListener

__all__ = [
    "BytesListenerResponseReader",
    "ListenerResponseReader",
    "StringListenerResponseReader",
]

T_co = TypeVar("T_co", covariant=True)


class ListenerResponseReader(Protocol[T_co]):
    """Reads (understands) a response through a ``ResponseListener``.

    ``get_listener()`` is called once per attempt; the other methods refer to
    the listener it returned last.
    """

    def get_listener(self) -> ResponseListener:
        """Return a fresh listener for the next attempt."""
        ...

    def get_response(self) -> ListenerResponse:
        """Block until the status line and headers of the attempt are available."""
        ...

    def read_response_content(self) -> T_co:
        """Materialize the body of a 2xx response."""
        ...

    def read_response_content_in_string(self) -> str:
        """Render the body for error messages."""
        ...


class _BufferedListenerReader:
    """Buffers the whole body, waiting at most *timeout_seconds* per step."""

    def __init__(self, timeout_seconds: float | None = None) -> None:
        """Initialize with the wait bound for the response and for its body."""
        self._timeout = timeout_seconds
        self._listener: ResponseListener | None = None

    def get_listener(self) -> ResponseListener:
        """Return a fresh listener for the next attempt."""
        self._listener = ResponseListener()
        return self._listener

    def get_response(self) -> ListenerResponse:
        """Wait for the status line and headers."""
        return self._current().get(self._timeout)

    def _current(self) -> ResponseListener:
        if self._listener is None:
            raise RuntimeError("get_listener() must be called before reading the response")
        return self._listener

    def _body(self) -> bytes:
        return self._current().content(self._timeout)


class BytesListenerResponseReader(_BufferedListenerReader):
    """Reads the body as raw bytes."""

    def read_response_content(self) -> bytes:
        """Wait for and return the raw body."""
        return self._body()

    def read_response_content_in_string(self) -> str:
        """Return the body decoded with replacement of invalid bytes."""
        return self._body().decode(errors="replace")


class StringListenerResponseReader(_BufferedListenerReader):
    """Reads the body as text decoded with *encoding*."""

    def __init__(self, timeout_seconds: float | None = None, encoding: str = "utf-8") -> None:
        """Initialize with the wait bound and the body encoding."""
        super().__init__(timeout_seconds)
        self._encoding = encoding

    def read_response_content(self) -> str:
        """Wait for and return the decoded body.

        Raises:
            UnicodeDecodeError: If the body is not valid in the encoding.

        """
        return self._body().decode(self._encoding)

    def read_response_content_in_string(self) -> str:
        """Return the decoded body."""
        return self.read_response_content()
