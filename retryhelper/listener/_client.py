# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Listener-driven HTTP client backed by ``aiohttp``.

``LoopHttpClient`` keeps an ``aiohttp.ClientSession`` on a daemon thread
running ``loop.run_forever()``.  Requests are scheduled from any thread with
``send()``; their events are delivered to a ``ResponseListener`` on the loop
thread, so the calling thread only blocks when it waits on the listener.

Logger: ``retryhelper.listener.client``.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import functools
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

import aiohttp

from retryhelper.listener._listener import ListenerResponse, ResponseListener

__all__ = [
    "ClientOptions",
    "LoopHttpClient",
]

_logger = logging.getLogger("retryhelper.listener.client")

_CHUNK_SIZE = 65536
_SHUTDOWN_TIMEOUT = 5.0


@dataclass(frozen=True)
class ClientOptions:
    """Settings for the ``aiohttp.ClientSession`` of a ``LoopHttpClient``.

    Attributes:
        timeout_seconds: Overall deadline of one request, or ``None`` for none.
        headers: Headers sent with every request.
        connector_limit: Maximum simultaneous connections.

    Raises:
        ValueError: If *timeout_seconds* <= 0 or *connector_limit* < 0.

    """

    timeout_seconds: float | None = 60.0
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    connector_limit: int = 100

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.connector_limit < 0:
            raise ValueError(f"connector_limit must be >= 0, got {self.connector_limit}")


class LoopHttpClient:
    """HTTP client with an explicit ``start()`` / ``stop()`` / ``destroy()`` lifecycle.

    A stopped client may be started again; a destroyed one may not.
    """

    def __init__(self, options: ClientOptions | None = None) -> None:
        """Initialize a client that is not started yet."""
        self._options = options if options is not None else ClientOptions()
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._session: aiohttp.ClientSession | None = None
        self._destroyed = False

    @classmethod
    def create_and_start(cls, options: ClientOptions | None = None) -> LoopHttpClient:
        """Create a client and start it."""
        client = cls(options)
        client.start()
        return client

    @property
    def options(self) -> ClientOptions:
        """Session settings."""
        return self._options

    @property
    def is_started(self) -> bool:
        """Whether the loop thread and session are running."""
        return self._session is not None

    @property
    def is_destroyed(self) -> bool:
        """Whether ``destroy()`` has been called."""
        return self._destroyed

    # -- Lifecycle -----------------------------------------------------------

    def start(self) -> None:
        """Start the loop thread and open the session.  No-op when started.

        Raises:
            RuntimeError: If the client has been destroyed.

        """
        with self._lock:
            if self._destroyed:
                raise RuntimeError("LoopHttpClient has been destroyed")
            if self._session is not None:
                return
            loop = asyncio.new_event_loop()
            thread = threading.Thread(target=loop.run_forever, name="retryhelper-loop", daemon=True)
            thread.start()
            future = asyncio.run_coroutine_threadsafe(_create_session(self._options), loop)
            try:
                session = future.result(timeout=_SHUTDOWN_TIMEOUT)
            except BaseException:
                _stop_loop(loop, thread)
                raise
            self._loop = loop
            self._thread = thread
            self._session = session
        _logger.debug("LoopHttpClient started", extra={"loop_thread": thread.name})

    def stop(self) -> None:
        """Cancel in-flight requests, close the session, stop the loop, and join the thread.

        Listeners of cancelled requests receive ``on_failure`` with an
        ``aiohttp.ClientConnectionError``.
        """
        with self._lock:
            loop, thread, session = self._loop, self._thread, self._session
            self._loop = None
            self._thread = None
            self._session = None
            if loop is None or thread is None:
                return
            try:
                if not loop.is_closed():
                    asyncio.run_coroutine_threadsafe(_cancel_pending(), loop).result(timeout=_SHUTDOWN_TIMEOUT)
                if session is not None and not loop.is_closed():
                    asyncio.run_coroutine_threadsafe(session.close(), loop).result(timeout=_SHUTDOWN_TIMEOUT)
            finally:
                _stop_loop(loop, thread)
        _logger.debug("LoopHttpClient stopped")

    def destroy(self) -> None:
        """Release all resources for good.  Stops the client first if needed."""
        try:
            self.stop()
        finally:
            self._destroyed = True

    # -- Requests ------------------------------------------------------------

    def send(
        self,
        listener: ResponseListener,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> concurrent.futures.Future[None]:
        """Schedule one request whose events go to *listener*.

        Args:
            listener: Receives the response events.
            method: HTTP method, e.g. ``"GET"``.
            url: Request URL.
            **kwargs: Passed to ``aiohttp.ClientSession.request``
                (``params``, ``json``, ``data``, ``headers``, ...).

        Returns:
            A future that completes once the listener has seen the last event.
            Cancelling it, or calling ``listener.abort()``, cancels the request.

        Raises:
            RuntimeError: If the client is not started.

        """
        loop, session = self._loop, self._session
        if loop is None or session is None:
            raise RuntimeError("LoopHttpClient is not started")
        future = asyncio.run_coroutine_threadsafe(_exchange(session, listener, method, url, kwargs), loop)
        future.add_done_callback(functools.partial(_notify_cancelled, listener, method, url))
        listener.attach(future)
        return future


async def _create_session(options: ClientOptions) -> aiohttp.ClientSession:
    """Create the session (must run on the client loop)."""
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=options.timeout_seconds),
        headers=dict(options.headers),
        connector=aiohttp.TCPConnector(limit=options.connector_limit),
    )


async def _cancel_pending() -> None:
    """Cancel every other task on the running loop and wait for them to finish."""
    current = asyncio.current_task()
    tasks = [t for t in asyncio.all_tasks() if t is not current]
    for task in tasks:
        task.cancel()
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)
    _logger.debug("Cancelled %d pending request(s)", len(tasks), extra={"cancelled": len(tasks)})


def _notify_cancelled(
    listener: ResponseListener, method: str, url: str, future: concurrent.futures.Future[None]
) -> None:
    # A task cancelled before its first step never enters _exchange.
    if future.cancelled():
        listener.on_failure(aiohttp.ClientConnectionError(f"Request cancelled: {method} {url}"))


def _stop_loop(loop: asyncio.AbstractEventLoop, thread: threading.Thread) -> None:
    if not loop.is_closed():
        loop.call_soon_threadsafe(loop.stop)
    thread.join(timeout=_SHUTDOWN_TIMEOUT)
    if not thread.is_alive() and not loop.is_closed():
        loop.close()


async def _exchange(
    session: aiohttp.ClientSession,
    listener: ResponseListener,
    method: str,
    url: str,
    kwargs: dict[str, Any],
) -> None:
    """Perform one request, feeding its events to *listener*."""
    try:
        async with session.request(method, url, **kwargs) as resp:
            listener.on_headers(
                ListenerResponse(
                    status=resp.status,
                    reason=resp.reason or "",
                    headers=resp.headers.copy(),
                    url=str(resp.url),
                )
            )
            async for chunk in resp.content.iter_chunked(_CHUNK_SIZE):
                listener.on_content(chunk)
    except Exception as exc:
        _logger.debug("Request failed: %s %s", method, url, extra={"url": url, "error_type": type(exc).__name__})
        listener.on_failure(exc)
        return
    listener.on_complete()
