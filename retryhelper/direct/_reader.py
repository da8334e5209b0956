# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Response readers for ``DirectRetryHelper``."""

from __future__ import annotations

from typing import Any, Protocol, TypeVar

import httpx

__all__ = [
    "BytesDirectResponseReader",
    "DirectResponseReader",
    "JsonDirectResponseReader",
    "StringDirectResponseReader",
]

T_co = TypeVar("T_co", covariant=True)


class DirectResponseReader(Protocol[T_co]):
    """Reads (understands) an ``httpx.Response`` into a typed value."""

    def read_response(self, response: httpx.Response) -> T_co:
        """Materialize the body of a 2xx *response*."""
        ...

    def read_response_content_in_string(self, response: httpx.Response) -> str:
        """Render the body of *response* for error messages."""
        ...


class StringDirectResponseReader:
    """Reads the body as decoded text."""

    def read_response(self, response: httpx.Response) -> str:
        """Return the decoded body."""
        response.read()
        return response.text

    def read_response_content_in_string(self, response: httpx.Response) -> str:
        """Return the decoded body."""
        return self.read_response(response)


class BytesDirectResponseReader:
    """Reads the body as raw bytes."""

    def read_response(self, response: httpx.Response) -> bytes:
        """Return the raw body."""
        return response.read()

    def read_response_content_in_string(self, response: httpx.Response) -> str:
        """Return the body decoded with replacement of invalid bytes."""
        return response.read().decode(errors="replace")


class JsonDirectResponseReader:
    """Reads the body as a JSON document."""

    def read_response(self, response: httpx.Response) -> Any:
        """Return the parsed JSON body.

        Raises:
            json.JSONDecodeError: If the body is not valid JSON.

        """
        response.read()
        return response.json()

    def read_response_content_in_string(self, response: httpx.Response) -> str:
        """Return the raw text, since an error body is often not JSON."""
        response.read()
        return response.text
