# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Retry helper for a blocking ``httpx.Client``.

The requester returns the ``httpx.Response`` of one attempt directly; a
non-2xx status is raised as ``httpx.HTTPStatusError`` and classified by the
requester's ``is_response_status_to_retry``.
"""

from retryhelper.direct._helper import DirectRetryHelper
from retryhelper.direct._reader import (
    BytesDirectResponseReader,
    DirectResponseReader,
    JsonDirectResponseReader,
    StringDirectResponseReader,
)
from retryhelper.direct._requester import DirectSingleRequester

__all__ = [
    "BytesDirectResponseReader",
    "DirectResponseReader",
    "DirectRetryHelper",
    "DirectSingleRequester",
    "JsonDirectResponseReader",
    "StringDirectResponseReader",
]
