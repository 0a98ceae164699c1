# Copyright 2026 Cisco Systems, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""
Retrying HTTP fetcher.

Each attempt is bounded by its own deadline. Failed attempts (non-2xx
status, timeout or transport error) are retried after ``base_delay * attempt``
seconds, unless the server sent a throttle hint (429, or 403 with
``Retry-After``), in which case exactly the hinted delay is used. Every
logical fetch gets a fresh attempt budget.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import httpx

from .exceptions import FetchError
from .models import FetchOutcome

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]


def parse_retry_after(value: str | None) -> float | None:
    """
    Parse a ``Retry-After`` header value into seconds.

    Accepts delta-seconds or an HTTP date. Returns None when the value is
    missing or unparseable so the caller falls back to linear backoff.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


class RetryingFetcher:
    """Fetch text or JSON over a shared ``httpx.AsyncClient`` with retries."""

    def __init__(self, client: httpx.AsyncClient, base_delay: float = 1.0, sleep: SleepFunc | None = None):
        """
        Initialize fetcher.

        Args:
            client: Shared async HTTP client (connection pooling across workers)
            base_delay: Linear backoff unit in seconds
            sleep: Awaitable used for backoff delays (injectable for tests)
        """
        self.client = client
        self.base_delay = base_delay
        self._sleep = sleep or asyncio.sleep

    async def fetch(
        self,
        url: str,
        timeout: float,
        max_retries: int,
        headers: Mapping[str, str] | None = None,
    ) -> FetchOutcome:
        """
        Fetch *url*, retrying failures.

        Args:
            url: URL to GET
            timeout: Per-attempt deadline in seconds
            max_retries: Total attempts allowed for this fetch (at least one)
            headers: Extra request headers

        Returns:
            FetchOutcome with the body on success, or the last error and the
            last observed HTTP status on failure. Never raises for network
            failures.
        """
        attempts = max(1, max_retries)
        outcome = FetchOutcome(url=url)

        for attempt in range(1, attempts + 1):
            outcome.attempts = attempt
            retry_after: float | None = None

            try:
                response = await asyncio.wait_for(
                    self.client.get(url, headers=dict(headers or {}), timeout=timeout),
                    timeout,
                )
            except (asyncio.TimeoutError, httpx.TimeoutException):
                outcome.error = f"timed out after {timeout:g}s"
            except httpx.HTTPError as e:
                outcome.error = str(e) or type(e).__name__
            else:
                outcome.status = response.status_code
                if response.is_success:
                    outcome.body = response.text
                    outcome.error = None
                    return outcome

                outcome.error = f"{response.status_code} {response.reason_phrase}".strip()
                if response.status_code in (403, 429):
                    retry_after = parse_retry_after(response.headers.get("retry-after"))

            if attempt >= attempts:
                break

            if retry_after is not None:
                delay = retry_after
                logger.warning(
                    "Rate limited on %s (HTTP %s); honoring Retry-After of %.1fs (attempt %d/%d)",
                    url,
                    outcome.status,
                    delay,
                    attempt,
                    attempts,
                )
            else:
                delay = self.base_delay * attempt
                logger.warning(
                    "Fetch failed for %s: %s; retrying in %.1fs (attempt %d/%d)",
                    url,
                    outcome.error,
                    delay,
                    attempt,
                    attempts,
                )
            await self._sleep(delay)

        logger.debug("Giving up on %s after %d attempts: %s", url, outcome.attempts, outcome.error)
        return outcome

    async def fetch_text(
        self,
        url: str,
        timeout: float,
        max_retries: int,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        """Fetch *url* as text, raising :class:`FetchError` once retries are exhausted."""
        outcome = await self.fetch(url, timeout, max_retries, headers=headers)
        if not outcome.ok:
            raise FetchError(outcome.error or "unknown error", url=url, status=outcome.status, attempts=outcome.attempts)
        return outcome.body or ""

    async def fetch_json(
        self,
        url: str,
        timeout: float,
        max_retries: int,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """
        Fetch *url* and decode it as JSON.

        Raises:
            FetchError: retries exhausted (message names the URL and status),
                or the body is not valid JSON (not retried)
        """
        outcome = await self.fetch(url, timeout, max_retries, headers=headers)
        if not outcome.ok:
            raise FetchError(
                f"Failed to fetch {url}: {outcome.error}",
                url=url,
                status=outcome.status,
                attempts=outcome.attempts,
            )
        try:
            return json.loads(outcome.body or "")
        except json.JSONDecodeError as e:
            raise FetchError(
                f"Invalid JSON from {url}: {e}", url=url, status=outcome.status, attempts=outcome.attempts
            ) from e
