# Copyright 2026 Cisco Systems, Inc. and its affiliates
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

"""Tests for the retrying HTTP fetcher."""

import httpx
import pytest

from doc_mirror.core.exceptions import FetchError
from doc_mirror.core.fetcher import RetryingFetcher, parse_retry_after

URL = "https://raw.test/acme/widgets/main/docs/a.md"


def _sequence(*responses):
    """Handler that replays *responses* in order (callables are invoked with the request)."""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        item = responses[min(len(calls), len(responses)) - 1]
        if callable(item):
            return item(request)
        return item

    handler.calls = calls
    return handler


class TestParseRetryAfter:
    def test_seconds(self):
        assert parse_retry_after("3") == 3.0
        assert parse_retry_after("1.5") == 1.5

    def test_negative_clamped(self):
        assert parse_retry_after("-5") == 0.0

    def test_missing_or_garbage(self):
        assert parse_retry_after(None) is None
        assert parse_retry_after("") is None
        assert parse_retry_after("soon") is None

    def test_http_date_in_past(self):
        assert parse_retry_after("Wed, 21 Oct 2015 07:28:00 GMT") == 0.0


class TestFetch:
    @pytest.mark.asyncio
    async def test_success_first_attempt(self, mock_client, sleep):
        handler = _sequence(httpx.Response(200, text="# Title\n"))
        async with mock_client(handler) as client:
            outcome = await RetryingFetcher(client, sleep=sleep).fetch(URL, timeout=5, max_retries=3)

        assert outcome.ok
        assert outcome.body == "# Title\n"
        assert outcome.status == 200
        assert outcome.attempts == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_linear_backoff_then_give_up(self, mock_client, sleep):
        handler = _sequence(httpx.Response(500))
        async with mock_client(handler) as client:
            outcome = await RetryingFetcher(client, base_delay=1.0, sleep=sleep).fetch(URL, timeout=5, max_retries=3)

        assert not outcome.ok
        assert outcome.status == 500
        assert outcome.error == "500 Internal Server Error"
        assert outcome.attempts == 3
        assert len(handler.calls) == 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_recovers_after_failure(self, mock_client, sleep):
        handler = _sequence(httpx.Response(503), httpx.Response(200, text="ok"))
        async with mock_client(handler) as client:
            outcome = await RetryingFetcher(client, base_delay=0.5, sleep=sleep).fetch(URL, timeout=5, max_retries=3)

        assert outcome.ok
        assert outcome.body == "ok"
        assert outcome.attempts == 2
        assert sleep.delays == [0.5]

    @pytest.mark.asyncio
    async def test_retry_after_on_429(self, mock_client, sleep):
        handler = _sequence(httpx.Response(429, headers={"Retry-After": "7"}), httpx.Response(200, text="ok"))
        async with mock_client(handler) as client:
            outcome = await RetryingFetcher(client, sleep=sleep).fetch(URL, timeout=5, max_retries=3)

        assert outcome.ok
        assert sleep.delays == [7.0]

    @pytest.mark.asyncio
    async def test_retry_after_on_403(self, mock_client, sleep):
        handler = _sequence(httpx.Response(403, headers={"retry-after": "5"}), httpx.Response(200, text="ok"))
        async with mock_client(handler) as client:
            outcome = await RetryingFetcher(client, sleep=sleep).fetch(URL, timeout=5, max_retries=3)

        assert outcome.ok
        assert sleep.delays == [5.0]

    @pytest.mark.asyncio
    async def test_403_without_hint_uses_linear_backoff(self, mock_client, sleep):
        handler = _sequence(httpx.Response(403))
        async with mock_client(handler) as client:
            outcome = await RetryingFetcher(client, base_delay=2.0, sleep=sleep).fetch(URL, timeout=5, max_retries=2)

        assert outcome.status == 403
        assert outcome.rate_limited
        assert sleep.delays == [2.0]

    @pytest.mark.asyncio
    async def test_retry_after_ignored_for_server_errors(self, mock_client, sleep):
        handler = _sequence(httpx.Response(503, headers={"Retry-After": "30"}), httpx.Response(200, text="ok"))
        async with mock_client(handler) as client:
            await RetryingFetcher(client, base_delay=1.0, sleep=sleep).fetch(URL, timeout=5, max_retries=2)

        assert sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_timeout_is_retried(self, mock_client, sleep):
        def timeout(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        handler = _sequence(timeout, httpx.Response(200, text="late"))
        async with mock_client(handler) as client:
            outcome = await RetryingFetcher(client, sleep=sleep).fetch(URL, timeout=2, max_retries=3)

        assert outcome.ok
        assert outcome.body == "late"
        assert sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_timeout_exhausted_has_no_status(self, mock_client, sleep):
        def timeout(request):
            raise httpx.ConnectTimeout("connect timed out", request=request)

        async with mock_client(_sequence(timeout)) as client:
            outcome = await RetryingFetcher(client, sleep=sleep).fetch(URL, timeout=2, max_retries=2)

        assert not outcome.ok
        assert outcome.status is None
        assert outcome.error == "timed out after 2s"

    @pytest.mark.asyncio
    async def test_transport_error(self, mock_client, sleep):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with mock_client(_sequence(refuse)) as client:
            outcome = await RetryingFetcher(client, sleep=sleep).fetch(URL, timeout=2, max_retries=1)

        assert outcome.error == "connection refused"
        assert outcome.attempts == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_each_fetch_gets_a_fresh_budget(self, mock_client, sleep):
        handler = _sequence(
            httpx.Response(500), httpx.Response(200, text="a"), httpx.Response(500), httpx.Response(200, text="b")
        )
        async with mock_client(handler) as client:
            fetcher = RetryingFetcher(client, sleep=sleep)
            first = await fetcher.fetch(URL, timeout=5, max_retries=2)
            second = await fetcher.fetch(URL, timeout=5, max_retries=2)

        assert (first.body, second.body) == ("a", "b")
        assert sleep.delays == [1.0, 1.0]

    @pytest.mark.asyncio
    async def test_headers_are_sent(self, mock_client, sleep):
        handler = _sequence(httpx.Response(200, text="{}"))
        async with mock_client(handler) as client:
            await RetryingFetcher(client, sleep=sleep).fetch(URL, timeout=5, max_retries=1, headers={"X-Test": "1"})

        assert handler.calls[0].headers["X-Test"] == "1"


class TestFetchVariants:
    @pytest.mark.asyncio
    async def test_fetch_text_raises_after_retries(self, mock_client, sleep):
        async with mock_client(_sequence(httpx.Response(404))) as client:
            with pytest.raises(FetchError) as exc_info:
                await RetryingFetcher(client, sleep=sleep).fetch_text(URL, timeout=5, max_retries=2)

        assert exc_info.value.status == 404
        assert exc_info.value.url == URL
        assert exc_info.value.attempts == 2

    @pytest.mark.asyncio
    async def test_fetch_json_decodes(self, mock_client, sleep):
        async with mock_client(_sequence(httpx.Response(200, json={"tree": []}))) as client:
            payload = await RetryingFetcher(client, sleep=sleep).fetch_json(URL, timeout=5, max_retries=1)

        assert payload == {"tree": []}

    @pytest.mark.asyncio
    async def test_fetch_json_failure_names_url_and_status(self, mock_client, sleep):
        async with mock_client(_sequence(httpx.Response(502))) as client:
            with pytest.raises(FetchError, match=r"Failed to fetch .*a\.md: 502 Bad Gateway"):
                await RetryingFetcher(client, sleep=sleep).fetch_json(URL, timeout=5, max_retries=2)

    @pytest.mark.asyncio
    async def test_invalid_json_is_not_retried(self, mock_client, sleep):
        handler = _sequence(httpx.Response(200, text="<html>nope</html>"))
        async with mock_client(handler) as client:
            with pytest.raises(FetchError, match="Invalid JSON"):
                await RetryingFetcher(client, sleep=sleep).fetch_json(URL, timeout=5, max_retries=3)

        assert len(handler.calls) == 1
        assert sleep.delays == []
