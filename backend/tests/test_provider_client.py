"""
Voyage Backend - Provider Client Unit Tests (Mocked)
=====================================================

What:  Tests for ProviderClient and its CircuitBreaker.
How:   httpx.MockTransport answers in place of the providers, so no request
       leaves the process. conftest sets RETRY_MAX_ATTEMPTS=2 with zero
       waits and CB_FAILURE_THRESHOLD=3.

What we test:
    ✅ Circuit breaker state machine
    ✅ Search parses offers, fills in the provider name, drops bad items
    ✅ 404 on an offer → None
    ✅ Offer ids are sent as one escaped path segment
    ✅ 5xx is retried, then UpstreamServiceError
    ✅ Exponential backoff built from the RETRY_* settings
    ✅ Breaker opens after repeated failures and short-circuits calls
    ❌ Real provider calls
"""

import time

import httpx
import pytest
from tenacity import wait_exponential_jitter

from voyage.config import settings
from voyage.exceptions import CircuitBreakerOpenError, UpstreamServiceError
from voyage.services.provider_client import CircuitBreaker, ProviderClient

OFFER = {
    "from_city": "Nantes",
    "from_airport": "NTE",
    "to_city": "Paris",
    "to_airport": "CDG",
    "departure": "2026-06-01T08:00:00Z",
    "arrival": "2026-06-01T09:10:00Z",
    "price": 89.0,
    "avis": 4.2,
    "travel_id": "AF7711",
    "travel_url": "https://airfrance.test/AF7711",
}

PROVIDERS = {"AIRFRANCE": "http://airfrance.test"}


def _client(handler) -> ProviderClient:
    return ProviderClient(providers=PROVIDERS, transport=httpx.MockTransport(handler))


class TestCircuitBreaker:

    def test_initial_state_is_closed(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        assert cb.state == "closed"
        assert cb.failure_count == 0

    def test_stays_closed_under_threshold(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        for _ in range(4):
            cb.record_failure()
        assert cb.state == "closed"
        assert cb.can_execute()

    def test_open_circuit_rejects_calls(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=60, name="SNCF")
        cb.record_failure()
        assert cb.state == "open"

        with pytest.raises(CircuitBreakerOpenError) as exc_info:
            cb.can_execute()
        assert exc_info.value.status_code == 503
        assert 1 <= exc_info.value.recovery_time <= 60

    def test_success_resets_failure_count(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        cb.record_failure()
        cb.record_failure()
        cb.record_success()
        assert cb.failure_count == 0
        assert cb.state == "closed"

    def test_half_open_after_recovery_timeout(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        time.sleep(0.01)

        assert cb.can_execute()
        assert cb.state == "half_open"

    def test_failure_in_half_open_reopens(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=0)
        for _ in range(3):
            cb.record_failure()
        cb.can_execute()

        cb.record_failure()
        assert cb.state == "open"

    def test_success_in_half_open_closes(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        cb.can_execute()

        cb.record_success()
        assert cb.state == "closed"


class TestProviderClient:

    @pytest.mark.asyncio
    async def test_search_returns_offers(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = request.url
            return httpx.Response(200, json=[OFFER, {"travel_id": "broken"}, "junk"])

        client = _client(handler)
        offers = await client.search("airfrance", {"from_city": "Nantes", "nb_adults": 1})

        assert seen["url"].path == "/search"
        assert seen["url"].params["from_city"] == "Nantes"
        assert len(offers) == 1
        assert offers[0].service == "AIRFRANCE"
        assert offers[0].price == 89.0
        assert offers[0].cabin == "Economy"

    @pytest.mark.asyncio
    async def test_non_list_search_result_is_upstream_error(self):
        client = _client(lambda request: httpx.Response(200, json={"offers": []}))
        with pytest.raises(UpstreamServiceError):
            await client.search("AIRFRANCE", {})

    @pytest.mark.asyncio
    async def test_get_offer(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/offers/AF7711"
            return httpx.Response(200, json={**OFFER, "price": 95.0})

        offer = await _client(handler).get_offer("AIRFRANCE", "AF7711")
        assert offer.price == 95.0

    @pytest.mark.asyncio
    async def test_offer_id_is_escaped_into_one_segment(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.url.raw_path, dict(request.url.params)))
            return httpx.Response(404)

        client = _client(handler)
        await client.get_offer("AIRFRANCE", "AF1?admin=1")
        await client.get_offer("AIRFRANCE", "../internal/secret")

        assert seen == [
            (b"/offers/AF1%3Fadmin%3D1", {}),
            (b"/offers/..%2Finternal%2Fsecret", {}),
        ]

    @pytest.mark.asyncio
    async def test_missing_offer_is_none(self):
        client = _client(lambda request: httpx.Response(404))
        assert await client.get_offer("AIRFRANCE", "AF0000") is None
        assert client.breaker_for("AIRFRANCE").failure_count == 0

    @pytest.mark.asyncio
    async def test_server_error_is_retried_then_raised(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503)

        client = _client(handler)
        with pytest.raises(UpstreamServiceError) as exc_info:
            await client.search("AIRFRANCE", {})

        assert len(calls) == 2
        assert exc_info.value.status_code == 502
        assert client.breaker_for("AIRFRANCE").failure_count == 1

    def test_backoff_follows_settings(self):
        wait = ProviderClient._get_with_retry.retry.wait
        assert isinstance(wait, wait_exponential_jitter)
        assert wait.multiplier == settings.retry_min_wait
        assert wait.max == settings.retry_max_wait

    @pytest.mark.asyncio
    async def test_transient_error_recovers_on_retry(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json=[OFFER])

        offers = await _client(handler).search("AIRFRANCE", {})
        assert len(offers) == 1
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(400, json={"error": "bad date"})

        with pytest.raises(UpstreamServiceError):
            await _client(handler).search("AIRFRANCE", {})
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_breaker_opens_after_repeated_failures(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500)

        client = _client(handler)
        for _ in range(3):
            with pytest.raises(UpstreamServiceError):
                await client.search("AIRFRANCE", {})
        sent = len(calls)

        with pytest.raises(CircuitBreakerOpenError):
            await client.search("AIRFRANCE", {})
        assert len(calls) == sent

    @pytest.mark.asyncio
    async def test_unknown_provider(self):
        client = _client(lambda request: httpx.Response(200, json=[]))
        with pytest.raises(UpstreamServiceError):
            await client.get_offer("RYANAIR", "FR1")
