"""
Voyage Backend - Travel Service Tests
======================================

What:  Aggregated search and booking verification, service and routes.
How:   travel_service.client is swapped for a ProviderClient over
       httpx.MockTransport; each provider is answered by host name.

What we test:
    ✅ Search merges providers, filters by price/rating, sorts by price
    ✅ A failing provider is skipped, the others still answer
    ✅ min > max bounds → 400
    ✅ Booking storage (201, 409 duplicate) and admin-only listing
    ✅ Verify: 200 unchanged, 201 updated, 404 offer gone
    ✅ Verify: 502 provider down, 503 with Retry-After once its breaker opens
"""

import httpx
import pytest

from voyage.config import settings
from voyage.services.provider_client import ProviderClient
from voyage.services.travel_service import TravelService, travel_service
from voyage.exceptions import ValidationError
from voyage.schemas.travel import TravelSearch

PROVIDERS = {"AIRFRANCE": "http://airfrance.test", "SNCF": "http://sncf.test"}


def _offer(travel_id, price, avis=4.0, departure="2026-06-01T08:00:00Z", **extra):
    return {
        "from_city": "Nantes",
        "from_airport": "NTE",
        "to_city": "Paris",
        "to_airport": "CDG",
        "departure": departure,
        "arrival": "2026-06-01T10:00:00Z",
        "price": price,
        "avis": avis,
        "travel_id": travel_id,
        "travel_url": f"https://provider.test/{travel_id}",
        **extra,
    }


SEARCH = {
    "from_city": "Nantes",
    "to_city": "Paris",
    "departure": "2026-06-01T00:00:00Z",
    "arrival": "2026-06-02T00:00:00Z",
    "nb_adults": 2,
    "nb_children": 0,
}


class FakeProviders:
    """Per-host canned answers for httpx.MockTransport."""

    def __init__(self):
        self.search = {
            "airfrance.test": (200, [_offer("AF1", 120.0, 4.5), _offer("AF2", 60.0, 3.0)]),
            "sncf.test": (
                200,
                [
                    _offer("TGV1", 60.0, 4.8, departure="2026-06-01T07:00:00Z"),
                    _offer("TGV2", 45.0, 2.5),
                ],
            ),
        }
        self.offers = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/search":
            status, payload = self.search[request.url.host]
            return httpx.Response(status, json=payload)
        travel_id = request.url.path.rsplit("/", 1)[-1]
        if travel_id in self.offers:
            return httpx.Response(200, json=self.offers[travel_id])
        return httpx.Response(404)

    def client(self) -> ProviderClient:
        return ProviderClient(providers=PROVIDERS, transport=httpx.MockTransport(self))


@pytest.fixture
def providers(monkeypatch):
    fake = FakeProviders()
    monkeypatch.setattr(travel_service, "client", fake.client())
    return fake


class TestSearch:

    @pytest.mark.asyncio
    async def test_results_are_merged_and_sorted(self, providers):
        offers = await TravelService(providers.client()).search(TravelSearch(**SEARCH))

        assert [o.travel_id for o in offers] == ["TGV2", "TGV1", "AF2", "AF1"]
        assert {o.service for o in offers} == {"AIRFRANCE", "SNCF"}

    @pytest.mark.asyncio
    async def test_bounds_filter(self, providers):
        query = TravelSearch(**SEARCH, min_price=50, max_price=100, min_avis=4)
        offers = await TravelService(providers.client()).search(query)
        assert [o.travel_id for o in offers] == ["TGV1"]

    @pytest.mark.asyncio
    async def test_failing_provider_is_skipped(self, providers):
        providers.search["airfrance.test"] = (500, None)

        offers = await TravelService(providers.client()).search(TravelSearch(**SEARCH))
        assert [o.travel_id for o in offers] == ["TGV2", "TGV1"]

    @pytest.mark.asyncio
    async def test_inverted_bounds_are_rejected(self, providers):
        with pytest.raises(ValidationError):
            await TravelService(providers.client()).search(
                TravelSearch(**SEARCH, min_price=100, max_price=10)
            )

    @pytest.mark.asyncio
    async def test_no_providers_means_no_offers(self):
        client = ProviderClient(providers={})
        assert await TravelService(client).search(TravelSearch(**SEARCH)) == []


class TestTravelApi:

    @pytest.mark.asyncio
    async def test_search_endpoint(self, test_client, providers):
        response = await test_client.get("/travel/list", params=SEARCH)

        assert response.status_code == 200
        body = response.json()
        assert body[0]["travel_id"] == "TGV2"
        assert body[0]["service"] == "SNCF"

    @pytest.mark.asyncio
    async def test_search_missing_parameter_is_400(self, test_client, providers):
        params = {k: v for k, v in SEARCH.items() if k != "to_city"}
        response = await test_client.get("/travel/list", params=params)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_search_inverted_bounds_is_400(self, test_client, providers):
        response = await test_client.get(
            "/travel/list", params={**SEARCH, "min_avis": 4, "max_avis": 2}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_store_booking(self, test_client, providers, user_headers, admin_headers):
        booking = {**_offer("AF1", 120.0), "service": "airfrance"}

        response = await test_client.post("/travel", json=booking, headers=user_headers)
        assert response.status_code == 201
        stored = response.json()
        assert stored["service"] == "AIRFRANCE"
        assert stored["created_by"] == 1
        assert stored["verified_at"] is None

        response = await test_client.post("/travel", json=booking, headers=user_headers)
        assert response.status_code == 409

        assert (await test_client.get("/travel", headers=user_headers)).status_code == 403
        response = await test_client.get(f"/travel/{stored['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert len((await test_client.get("/travel", headers=admin_headers)).json()) == 1

    @pytest.mark.asyncio
    async def test_store_requires_token(self, test_client, providers):
        response = await test_client.post("/travel", json={**_offer("AF1", 1.0), "service": "AIRFRANCE"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_verify(self, test_client, providers, user_headers):
        booking = {**_offer("AF1", 120.0), "service": "AIRFRANCE"}
        stored = (await test_client.post("/travel", json=booking, headers=user_headers)).json()
        url = f"/verify/{stored['id']}"

        providers.offers["AF1"] = _offer("AF1", 120.0)
        response = await test_client.put(url, headers=user_headers)
        assert response.status_code == 200
        assert response.json()["verified_at"] is not None

        providers.offers["AF1"] = _offer("AF1", 99.0)
        response = await test_client.put(url, headers=user_headers)
        assert response.status_code == 201
        assert response.json()["price"] == 99.0

        del providers.offers["AF1"]
        response = await test_client.put(url, headers=user_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_verify_unknown_booking_is_404(self, test_client, providers, user_headers):
        response = await test_client.put("/verify/9999", headers=user_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_verify_with_provider_down_is_502(
        self, test_client, providers, user_headers, monkeypatch
    ):
        booking = {**_offer("TGV1", 60.0), "service": "SNCF"}
        stored = (await test_client.post("/travel", json=booking, headers=user_headers)).json()

        def down(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        monkeypatch.setattr(
            travel_service, "client", ProviderClient(providers=PROVIDERS, transport=httpx.MockTransport(down))
        )
        response = await test_client.put(f"/verify/{stored['id']}", headers=user_headers)
        assert response.status_code == 502
        assert response.json()["error"] == "upstream_error"

    @pytest.mark.asyncio
    async def test_verify_with_breaker_open_is_503(
        self, test_client, providers, user_headers, monkeypatch
    ):
        booking = {**_offer("TGV1", 60.0), "service": "SNCF"}
        stored = (await test_client.post("/travel", json=booking, headers=user_headers)).json()
        url = f"/verify/{stored['id']}"

        calls = []

        def down(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503)

        monkeypatch.setattr(
            travel_service, "client", ProviderClient(providers=PROVIDERS, transport=httpx.MockTransport(down))
        )
        # CB_FAILURE_THRESHOLD=3 in conftest
        for _ in range(3):
            assert (await test_client.put(url, headers=user_headers)).status_code == 502
        sent = len(calls)

        response = await test_client.put(url, headers=user_headers)
        assert response.status_code == 503
        assert response.json()["error"] == "service_unavailable"
        assert 1 <= int(response.headers["retry-after"]) <= settings.cb_recovery_timeout
        assert len(calls) == sent
