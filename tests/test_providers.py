import json

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.errors import GeocodeFailure, RoutingFailure
from app.schemas.route import Location
from app.services.nominatim import NominatimGeocoder
from app.services.osrm import OSRMRouter

ORIGIN = Location(lat=1.0, lon=2.0, display_name="Point A")
DESTINATION = Location(lat=3.0, lon=4.0, display_name="Point B")


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class FakeRedis:
    def __init__(self, fail=False):
        self.store = {}
        self.fail = fail

    async def get(self, key):
        if self.fail:
            raise RedisConnectionError("redis down")
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        if self.fail:
            raise RedisConnectionError("redis down")
        self.store[key] = value


@pytest.mark.asyncio
async def test_nominatim_uses_first_match():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[
            {"lat": "9.03", "lon": "38.74", "display_name": "Addis Ababa, Ethiopia"},
            {"lat": "0", "lon": "0", "display_name": "Somewhere else"},
        ])

    geocoder = NominatimGeocoder(base_url="https://geo.test", user_agent="tests/1.0", client=mock_client(handler))

    location = await geocoder.geocode("Addis Ababa")

    assert location == Location(lat=9.03, lon=38.74, display_name="Addis Ababa, Ethiopia")
    request = seen[0]
    assert request.url.path == "/search"
    assert request.url.params["q"] == "Addis Ababa"
    assert request.url.params["format"] == "json"
    assert request.url.params["limit"] == "1"
    assert request.headers["User-Agent"] == "tests/1.0"


@pytest.mark.asyncio
async def test_nominatim_no_match_returns_none():
    geocoder = NominatimGeocoder(base_url="https://geo.test", client=mock_client(lambda r: httpx.Response(200, json=[])))

    assert await geocoder.geocode("Nowhereville") is None


@pytest.mark.asyncio
async def test_nominatim_http_error_is_geocode_failure():
    geocoder = NominatimGeocoder(base_url="https://geo.test", client=mock_client(lambda r: httpx.Response(503, text="busy")))

    with pytest.raises(GeocodeFailure) as exc_info:
        await geocoder.geocode("Bole")

    assert exc_info.value.query == "Bole"
    assert exc_info.value.reason == "HTTP 503"
    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_nominatim_malformed_body_is_geocode_failure():
    geocoder = NominatimGeocoder(base_url="https://geo.test", client=mock_client(lambda r: httpx.Response(200, text="<html>")))

    with pytest.raises(GeocodeFailure):
        await geocoder.geocode("Bole")


@pytest.mark.asyncio
async def test_nominatim_connect_error_is_retried_then_wrapped():
    attempts = []

    def handler(request):
        attempts.append(request)
        raise httpx.ConnectError("unreachable", request=request)

    geocoder = NominatimGeocoder(base_url="https://geo.test", retries=2, client=mock_client(handler))

    with pytest.raises(GeocodeFailure) as exc_info:
        await geocoder.geocode("Bole")

    assert len(attempts) == 3
    assert exc_info.value.status_code == 502
    assert "unreachable" in exc_info.value.reason


@pytest.mark.asyncio
async def test_nominatim_cache_hit_skips_http():
    cache = FakeRedis()
    cache.store["geocode:Bole"] = json.dumps({"lat": 9.0, "lon": 38.7, "display_name": "Bole"})

    def handler(request):
        raise AssertionError("should not be called")

    geocoder = NominatimGeocoder(base_url="https://geo.test", cache=cache, cache_ttl=60, client=mock_client(handler))

    location = await geocoder.geocode("Bole")

    assert location == Location(lat=9.0, lon=38.7, display_name="Bole")


@pytest.mark.asyncio
async def test_nominatim_cache_miss_stores_answer():
    cache = FakeRedis()
    response = [{"lat": "9.0", "lon": "38.7", "display_name": "Bole"}]
    geocoder = NominatimGeocoder(
        base_url="https://geo.test", cache=cache, cache_ttl=60,
        client=mock_client(lambda r: httpx.Response(200, json=response)),
    )

    await geocoder.geocode("Bole")

    assert json.loads(cache.store["geocode:Bole"])["display_name"] == "Bole"


@pytest.mark.asyncio
async def test_nominatim_cache_outage_is_ignored():
    response = [{"lat": "9.0", "lon": "38.7", "display_name": "Bole"}]
    geocoder = NominatimGeocoder(
        base_url="https://geo.test", cache=FakeRedis(fail=True), cache_ttl=60,
        client=mock_client(lambda r: httpx.Response(200, json=response)),
    )

    location = await geocoder.geocode("Bole")

    assert location.lat == 9.0


@pytest.mark.asyncio
async def test_osrm_requests_alternatives_in_lon_lat_order():
    seen = []
    body = {
        "code": "Ok",
        "routes": [
            {"duration": 120.5, "distance": 1500.0, "geometry": {"type": "LineString", "coordinates": []}},
            {"duration": 95.0, "distance": 1800.0, "geometry": {"type": "LineString", "coordinates": []}},
        ],
    }

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=body)

    router = OSRMRouter(base_url="https://osrm.test", profile="driving", client=mock_client(handler))

    reply = await router.route(ORIGIN, DESTINATION)

    assert reply.ok
    assert reply.routes == body["routes"]
    request = seen[0]
    assert request.url.path == "/route/v1/driving/2.0,1.0;4.0,3.0"
    assert request.url.params["alternatives"] == "true"
    assert request.url.params["overview"] == "full"
    assert request.url.params["geometries"] == "geojson"


@pytest.mark.asyncio
async def test_osrm_no_route_body_is_passed_through():
    body = {"code": "NoRoute", "message": "Impossible route between points"}
    router = OSRMRouter(base_url="https://osrm.test", client=mock_client(lambda r: httpx.Response(400, json=body)))

    reply = await router.route(ORIGIN, DESTINATION)

    assert not reply.ok
    assert reply.code == "NoRoute"
    assert reply.message == "Impossible route between points"


@pytest.mark.asyncio
async def test_osrm_non_json_error_is_routing_failure():
    router = OSRMRouter(base_url="https://osrm.test", client=mock_client(lambda r: httpx.Response(502, text="Bad Gateway")))

    with pytest.raises(RoutingFailure) as exc_info:
        await router.route(ORIGIN, DESTINATION)

    assert exc_info.value.provider_message == "HTTP 502"


@pytest.mark.asyncio
async def test_osrm_timeout_is_routing_failure():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    router = OSRMRouter(base_url="https://osrm.test", retries=3, client=mock_client(handler))

    with pytest.raises(RoutingFailure) as exc_info:
        await router.route(ORIGIN, DESTINATION)

    assert exc_info.value.provider_message == "too slow"


@pytest.mark.asyncio
async def test_zero_retries_means_single_attempt():
    attempts = []

    def handler(request):
        attempts.append(request)
        raise httpx.ConnectError("unreachable", request=request)

    router = OSRMRouter(base_url="https://osrm.test", retries=0, client=mock_client(handler))

    with pytest.raises(RoutingFailure):
        await router.route(ORIGIN, DESTINATION)

    assert len(attempts) == 1


@pytest.mark.asyncio
async def test_osrm_non_list_routes_is_routing_failure():
    router = OSRMRouter(
        base_url="https://osrm.test",
        client=mock_client(lambda r: httpx.Response(200, json={"code": "Ok", "routes": 5})),
    )

    with pytest.raises(RoutingFailure) as exc_info:
        await router.route(ORIGIN, DESTINATION)

    assert exc_info.value.provider_message == "malformed response"
