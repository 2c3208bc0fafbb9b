# api tests run in-process through httpx.ASGITransport with a fake forecast loader

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from weather_glance.location.providers import PushLocationProvider, StaticLocationProvider
from weather_glance.main import create_app, start_services, stop_services
from weather_glance.weather.service import WeatherService


@pytest.fixture
async def push_app(make_forecast):
    loads = []

    async def load(coordinate):
        loads.append(coordinate)
        return make_forecast(coordinate)

    app = create_app(location_provider=PushLocationProvider(), load=load, rate_limit_enabled=False)
    app.state.test_loads = loads
    await start_services(app)
    yield app
    await stop_services(app)


@pytest.fixture
async def client(push_app):
    transport = httpx.ASGITransport(app=push_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def position(coordinate) -> dict:
    return {"latitude": coordinate.latitude, "longitude": coordinate.longitude}


async def test_weather_is_empty_before_first_fix(client):
    response = await client.get("/weather/")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "empty"
    assert body["hourly"] == [] and body["daily"] == [] and body["chart"] == []
    assert body["place"] is None

    location = (await client.get("/location")).json()
    assert location == {"state": "unset", "coordinate": None}


async def test_pushed_fix_produces_forecast(client, push_app, new_york):
    response = await client.post("/location", json={"positions": [position(new_york)]})
    assert response.status_code == 202
    assert response.json()["state"] == "set"

    await push_app.state.coordinator.wait_idle()

    body = (await client.get("/weather/")).json()
    assert body["status"] == "ready"
    assert body["place"] == "New York"
    assert body["current_temperature_c"] == 12.5
    # the timeline starts three hours in the past and runs well past the 24 hour window
    assert len(body["hourly"]) == 24
    assert len(body["chart"]) == 10
    assert len(body["daily"]) == 10
    assert body["hourly"][0]["label"].endswith(("AM", "PM"))
    assert body["daily"][0]["label"] in {"MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN"}


async def test_later_fixes_are_ignored(client, push_app, new_york, oslo):
    await client.post("/location", json={"positions": [position(new_york)]})
    response = await client.post("/location", json={"positions": [position(oslo)]})

    assert response.status_code == 202
    assert response.json()["coordinate"] == position(new_york)
    await push_app.state.coordinator.wait_idle()
    assert push_app.state.test_loads == [new_york]


async def test_update_without_positions_keeps_gate_unset(client):
    response = await client.post("/location", json={"positions": []})
    assert response.status_code == 202
    assert response.json()["state"] == "unset"


async def test_invalid_position_is_rejected(client):
    response = await client.post("/location", json={"positions": [{"latitude": 123, "longitude": 0}]})
    assert response.status_code == 422


async def test_push_rejected_when_location_is_not_pushed(new_york, make_forecast):
    async def load(coordinate):
        return make_forecast(coordinate)

    app = create_app(
        location_provider=StaticLocationProvider(coordinate=new_york, interval=60),
        load=load,
        rate_limit_enabled=False
    )
    await start_services(app)
    try:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post("/location", json={"positions": [position(new_york)]})
        assert response.status_code == 409
    finally:
        await stop_services(app)


async def test_service_endpoints(client):
    health = (await client.get("/weather/health")).json()
    assert health == {"status": "healthy", "service": "weather-glance"}

    info = (await client.get("/weather/info")).json()
    assert info["location_source"] == "PushLocationProvider"
    assert info["default_location"]["city"] == "New York"

    api = (await client.get("/api")).json()
    assert api["location"] == "/location"


class FakeLimiter:
    """Allows the first ``allowed`` requests, then asks clients to wait two seconds."""

    def __init__(self, allowed):
        self.max_requests = 5
        self.allowed = allowed
        self.clients = []
        self.closed = False

    async def is_allowed(self, client_id):
        self.clients.append(client_id)
        if len(self.clients) <= self.allowed:
            return True, 0
        return False, 2

    async def close(self):
        self.closed = True


async def test_rate_limit_rejects_with_retry_after(make_forecast):
    async def load(coordinate):
        return make_forecast(coordinate)

    limiter = FakeLimiter(allowed=1)
    app = create_app(location_provider=PushLocationProvider(), load=load, rate_limit_enabled=True, rate_limiter=limiter)
    await start_services(app)
    try:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            allowed = await client.get("/weather/")
            limited = await client.get("/weather/")
            health = await client.get("/weather/health")
    finally:
        await stop_services(app)

    assert allowed.status_code == 200
    assert allowed.headers["X-RateLimit-Limit"] == "5"

    assert limited.status_code == 429
    assert limited.headers["Retry-After"] == "2"
    assert limited.json()["retry_after"] == 2

    # health checks skip the limiter entirely
    assert health.status_code == 200
    assert len(limiter.clients) == 2
    assert limiter.closed


async def test_rate_limiter_closed_on_shutdown(make_forecast):
    async def load(coordinate):
        return make_forecast(coordinate)

    limiter = FakeLimiter(allowed=0)
    app = create_app(location_provider=PushLocationProvider(), load=load, rate_limit_enabled=True, rate_limiter=limiter)
    assert app.state.rate_limiter is limiter

    await start_services(app)
    await stop_services(app)

    assert limiter.closed


async def test_entry_without_utc_offset_does_not_break_weather(client, push_app, new_york, yr_entry, yr_payload):
    start = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)
    naive = yr_entry(start, 1.0)
    naive["time"] = naive["time"].rstrip("Z")
    payload = yr_payload([naive] + [yr_entry(start + timedelta(hours=h), 10.0 + h) for h in range(1, 30)])
    service = WeatherService(client=object(), geocoding_service=object(), timezone_setting="UTC")

    async def load(coordinate):
        return service.parse_forecast(payload, coordinate, "New York", "UTC")

    push_app.state.coordinator.load = load
    await client.post("/location", json={"positions": [position(new_york)]})
    await push_app.state.coordinator.wait_idle()

    response = await client.get("/weather/")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ready"
    assert body["current_temperature_c"] == 11.0
    assert len(body["hourly"]) == 24
