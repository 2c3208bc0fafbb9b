# tests for the yr.no client against an in-process httpx transport

import httpx
import pytest

from weather_glance.weather.client import YrWeatherClient


def make_client(handler) -> YrWeatherClient:
    return YrWeatherClient(
        base_url="https://yr.test/compact",
        user_agent="weather-glance-tests/0.1",
        transport=httpx.MockTransport(handler)
    )


async def test_fetch_sends_rounded_coordinates_and_user_agent(yr_payload):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        seen["user_agent"] = request.headers["User-Agent"]
        return httpx.Response(200, json=yr_payload([]))

    async with make_client(handler) as client:
        data = await client.get_weather_forecast(40.712776, -74.005974)

    assert seen["params"] == {"lat": "40.7128", "lon": "-74.006"}
    assert seen["user_agent"] == "weather-glance-tests/0.1"
    assert data["type"] == "Feature"


async def test_http_error_propagates():
    async with make_client(lambda request: httpx.Response(503, text="busy")) as client:
        with pytest.raises(httpx.HTTPStatusError):
            await client.get_weather_forecast(59.91, 10.75)


async def test_unexpected_shape_is_rejected():
    async with make_client(lambda request: httpx.Response(200, json={"hello": "world"})) as client:
        with pytest.raises(ValueError):
            await client.get_weather_forecast(59.91, 10.75)


@pytest.mark.parametrize("lat, lon", [(91, 0), (-91, 0), (0, 181), (0, -180.5)])
async def test_invalid_coordinates_are_rejected(lat, lon):
    def handler(request):
        raise AssertionError("no request expected")

    async with make_client(handler) as client:
        with pytest.raises(ValueError):
            await client.get_weather_forecast(lat, lon)
