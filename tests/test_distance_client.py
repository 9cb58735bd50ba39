"""Tests for the distance service HTTP client against a local aiohttp server."""

from decimal import Decimal

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from kungfu import Error, Ok

from mealcart.shipping import DistanceClient


def make_app(handler) -> web.Application:
    app = web.Application()
    app.router.add_get("/shipping/distance", handler)
    return app


def base_url(server: TestServer) -> str:
    return str(server.make_url(""))


@pytest.mark.asyncio
async def test_measure_parses_reading_and_sends_destination():
    seen = {}

    async def handler(request: web.Request) -> web.Response:
        seen["destination"] = request.query.get("destination")
        seen["auth"] = request.headers.get("Authorization")
        return web.json_response(
            {"distanceKm": 12.4, "durationText": "25 mins", "destination": "Bandung"}
        )

    async with TestServer(make_app(handler)) as server:
        client = DistanceClient(base_url(server), token="secret")
        result = await client.measure("Jl. Braga 10")

    match result:
        case Ok(reading):
            assert reading.distance_km == Decimal("12.4")
            assert reading.duration_text == "25 mins"
            assert reading.destination_label == "Bandung"
        case Error(e):
            pytest.fail(f"unexpected error: {e}")
    assert seen == {"destination": "Jl. Braga 10", "auth": "Bearer secret"}


@pytest.mark.asyncio
async def test_success_false_body_passes_message_upstream():
    async def handler(request: web.Request) -> web.Response:
        return web.json_response({"success": False, "message": "Alamat tidak ditemukan"})

    async with TestServer(make_app(handler)) as server:
        result = await DistanceClient(base_url(server)).measure("Atlantis")

    match result:
        case Error(failure):
            assert failure.message == "Alamat tidak ditemukan"
        case Ok(reading):
            pytest.fail(f"unexpected reading: {reading}")


@pytest.mark.asyncio
async def test_http_error_uses_body_message():
    async def handler(request: web.Request) -> web.Response:
        return web.json_response({"message": "Geocoding quota exceeded"}, status=503)

    async with TestServer(make_app(handler)) as server:
        result = await DistanceClient(base_url(server)).measure("Jl. Braga")

    match result:
        case Error(failure):
            assert failure.message == "Geocoding quota exceeded"
        case Ok(reading):
            pytest.fail(f"unexpected reading: {reading}")


@pytest.mark.asyncio
async def test_http_error_without_body():
    async def handler(request: web.Request) -> web.Response:
        return web.Response(status=500, text="boom")

    async with TestServer(make_app(handler)) as server:
        result = await DistanceClient(base_url(server)).measure("Jl. Braga")

    match result:
        case Error(failure):
            assert failure.message == "HTTP 500"
        case Ok(reading):
            pytest.fail(f"unexpected reading: {reading}")


@pytest.mark.asyncio
async def test_network_error_is_a_failure_not_an_exception():
    async def handler(request: web.Request) -> web.Response:
        return web.json_response({})

    async with TestServer(make_app(handler)) as server:
        url = base_url(server)
    # Server is closed now: the connection is refused

    match await DistanceClient(url, timeout_seconds=2).measure("Jl. Braga"):
        case Error(failure):
            assert failure.message.startswith("Distance service unavailable")
        case Ok(reading):
            pytest.fail(f"unexpected reading: {reading}")
