"""Unit tests for the aviationstack client."""

import asyncio

import httpx
import pytest

from flightrelay.infrastructure.aviation.aviationstack_client import AviationStackClient
from flightrelay.utils.exceptions import ProviderError

FLIGHT_RECORD = {
    "flight_date": "2026-10-18",
    "flight_status": "active",
    "departure": {
        "airport": "Leonardo Da Vinci (Fiumicino)",
        "timezone": "Europe/Rome",
        "iata": "FCO",
        "icao": "LIRF",
        "terminal": "3",
        "gate": "E12",
        "delay": 15,
        "scheduled": "2026-10-18T10:25:00+00:00",
        "estimated": "2026-10-18T10:25:00+00:00",
        "actual": None,
    },
    "arrival": {
        "airport": "Dubai",
        "iata": "DXB",
        "terminal": "3",
        "gate": None,
        "baggage": "7",
        "scheduled": "2026-10-18T18:40:00+00:00",
    },
    "airline": {"name": "Emirates", "iata": "EK", "icao": "UAE"},
    "flight": {"number": "509", "iata": "EK509", "icao": "UAE509", "codeshared": None},
    "aircraft": None,
    "live": None,
}


def make_client(handler, api_key="secret", max_retries=0):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://aviation.test/v1")
    return AviationStackClient(api_key=api_key, max_retries=max_retries, http_client=http_client)


def test_get_flight_returns_first_record():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"pagination": {"count": 1}, "data": [FLIGHT_RECORD]})

    flight = asyncio.run(make_client(handler).get_flight("EK509"))
    assert seen["path"] == "/v1/flights"
    assert seen["params"] == {"access_key": "secret", "flight_iata": "EK509"}
    assert flight.code == "EK509"
    assert flight.status == "active"
    assert flight.current_gate == "E12"
    assert flight.departure.delay == 15
    assert flight.arrival.baggage == "7"


def test_get_flight_not_found_returns_none():
    client = make_client(lambda request: httpx.Response(200, json={"data": []}))
    assert asyncio.run(client.get_flight("XX0000")) is None


def test_null_live_fields_are_accepted():
    record = dict(FLIGHT_RECORD, live={"latitude": None, "longitude": None, "is_ground": None})
    client = make_client(lambda request: httpx.Response(200, json={"data": [record]}))
    flight = asyncio.run(client.get_flight("EK509"))
    assert flight.live.is_ground is None
    assert not flight.is_airborne


def test_list_queries_use_expected_params():
    seen = []

    def handler(request):
        seen.append(dict(request.url.params))
        return httpx.Response(200, json={"data": [FLIGHT_RECORD]})

    async def scenario():
        client = make_client(handler)
        await client.get_departures("FCO", limit=10)
        await client.get_arrivals("FCO", limit=4)
        return await client.search_route("FCO", "DXB")

    flights = asyncio.run(scenario())
    assert len(flights) == 1
    assert seen[0] == {"access_key": "secret", "dep_iata": "FCO", "limit": "10"}
    assert seen[1] == {"access_key": "secret", "arr_iata": "FCO", "limit": "4"}
    assert seen[2] == {"access_key": "secret", "dep_iata": "FCO", "arr_iata": "DXB", "limit": "5"}


def test_missing_api_key_raises_without_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"data": []})

    with pytest.raises(ProviderError):
        asyncio.run(make_client(handler, api_key="").get_flight("EK509"))
    assert calls == []


def test_error_body_raises_provider_error():
    body = {"error": {"code": "usage_limit_reached", "message": "Your monthly usage limit has been reached."}}
    client = make_client(lambda request: httpx.Response(200, json=body))
    with pytest.raises(ProviderError) as exc_info:
        asyncio.run(client.get_flight("EK509"))
    assert "usage limit" in exc_info.value.message
    assert exc_info.value.details["code"] == "usage_limit_reached"


def test_http_error_status_raises_provider_error():
    client = make_client(lambda request: httpx.Response(401, json={"error": {"code": "invalid_access_key", "message": "bad key"}}))
    with pytest.raises(ProviderError) as exc_info:
        asyncio.run(client.get_departures("FCO"))
    assert exc_info.value.details["status_code"] == 401


def test_non_json_body_raises_provider_error():
    client = make_client(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
    with pytest.raises(ProviderError):
        asyncio.run(client.get_flight("EK509"))


def test_undecodable_record_raises_provider_error():
    record = dict(FLIGHT_RECORD, departure={"delay": "a while"})
    client = make_client(lambda request: httpx.Response(200, json={"data": [record]}))
    with pytest.raises(ProviderError):
        asyncio.run(client.get_flight("EK509"))


def test_connection_errors_are_retried_then_succeed():
    attempts = []

    def handler(request):
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200, json={"data": [FLIGHT_RECORD]})

    flight = asyncio.run(make_client(handler, max_retries=1).get_flight("EK509"))
    assert flight.code == "EK509"
    assert len(attempts) == 2


def test_persistent_connection_error_raises_provider_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ProviderError):
        asyncio.run(make_client(handler).get_flight("EK509"))
