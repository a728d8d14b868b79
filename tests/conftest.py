"""Pytest configuration, fakes and fixtures."""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from flightrelay.domain.interfaces.classifier_interface import ClassifierResult, FallbackClassifier
from flightrelay.domain.interfaces.provider_interface import FlightDataProvider
from flightrelay.domain.interfaces.transport_interface import MessagingTransport
from flightrelay.domain.models.flight import FlightSnapshot
from flightrelay.utils.exceptions import ProviderError, TransportError


def make_flight(
    code: str = "EK509",
    status: Optional[str] = "scheduled",
    departure_gate: Optional[str] = None,
    arrival_gate: Optional[str] = None,
    departure: str = "FCO",
    arrival: str = "DXB",
    departure_endpoint: Optional[Dict[str, Any]] = None,
    arrival_endpoint: Optional[Dict[str, Any]] = None,
    **extra: Any
) -> FlightSnapshot:
    """Build a FlightSnapshot shaped like an aviationstack record."""
    record = {
        "flight_date": "2026-10-18",
        "flight_status": status,
        "departure": {
            "airport": "Leonardo Da Vinci (Fiumicino)",
            "iata": departure,
            "terminal": "3",
            "gate": departure_gate,
            "scheduled": "2026-10-18T10:25:00+00:00",
        },
        "arrival": {
            "airport": "Dubai",
            "iata": arrival,
            "gate": arrival_gate,
            "scheduled": "2026-10-18T18:40:00+00:00",
        },
        "airline": {"name": "Emirates", "iata": code[:2]},
        "flight": {"iata": code, "number": code[2:]},
    }
    record["departure"].update(departure_endpoint or {})
    record["arrival"].update(arrival_endpoint or {})
    record.update(extra)
    return FlightSnapshot.model_validate(record)


class FakeProvider(FlightDataProvider):
    """
    In-memory flight provider.

    `flights` maps a code to a snapshot; codes in `failing` raise
    ProviderError and codes in `hanging` never answer.
    """

    def __init__(self, flights: Optional[Dict[str, FlightSnapshot]] = None):
        self.flights: Dict[str, FlightSnapshot] = dict(flights or {})
        self.failing: set = set()
        self.hanging: set = set()
        self.departures: List[FlightSnapshot] = []
        self.arrivals: List[FlightSnapshot] = []
        self.routes: Dict[tuple, List[FlightSnapshot]] = {}
        self.calls: List[tuple] = []
        self.unavailable = False

    async def get_flight(self, flight_code: str) -> Optional[FlightSnapshot]:
        self.calls.append(("get_flight", flight_code))
        if self.unavailable or flight_code in self.failing:
            raise ProviderError("provider down")
        if flight_code in self.hanging:
            await asyncio.sleep(3600)
        return self.flights.get(flight_code)

    async def get_departures(self, airport: str, limit: int = 10) -> List[FlightSnapshot]:
        self.calls.append(("get_departures", airport, limit))
        if self.unavailable:
            raise ProviderError("provider down")
        return self.departures[:limit]

    async def get_arrivals(self, airport: str, limit: int = 10) -> List[FlightSnapshot]:
        self.calls.append(("get_arrivals", airport, limit))
        if self.unavailable:
            raise ProviderError("provider down")
        return self.arrivals[:limit]

    async def search_route(self, departure: str, arrival: str, limit: int = 5) -> List[FlightSnapshot]:
        self.calls.append(("search_route", departure, arrival, limit))
        if self.unavailable:
            raise ProviderError("provider down")
        return self.routes.get((departure, arrival), [])[:limit]

    def flight_calls(self) -> List[str]:
        return [call[1] for call in self.calls if call[0] == "get_flight"]


class FakeTransport(MessagingTransport):
    """Records outbound messages; recipients in `failing` raise TransportError."""

    def __init__(self):
        self.sent: List[tuple] = []
        self.failing: set = set()

    async def send(self, recipient_address: str, text: str) -> Dict[str, Any]:
        if recipient_address in self.failing:
            raise TransportError("delivery failed")
        self.sent.append((recipient_address, text))
        return {"channel_message_id": f"SM{len(self.sent)}", "status": "queued"}


class FakeClassifier(FallbackClassifier):
    """Returns a fixed result, raises a fixed error, or hangs."""

    def __init__(self, result: Optional[ClassifierResult] = None, error: Optional[Exception] = None, hang: bool = False):
        self.result = result or ClassifierResult(intent="unknown")
        self.error = error
        self.hang = hang
        self.calls: List[str] = []

    async def classify(self, text: str) -> ClassifierResult:
        self.calls.append(text)
        if self.hang:
            await asyncio.sleep(3600)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def transport():
    return FakeTransport()
