"""
Flight record models.

Mirror the aviationstack `/flights` record. Every field is optional because
the provider routinely returns nulls for gates, terminals and live data.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FlightEndpoint(BaseModel):
    """Departure or arrival side of a flight."""

    model_config = ConfigDict(extra="ignore")

    airport: Optional[str] = None
    iata: Optional[str] = None
    icao: Optional[str] = None
    terminal: Optional[str] = None
    gate: Optional[str] = None
    baggage: Optional[str] = None
    delay: Optional[int] = None
    scheduled: Optional[str] = None
    estimated: Optional[str] = None
    actual: Optional[str] = None


class Airline(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    iata: Optional[str] = None
    icao: Optional[str] = None


class FlightIdentifier(BaseModel):
    model_config = ConfigDict(extra="ignore")

    number: Optional[str] = None
    iata: Optional[str] = None
    icao: Optional[str] = None


class Aircraft(BaseModel):
    model_config = ConfigDict(extra="ignore")

    registration: Optional[str] = None
    iata: Optional[str] = None
    icao: Optional[str] = None


class LivePosition(BaseModel):
    model_config = ConfigDict(extra="ignore")

    updated: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    direction: Optional[float] = None
    speed_horizontal: Optional[float] = None
    speed_vertical: Optional[float] = None
    is_ground: Optional[bool] = None


class FlightSnapshot(BaseModel):
    """The provider's current view of one flight."""

    model_config = ConfigDict(extra="ignore")

    flight_date: Optional[str] = None
    flight_status: Optional[str] = None
    departure: FlightEndpoint = Field(default_factory=FlightEndpoint)
    arrival: FlightEndpoint = Field(default_factory=FlightEndpoint)
    airline: Airline = Field(default_factory=Airline)
    flight: FlightIdentifier = Field(default_factory=FlightIdentifier)
    aircraft: Optional[Aircraft] = None
    live: Optional[LivePosition] = None

    @property
    def status(self) -> Optional[str]:
        return self.flight_status or None

    @property
    def current_gate(self) -> Optional[str]:
        """Departure gate if known, otherwise the arrival gate."""
        return self.departure.gate or self.arrival.gate or None

    @property
    def code(self) -> str:
        return self.flight.iata or self.flight.icao or ""

    @property
    def is_airborne(self) -> bool:
        """Unknown ground state counts as on the ground."""
        return self.live is not None and self.live.is_ground is False
