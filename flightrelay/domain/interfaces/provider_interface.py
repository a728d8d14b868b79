from abc import ABC, abstractmethod
from typing import List, Optional

from flightrelay.domain.models.flight import FlightSnapshot


class FlightDataProvider(ABC):
    """
    Abstract interface for upstream aviation data providers.

    Implementations return None (or an empty list) when nothing matches and
    raise ProviderError when the provider cannot be reached or answers with
    an error.
    """

    @abstractmethod
    async def get_flight(self, flight_code: str) -> Optional[FlightSnapshot]:
        """
        Fetch the current record for one flight.

        Args:
            flight_code: IATA flight code, e.g. "EK509"

        Returns:
            The flight snapshot, or None if the provider has no such flight

        Raises:
            ProviderError: If the provider call fails
        """
        pass

    @abstractmethod
    async def get_departures(self, airport: str, limit: int = 10) -> List[FlightSnapshot]:
        """Fetch flights departing from an airport."""
        pass

    @abstractmethod
    async def get_arrivals(self, airport: str, limit: int = 10) -> List[FlightSnapshot]:
        """Fetch flights arriving at an airport."""
        pass

    @abstractmethod
    async def search_route(self, departure: str, arrival: str, limit: int = 5) -> List[FlightSnapshot]:
        """Fetch flights operating between two airports."""
        pass

    async def close(self) -> None:
        """Release network resources held by the provider."""
        return None
