import time
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from flightrelay.domain.interfaces.provider_interface import FlightDataProvider
from flightrelay.domain.models.flight import FlightSnapshot
from flightrelay.utils.exceptions import ProviderError
from flightrelay.utils.logger import get_logger

logger = get_logger(__name__)


class AviationStackClient(FlightDataProvider):
    """
    Client for the aviationstack flights API.

    Transient network errors are retried with exponential backoff; all
    other failures surface as ProviderError. Every request is bounded by
    the client timeout.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "http://api.aviationstack.com/v1",
        timeout: float = 10.0,
        max_retries: int = 2,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize the aviationstack client.

        Args:
            api_key: aviationstack access key
            base_url: Base URL of the API
            timeout: Request timeout in seconds
            max_retries: Retries for connection errors and timeouts
            http_client: Optional preconfigured client (used in tests)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self.client = http_client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def get_flight(self, flight_code: str) -> Optional[FlightSnapshot]:
        records = await self._fetch_flights({"flight_iata": flight_code})
        if not records:
            logger.info(f"Flight {flight_code} not found")
            return None
        return records[0]

    async def get_departures(self, airport: str, limit: int = 10) -> List[FlightSnapshot]:
        return await self._fetch_flights({"dep_iata": airport, "limit": limit})

    async def get_arrivals(self, airport: str, limit: int = 10) -> List[FlightSnapshot]:
        return await self._fetch_flights({"arr_iata": airport, "limit": limit})

    async def search_route(self, departure: str, arrival: str, limit: int = 5) -> List[FlightSnapshot]:
        return await self._fetch_flights({"dep_iata": departure, "arr_iata": arrival, "limit": limit})

    async def _fetch_flights(self, params: Dict[str, Any]) -> List[FlightSnapshot]:
        payload = await self._get("/flights", params)
        records = payload.get("data") or []
        if not isinstance(records, list):
            raise ProviderError("Unexpected flights payload", details={"params": params})

        try:
            return [FlightSnapshot.model_validate(record) for record in records]
        except ValidationError as e:
            logger.error(f"Could not decode aviationstack flight record: {str(e)}")
            raise ProviderError("Malformed flight record", details={"params": params})

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            logger.error("No aviationstack API key configured")
            raise ProviderError("Flight data provider is not configured")

        try:
            return await self._request(path, {"access_key": self.api_key, **params})
        except httpx.HTTPError as e:
            logger.error(f"aviationstack API error: {str(e)}")
            raise ProviderError(f"Connection error: {str(e)}", details={"path": path})

    async def _request(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        retrying = retry(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
            retry=retry_if_exception_type((httpx.TransportError,)),
            reraise=True
        )
        return await retrying(self._send)(path, params)

    async def _send(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        start_time = time.time()
        response = await self.client.get(path, params=params)
        logger.debug(
            f"aviationstack request completed in {time.time() - start_time:.2f}s",
            extra={"path": path, "status_code": response.status_code}
        )

        if response.status_code != 200:
            error_info = self._parse_error_response(response)
            raise ProviderError(
                error_info.get("message", f"API error: {response.status_code}"),
                details={"status_code": response.status_code, "code": error_info.get("code")}
            )

        try:
            payload = response.json()
        except ValueError:
            raise ProviderError("Provider returned a non-JSON body")

        # aviationstack reports some failures (quota, bad key) with a 200 and an error object
        if not isinstance(payload, dict):
            raise ProviderError("Unexpected provider payload")
        if "error" in payload:
            error_info = payload["error"] if isinstance(payload["error"], dict) else {"message": str(payload["error"])}
            raise ProviderError(
                error_info.get("message", "Provider error"),
                details={"code": error_info.get("code")}
            )
        return payload

    def _parse_error_response(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            error_data = response.json()
            if isinstance(error_data, dict) and isinstance(error_data.get("error"), dict):
                return error_data["error"]
            return error_data if isinstance(error_data, dict) else {}
        except ValueError:
            return {"message": response.text or "Unknown error", "code": response.status_code}

    async def close(self) -> None:
        await self.client.aclose()
