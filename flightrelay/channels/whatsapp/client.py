import time
from typing import Any, Dict, Optional

import httpx

from flightrelay.utils.exceptions import TransportError
from flightrelay.utils.logger import get_logger

logger = get_logger(__name__)


class TwilioClient:
    """
    Client for the Twilio Messages API, used for WhatsApp delivery.

    Handles authentication, message sending and error mapping. Sends are
    not retried: an alert that fails is reported once and dropped.
    """

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_address: str,
        base_url: str = "https://api.twilio.com/2010-04-01",
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize the Twilio client.

        Args:
            account_sid: Twilio account SID
            auth_token: Twilio auth token
            from_address: Sender address, e.g. "whatsapp:+14155238886"
            base_url: Base URL of the Twilio REST API
            timeout: Request timeout in seconds
            http_client: Optional preconfigured client (used in tests)
        """
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_address = from_address
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = http_client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

        if self.is_configured():
            logger.info(f"Twilio client initialized for sender {from_address}")

    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_address)

    async def send_text(self, recipient: str, text: str) -> Dict[str, Any]:
        """
        Send a text message.

        Args:
            recipient: Recipient address, e.g. "whatsapp:+393331234567"
            text: Message body

        Returns:
            Parsed Twilio message resource

        Raises:
            TransportError: If credentials are missing or the API call fails
        """
        if not self.is_configured():
            raise TransportError("Twilio credentials are not configured")

        endpoint = f"/Accounts/{self.account_sid}/Messages.json"
        data = {"From": self.from_address, "To": recipient, "Body": text}

        try:
            start_time = time.time()
            response = await self.client.post(
                endpoint,
                data=data,
                auth=(self.account_sid, self.auth_token)
            )
            logger.debug(
                f"Twilio API request completed in {time.time() - start_time:.2f}s",
                extra={"status_code": response.status_code}
            )
        except httpx.HTTPError as e:
            logger.error(f"Twilio API connection error: {str(e)}")
            raise TransportError(f"Connection error: {str(e)}", details={"recipient": recipient}) from e

        if response.status_code not in (200, 201):
            error_info = self._parse_error_response(response)
            error_message = error_info.get("message", f"API error: {response.status_code}")
            logger.error(
                f"Twilio API error: {error_message}",
                extra={"status_code": response.status_code, "error_code": error_info.get("code")}
            )
            raise TransportError(
                error_message,
                details={"recipient": recipient, "status_code": response.status_code}
            )

        try:
            return response.json()
        except ValueError:
            return {}

    def _parse_error_response(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            error_data = response.json()
            return error_data if isinstance(error_data, dict) else {}
        except ValueError:
            return {"message": response.text or "Unknown error", "code": response.status_code}

    async def close(self) -> None:
        await self.client.aclose()
